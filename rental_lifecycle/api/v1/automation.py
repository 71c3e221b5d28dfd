"""POST /v1/automation/run - scheduled lifecycle scan endpoint"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from rental_lifecycle.api.dependencies import get_orchestrator, get_request_id
from rental_lifecycle.api.v1.schemas import RunSummaryResponse
from rental_lifecycle.services.orchestrator import LifecycleOrchestrator

router = APIRouter()


@router.post("/automation/run", response_model=RunSummaryResponse)
async def run_automation(
    request: Request,
    orchestrator: LifecycleOrchestrator = Depends(get_orchestrator),
):
    """
    Run one full lifecycle scan.

    Flow:
    1. Load active leases and pending applications
    2. Evaluate deadlines, drop already-applied events
    3. Commit transitions with conditional writes (lease expiry releases the property)
    4. Dispatch notifications best-effort
    5. Return the run summary

    Safe to call repeatedly or concurrently: a second call on unchanged data
    applies nothing. Responds 503 with the same summary body when the store
    could not be read.
    """
    request_id = get_request_id(request)
    summary = await orchestrator.run()
    body = RunSummaryResponse.from_summary(summary)

    if not summary.success:
        logging.error(f"Lifecycle run failed to load: {summary.error}", extra={"request_id": request_id})
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))

    return body
