"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from rental_lifecycle.domain.models import RunSummary


class RunSummaryResponse(BaseModel):
    """Response for POST /v1/automation/run"""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    timestamp: str = Field(..., description="ISO-8601 time the run evaluated deadlines against")
    scanned: int
    expired: int
    warnings_sent: int = Field(..., alias="warningsSent")
    overdue_marked: int = Field(..., alias="overdueMarked")
    auto_processed: int = Field(..., alias="autoProcessed")
    notifications_dispatched: int = Field(..., alias="notificationsDispatched")
    conflicts: int
    errors: int
    error: Optional[str] = None

    @classmethod
    def from_summary(cls, summary: RunSummary) -> "RunSummaryResponse":
        return cls(
            success=summary.success,
            timestamp=summary.timestamp.isoformat(),
            scanned=summary.scanned,
            expired=summary.expired,
            warnings_sent=summary.warnings_sent,
            overdue_marked=summary.overdue_marked,
            auto_processed=summary.auto_processed,
            notifications_dispatched=summary.notifications_dispatched,
            conflicts=summary.conflicts,
            errors=summary.errors,
            error=summary.error,
        )
