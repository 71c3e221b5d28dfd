"""FastAPI application factory"""

import uvicorn
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from rental_lifecycle.api.middleware import RequestIDMiddleware, MetricsMiddleware
from rental_lifecycle.api.v1 import automation
from rental_lifecycle.infrastructure.observability.logging import setup_logging
from rental_lifecycle.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Rental Lifecycle Automation",
        description="Deadline-driven lease and application lifecycle service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(automation.router, prefix="/v1", tags=["automation"])

    return app


app = create_app()


def run() -> None:
    """Serve the API; the scheduler then calls POST /v1/automation/run"""
    uvicorn.run(
        "rental_lifecycle.api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep the JSON handler installed by setup_logging
    )


if __name__ == "__main__":
    run()
