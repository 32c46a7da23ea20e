"""
FastAPI application for manual control of the economic calendar watch.

The application hosts the scheduler service: the lifespan starts the daily
digest and intraday poll jobs, and the trigger endpoints run the same tick
logic out of band.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Depends, status
from fastapi.responses import JSONResponse

from api.auth import verify_api_key, verify_trigger_allowed, get_rate_limit_headers
from api.config import config as api_config
from api.models import (
    CacheEntryResponse, CacheResponse, ErrorResponse, HealthResponse, TriggerResponse
)
from scheduler.scheduler_service import SchedulerService, create_scheduler_service
from utilities.config import config

# Setup logging
logger = structlog.get_logger(__name__)

# Global scheduler service
scheduler_service: Optional[SchedulerService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global scheduler_service
    logger.info("Starting Economic Calendar Watch API")

    scheduler_service = create_scheduler_service(config)
    await scheduler_service.start_background()

    yield

    logger.info("Shutting down Economic Calendar Watch API")
    if scheduler_service:
        scheduler_service.stop()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description="""
    Manual control surface for the economic calendar watch.

    ## Features

    * **Run now**: trigger the daily digest or an intraday poll immediately
    * **Dry run**: preview what a poll would announce without touching the cache
    * **Status**: scheduled jobs and their next run time
    * **Cache**: read-only view of the values announced today

    ## Authentication

    All endpoints except `/health` require an API key:

    ```
    Authorization: Bearer your_api_key_here
    ```
    """,
    version=api_config.api_version,
    lifespan=lifespan
)


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.detail,
            status_code=exc.status_code
        ).dict(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).dict()
    )


def _require_service() -> SchedulerService:
    if scheduler_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduler service not available"
        )
    return scheduler_service


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    if scheduler_service is None:
        scheduler_status = "unavailable"
    elif scheduler_service.scheduler.running:
        scheduler_status = "running"
    else:
        scheduler_status = "stopped"

    return HealthResponse(
        status="healthy" if scheduler_status == "running" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        scheduler_status=scheduler_status
    )


@app.get("/status", tags=["Scheduler"])
async def get_status(api_key: str = Depends(verify_api_key)):
    """Scheduled jobs, next run times and cache size."""
    service = _require_service()
    return await service.get_scheduler_status()


@app.get("/cache", response_model=CacheResponse, tags=["Scheduler"])
async def get_cache(api_key: str = Depends(verify_api_key)):
    """Read-only view of the values announced since the last digest."""
    service = _require_service()
    snapshot = service.cache.snapshot()

    entries = [
        CacheEntryResponse(
            currency_code=key.currency_code,
            country_name=key.country_name,
            event_name=key.event_name,
            scheduled_time=key.scheduled_time,
            value=str(value)
        )
        for key, value in snapshot.items()
    ]
    return CacheResponse(size=len(entries), entries=entries)


@app.post("/trigger/digest", response_model=TriggerResponse, tags=["Triggers"])
async def trigger_digest(api_key: str = Depends(verify_trigger_allowed)):
    """
    Run the daily digest now.

    Sends the digest and resets the cache exactly as the scheduled job does.
    """
    service = _require_service()
    result = await service.run_digest()
    logger.info("Manual digest triggered", job_id=result.job_id, success=result.success)

    return JSONResponse(
        content=TriggerResponse.from_result(result).dict(),
        headers=get_rate_limit_headers(api_key)
    )


@app.post("/trigger/poll", response_model=TriggerResponse, tags=["Triggers"])
async def trigger_poll(
    dry_run: bool = False,
    api_key: str = Depends(verify_trigger_allowed)
):
    """
    Run one intraday poll now.

    - **dry_run**: only report what would be announced; the cache is not
      written and nothing is sent
    """
    service = _require_service()
    result = await service.run_poll(dry_run=dry_run)
    logger.info(
        "Manual poll triggered",
        job_id=result.job_id,
        dry_run=dry_run,
        notifications=result.notifications
    )

    return JSONResponse(
        content=TriggerResponse.from_result(result).dict(),
        headers=get_rate_limit_headers(api_key)
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level="info"
    )
