"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from scheduler.models import JobType, TickResult


class TriggerResponse(BaseModel):
    """Outcome of a manually triggered tick."""
    job_id: str = Field(..., description="Tick identifier")
    job: JobType = Field(..., description="Job that ran")
    success: bool = Field(..., description="Whether the tick completed without error")
    dry_run: bool = Field(..., description="Whether the cache and sink were left untouched")
    entries_seen: int = Field(..., description="Entries in the fetched snapshot")
    notifications: int = Field(..., description="New-or-changed values found")
    message_sent: bool = Field(..., description="Whether a message was delivered")
    message: Optional[str] = Field(None, description="Formatted message")
    error: Optional[str] = Field(None, description="Error, if the tick failed")
    duration: float = Field(..., description="Tick duration in seconds")

    @classmethod
    def from_result(cls, result: TickResult) -> "TriggerResponse":
        return cls(
            job_id=result.job_id,
            job=result.job,
            success=result.success,
            dry_run=result.dry_run,
            entries_seen=result.entries_seen,
            notifications=result.notifications,
            message_sent=result.message_sent,
            message=result.message,
            error=result.error,
            duration=result.duration
        )


class CacheEntryResponse(BaseModel):
    """One cached identity and its last-notified value."""
    currency_code: str
    country_name: Optional[str] = None
    event_name: str
    scheduled_time: str
    value: str = Field(..., description="Last-notified actual value")


class CacheResponse(BaseModel):
    """Read-only view of the state cache."""
    size: int = Field(..., description="Number of cached identities")
    entries: List[CacheEntryResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    scheduler_status: str = Field(..., description="Scheduler state")
