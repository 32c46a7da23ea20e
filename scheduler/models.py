"""
Models for scheduler and change detection functionality.

This module defines Pydantic models for:
- Forecast comparison results
- Tracked segments
- Diff results and cache mutation batches
- Tick results
- Scheduler configuration
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, Field, validator

from crawler.models import CalendarEntry, IdentityKey


class Comparison(str, Enum):
    """Classification of an actual value against its forecast."""
    ABOVE = "above"
    BELOW = "below"
    IN_LINE = "in_line"
    NO_COMPARISON = "no_comparison"

    @property
    def label(self) -> str:
        """Display text attached to a notification line."""
        return {
            Comparison.ABOVE: "above forecast 📈",
            Comparison.BELOW: "below forecast 📉",
            Comparison.IN_LINE: "in line with forecast ➖",
            Comparison.NO_COMPARISON: "",
        }[self]


class JobType(str, Enum):
    """Scheduled job kinds."""
    DIGEST = "digest"
    POLL = "poll"


# Display label and flag per currency
SEGMENT_LABELS = {
    "EUR": ("Euro Area", "🇪🇺"),
    "USD": ("United States", "🇺🇸"),
    "GBP": ("United Kingdom", "🇬🇧"),
    "JPY": ("Japan", "🇯🇵"),
    "CHF": ("Switzerland", "🇨🇭"),
    "CAD": ("Canada", "🇨🇦"),
    "AUD": ("Australia", "🇦🇺"),
    "NZD": ("New Zealand", "🇳🇿"),
    "CNY": ("China", "🇨🇳"),
}


class Segment(BaseModel):
    """A tracked currency, optionally narrowed to one country."""
    currency_code: str = Field(..., min_length=3, max_length=3)
    country_name: Optional[str] = Field(default=None)

    @validator('currency_code')
    def validate_currency_code(cls, v):
        return v.upper()

    @property
    def label(self) -> str:
        if self.country_name:
            return self.country_name
        return SEGMENT_LABELS.get(self.currency_code, (self.currency_code, ""))[0]

    @property
    def flag(self) -> str:
        return SEGMENT_LABELS.get(self.currency_code, ("", "🌐"))[1]

    def matches(self, entry: CalendarEntry) -> bool:
        """Whether the entry belongs to this segment."""
        if entry.currency_code != self.currency_code:
            return False
        return self.country_name is None or self.country_name == entry.country_name


class ChangeNotification(BaseModel):
    """A new-or-changed actual value to announce."""
    entry: CalendarEntry
    previous_value: Optional[Decimal] = Field(default=None, description="Cached value before this tick")
    comparison: Comparison = Field(default=Comparison.NO_COMPARISON)


class CacheMutations(BaseModel):
    """Batch of state cache writes applied as one unit."""
    reset: bool = Field(default=False, description="Clear the cache before applying updates")
    updates: Dict[IdentityKey, Decimal] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.reset and not self.updates


class DiffResult(BaseModel):
    """Outcome of diffing one snapshot against the state cache."""
    notifications: List[ChangeNotification] = Field(default_factory=list)
    mutations: CacheMutations = Field(default_factory=CacheMutations)

    @property
    def has_changes(self) -> bool:
        return bool(self.notifications)


class SegmentBlock(BaseModel):
    """Entries of one segment, in snapshot order. No segment means the catch-all block."""
    segment: Optional[Segment] = Field(default=None)
    entries: List[CalendarEntry] = Field(default_factory=list)


class DigestPlan(BaseModel):
    """Full snapshot partitioned for the daily digest, plus the reset and reseed batch."""
    blocks: List[SegmentBlock] = Field(default_factory=list)
    total_entries: int = Field(default=0)
    mutations: CacheMutations = Field(default_factory=lambda: CacheMutations(reset=True))


class TickResult(BaseModel):
    """Result of one digest or poll tick."""
    job_id: str = Field(..., description="Unique tick identifier")
    job: JobType
    started_at: datetime
    success: bool = Field(default=True)
    dry_run: bool = Field(default=False)
    entries_seen: int = Field(default=0)
    notifications: int = Field(default=0)
    message_sent: bool = Field(default=False)
    message: Optional[str] = Field(default=None, description="Formatted message, if any")
    error: Optional[str] = Field(default=None)
    duration: float = Field(default=0.0)

    class Config:
        """Pydantic configuration."""
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class SchedulerConfig(BaseModel):
    """Configuration for the dual-cadence scheduler."""
    # Timezones
    timezone: str = Field(default="UTC", description="Timezone for schedules and displayed times")
    source_timezone: str = Field(default="UTC", description="Timezone the calendar publishes times in")

    # Daily digest
    digest_hour: int = Field(default=0, ge=0, le=23, description="Hour of the daily digest (24h format)")
    digest_minute: int = Field(default=0, ge=0, le=59, description="Minute of the daily digest")

    # Intraday polling window
    poll_start_hour: int = Field(default=8, ge=0, le=23)
    poll_end_hour: int = Field(default=22, ge=0, le=23)
    poll_interval_minutes: int = Field(default=1, ge=1, le=59)

    # Tracking
    segments: List[Segment] = Field(
        default_factory=lambda: [Segment(currency_code="EUR"), Segment(currency_code="USD")]
    )
    poll_tracked_only: bool = Field(default=False, description="Limit poll announcements to the segments")

    # Upstream
    request_timeout: int = Field(default=30, description="Fetch timeout in seconds")
    decimal_separator: str = Field(default=".")

    @validator('timezone', 'source_timezone')
    def validate_timezone(cls, v):
        """Ensure timezone is a known IANA identifier."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'unknown timezone: {v}')
        return v

    @validator('poll_end_hour')
    def validate_poll_window(cls, v, values):
        """Poll window must be ordered and must not contain the digest hour."""
        start = values.get('poll_start_hour')
        if start is not None and v < start:
            raise ValueError('poll_end_hour must not be earlier than poll_start_hour')
        digest_hour = values.get('digest_hour')
        if start is not None and digest_hour is not None and start <= digest_hour <= v:
            raise ValueError('poll window must not contain the digest hour')
        return v

    @property
    def poll_hours(self) -> str:
        """Cron hour expression for the polling window."""
        return f"{self.poll_start_hour}-{self.poll_end_hour}"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
