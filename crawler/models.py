"""
Pydantic models for economic calendar rows and entries.
Implements the raw extraction schema and the normalized entry schema.
"""

from decimal import Decimal
from typing import NamedTuple, Optional
from pydantic import BaseModel, Field, validator


ALL_DAY = "All Day"


class IdentityKey(NamedTuple):
    """Identity of one tracked event instance within a calendar day."""
    currency_code: str
    country_name: Optional[str]
    event_name: str
    scheduled_time: str

    def __str__(self) -> str:
        parts = [self.currency_code]
        if self.country_name:
            parts.append(self.country_name)
        parts.extend([self.event_name, self.scheduled_time])
        return " | ".join(parts)


class RawCalendarRow(BaseModel):
    """
    Text cells of a single calendar table row, exactly as extracted.
    """
    time: str = Field(default="", description="Scheduled time cell")
    currency: str = Field(default="", description="Currency cell")
    country: Optional[str] = Field(default=None, description="Country, when the source shows one")
    event: str = Field(default="", description="Event title cell")
    actual: str = Field(default="", description="Actual value cell")
    forecast: str = Field(default="", description="Forecast value cell")
    previous: str = Field(default="", description="Previous value cell")


class CalendarEntry(BaseModel):
    """
    One tracked announcement after normalization.
    """
    scheduled_time: str = Field(..., description="Local time as published, or the all-day sentinel")
    currency_code: str = Field(..., description="3-letter currency identifier")
    country_name: Optional[str] = Field(default=None, description="Country when several share a currency")
    event_name: str = Field(..., description="Event label")

    actual_raw: str = Field(default="", description="Actual value as published")
    forecast_raw: str = Field(default="", description="Forecast value as published")
    previous_raw: str = Field(default="", description="Previous value as published")

    actual_value: Optional[Decimal] = Field(default=None, description="Numeric actual, absent when not numeric")
    forecast_value: Optional[Decimal] = Field(default=None, description="Numeric forecast, absent when not numeric")

    @validator('currency_code')
    def validate_currency_code(cls, v):
        """Currency codes are stored upper-case."""
        return v.strip().upper()

    @property
    def identity_key(self) -> IdentityKey:
        """Identity tuple used by the state cache."""
        return IdentityKey(
            currency_code=self.currency_code,
            country_name=self.country_name,
            event_name=self.event_name,
            scheduled_time=self.scheduled_time,
        )

    @property
    def has_actual(self) -> bool:
        """Whether the actual value coerced to a number."""
        return self.actual_value is not None

    @property
    def is_all_day(self) -> bool:
        return self.scheduled_time == ALL_DAY

    class Config:
        """Pydantic configuration."""
        json_encoders = {
            Decimal: lambda v: str(v)
        }
        json_schema_extra = {
            "example": {
                "scheduled_time": "09:00",
                "currency_code": "EUR",
                "country_name": None,
                "event_name": "CPI y/y",
                "actual_raw": "2.1%",
                "forecast_raw": "2.0%",
                "previous_raw": "1.9%",
                "actual_value": "2.1",
                "forecast_value": "2.0"
            }
        }
