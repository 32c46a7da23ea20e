"""
Configuration management using environment variables.
Handles all calendar watch settings with proper validation and defaults.
"""

from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from pathlib import Path


class CalendarWatchConfig(BaseSettings):
    """
    Configuration class for calendar watch settings.
    Uses pydantic BaseSettings for environment variable management.
    """

    # Upstream calendar
    calendar_url: str = Field(default="https://www.forexfactory.com/calendar?day=today", env="CALENDAR_URL")
    request_timeout: int = Field(default=30, env="REQUEST_TIMEOUT")
    source_timezone: str = Field(default="UTC", env="SOURCE_TIMEZONE")
    decimal_separator: str = Field(default=".", env="DECIMAL_SEPARATOR")

    # Notification sink
    discord_webhook_url: Optional[str] = Field(default=None, env="DISCORD_WEBHOOK_URL")

    # Logging Configuration
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default="logs/calendar_watch.log", env="LOG_FILE")

    # Development/Testing
    debug: bool = Field(default=False, env="DEBUG")

    # Scheduler Configuration
    timezone: str = Field(default="Europe/Berlin", env="TIMEZONE")
    digest_hour: int = Field(default=0, env="DIGEST_HOUR")
    digest_minute: int = Field(default=0, env="DIGEST_MINUTE")
    poll_start_hour: int = Field(default=8, env="POLL_START_HOUR")
    poll_end_hour: int = Field(default=22, env="POLL_END_HOUR")
    poll_interval_minutes: int = Field(default=1, env="POLL_INTERVAL_MINUTES")
    tracked_segments: str = Field(default="EUR,USD", env="TRACKED_SEGMENTS")
    poll_tracked_only: bool = Field(default=False, env="POLL_TRACKED_ONLY")

    @validator('request_timeout')
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 1 or v > 300:
            raise ValueError('request_timeout must be between 1 and 300 seconds')
        return v

    @validator('timezone', 'source_timezone')
    def validate_timezone(cls, v):
        """Ensure timezone is a known IANA identifier."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'unknown timezone: {v}')
        return v

    @validator('decimal_separator')
    def validate_decimal_separator(cls, v):
        """Ensure decimal separator is a dot or a comma."""
        if v not in ('.', ','):
            raise ValueError("decimal_separator must be '.' or ','")
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def get_tracked_segments(self) -> List[Tuple[str, Optional[str]]]:
        """
        Parse tracked segments.

        Accepts a comma-separated list of ``CCY`` or ``CCY:Country`` items,
        e.g. ``"EUR:Germany,USD"``.
        """
        segments = []
        for item in self.tracked_segments.split(","):
            item = item.strip()
            if not item:
                continue
            currency, _, country = item.partition(":")
            segments.append((currency.strip().upper(), country.strip() or None))
        return segments

    def get_user_agent(self) -> str:
        """Get user agent string for requests."""
        return "CalendarWatch/1.0 (+economic calendar monitor)"

    def get_headers(self) -> dict:
        """Get default headers for HTTP requests."""
        return {
            "User-Agent": self.get_user_agent(),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
        }


# Global configuration instance
config = CalendarWatchConfig()
