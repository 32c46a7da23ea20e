"""
API configuration settings.
"""

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Economic Calendar Watch API"
    api_version: str = "1.0.0"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # API Key Settings
    api_keys: str = ""  # Comma-separated list of valid API keys

    # Rate Limiting for manual triggers
    manual_trigger_rate_limit: int = 30  # requests per hour per key
    rate_limit_window: int = 3600  # 1 hour in seconds

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    def get_api_keys(self) -> list:
        """Parse comma-separated API keys."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]


# Global config instance
config = APIConfig()
