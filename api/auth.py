"""
Authentication and rate limiting for the FastAPI API.
"""

import time
from typing import Dict, List

import structlog
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.config import config

logger = structlog.get_logger(__name__)

# Security scheme
security = HTTPBearer()


class RateLimiter:
    """Sliding-window request limiter for manual triggers, kept in memory."""

    def __init__(self, limit: int, window_seconds: int = 3600):
        self.limit = limit
        self.window_seconds = window_seconds
        self.requests: Dict[str, List[float]] = {}

    def _recent(self, api_key: str, current_time: float) -> List[float]:
        recent = [
            req_time for req_time in self.requests.get(api_key, [])
            if current_time - req_time < self.window_seconds
        ]
        self.requests[api_key] = recent
        return recent

    def check_rate_limit(self, api_key: str) -> bool:
        """
        Record a request and report whether it is within the limit.

        Args:
            api_key: API key to check

        Returns:
            True if within limit, False if exceeded
        """
        current_time = time.time()
        recent = self._recent(api_key, current_time)

        if len(recent) >= self.limit:
            return False

        recent.append(current_time)
        return True

    def get_rate_limit_info(self, api_key: str) -> Dict:
        """Get rate limit information for an API key."""
        current_time = time.time()
        recent = self._recent(api_key, current_time)
        reset_time = (recent[0] + self.window_seconds) if recent else current_time

        return {
            "requests_used": len(recent),
            "requests_remaining": max(0, self.limit - len(recent)),
            "rate_limit": self.limit,
            "reset_time": reset_time
        }

    def reset(self) -> None:
        self.requests.clear()


trigger_rate_limiter = RateLimiter(config.manual_trigger_rate_limit, config.rate_limit_window)


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    """
    Verify API key from request against the configured keys.

    Args:
        credentials: HTTP authorization credentials

    Returns:
        API key if valid

    Raises:
        HTTPException: If API key is invalid
    """
    api_key = credentials.credentials

    if api_key not in config.get_api_keys():
        logger.warning("Invalid API key attempted", api_key=api_key[:10] + "...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return api_key


async def verify_trigger_allowed(api_key: str = Depends(verify_api_key)) -> str:
    """
    Verify API key and apply the manual trigger rate limit.

    Raises:
        HTTPException: 429 when the key exceeded its trigger budget
    """
    if not trigger_rate_limiter.check_rate_limit(api_key):
        logger.warning("Manual trigger rate limited", api_key=api_key[:10] + "...")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Manual trigger rate limit exceeded",
            headers=get_rate_limit_headers(api_key),
        )
    return api_key


def get_rate_limit_headers(api_key: str) -> Dict[str, str]:
    """
    Get rate limit headers for response.

    Args:
        api_key: API key

    Returns:
        Dictionary with rate limit headers
    """
    rate_info = trigger_rate_limiter.get_rate_limit_info(api_key)
    return {
        "X-RateLimit-Limit": str(rate_info['rate_limit']),
        "X-RateLimit-Remaining": str(rate_info['requests_remaining']),
        "X-RateLimit-Reset": str(int(rate_info['reset_time']))
    }
