"""
Notification sinks for calendar messages.

This module provides:
- The Notifier protocol and NotificationError
- A Discord incoming-webhook sink
- A log-only sink for dry runs and unconfigured deployments
"""

from typing import List, Protocol

import httpx
import structlog

logger = structlog.get_logger(__name__)

DISCORD_MESSAGE_LIMIT = 2000


class NotificationError(Exception):
    """Raised when a notification fails to send."""


class Notifier(Protocol):
    """Protocol for notification sinks."""

    async def send(self, text: str) -> None:
        """
        Send one formatted message.

        Raises:
            NotificationError: If the message fails to send
        """
        ...


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """
    Split a message into chunks no longer than ``limit``.

    Splits on line boundaries; a single line longer than the limit is cut.
    Blank lines are kept, so unless a line had to be cut, joining the
    chunks with newlines gives back the original text.
    """
    if not text:
        return []

    chunks = []
    current = None

    for line in text.split("\n"):
        while len(line) > limit:
            if current is not None:
                chunks.append(current)
                current = None
            chunks.append(line[:limit])
            line = line[limit:]

        candidate = line if current is None else f"{current}\n{line}"
        if current is not None and len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current is not None:
        chunks.append(current)
    return chunks


class DiscordWebhookNotifier:
    """Sends messages to a Discord channel via an incoming webhook."""

    def __init__(self, webhook_url: str, timeout: float = 30):
        """
        Initialize Discord notifier.

        Args:
            webhook_url: Discord incoming webhook URL
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.logger = logger.bind(component="discord_notifier")

    async def send(self, text: str) -> None:
        """
        Send a message, split into consecutive posts when it exceeds the
        Discord length limit. Nothing is retried.

        Raises:
            NotificationError: If any post fails
        """
        chunks = split_message(text)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                for chunk in chunks:
                    if not chunk.strip():
                        continue
                    response = await client.post(self.webhook_url, json={"content": chunk})
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "Discord webhook rejected message",
                status_code=e.response.status_code,
                error=str(e)
            )
            raise NotificationError(f"Discord webhook returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            self.logger.error("Failed to send Discord notification", error=str(e))
            raise NotificationError(f"Discord notification failed: {e}") from e

        self.logger.info("Sent Discord notification", parts=len(chunks), length=len(text))


class LogNotifier:
    """Writes messages to the structured log instead of a channel."""

    def __init__(self):
        self.logger = logger.bind(component="log_notifier")

    async def send(self, text: str) -> None:
        self.logger.info("Calendar notification", message=text)
