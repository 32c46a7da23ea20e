"""
Async fetcher for the published economic calendar page.
Fetches the page with a bounded timeout and extracts the table rows.
"""

import asyncio
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup
import structlog

from .models import RawCalendarRow
from utilities.logger import TickLogger

logger = structlog.get_logger(__name__)


class FetchError(Exception):
    """Raised when the calendar page cannot be retrieved."""


class ExtractionError(Exception):
    """Raised when the retrieved document holds no calendar rows."""


class CalendarFetcher:
    """
    Pull-only fetcher for the calendar table.
    """

    TABLE_SELECTOR = "table.calendar__table"
    ROW_SELECTOR = "tr.calendar__row"
    SKIPPED_ROW_CLASSES = {"calendar__row--day-breaker", "calendar__row--no-event"}

    CELL_SELECTORS = {
        "time": "td.calendar__time",
        "currency": "td.calendar__currency",
        "country": "td.calendar__country",
        "event": "td.calendar__event .calendar__event-title",
        "actual": "td.calendar__actual",
        "forecast": "td.calendar__forecast",
        "previous": "td.calendar__previous",
    }

    def __init__(self, url: str, timeout: float = 30, headers: Optional[dict] = None):
        """
        Initialize the fetcher.

        Args:
            url: Calendar page URL
            timeout: Upper bound for one fetch in seconds
            headers: HTTP headers sent with the request
        """
        self.url = url
        self.timeout = timeout
        self.tick_logger = TickLogger("calendar_fetcher")

        # HTTP client configuration
        self.client_config = {
            "timeout": timeout,
            "headers": headers or {},
            "follow_redirects": True,
        }

    async def fetch_html(self) -> str:
        """
        Fetch the calendar document.

        Returns:
            Response body

        Raises:
            FetchError: On network failure, timeout or non-success status
        """
        try:
            async with httpx.AsyncClient(**self.client_config) as client:
                response = await asyncio.wait_for(client.get(self.url), timeout=self.timeout)
                response.raise_for_status()
                return response.text
        except asyncio.TimeoutError as e:
            raise FetchError(f"Calendar fetch timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(f"Calendar returned status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Calendar fetch failed: {str(e)}") from e

    async def fetch_rows(self) -> List[RawCalendarRow]:
        """
        Fetch the calendar and extract its rows.

        Raises:
            FetchError: If the document cannot be retrieved
            ExtractionError: If the document holds no calendar rows
        """
        html = await self.fetch_html()
        try:
            rows = self.extract_rows(html)
        except ExtractionError:
            self.tick_logger.log_fetch(self.url, 0, success=False)
            raise

        self.tick_logger.log_fetch(self.url, len(rows))
        return rows

    def extract_rows(self, html: str) -> List[RawCalendarRow]:
        """
        Extract raw rows from the calendar document.

        Args:
            html: Calendar page markup

        Returns:
            Rows in page order

        Raises:
            ExtractionError: If there is no calendar table or it is empty
        """
        if not html or not html.strip():
            raise ExtractionError("Empty calendar document")

        soup = BeautifulSoup(html, 'html.parser')
        table = soup.select_one(self.TABLE_SELECTOR)
        if table is None:
            raise ExtractionError("Calendar table not found in document")

        rows = []
        for tr in table.select(self.ROW_SELECTOR):
            if self.SKIPPED_ROW_CLASSES.intersection(tr.get('class', [])):
                continue

            cells = {
                field: self._extract_text(tr, selector)
                for field, selector in self.CELL_SELECTORS.items()
            }
            if not cells["event"]:
                continue

            rows.append(RawCalendarRow(
                time=cells["time"],
                currency=cells["currency"],
                country=cells["country"] or None,
                event=cells["event"],
                actual=cells["actual"],
                forecast=cells["forecast"],
                previous=cells["previous"],
            ))

        if not rows:
            raise ExtractionError("Calendar table contains no event rows")

        return rows

    def _extract_text(self, element, selector: str) -> str:
        """Extract text from a child element using a CSS selector."""
        child = element.select_one(selector)
        return child.get_text(" ", strip=True) if child else ""
