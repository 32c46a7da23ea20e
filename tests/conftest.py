"""
Pytest configuration and shared fixtures.
"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

from crawler.calendar_crawler import CalendarFetcher
from crawler.models import RawCalendarRow


FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=ZoneInfo("UTC"))


def make_row(
    event: str = "CPI",
    currency: str = "EUR",
    time: str = "09:00",
    actual: str = "",
    forecast: str = "",
    previous: str = "",
    country=None
) -> RawCalendarRow:
    """Build a raw calendar row."""
    return RawCalendarRow(
        time=time,
        currency=currency,
        country=country,
        event=event,
        actual=actual,
        forecast=forecast,
        previous=previous
    )


@pytest.fixture
def row_factory():
    """Factory for raw calendar rows."""
    return make_row


@pytest.fixture
def entry_factory():
    """Factory for normalized calendar entries."""
    from crawler.normalizer import EntryNormalizer

    normalizer = EntryNormalizer()

    def factory(**kwargs):
        row = make_row(**kwargs)
        return normalizer.normalize_row(row, row.time)

    return factory


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed aware datetime."""
    return lambda: FIXED_NOW


@pytest.fixture
def mock_fetcher():
    """Create a mock calendar fetcher."""
    fetcher = AsyncMock(spec=CalendarFetcher)
    fetcher.fetch_rows.return_value = []
    return fetcher


@pytest.fixture
def mock_notifier():
    """Create a mock notification sink."""
    notifier = AsyncMock()
    notifier.send.return_value = None
    return notifier


# Scheduler-specific fixtures
@pytest.fixture
def scheduler_config():
    """Create scheduler configuration for testing."""
    from scheduler.models import SchedulerConfig, Segment
    return SchedulerConfig(
        timezone="UTC",
        source_timezone="UTC",
        digest_hour=0,
        digest_minute=0,
        poll_start_hour=8,
        poll_end_hour=22,
        poll_interval_minutes=1,
        segments=[Segment(currency_code="EUR"), Segment(currency_code="USD")]
    )


@pytest.fixture
def scheduler_service(scheduler_config, mock_fetcher, mock_notifier, fixed_clock):
    """Scheduler service wired to mocks and an isolated cache."""
    from scheduler.scheduler_service import SchedulerService
    from scheduler.state_cache import StateCache
    return SchedulerService(
        scheduler_config,
        mock_fetcher,
        mock_notifier,
        cache=StateCache(),
        clock=fixed_clock
    )


@pytest.fixture
def sample_calendar_html():
    """Sample calendar page for extraction tests."""
    return """
    <html>
        <body>
            <table class="calendar__table">
                <tr class="calendar__row calendar__row--day-breaker">
                    <td colspan="8">Mon Oct 19</td>
                </tr>
                <tr class="calendar__row">
                    <td class="calendar__time">All Day</td>
                    <td class="calendar__currency">CNY</td>
                    <td class="calendar__event"><span class="calendar__event-title">Bank Holiday</span></td>
                    <td class="calendar__actual"></td>
                    <td class="calendar__forecast"></td>
                    <td class="calendar__previous"></td>
                </tr>
                <tr class="calendar__row">
                    <td class="calendar__time">9:00am</td>
                    <td class="calendar__currency">EUR</td>
                    <td class="calendar__event"><span class="calendar__event-title">CPI y/y</span></td>
                    <td class="calendar__actual"><span>2.1%</span></td>
                    <td class="calendar__forecast"><span>2.0%</span></td>
                    <td class="calendar__previous"><span>1.9%</span></td>
                </tr>
                <tr class="calendar__row">
                    <td class="calendar__time"></td>
                    <td class="calendar__currency">EUR</td>
                    <td class="calendar__event"><span class="calendar__event-title">Core CPI y/y</span></td>
                    <td class="calendar__actual"></td>
                    <td class="calendar__forecast"><span>2.7%</span></td>
                    <td class="calendar__previous"><span>2.7%</span></td>
                </tr>
                <tr class="calendar__row">
                    <td class="calendar__time">2:30pm</td>
                    <td class="calendar__currency">USD</td>
                    <td class="calendar__event"><span class="calendar__event-title">Non-Farm Employment Change</span></td>
                    <td class="calendar__actual"></td>
                    <td class="calendar__forecast"><span>150K</span></td>
                    <td class="calendar__previous"><span>1,042K</span></td>
                </tr>
            </table>
        </body>
    </html>
    """
