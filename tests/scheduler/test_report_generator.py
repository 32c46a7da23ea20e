"""
Unit tests for digest and diff message formatting.
"""

import pytest
from datetime import datetime, time
from zoneinfo import ZoneInfo

from scheduler.change_detector import ChangeDetector
from scheduler.models import ChangeNotification, Comparison, Segment
from scheduler.report_generator import NotificationFormatter, parse_clock_time


NOW = datetime(2026, 10, 19, 9, 30, tzinfo=ZoneInfo("UTC"))


@pytest.fixture
def formatter():
    return NotificationFormatter()


@pytest.fixture
def detector():
    return ChangeDetector([Segment(currency_code="EUR"), Segment(currency_code="USD")])


class TestParseClockTime:
    """Test cases for parse_clock_time."""

    @pytest.mark.parametrize("text,expected", [
        ("09:00", time(9, 0)),
        ("9:00am", time(9, 0)),
        ("12:15am", time(0, 15)),
        ("12:00pm", time(12, 0)),
        ("8:30 PM", time(20, 30)),
    ])
    def test_clock_times(self, text, expected):
        assert parse_clock_time(text) == expected

    @pytest.mark.parametrize("text", ["All Day", "Tentative", "25:00", "13:00pm", ""])
    def test_not_clock_times(self, text):
        assert parse_clock_time(text) is None


class TestDisplayTime:
    """Test cases for display time conversion."""

    def test_same_timezone(self, formatter):
        assert formatter.display_time("9:00am", NOW) == "09:00"

    def test_new_york_to_berlin(self):
        formatter = NotificationFormatter(timezone="Europe/Berlin", source_timezone="America/New_York")
        assert formatter.display_time("8:30am", NOW) == "14:30"

    def test_sentinel_is_verbatim(self, formatter):
        assert formatter.display_time("All Day", NOW) == "All Day"
        assert formatter.display_time("Tentative", NOW) == "Tentative"


class TestFormatDigest:
    """Test cases for the digest message."""

    def test_digest_message(self, formatter, detector, entry_factory):
        plan = detector.build_digest([
            entry_factory(event="CPI", actual="2.1%", forecast="2.0%", previous="1.9%"),
            entry_factory(event="GDP", currency="USD", time="2:30pm", forecast="2.8%"),
        ])

        message = formatter.format_digest(plan, NOW)

        assert message.startswith("📊 **Economic Calendar 2026-10-19**")
        assert "🇪🇺 Euro Area (EUR)" in message
        assert "🇺🇸 United States (USD)" in message
        assert "`09:00` • **EUR** — CPI: actual 2.1% | forecast 2.0% | previous 1.9%" in message
        assert "`14:30` • **USD** — GDP: actual pending | forecast 2.8% | previous —" in message

    def test_empty_segment(self, formatter, detector, entry_factory):
        plan = detector.build_digest([entry_factory(event="CPI")])

        message = formatter.format_digest(plan, NOW)

        assert "🇺🇸 United States (USD)\nNo scheduled events" in message

    def test_country_in_prefix(self, formatter, entry_factory):
        detector = ChangeDetector([Segment(currency_code="EUR", country_name="Germany")])
        plan = detector.build_digest([entry_factory(event="Ifo", country="Germany")])

        message = formatter.format_digest(plan, NOW)

        assert "🇪🇺 Germany (EUR)" in message
        assert "**EUR/Germany** — Ifo" in message

    def test_catch_all_block(self, formatter, entry_factory):
        plan = ChangeDetector().build_digest([entry_factory(event="Bank Holiday", currency="", time="All Day")])

        message = formatter.format_digest(plan, NOW)

        assert "🌐 Other events\n`All Day` • Bank Holiday: actual pending" in message

    def test_digest_date_uses_display_timezone(self, detector, entry_factory):
        formatter = NotificationFormatter(timezone="Asia/Tokyo")
        late = datetime(2026, 10, 19, 22, 0, tzinfo=ZoneInfo("UTC"))

        message = formatter.format_digest(detector.build_digest([entry_factory()]), late)

        assert "Economic Calendar 2026-10-20" in message


class TestFormatDiff:
    """Test cases for the diff message."""

    def test_diff_message(self, formatter, entry_factory):
        notifications = [
            ChangeNotification(entry=entry_factory(event="CPI", actual="2.4%", forecast="2.0%"), comparison=Comparison.ABOVE),
            ChangeNotification(entry=entry_factory(event="PPI", actual="0.1%"), comparison=Comparison.NO_COMPARISON),
        ]

        message = formatter.format_diff(notifications, NOW)

        assert message.split("\n") == [
            "🕑 **New economic data (09:30)**",
            "`09:00` • **EUR** — CPI: 2.4% above forecast 📈",
            "`09:00` • **EUR** — PPI: 0.1%",
        ]
