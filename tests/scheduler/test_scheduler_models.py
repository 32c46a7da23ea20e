"""
Unit tests for scheduler models and forecast comparison.
"""

import pytest
from datetime import datetime
from decimal import Decimal
from pydantic import ValidationError

from crawler.models import IdentityKey
from scheduler.comparator import compare_with_forecast
from scheduler.models import (
    CacheMutations, Comparison, DigestPlan, JobType, SchedulerConfig, Segment, TickResult
)


class TestComparator:
    """Test cases for compare_with_forecast."""

    def test_above(self):
        assert compare_with_forecast(Decimal("10"), Decimal("8")) == Comparison.ABOVE

    def test_below(self):
        assert compare_with_forecast(Decimal("8"), Decimal("10")) == Comparison.BELOW

    def test_in_line_is_exact(self):
        assert compare_with_forecast(Decimal("7"), Decimal("7")) == Comparison.IN_LINE
        assert compare_with_forecast(Decimal("2.0"), Decimal("2.00")) == Comparison.IN_LINE
        assert compare_with_forecast(Decimal("2.0001"), Decimal("2.0")) == Comparison.ABOVE

    def test_absent_side(self):
        assert compare_with_forecast(Decimal("10"), None) == Comparison.NO_COMPARISON
        assert compare_with_forecast(None, Decimal("10")) == Comparison.NO_COMPARISON
        assert compare_with_forecast(None, None) == Comparison.NO_COMPARISON

    def test_labels(self):
        assert Comparison.ABOVE.label == "above forecast 📈"
        assert Comparison.BELOW.label == "below forecast 📉"
        assert Comparison.IN_LINE.label == "in line with forecast ➖"
        assert Comparison.NO_COMPARISON.label == ""


class TestSegment:
    """Test cases for Segment model."""

    def test_known_currency(self):
        segment = Segment(currency_code="eur")
        assert segment.currency_code == "EUR"
        assert segment.label == "Euro Area"
        assert segment.flag == "🇪🇺"

    def test_unknown_currency(self):
        segment = Segment(currency_code="XAU")
        assert segment.label == "XAU"
        assert segment.flag == "🌐"

    def test_country_label(self):
        segment = Segment(currency_code="EUR", country_name="Germany")
        assert segment.label == "Germany"

    def test_invalid_code_length(self):
        with pytest.raises(ValidationError):
            Segment(currency_code="EURO")

    def test_matches(self, entry_factory):
        eur = entry_factory(currency="EUR")
        german = entry_factory(currency="EUR", country="Germany")
        usd = entry_factory(currency="USD")

        assert Segment(currency_code="EUR").matches(eur)
        assert Segment(currency_code="EUR").matches(german)
        assert not Segment(currency_code="EUR").matches(usd)
        assert Segment(currency_code="EUR", country_name="Germany").matches(german)
        assert not Segment(currency_code="EUR", country_name="Germany").matches(eur)


class TestCacheMutations:
    """Test cases for CacheMutations model."""

    def test_empty(self):
        assert CacheMutations().is_empty
        assert not CacheMutations(reset=True).is_empty

    def test_updates_keep_identity_keys(self):
        key = IdentityKey("EUR", None, "CPI", "09:00")
        mutations = CacheMutations(updates={key: Decimal("2.1")})

        assert not mutations.is_empty
        assert mutations.updates[key] == Decimal("2.1")

    def test_digest_plan_resets_by_default(self):
        assert DigestPlan().mutations.reset is True


class TestTickResult:
    """Test cases for TickResult model."""

    def test_defaults(self):
        result = TickResult(job_id="poll_20261019_093000", job=JobType.POLL, started_at=datetime(2026, 10, 19, 9, 30))

        assert result.success is True
        assert result.dry_run is False
        assert result.notifications == 0
        assert result.message_sent is False
        assert result.error is None


class TestSchedulerConfig:
    """Test cases for SchedulerConfig model."""

    def test_defaults(self):
        config = SchedulerConfig()

        assert config.digest_hour == 0
        assert config.poll_hours == "8-22"
        assert [s.currency_code for s in config.segments] == ["EUR", "USD"]

    def test_invalid_timezone(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(timezone="Mars/Olympus")

    def test_poll_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(poll_start_hour=20, poll_end_hour=8)

    def test_poll_window_must_not_contain_digest_hour(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(digest_hour=9, poll_start_hour=8, poll_end_hour=22)

    def test_digest_hour_outside_window(self):
        config = SchedulerConfig(digest_hour=23, poll_start_hour=6, poll_end_hour=21)
        assert config.poll_hours == "6-21"

    def test_invalid_poll_interval(self):
        with pytest.raises(ValidationError):
            SchedulerConfig(poll_interval_minutes=0)

    def test_tzinfo(self):
        assert SchedulerConfig(timezone="Europe/Berlin").tzinfo.key == "Europe/Berlin"
