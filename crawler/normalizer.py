"""
Normalization of extracted calendar rows into CalendarEntry values.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

import structlog

from .models import ALL_DAY, CalendarEntry, RawCalendarRow

logger = structlog.get_logger(__name__)

MAGNITUDE_SUFFIXES = ("K", "M", "B", "T")
ALL_DAY_LABELS = {"all day", "allday"}

_WHITESPACE = re.compile(r"\s+")


def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace and strip a text cell."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def coerce_number(text: Optional[str], decimal_separator: str = ".") -> Optional[Decimal]:
    """
    Coerce a published figure such as ``"2.1%"``, ``"1,234.5"`` or ``"215K"``
    into a Decimal.

    Thousands separators, percent signs and a single trailing magnitude suffix
    are dropped, so figures compare in the unit they were published in.
    Anything that still fails to parse is absent (``None``), never zero.

    Args:
        text: Raw cell text
        decimal_separator: ``"."`` (thousands are ``,``) or ``","``
            (thousands are ``.``)

    Returns:
        Decimal value, or None when the cell is empty or not numeric
    """
    cleaned = clean_text(text)
    if not cleaned:
        return None

    thousands_separator = "," if decimal_separator == "." else "."
    cleaned = cleaned.replace("%", "").replace(thousands_separator, "")
    cleaned = cleaned.replace(" ", "").replace("−", "-")
    if decimal_separator == ",":
        cleaned = cleaned.replace(",", ".")

    if cleaned[-1:].upper() in MAGNITUDE_SUFFIXES:
        cleaned = cleaned[:-1]

    if not cleaned:
        return None

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None

    # Decimal accepts "NaN" and "Infinity"
    if not value.is_finite():
        return None
    return value


class EntryNormalizer:
    """Turns raw extracted rows into ordered CalendarEntry values."""

    def __init__(self, decimal_separator: str = "."):
        self.decimal_separator = decimal_separator
        self.logger = logger.bind(component="entry_normalizer")

    def normalize(self, rows: Iterable[RawCalendarRow]) -> List[CalendarEntry]:
        """
        Normalize a full snapshot.

        No row is dropped. A blank time cell inherits the time of the row
        above it, as calendar tables print each time once per group.

        Args:
            rows: Raw rows in page order

        Returns:
            Entries in the same order
        """
        entries = []
        last_time = None

        for row in rows:
            scheduled_time = self._normalize_time(row.time)
            if scheduled_time is None:
                scheduled_time = last_time or ALL_DAY
            last_time = scheduled_time

            entries.append(self.normalize_row(row, scheduled_time))

        self.logger.debug(
            "Normalized calendar rows",
            entries=len(entries),
            with_actual=sum(1 for entry in entries if entry.has_actual)
        )
        return entries

    def normalize_row(self, row: RawCalendarRow, scheduled_time: str) -> CalendarEntry:
        """Normalize a single row with an already resolved time."""
        actual_raw = clean_text(row.actual)
        forecast_raw = clean_text(row.forecast)

        return CalendarEntry(
            scheduled_time=scheduled_time,
            currency_code=clean_text(row.currency),
            country_name=clean_text(row.country) or None,
            event_name=clean_text(row.event),
            actual_raw=actual_raw,
            forecast_raw=forecast_raw,
            previous_raw=clean_text(row.previous),
            actual_value=coerce_number(actual_raw, self.decimal_separator),
            forecast_value=coerce_number(forecast_raw, self.decimal_separator),
        )

    def _normalize_time(self, raw_time: str) -> Optional[str]:
        """Return the published time, the all-day sentinel, or None for a blank cell."""
        text = clean_text(raw_time)
        if not text:
            return None
        if text.lower() in ALL_DAY_LABELS:
            return ALL_DAY
        return text
