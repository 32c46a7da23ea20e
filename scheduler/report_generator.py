"""
Message formatting for digest and diff notifications.

This module provides:
- The daily digest message (full snapshot grouped by segment)
- The intraday diff message (new-or-changed values only)
- Display conversion of published times into the configured timezone
"""

import re
from datetime import datetime, time
from typing import List, Optional
from zoneinfo import ZoneInfo

import structlog

from crawler.models import CalendarEntry
from scheduler.models import ChangeNotification, DigestPlan

logger = structlog.get_logger(__name__)

PENDING_PLACEHOLDER = "pending"
EMPTY_PLACEHOLDER = "—"
OTHER_EVENTS_TITLE = "Other events"

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})\s*([ap]m)?$", re.IGNORECASE)


def parse_clock_time(text: str) -> Optional[time]:
    """Parse ``"09:00"``, ``"9:00am"`` or ``"8:30 PM"``; None for anything else."""
    match = _TIME_PATTERN.match(text.strip())
    if not match:
        return None

    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)

    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


class NotificationFormatter:
    """Renders digest and diff messages."""

    def __init__(self, timezone: str = "UTC", source_timezone: str = "UTC"):
        """
        Initialize formatter.

        Args:
            timezone: Timezone for headers and displayed times
            source_timezone: Timezone the calendar publishes times in
        """
        self.tz = ZoneInfo(timezone)
        self.source_tz = ZoneInfo(source_timezone)
        self.logger = logger.bind(component="notification_formatter")

    def display_time(self, scheduled_time: str, now: datetime) -> str:
        """
        Convert a published time into the display timezone.

        Times that are not a clock time (all-day, tentative) are shown as
        published.
        """
        parsed = parse_clock_time(scheduled_time)
        if parsed is None:
            return scheduled_time

        source_date = now.astimezone(self.source_tz).date()
        source_dt = datetime.combine(source_date, parsed, tzinfo=self.source_tz)
        return source_dt.astimezone(self.tz).strftime("%H:%M")

    def format_digest(self, plan: DigestPlan, now: datetime) -> str:
        """
        Format the daily digest.

        Args:
            plan: Digest plan built from the full snapshot
            now: Invocation time

        Returns:
            Message text
        """
        local_now = now.astimezone(self.tz)
        sections = [f"📊 **Economic Calendar {local_now.strftime('%Y-%m-%d')}**"]

        for block in plan.blocks:
            if block.segment is None:
                header = f"🌐 {OTHER_EVENTS_TITLE}"
            else:
                header = f"{block.segment.flag} {block.segment.label} ({block.segment.currency_code})"
            if block.entries:
                lines = [self._digest_line(entry, now) for entry in block.entries]
            else:
                lines = ["No scheduled events"]
            sections.append(header + "\n" + "\n".join(lines))

        return "\n\n".join(sections)

    def format_diff(self, notifications: List[ChangeNotification], now: datetime) -> str:
        """
        Format a diff message.

        Args:
            notifications: New-or-changed entries in snapshot order
            now: Tick time

        Returns:
            Message text
        """
        local_now = now.astimezone(self.tz)
        lines = [f"🕑 **New economic data ({local_now.strftime('%H:%M')})**"]

        for notification in notifications:
            entry = notification.entry
            value = f"{entry.actual_raw} {notification.comparison.label}".rstrip()
            lines.append(f"{self._entry_prefix(entry, now)}: {value}")

        return "\n".join(lines)

    def _digest_line(self, entry: CalendarEntry, now: datetime) -> str:
        actual = entry.actual_raw or PENDING_PLACEHOLDER
        forecast = entry.forecast_raw or EMPTY_PLACEHOLDER
        previous = entry.previous_raw or EMPTY_PLACEHOLDER
        return (
            f"{self._entry_prefix(entry, now)}: "
            f"actual {actual} | forecast {forecast} | previous {previous}"
        )

    def _entry_prefix(self, entry: CalendarEntry, now: datetime) -> str:
        origin = entry.currency_code
        if entry.country_name:
            origin = f"{origin}/{entry.country_name}"
        shown_time = f"`{self.display_time(entry.scheduled_time, now)}`"
        if not origin:
            return f"{shown_time} • {entry.event_name}"
        return f"{shown_time} • **{origin}** — {entry.event_name}"
