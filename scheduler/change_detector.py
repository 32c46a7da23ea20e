"""
Change detection engine for economic calendar snapshots.

This module provides:
- Digest planning (segment partitioning, cache reset and reseed)
- Poll diffing of a snapshot against the state cache
- Forecast comparison of every new-or-changed value

Both operations are pure: they return the notifications and the cache
mutations, and the caller applies the mutations as one batch.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import structlog

from crawler.models import CalendarEntry, IdentityKey
from scheduler.comparator import compare_with_forecast
from scheduler.models import (
    CacheMutations, ChangeNotification, DiffResult, DigestPlan, Segment, SegmentBlock
)
from scheduler.state_cache import StateCache

logger = structlog.get_logger(__name__)


class ChangeDetector:
    """Engine deciding which calendar values are new."""

    def __init__(self, segments: Optional[Sequence[Segment]] = None, poll_tracked_only: bool = False):
        """
        Initialize change detector.

        Args:
            segments: Digest segments, in presentation order. When empty,
                the digest shows one block per currency.
            poll_tracked_only: Restrict poll diffs to the segments above.
                Off by default, so every released value is announced.
        """
        self.segments = list(segments or [])
        self.poll_tracked_only = poll_tracked_only
        self.logger = logger.bind(component="change_detector")

    def is_tracked(self, entry: CalendarEntry) -> bool:
        """Whether an entry belongs to any tracked segment."""
        if not self.segments:
            return True
        return any(segment.matches(entry) for segment in self.segments)

    def build_digest(self, entries: List[CalendarEntry]) -> DigestPlan:
        """
        Plan the daily digest for a full snapshot.

        The plan resets the cache and reseeds it with every entry that
        already carries a numeric actual, so the following poll ticks do not
        announce values the digest has shown.

        Args:
            entries: Normalized snapshot in page order

        Returns:
            DigestPlan with segment blocks and the reset+reseed batch
        """
        blocks = self._partition(entries)

        # Reseed from the snapshot itself; the blocks above already captured
        # the pre-reseed state for the message.
        reseed: Dict[IdentityKey, Decimal] = {}
        for entry in entries:
            if entry.has_actual:
                reseed[entry.identity_key] = entry.actual_value

        self.logger.info(
            "Digest planned",
            total_entries=len(entries),
            segments=len(blocks),
            reseeded=len(reseed)
        )

        return DigestPlan(
            blocks=blocks,
            total_entries=len(entries),
            mutations=CacheMutations(reset=True, updates=reseed),
        )

    def detect_changes(self, entries: List[CalendarEntry], cache: StateCache) -> DiffResult:
        """
        Diff a snapshot against the state cache.

        An entry fires when its numeric actual is absent from the cache or
        differs from the cached value. Entries without a numeric actual
        neither fire nor mutate the cache.

        Args:
            entries: Normalized snapshot in page order
            cache: State cache, read only here

        Returns:
            DiffResult with notifications in snapshot order and the updates
            to apply
        """
        notifications: List[ChangeNotification] = []
        updates: Dict[IdentityKey, Decimal] = {}

        for entry in entries:
            if not entry.has_actual:
                continue
            if self.poll_tracked_only and not self.is_tracked(entry):
                continue

            key = entry.identity_key
            previous = updates[key] if key in updates else cache.get(key)

            if previous is not None and previous == entry.actual_value:
                continue

            notifications.append(ChangeNotification(
                entry=entry,
                previous_value=previous,
                comparison=compare_with_forecast(entry.actual_value, entry.forecast_value),
            ))
            updates[key] = entry.actual_value

        if notifications:
            self.logger.info(
                "Changes detected",
                entries=len(entries),
                changes=len(notifications)
            )
        else:
            self.logger.debug("No changes detected", entries=len(entries))

        return DiffResult(
            notifications=notifications,
            mutations=CacheMutations(updates=updates),
        )

    def _partition(self, entries: List[CalendarEntry]) -> List[SegmentBlock]:
        """Group entries by tracked segment, keeping row order inside each block."""
        if self.segments:
            return [
                SegmentBlock(segment=segment, entries=[e for e in entries if segment.matches(e)])
                for segment in self.segments
            ]

        # Untracked mode: one block per currency in order of appearance, and
        # a trailing catch-all for rows without a currency code
        blocks: List[SegmentBlock] = []
        unassigned: List[CalendarEntry] = []
        for entry in entries:
            if len(entry.currency_code) != 3:
                unassigned.append(entry)
                continue
            segment = Segment(currency_code=entry.currency_code)
            if not any(block.segment == segment for block in blocks):
                blocks.append(SegmentBlock(
                    segment=segment, entries=[e for e in entries if segment.matches(e)]
                ))

        if unassigned:
            blocks.append(SegmentBlock(segment=None, entries=unassigned))
        return blocks
