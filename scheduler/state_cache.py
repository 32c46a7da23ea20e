"""
Day-scoped cache of last-notified actual values.

The cache is volatile: it lives for one process run, is cleared by every
daily digest and re-seeded from the digest snapshot.
"""

import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Iterator, Optional

import structlog

from crawler.models import IdentityKey
from scheduler.models import CacheMutations

logger = structlog.get_logger(__name__)


class StateCache:
    """Mapping from identity key to the last-notified actual value."""

    def __init__(self):
        self._values: Dict[IdentityKey, Decimal] = {}
        self._lock = threading.RLock()
        self.logger = logger.bind(component="state_cache")

    def get(self, key: IdentityKey) -> Optional[Decimal]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: IdentityKey, value: Decimal) -> None:
        """Store a value, overwriting any previous one."""
        with self._lock:
            self._values[key] = value

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def snapshot(self) -> Dict[IdentityKey, Decimal]:
        """Copy of the current contents."""
        with self._lock:
            return dict(self._values)

    @contextmanager
    def locked(self) -> Iterator["StateCache"]:
        """
        Hold the cache lock for a read-compute-apply sequence.

        The lock is re-entrant, so ``get`` and ``apply`` may be called
        inside the block.
        """
        with self._lock:
            yield self

    def apply(self, mutations: CacheMutations) -> None:
        """Apply a mutation batch as one unit."""
        if mutations.is_empty:
            return

        with self._lock:
            if mutations.reset:
                self.clear()
            for key, value in mutations.updates.items():
                self.set(key, value)

        self.logger.debug(
            "Applied cache mutations",
            reset=mutations.reset,
            updates=len(mutations.updates),
            size=len(self)
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __contains__(self, key: IdentityKey) -> bool:
        with self._lock:
            return key in self._values
