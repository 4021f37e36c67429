"""Thread-safe store of finished nesting results keyed by cache key."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

from sheetnest.domain.entities import NestingResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Insert-if-absent result cache shared by solves.

    Results are frozen, so a reader either sees no entry or a complete one.
    When max_entries is set, the oldest entry is evicted once the bound is
    exceeded.

    Attributes:
        max_entries: Maximum number of stored results, or None for unbounded.
    """

    def __init__(self, max_entries: int | None = 32) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, NestingResult] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> NestingResult | None:
        with self._lock:
            return self._entries.get(key)

    def add(self, key: str, result: NestingResult) -> bool:
        """Store a result unless the key is already present.

        Returns:
            True if the result was stored, False if an entry already existed.
        """
        if not isinstance(result, NestingResult):
            raise TypeError(f"Expected NestingResult, got {type(result).__name__}")
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = result
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted cached result %s", evicted[:12])
        logger.debug("Cached result %s", key[:12])
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
