"""
Client-side vacation cache, keyed by time window.

After a mutation the affected record is placed into (or removed from)
every cached window using the same membership rule the list queries use,
so open windows stay consistent without refetching from GitHub.

A fetch that was already running when a mutation landed would otherwise
overwrite it, so mutations are logged while loads are in flight and
replayed over the fetched records in put_window().

The service decides when a window is stale: it reloads windows with
put_window() and drops expired ones with evict_stale(). The number of
windows is also capped, oldest load first.
"""

import logging
import time
from typing import Generic, Optional, TypeVar

from vacation_tracker.schemas.vacation import Vacation
from vacation_tracker.services.windows import WindowKey, in_window

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WINDOWS = 256


class VacationCache:
    """Window key -> {issue number: Vacation}."""

    def __init__(self, max_windows: int = DEFAULT_MAX_WINDOWS) -> None:
        self.max_windows = max_windows
        self._windows: dict[WindowKey, dict[int, Vacation]] = {}
        self._fetched_at: dict[WindowKey, float] = {}
        # Mutation log: (sequence, issue number, record or None when closed)
        self._sequence = 0
        self._log: list[tuple[int, int, Optional[Vacation]]] = []
        self._loads: dict[int, int] = {}

    def windows(self) -> list[WindowKey]:
        return list(self._windows)

    def get_window(self, key: WindowKey) -> Optional[list[Vacation]]:
        """Cached records for a window, or None if the window was never loaded."""
        records = self._windows.get(key)
        if records is None:
            return None
        return list(records.values())

    def age(self, key: WindowKey) -> Optional[float]:
        """Seconds since the window was last loaded from GitHub."""
        fetched_at = self._fetched_at.get(key)
        if fetched_at is None:
            return None
        return time.monotonic() - fetched_at

    def begin_load(self) -> int:
        """Mark the start of a fetch; hand the result to put_window() and end_load()."""
        started_at = self._sequence
        self._loads[started_at] = self._loads.get(started_at, 0) + 1
        return started_at

    def end_load(self, started_at: int) -> None:
        remaining = self._loads.get(started_at, 0) - 1
        if remaining > 0:
            self._loads[started_at] = remaining
        else:
            self._loads.pop(started_at, None)

        if not self._loads:
            self._log.clear()
        else:
            oldest = min(self._loads)
            self._log = [entry for entry in self._log if entry[0] > oldest]

    def put_window(
        self,
        key: WindowKey,
        records: list[Vacation],
        started_at: Optional[int] = None,
    ) -> list[Vacation]:
        """Store a fetched window and return its records, mutations replayed."""
        window = {r.id: r for r in records}
        if started_at is not None:
            # Mutations that finished while the fetch was running win
            for sequence, number, vacation in self._log:
                if sequence <= started_at:
                    continue
                if vacation is not None and in_window(vacation, key):
                    window[number] = vacation
                else:
                    window.pop(number, None)

        self._windows.pop(key, None)
        self._fetched_at.pop(key, None)
        self._windows[key] = window
        self._fetched_at[key] = time.monotonic()

        while len(self._windows) > self.max_windows:
            oldest = min(self._fetched_at, key=self._fetched_at.__getitem__)
            self.invalidate(oldest)
            logger.debug("Cache: evicted %s (window limit %d)", oldest, self.max_windows)

        return list(window.values())

    def invalidate(self, key: Optional[WindowKey] = None) -> None:
        if key is None:
            self._windows.clear()
            self._fetched_at.clear()
            return
        self._windows.pop(key, None)
        self._fetched_at.pop(key, None)

    def evict_stale(self, max_age: float) -> int:
        """Drop every window loaded more than max_age seconds ago."""
        now = time.monotonic()
        stale = [key for key, at in self._fetched_at.items() if now - at >= max_age]
        for key in stale:
            self.invalidate(key)
        return len(stale)

    def _record(self, number: int, vacation: Optional[Vacation]) -> None:
        self._sequence += 1
        if self._loads:
            self._log.append((self._sequence, number, vacation))

    def apply_created(self, vacation: Vacation) -> None:
        self._record(vacation.id, vacation)
        for key, records in self._windows.items():
            if in_window(vacation, key) and vacation.id not in records:
                records[vacation.id] = vacation
                logger.debug("Cache: added #%s to %s", vacation.id, key)

    def apply_updated(self, vacation: Vacation) -> None:
        self._record(vacation.id, vacation)
        for key, records in self._windows.items():
            if in_window(vacation, key):
                records[vacation.id] = vacation
            elif records.pop(vacation.id, None) is not None:
                logger.debug("Cache: #%s moved out of %s", vacation.id, key)

    def apply_closed(self, number: int) -> None:
        self._record(number, None)
        # Closed vacations are hidden everywhere, whatever their dates
        for records in self._windows.values():
            records.pop(number, None)


class TimedValue(Generic[T]):
    """Single cached value with a time-to-live (used for the team config)."""

    def __init__(self, ttl_seconds: float) -> None:
        self.ttl_seconds = ttl_seconds
        self._value: Optional[T] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[T]:
        if self._stored_at is None:
            return None
        if time.monotonic() - self._stored_at >= self.ttl_seconds:
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = time.monotonic()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None
