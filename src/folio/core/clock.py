"""Logical time sources.

Timestamps in the registry are monotonic logical heights rather than
wall-clock datetimes. The engine only ever asks a clock for ``now()``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Protocol


class LogicalClock(Protocol):
    """Anything that reports the current logical height."""

    def now(self) -> int: ...


class ManualClock:
    """Clock whose height is set explicitly. Used by tests and the CLI override."""

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError(f"height cannot be negative, got {height}")
        self._height = height

    def now(self) -> int:
        return self._height

    def advance(self, units: int = 1) -> int:
        """Move the clock forward and return the new height."""
        if units < 0:
            raise ValueError("Logical time cannot move backwards")
        self._height += units
        return self._height

    def set(self, height: int) -> None:
        if height < self._height:
            raise ValueError(
                f"Logical time cannot move backwards ({self._height} -> {height})"
            )
        self._height = height


class IntervalClock:
    """Derive a height from wall-clock time elapsed since a genesis instant.

    Example:
        clock = IntervalClock(genesis=datetime(2024, 1, 1, tzinfo=timezone.utc))
        clock.now()  # number of 10-minute intervals since genesis
    """

    def __init__(
        self,
        genesis: datetime,
        interval_seconds: int = 600,
        time_source: Callable[[], datetime] | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        if genesis.tzinfo is None:
            genesis = genesis.replace(tzinfo=timezone.utc)
        self.genesis = genesis
        self.interval_seconds = interval_seconds
        self._time_source = time_source or (lambda: datetime.now(timezone.utc))

    def now(self) -> int:
        elapsed = (self._time_source() - self.genesis).total_seconds()
        if elapsed <= 0:
            return 0
        return int(elapsed // self.interval_seconds)
