from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time, injected so ordering logic stays testable."""

    def now(self) -> datetime:
        """Current timezone-aware UTC datetime."""
        ...

    def today(self) -> date:
        """Current calendar date."""
        ...


class SystemClock:
    """Wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a settable instant, for tests and replays."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, delta: timedelta) -> None:
        self._instant += delta

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the process clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing or replays)."""
    global _clock
    _clock = clock
