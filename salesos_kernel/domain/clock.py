"""
Clock -- injectable source of the current time.

Lifecycle timestamps (payment date, commission lock date, commission paid
date), error entry timestamps and cache expiry all read time through a
Clock, so services never call ``datetime.now()`` themselves and tests can
move time explicitly.

Architecture position:
    Kernel > Domain.  SystemClock is the only place the wall clock is read.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        """``now()`` normalised to UTC; cache ages are computed from this."""
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` keeps returning the same instant until ``advance()`` or
    ``tick()`` is called.  The start time must be timezone-aware; the
    default is 2024-01-01 12:00 UTC.
    """

    def __init__(self, start: datetime | None = None):
        start = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        if start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start time")
        self._current = start

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward by ``seconds`` and return the new time."""
        self._current += timedelta(seconds=seconds)
        return self._current

    def tick(self) -> datetime:
        return self.advance(1)
