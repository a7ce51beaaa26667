"""
Clock -- injectable time source.

Services take a Clock instead of calling ``datetime.now()``, so every
``created_at``, ``received_at`` and ``closed_at`` they record can be
pinned in tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Stands still until moved with ``advance`` or ``tick``."""

    def __init__(self, start: datetime = _EPOCH):
        self._current = start

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move one second forward and return the new time."""
        self.advance(1)
        return self._current
