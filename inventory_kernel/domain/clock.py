"""
Injectable time source.

Services never read the wall clock themselves: confirmation, cancellation,
alert and audit timestamps all come from the ``Clock`` they were built with.
``SystemClock`` is the only place the domain touches real time.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol

DEFAULT_TEST_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock:
    """
    Frozen clock for tests.

    ``now()`` is stable until the clock is moved with ``tick()`` (one step,
    one second by default) or ``advance(seconds)``.
    """

    def __init__(self, start: datetime = DEFAULT_TEST_EPOCH, step: timedelta = timedelta(seconds=1)):
        if start.tzinfo is None:
            raise ValueError("DeterministicClock requires a timezone-aware start")
        self._current = start
        self._step = step

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        self._current += timedelta(seconds=seconds)
        return self._current

    def tick(self) -> datetime:
        self._current += self._step
        return self._current
