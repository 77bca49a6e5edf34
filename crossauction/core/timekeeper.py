"""
TimeKeeper - Maps wall-clock time onto auction periods.

Periods are a gapless, zero-based sequence of fixed-length windows that
start at the genesis instant:

    period_id = (now - genesis_time) // period_length

The clock itself is external; anything with a ``now() -> int`` method works.
"""

import time
from typing import Protocol, Tuple, runtime_checkable

from crossauction.core.errors import NotStarted
from crossauction.utils.logger import get_logger

logger = get_logger("timekeeper")


@runtime_checkable
class Clock(Protocol):
    """Source of the current time in whole seconds, never decreasing."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock backed by time.time()."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock advanced explicitly by the caller.

    Used by simulations and tests to move through periods deterministically.
    """

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError(f"Clock cannot move backwards (advance by {seconds})")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        """Jump to an absolute time, which must not be in the past."""
        if timestamp < self._now:
            raise ValueError(f"Clock cannot move backwards ({timestamp} < {self._now})")
        self._now = timestamp


class TimeKeeper:
    """
    Converts the clock into a period index.

    Attributes:
        genesis_time: Start of period 0 (unix seconds)
        period_length: Seconds per period
        clock: External clock
    """

    def __init__(self, genesis_time: int, period_length: int, clock: Clock):
        if period_length <= 0:
            raise ValueError(f"period_length must be positive, got {period_length}")
        self.genesis_time = genesis_time
        self.period_length = period_length
        self.clock = clock

    def now(self) -> int:
        return self.clock.now()

    def has_started(self) -> bool:
        return self.now() >= self.genesis_time

    def current_period_id(self) -> int:
        """
        Current period index.

        Raises:
            NotStarted: If the clock is still before genesis
        """
        now = self.now()
        if now < self.genesis_time:
            raise NotStarted(f"Auction not started yet ({self.genesis_time - now}s to genesis)")
        return (now - self.genesis_time) // self.period_length

    def period_bounds(self, period_id: int) -> Tuple[int, int]:
        """[start, end) instants of a period."""
        start = self.genesis_time + period_id * self.period_length
        return start, start + self.period_length

    def is_finished(self, period_id: int) -> bool:
        """Whether the period has fully elapsed."""
        return period_id < self.current_period_id()

    def __repr__(self) -> str:
        return f"TimeKeeper(genesis={self.genesis_time}, period_length={self.period_length})"
