"""
Unit tests for the clock and period arithmetic.

Tests cover:
1. Manual clock movement
2. Period index before, at and after genesis
3. Period boundaries and finality
"""

import time

import pytest

from crossauction.core.errors import NotStarted
from crossauction.core.timekeeper import Clock, ManualClock, SystemClock, TimeKeeper


GENESIS = 1_000_000
PERIOD = 3600


@pytest.fixture
def clock():
    return ManualClock(start=GENESIS - 30)


@pytest.fixture
def keeper(clock):
    return TimeKeeper(GENESIS, PERIOD, clock)


class TestClocks:
    """Tests for clock implementations."""

    def test_manual_clock_advances(self):
        clock = ManualClock(start=10)
        assert clock.advance(5) == 15
        assert clock.now() == 15

    def test_manual_clock_refuses_going_back(self):
        clock = ManualClock(start=10)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(9)

    def test_manual_clock_set_forward(self):
        clock = ManualClock(start=10)
        clock.set(100)
        assert clock.now() == 100

    def test_system_clock_tracks_wall_time(self):
        now = SystemClock().now()
        assert isinstance(now, int)
        assert abs(now - time.time()) < 5

    def test_clocks_satisfy_protocol(self):
        assert isinstance(ManualClock(), Clock)
        assert isinstance(SystemClock(), Clock)


class TestTimeKeeper:
    """Tests for period index computation."""

    def test_rejects_non_positive_period(self, clock):
        with pytest.raises(ValueError):
            TimeKeeper(GENESIS, 0, clock)

    def test_not_started_before_genesis(self, keeper):
        """Querying the period before genesis should fail."""
        assert not keeper.has_started()
        with pytest.raises(NotStarted):
            keeper.current_period_id()

    def test_period_zero_at_genesis(self, keeper, clock):
        clock.set(GENESIS)
        assert keeper.current_period_id() == 0

    def test_period_zero_just_after_genesis(self, keeper, clock):
        clock.advance(35)
        assert keeper.current_period_id() == 0

    def test_first_period(self, keeper, clock):
        clock.advance(35 + PERIOD)
        assert keeper.current_period_id() == 1

    def test_period_boundary_belongs_to_next_period(self, keeper, clock):
        clock.set(GENESIS + PERIOD - 1)
        assert keeper.current_period_id() == 0
        clock.set(GENESIS + PERIOD)
        assert keeper.current_period_id() == 1

    def test_no_upper_bound(self, keeper, clock):
        clock.set(GENESIS + PERIOD * 1_000_000 + 1)
        assert keeper.current_period_id() == 1_000_000

    def test_period_bounds(self, keeper):
        assert keeper.period_bounds(0) == (GENESIS, GENESIS + PERIOD)
        assert keeper.period_bounds(2) == (GENESIS + 2 * PERIOD, GENESIS + 3 * PERIOD)

    def test_is_finished(self, keeper, clock):
        clock.set(GENESIS + 2 * PERIOD + 10)
        assert keeper.is_finished(0)
        assert keeper.is_finished(1)
        assert not keeper.is_finished(2)
        assert not keeper.is_finished(3)
