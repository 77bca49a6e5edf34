"""
Shared fixtures for auction tests.

Timeline mirrors a freshly deployed auction: the clock starts 30 seconds
before genesis, periods last one hour and every test user holds two million
whole units (18 decimals) of both assets, with the auction pre-approved to
spend their tokens.
"""

import pytest

from crossauction.core import (
    Auction,
    AuctionConfig,
    InMemoryNative,
    InMemoryToken,
    ManualClock,
    fee_from_percent,
)

GENESIS = 1_700_000_000
PERIOD = 3600
START_AFTER = 30
ETHER = 10**18

OWNER = "owner"
AUCTION = "auction"
USERS = ["alice", "bob", "charlie", "dan", "eve", "frank"]


def ether(amount) -> int:
    return int(amount * ETHER)


@pytest.fixture
def clock():
    return ManualClock(start=GENESIS - START_AFTER)


@pytest.fixture
def token():
    token = InMemoryToken()
    for user in USERS:
        token.mint(user, ether(2_000_000))
        token.approve(user, AUCTION, ether(2_000_000))
    return token


@pytest.fixture
def native():
    native = InMemoryNative()
    for user in USERS:
        native.fund(user, ether(2_000_000))
    return native


@pytest.fixture
def make_auction(clock, token, native):
    """Factory building auctions that share the fixture clock and ledgers."""

    def _make(fee_numerator=fee_from_percent(12), storage_manager=None, **config_kwargs):
        config = AuctionConfig(
            genesis_time=GENESIS,
            period_length=PERIOD,
            fee_numerator=fee_numerator,
            owner=OWNER,
            address=AUCTION,
            **config_kwargs,
        )
        return Auction(
            config,
            token.as_account(AUCTION),
            native.as_account(AUCTION),
            clock=clock,
            storage_manager=storage_manager,
        )

    return _make


@pytest.fixture
def auction(make_auction):
    return make_auction()
