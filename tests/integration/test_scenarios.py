"""
End-to-end auction scenarios.

Tests cover:
1. Multi-wave runs across several periods, down to the leftover dust
2. The 20/30/20 token vs 24/6 native settlement
3. Conservation, reward bounds and solvency after a halt
"""

from collections import Counter

import pytest

from crossauction.core.assets import Asset
from crossauction.core.config import fee_from_percent
from crossauction.core.errors import MissingOwnDeposit, NeitherHaltedNorEmptyCounterpart

ETHER = 10**18
START_AFTER = 30


def ether(amount):
    return amount * ETHER


def assert_conserved(auction, *period_ids):
    for period_id in period_ids:
        is_valid, error = auction.ledger.check_conservation(period_id)
        assert is_valid, error


class TestMultiWave:
    """Long runs with deposits, claims, refunds and owner withdrawals."""

    def test_four_waves_leave_three_units(self, auction, clock, native, token):
        clock.advance(START_AFTER + 10)
        period = auction.period_length

        # Wave 0: bob pays tokens into period 0, nobody pays native
        assert auction.current_period_id() == 0
        auction.deposit_token_current("bob", ether(5))
        assert auction.period(0).total_token == ether(5)
        assert auction.period(0).total_native == 0

        clock.advance(period)

        # Wave 1
        assert auction.current_period_id() == 1
        auction.deposit_native("alice", 1, ether(30))
        auction.deposit_native("bob", 1, ether(40))
        auction.deposit_native("charlie", 1, ether(40))
        auction.deposit_token_current("dan", ether(5))
        auction.deposit_token("eve", 1, ether(10))
        auction.deposit_token("frank", 1, ether(2))
        auction.deposit_native("alice", 2, ether(15))
        auction.deposit_token("frank", 3, ether(5))

        assert auction.period_total_native(1) == ether(110)
        assert auction.period_total_token(1) == ether(17)
        assert auction.user_native_deposit(1, "charlie") == ether(40)
        assert auction.user_token_deposit(1, "frank") == ether(2)
        assert auction.period_total_native(2) == ether(15)
        assert auction.period_total_token(3) == ether(5)

        clock.advance(period)

        # Wave 2: mixed deposits and claims
        assert auction.current_period_id() == 2
        for user, amount in (("alice", 200), ("bob", 300), ("charlie", 400), ("dan", 400)):
            auction.receive_native(user, ether(amount))
        for user, amount in (("alice", 5), ("bob", 9), ("charlie", 2), ("frank", 1)):
            auction.deposit_token_current(user, ether(amount))

        auction.withdraw_token_deposit("bob", 0)

        auction.claim_token_reward("alice", 1)
        auction.claim_token_reward("bob", 1)
        for user in ("dan", "eve", "frank"):
            with pytest.raises(MissingOwnDeposit):
                auction.claim_token_reward(user, 1)
        for user in ("alice", "bob", "charlie"):
            with pytest.raises(MissingOwnDeposit):
                auction.claim_native_reward(user, 1)
        for user in ("dan", "eve", "frank"):
            auction.claim_native_reward(user, 1)

        assert auction.is_user_token_payout_claimed(1, "alice")
        assert not auction.is_user_token_payout_claimed(1, "charlie")
        assert auction.period(0).total_token == 0
        assert auction.period_total_native(2) == ether(1315)
        assert auction.period_total_token(2) == ether(17)

        clock.advance(period)

        # Wave 3
        assert auction.current_period_id() == 3
        auction.receive_native("alice", ether(200))

        auction.claim_token_reward("charlie", 1)
        for user in ("alice", "bob", "charlie"):
            auction.claim_token_reward(user, 2)
            auction.claim_native_reward(user, 2)

        assert not auction.is_user_token_payout_claimed(2, "dan")
        assert not auction.is_user_native_payout_claimed(2, "frank")
        assert auction.period_total_native(3) == ether(200)
        assert auction.period_total_token(3) == ether(5)

        clock.advance(period)

        # Wave 4: final claims and owner withdrawals
        assert auction.current_period_id() == 4
        auction.claim_native_reward("frank", 2)
        auction.claim_token_reward("dan", 2)
        auction.claim_native_reward("frank", 3)
        auction.claim_token_reward("alice", 3)

        auction.withdraw_owner_native_reward("owner", "owner")
        auction.withdraw_owner_token_reward("owner", "owner")

        assert_conserved(auction, 0, 1, 2, 3)
        assert native.balance_of("auction") == 3
        assert token.balance_of("auction") == 3

    def test_stop_midway_leaves_one_unit(self, auction, clock, native, token):
        clock.advance(START_AFTER + 10)
        period = auction.period_length

        auction.deposit_token_current("bob", ether(5))

        clock.advance(period)

        auction.deposit_native("alice", 1, ether(30))
        auction.deposit_native("bob", 1, ether(40))
        auction.deposit_native("charlie", 1, ether(40))
        auction.deposit_token_current("dan", ether(5))
        auction.deposit_token_current("eve", ether(10))
        auction.deposit_token_current("frank", ether(2))
        auction.deposit_native("alice", 2, ether(15))
        auction.deposit_token("frank", 3, ether(5))

        clock.advance(period)

        # Partial settlement, then the owner halts the auction
        assert auction.current_period_id() == 2
        auction.deposit_token("frank", 3, ether(15))
        auction.withdraw_token_deposit("bob", 0)
        auction.claim_token_reward("alice", 1)
        auction.claim_token_reward("bob", 1)

        auction.stop("owner")

        auction.claim_token_reward("charlie", 1)
        for user in ("eve", "frank", "dan"):
            auction.claim_native_reward(user, 1)
        assert auction.withdraw_native_deposit("alice", 2) == ether(15)
        assert auction.withdraw_token_deposit("frank", 3) == ether(20)

        clock.advance(period)

        assert auction.current_period_id() == 3
        auction.withdraw_owner_native_reward("owner", "owner")
        auction.withdraw_owner_token_reward("owner", "owner")

        assert_conserved(auction, 0, 1, 2, 3)
        assert native.balance_of("auction") == 1
        assert token.balance_of("auction") == 1


class TestSettlement:
    """The 20/30/20 token against 24/6 native period."""

    def _fund(self, auction, scale):
        auction.deposit_token("alice", 2, 20 * scale)
        auction.deposit_token("bob", 2, 30 * scale)
        auction.deposit_token("charlie", 2, 20 * scale)
        auction.deposit_native("bob", 2, 24 * scale)
        auction.deposit_native("charlie", 2, 6 * scale)

    def _close_period_two(self, auction, clock):
        clock.set(auction.genesis_time + 3 * auction.period_length)

    def test_whole_units_with_fee(self, make_auction, clock, native):
        auction = make_auction(fee_numerator=fee_from_percent(12))
        clock.advance(START_AFTER)
        self._fund(auction, 1)
        self._close_period_two(auction, clock)

        quote = auction.calculate_native_return(2, "alice")
        assert quote.gross == 8
        assert quote.fee == 0

        before = native.balance_of("alice")
        assert auction.claim_native_reward("alice", 2) == quote
        assert native.balance_of("alice") == before + 8

        assert auction.claim_native_reward("bob", 2).fee == 1
        auction.claim_native_reward("charlie", 2)
        assert auction.owner_native_reward == 1

    def test_zero_fee_token_rewards(self, make_auction, clock):
        auction = make_auction(fee_numerator=0)
        clock.advance(START_AFTER)
        self._fund(auction, 1)
        self._close_period_two(auction, clock)

        for user, expected in (("bob", 56), ("charlie", 14)):
            quote = auction.claim_token_reward(user, 2)
            assert quote.net == quote.gross == expected
        assert auction.owner_token_reward == 0

    def test_eighteen_decimals_owner_fees(self, make_auction, clock):
        auction = make_auction(fee_numerator=fee_from_percent(12))
        clock.advance(START_AFTER)
        self._fund(auction, ETHER)
        self._close_period_two(auction, clock)

        for user in ("alice", "bob", "charlie"):
            auction.claim_native_reward(user, 2)
        for user in ("bob", "charlie"):
            auction.claim_token_reward(user, 2)

        assert auction.owner_native_reward == 3599999999999999999
        assert auction.owner_token_reward == ether(84) // 10

    def test_reward_bounds_and_dust(self, make_auction, clock, native, token):
        """Payouts never exceed the pool and at most one unit per claim stays behind."""
        auction = make_auction(fee_numerator=fee_from_percent(12))
        clock.advance(START_AFTER)
        self._fund(auction, 1)
        self._close_period_two(auction, clock)

        paid_native = 0
        for user in ("alice", "bob", "charlie"):
            quote = auction.claim_native_reward(user, 2)
            assert quote.net + quote.fee == quote.gross
            assert quote.gross <= auction.period_total_native(2)
            paid_native += quote.gross

        assert paid_native <= 30
        assert 30 - paid_native <= 3

        paid_token = sum(auction.claim_token_reward(user, 2).gross for user in ("bob", "charlie"))
        assert paid_token == 70

        auction.withdraw_owner_native_reward("owner", "owner")
        auction.withdraw_owner_token_reward("owner", "owner")
        assert native.balance_of("auction") == 30 - paid_native
        assert token.balance_of("auction") == 0
        assert_conserved(auction, 2)

    def test_post_stop_refunds(self, auction, clock, native, token):
        clock.advance(START_AFTER)
        self._fund(auction, 1)
        auction.stop("owner")

        assert auction.withdraw_token_deposit("alice", 2) == 20
        assert auction.withdraw_native_deposit("bob", 2) == 24
        assert auction.period(2).total_token == 50
        assert auction.period(2).total_native == 6
        assert_conserved(auction, 2)


class TestSolvency:
    """Claims and refunds mixed around a halt never pay out more than was paid in."""

    DEPOSITS = [
        # (period_id, asset, user, amount)
        (0, Asset.TOKEN, "alice", 20),
        (0, Asset.TOKEN, "bob", 30),
        (0, Asset.TOKEN, "charlie", 20),
        (0, Asset.NATIVE, "bob", 24),
        (0, Asset.NATIVE, "charlie", 6),
        (1, Asset.TOKEN, "dan", 15),
        (1, Asset.NATIVE, "eve", 40),
        (2, Asset.TOKEN, "alice", 5),
    ]

    def test_claims_and_refunds_after_stop(self, auction, clock, native, token):
        clock.advance(START_AFTER)
        deposited = Counter()
        paid = Counter()

        for period_id, asset, user, amount in self.DEPOSITS:
            if asset is Asset.NATIVE:
                auction.deposit_native(user, period_id, amount)
            else:
                auction.deposit_token(user, period_id, amount)
            deposited[period_id, asset] += amount

        def claim(user, period_id, reward_asset):
            if reward_asset is Asset.NATIVE:
                quote = auction.claim_native_reward(user, period_id)
            else:
                quote = auction.claim_token_reward(user, period_id)
            paid[period_id, reward_asset] += quote.gross

        def refund(user, period_id, asset):
            if asset is Asset.NATIVE:
                paid[period_id, asset] += auction.withdraw_native_deposit(user, period_id)
            else:
                paid[period_id, asset] += auction.withdraw_token_deposit(user, period_id)

        clock.advance(auction.period_length)
        claim("alice", 0, Asset.NATIVE)
        claim("bob", 0, Asset.TOKEN)

        auction.stop("owner")

        # period 0 closed with both sides funded: it settles through claims only
        for period_id, asset, user, _ in self.DEPOSITS:
            if period_id == 0:
                with pytest.raises(NeitherHaltedNorEmptyCounterpart):
                    refund(user, period_id, asset)

        claim("bob", 0, Asset.NATIVE)
        claim("charlie", 0, Asset.NATIVE)
        claim("charlie", 0, Asset.TOKEN)

        # every deposit of a period that has not closed comes back in full
        for period_id, asset, user, amount in self.DEPOSITS:
            if period_id > 0:
                refund(user, period_id, asset)
                assert auction.user_token_deposit(period_id, user) == 0
                assert auction.user_native_deposit(period_id, user) == 0

        for key, amount in paid.items():
            assert amount <= deposited[key], key

        auction.withdraw_owner_native_reward("owner", "owner")
        auction.withdraw_owner_token_reward("owner", "owner")

        for asset, ledger in ((Asset.NATIVE, native), (Asset.TOKEN, token)):
            left = sum(deposited[p, asset] - paid[p, asset] for p in (0, 1, 2))
            assert ledger.balance_of("auction") == left
        assert native.balance_of("auction") == 2
        assert token.balance_of("auction") == 0
        assert_conserved(auction, 0, 1, 2)
