"""
ClaimEngine - Cross-asset settlement of closed periods.

Once a period is over, every depositor of one asset is owed a share of the
other asset's pool, proportional to their share of the pool they paid into:

    gross = counterpart_total * own_deposit // own_total
    fee   = gross * fee_numerator // FULL_PERCENT
    net   = gross - fee

The multiplication happens before the division so that the only rounding is
the two floor divisions above. Each claimant can lose at most one smallest
unit to each of them; that dust stays in the pool for good and is never
redistributed.

Claim checks, in order:
1. Period finished (period_id < current period)
2. Caller has a deposit in their own pool
3. Counterpart pool is not empty
4. Caller has not claimed yet
"""

from dataclasses import dataclass

from crossauction.core.assets import Asset
from crossauction.core.config import FULL_PERCENT
from crossauction.core.errors import (
    AlreadyClaimed,
    MissingCounterpartDeposits,
    MissingOwnDeposit,
    PeriodNotFinished,
)
from crossauction.core.periods import PeriodLedger
from crossauction.core.timekeeper import TimeKeeper
from crossauction.core.vault import OwnerRewardVault
from crossauction.utils.logger import get_logger

logger = get_logger("claims")


# =============================================================================
# Reward Math
# =============================================================================


@dataclass(frozen=True)
class RewardQuote:
    """Breakdown of a cross-asset reward."""
    gross: int
    fee: int
    net: int


def compute_gross_return(own_deposit: int, own_total: int, counterpart_total: int) -> int:
    """Share of the counterpart pool owed for own_deposit out of own_total."""
    if own_total == 0:
        return 0
    return counterpart_total * own_deposit // own_total


def compute_fee(gross: int, fee_numerator: int) -> int:
    return gross * fee_numerator // FULL_PERCENT


def compute_return(
    own_deposit: int,
    own_total: int,
    counterpart_total: int,
    fee_numerator: int,
) -> RewardQuote:
    gross = compute_gross_return(own_deposit, own_total, counterpart_total)
    fee = compute_fee(gross, fee_numerator)
    return RewardQuote(gross=gross, fee=fee, net=gross - fee)


# =============================================================================
# Claim Engine
# =============================================================================


class ClaimEngine:
    """
    Validates and books reward claims.

    The engine only updates the ledger and the vault; paying the net amount
    out is left to the caller, which undoes the booking with ``revert`` if
    the payment fails.
    """

    def __init__(
        self,
        ledger: PeriodLedger,
        vault: OwnerRewardVault,
        timekeeper: TimeKeeper,
        fee_numerator: int,
    ):
        self.ledger = ledger
        self.vault = vault
        self.timekeeper = timekeeper
        self.fee_numerator = fee_numerator

    def calculate_return(self, period_id: int, user: str, reward_asset: Asset) -> RewardQuote:
        """
        Reward the user would get in ``reward_asset`` for a period.

        Pure query: no precondition checks, no state change.
        """
        own_asset = reward_asset.counterpart
        return compute_return(
            own_deposit=self.ledger.deposit_of(period_id, own_asset, user),
            own_total=self.ledger.total(period_id, own_asset),
            counterpart_total=self.ledger.total(period_id, reward_asset),
            fee_numerator=self.fee_numerator,
        )

    def calculate_gross_return(self, period_id: int, user: str, reward_asset: Asset) -> int:
        return self.calculate_return(period_id, user, reward_asset).gross

    def check_claim(self, period_id: int, user: str, reward_asset: Asset) -> None:
        """
        Raise the first failing claim precondition, if any.

        Raises:
            PeriodNotFinished, MissingOwnDeposit, MissingCounterpartDeposits,
            AlreadyClaimed
        """
        own_asset = reward_asset.counterpart

        if not self.timekeeper.is_finished(period_id):
            raise PeriodNotFinished(f"Period {period_id} not finished yet")

        if self.ledger.deposit_of(period_id, own_asset, user) == 0:
            raise MissingOwnDeposit(f"Missing the user {own_asset.label} deposit")

        if self.ledger.total(period_id, reward_asset) == 0:
            raise MissingCounterpartDeposits(f"Missing {reward_asset.label} deposits")

        if self.ledger.is_reward_claimed(period_id, own_asset, user):
            raise AlreadyClaimed()

    def claim(self, period_id: int, user: str, reward_asset: Asset) -> RewardQuote:
        """
        Book a claim: set the claim flag and accrue the fee.

        Returns:
            RewardQuote whose ``net`` the caller must pay out
        """
        self.check_claim(period_id, user, reward_asset)

        quote = self.calculate_return(period_id, user, reward_asset)
        self.ledger.mark_claimed(period_id, reward_asset.counterpart, user)
        self.vault.accrue(reward_asset, quote.fee)

        logger.debug(
            f"Booked {reward_asset.label} reward for {user} in period {period_id}: "
            f"gross={quote.gross} fee={quote.fee} net={quote.net}"
        )
        return quote

    def revert(self, period_id: int, user: str, reward_asset: Asset, quote: RewardQuote) -> None:
        """Undo a booked claim."""
        self.ledger.unmark_claimed(period_id, reward_asset.counterpart, user)
        self.vault.unaccrue(reward_asset, quote.fee)
        logger.debug(f"Reverted {reward_asset.label} claim of {user} in period {period_id}")
