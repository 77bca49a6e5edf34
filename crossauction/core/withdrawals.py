"""
PrincipalWithdrawalEngine - Refunds of a user's own deposit.

A deposit can be pulled back only while nothing has been, or can be,
settled against it:

- the auction is stopped and the period has not closed yet (no claim can
  exist for a running or future period), or
- the period has closed with an empty counterpart pool (nobody can claim
  the deposit as a reward).

A closed period with both sides funded settles through claims only, stopped
or not; refunding it would pay out principal the other side already owns.

Refunds are independent of reward claims: they neither read nor set the
claim flags.
"""

from crossauction.core.assets import Asset
from crossauction.core.errors import (
    AlreadyWithdrawn,
    MissingOwnDeposit,
    NeitherHaltedNorEmptyCounterpart,
)
from crossauction.core.periods import PeriodLedger
from crossauction.core.timekeeper import TimeKeeper
from crossauction.core.vault import StopSwitch
from crossauction.utils.logger import get_logger

logger = get_logger("withdrawals")


class PrincipalWithdrawalEngine:
    """
    Validates and books principal refunds.

    As with claims, the payout itself belongs to the caller, which undoes the
    booking with ``revert`` if it fails.
    """

    def __init__(
        self,
        ledger: PeriodLedger,
        timekeeper: TimeKeeper,
        stop_switch: StopSwitch,
    ):
        self.ledger = ledger
        self.timekeeper = timekeeper
        self.stop_switch = stop_switch

    def is_refundable(self, period_id: int, asset: Asset) -> bool:
        """Whether deposits of ``asset`` in the period may be refunded now."""
        if not self.timekeeper.is_finished(period_id):
            return self.stop_switch.stopped
        return self.ledger.total(period_id, asset.counterpart) == 0

    def check_withdrawal(self, period_id: int, user: str, asset: Asset) -> None:
        """
        Raise the first failing refund precondition, if any.

        The withdrawn flag is checked first: a refund zeroes the deposit, so a
        second attempt must report the flag rather than a missing deposit.

        Raises:
            AlreadyWithdrawn, MissingOwnDeposit, NeitherHaltedNorEmptyCounterpart
        """
        if self.ledger.is_withdrawn(period_id, asset, user):
            raise AlreadyWithdrawn(f"{asset.label} deposit was already withdrawn")

        if self.ledger.deposit_of(period_id, asset, user) == 0:
            raise MissingOwnDeposit(f"Missing user {asset.label} deposit")

        if not self.is_refundable(period_id, asset):
            raise NeitherHaltedNorEmptyCounterpart(
                f"Neither stopped nor 0 {asset.counterpart.label} deposit for the period"
            )

    def withdraw(self, period_id: int, user: str, asset: Asset) -> int:
        """
        Book a refund: zero the deposit and set the withdrawn flag.

        Returns:
            Amount the caller must pay back to the user
        """
        self.check_withdrawal(period_id, user, asset)
        amount = self.ledger.release(period_id, asset, user)
        logger.debug(f"Booked {asset.label} refund of {amount} for {user} in period {period_id}")
        return amount

    def revert(self, period_id: int, user: str, asset: Asset, amount: int) -> None:
        """Undo a booked refund."""
        self.ledger.restore(period_id, asset, user, amount)
        logger.debug(f"Reverted {asset.label} refund of {user} in period {period_id}")
