"""
Owner reward vault and stop switch.

The vault accumulates the fee withheld from every reward claim, per asset,
until the owner drains it. The stop switch is a one-way halt: once engaged
it blocks new deposits and unlocks principal refunds, and it can never be
released.
"""

from typing import Dict

from crossauction.core.assets import Asset
from crossauction.core.errors import AlreadyStopped
from crossauction.utils.logger import get_logger

logger = get_logger("vault")


class OwnerRewardVault:
    """
    Fee balances owed to the owner.

    Attributes:
        accrued: asset -> fee accumulated since the last withdrawal
        total_collected: asset -> fee accumulated over the auction's life
    """

    def __init__(self):
        self.accrued: Dict[Asset, int] = {Asset.NATIVE: 0, Asset.TOKEN: 0}
        self.total_collected: Dict[Asset, int] = {Asset.NATIVE: 0, Asset.TOKEN: 0}

    def balance(self, asset: Asset) -> int:
        return self.accrued[asset]

    def accrue(self, asset: Asset, fee: int) -> None:
        self.accrued[asset] += fee
        self.total_collected[asset] += fee

    def unaccrue(self, asset: Asset, fee: int) -> None:
        """Undo an accrual whose claim was rolled back."""
        self.accrued[asset] -= fee
        self.total_collected[asset] -= fee

    def drain(self, asset: Asset) -> int:
        """Empty the balance of one asset and return it."""
        amount = self.accrued[asset]
        self.accrued[asset] = 0
        return amount

    def refill(self, asset: Asset, amount: int) -> None:
        """Undo a drain whose payout failed."""
        self.accrued[asset] += amount

    def stats(self) -> dict:
        return {
            "native_balance": self.accrued[Asset.NATIVE],
            "token_balance": self.accrued[Asset.TOKEN],
            "native_collected": self.total_collected[Asset.NATIVE],
            "token_collected": self.total_collected[Asset.TOKEN],
        }


class StopSwitch:
    """One-way halt flag."""

    def __init__(self, stopped: bool = False):
        self._stopped = stopped

    @property
    def stopped(self) -> bool:
        return self._stopped

    def engage(self) -> None:
        """
        Halt the auction permanently.

        Raises:
            AlreadyStopped: If the switch was engaged before
        """
        if self._stopped:
            raise AlreadyStopped()
        self._stopped = True
        logger.warning("Auction stopped: deposits closed, principal refunds unlocked")

    def __bool__(self) -> bool:
        return self._stopped
