"""
PeriodLedger - Per-period pools of both assets.

Conceptual Background:
---------------------
Each period owns two pools, one per asset. A pool records:

1. **total**: Sum of all outstanding deposits of that asset
2. **deposits**: Per-user contribution to the pool
3. **reward_claimed**: Users of this pool who collected their share of the
   *counterpart* pool (set once, never cleared)
4. **withdrawn**: Users who pulled their own deposit back (set once)

Invariant: ``sum(pool.deposits.values()) == pool.total`` at every point.

Periods are created lazily on the first write that references them and are
never deleted. Reads of an unknown period see an empty period without
creating it.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Set, Tuple

from crossauction.core.assets import Asset
from crossauction.utils.logger import get_logger

logger = get_logger("periods")


# =============================================================================
# Period State
# =============================================================================


@dataclass
class Pool:
    """One asset's side of a period."""
    total: int = 0
    deposits: Dict[str, int] = field(default_factory=dict)
    reward_claimed: Set[str] = field(default_factory=set)
    withdrawn: Set[str] = field(default_factory=set)

    def deposit_of(self, user: str) -> int:
        return self.deposits.get(user, 0)


@dataclass
class Period:
    """A period with one pool per asset."""
    period_id: int
    pools: Dict[Asset, Pool] = field(
        default_factory=lambda: {Asset.NATIVE: Pool(), Asset.TOKEN: Pool()}
    )

    def pool(self, asset: Asset) -> Pool:
        return self.pools[asset]

    @property
    def total_native(self) -> int:
        return self.pools[Asset.NATIVE].total

    @property
    def total_token(self) -> int:
        return self.pools[Asset.TOKEN].total


@dataclass(frozen=True)
class PeriodTotals:
    """Read-only view of a period's pool totals."""
    period_id: int
    total_native: int
    total_token: int


class PeriodLedger:
    """
    Storage of every period touched so far.

    Attributes:
        periods: period_id -> Period
    """

    def __init__(self):
        self.periods: Dict[int, Period] = {}

    # =========================================================================
    # State Access
    # =========================================================================

    def get(self, period_id: int) -> Period:
        """Period by id; an unknown id yields an empty, unstored period."""
        period = self.periods.get(period_id)
        if period is None:
            return Period(period_id)
        return period

    def touch(self, period_id: int) -> Period:
        """Period by id, created on first use."""
        period = self.periods.get(period_id)
        if period is None:
            period = Period(period_id)
            self.periods[period_id] = period
            logger.debug(f"Opened period {period_id}")
        return period

    def totals(self, period_id: int) -> PeriodTotals:
        period = self.get(period_id)
        return PeriodTotals(period_id, period.total_native, period.total_token)

    def total(self, period_id: int, asset: Asset) -> int:
        return self.get(period_id).pool(asset).total

    def deposit_of(self, period_id: int, asset: Asset, user: str) -> int:
        return self.get(period_id).pool(asset).deposit_of(user)

    def is_reward_claimed(self, period_id: int, asset: Asset, user: str) -> bool:
        """Whether a depositor of ``asset`` collected their counterpart reward."""
        return user in self.get(period_id).pool(asset).reward_claimed

    def is_withdrawn(self, period_id: int, asset: Asset, user: str) -> bool:
        return user in self.get(period_id).pool(asset).withdrawn

    def __iter__(self) -> Iterator[Period]:
        return iter(sorted(self.periods.values(), key=lambda p: p.period_id))

    def __len__(self) -> int:
        return len(self.periods)

    # =========================================================================
    # Mutation
    # =========================================================================

    def credit(self, period_id: int, asset: Asset, user: str, amount: int) -> Pool:
        """Add a deposit to the pool and to the user's contribution."""
        pool = self.touch(period_id).pool(asset)
        pool.total += amount
        pool.deposits[user] = pool.deposit_of(user) + amount
        return pool

    def debit(self, period_id: int, asset: Asset, user: str, amount: int) -> None:
        """Undo a credit whose asset pull failed."""
        pool = self.touch(period_id).pool(asset)
        pool.total -= amount
        remaining = pool.deposit_of(user) - amount
        if remaining:
            pool.deposits[user] = remaining
        else:
            pool.deposits.pop(user, None)

    def release(self, period_id: int, asset: Asset, user: str) -> int:
        """
        Remove the user's whole deposit from the pool and mark it withdrawn.

        Returns:
            The amount released
        """
        pool = self.touch(period_id).pool(asset)
        amount = pool.deposit_of(user)
        pool.total -= amount
        pool.deposits[user] = 0
        pool.withdrawn.add(user)
        return amount

    def restore(self, period_id: int, asset: Asset, user: str, amount: int) -> None:
        """Undo a release whose payout failed."""
        pool = self.touch(period_id).pool(asset)
        pool.total += amount
        pool.deposits[user] = pool.deposit_of(user) + amount
        pool.withdrawn.discard(user)

    def mark_claimed(self, period_id: int, asset: Asset, user: str) -> None:
        self.touch(period_id).pool(asset).reward_claimed.add(user)

    def unmark_claimed(self, period_id: int, asset: Asset, user: str) -> None:
        """Undo a claim flag whose payout failed."""
        self.touch(period_id).pool(asset).reward_claimed.discard(user)

    # =========================================================================
    # Invariants
    # =========================================================================

    def check_conservation(self, period_id: int) -> Tuple[bool, str]:
        """
        Verify that per-user deposits add up to the pool totals.

        Returns:
            (is_valid, error_message)
        """
        period = self.get(period_id)
        for asset, pool in period.pools.items():
            deposited = sum(pool.deposits.values())
            if deposited != pool.total:
                return False, (
                    f"Period {period_id} {asset.label} pool: "
                    f"deposits {deposited} != total {pool.total}"
                )
        return True, ""

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "period_count": len(self.periods),
            "total_native": sum(p.total_native for p in self.periods.values()),
            "total_token": sum(p.total_token for p in self.periods.values()),
            "depositors": len({
                user
                for p in self.periods.values()
                for pool in p.pools.values()
                for user in pool.deposits
            }),
        }

    def __repr__(self) -> str:
        return f"PeriodLedger(periods={len(self.periods)})"
