from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from crossauction.core.assets import Asset
from crossauction.core.periods import Period
from crossauction.core.storage.sqlite_adapter import SQLiteAdapter
from crossauction.core.vault import OwnerRewardVault, StopSwitch
from crossauction.utils.logger import get_logger

logger = get_logger("storage.manager")

STATE_STOPPED = "stopped"


def _accrued_key(asset: Asset) -> str:
    return f"accrued_{asset.label}"


def _collected_key(asset: Asset) -> str:
    return f"collected_{asset.label}"


class StorageManager:
    """
    Manages persistent storage for an auction.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Pool totals and user positions per period
    - Owner fee balances and the stop flag
    """

    def __init__(self, data_dir: Path, db_name: str = "auction.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # Ledger Updates
    # =========================================================================

    def persist_change(
        self,
        period: Optional[Period],
        asset: Optional[Asset],
        users: Iterable[str],
        vault: OwnerRewardVault,
        stop_switch: StopSwitch,
    ):
        """
        Persist the effects of one operation in a single transaction.

        Args:
            period: Period touched, None for vault / stop-only changes
            asset: Pool of the period touched
            users: Users whose position in that pool changed
            vault: Current owner vault (always written)
            stop_switch: Current stop flag (always written)
        """
        pools: List[Tuple[int, int, int]] = []
        positions: List[Tuple[int, int, str, int, bool, bool]] = []

        if period is not None and asset is not None:
            pool = period.pool(asset)
            pools.append((period.period_id, int(asset), pool.total))
            for user in users:
                positions.append((
                    period.period_id,
                    int(asset),
                    user,
                    pool.deposit_of(user),
                    user in pool.reward_claimed,
                    user in pool.withdrawn,
                ))

        self.adapter.persist_ledger_update(pools, positions, self._state_rows(vault, stop_switch))

    def _state_rows(self, vault: OwnerRewardVault, stop_switch: StopSwitch) -> Dict[str, str]:
        state = {STATE_STOPPED: "1" if stop_switch.stopped else "0"}
        for asset in Asset:
            state[_accrued_key(asset)] = str(vault.accrued[asset])
            state[_collected_key(asset)] = str(vault.total_collected[asset])
        return state

    # =========================================================================
    # Loading
    # =========================================================================

    def load_ledger_state(self) -> Tuple[List, List, Dict[str, str]]:
        """
        Load full auction state.

        Returns:
            (pools, positions, state)
            pools: List[(period_id, asset, total)]
            positions: List[(period_id, asset, user, deposit, claimed, withdrawn)]
            state: Dict of auction state keys
        """
        pools = self.adapter.get_all_pools()
        positions = self.adapter.get_all_positions()
        state = self.adapter.get_all_state()
        return pools, positions, state

    def restore_vault(self, state: Dict[str, str], vault: OwnerRewardVault) -> None:
        for asset in Asset:
            vault.accrued[asset] = int(state.get(_accrued_key(asset), "0"))
            vault.total_collected[asset] = int(state.get(_collected_key(asset), "0"))

    @staticmethod
    def restore_stopped(state: Dict[str, str]) -> bool:
        return state.get(STATE_STOPPED) == "1"

    def close(self):
        self.adapter.close()
