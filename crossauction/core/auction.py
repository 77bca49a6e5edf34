"""
Auction - Periodic dual-asset distribution engine.

Conceptual Background:
---------------------
Time is divided into fixed-length periods. During a period (or before it,
to pre-fund future rounds) users deposit either the native currency or the
token into that period's pools. Once the period is over:

1. **Token depositors** claim a share of the native pool
2. **Native depositors** claim a share of the token pool

Each share is proportional to the user's part of the pool they paid into,
minus the owner fee. If a period ends with one side empty, the other side
simply withdraws its deposits. The owner can halt the auction for good,
which closes deposits and lets depositors of periods that have not closed
yet withdraw their principal.

Execution Model:
---------------
Every public method runs under a single re-entrant lock, so operations are
totally ordered and never interleave. Writes book their effects, store them
and move assets last; when storing or a transfer fails (a transfer returns
False or raises) the booking is undone before the error propagates, so no
operation ever partially applies.
"""

import threading
from typing import Callable, Iterable, Optional

from crossauction.core.assets import Asset, NativeTransfer, TokenLedger
from crossauction.core.claims import ClaimEngine, RewardQuote
from crossauction.core.config import AuctionConfig
from crossauction.core.errors import (
    EmptyDeposit,
    Halted,
    InvalidArgument,
    NotOwner,
    PastPeriod,
    TransferFailed,
    UnexpectedNativeValue,
)
from crossauction.core.periods import PeriodLedger, PeriodTotals
from crossauction.core.storage.storage_manager import StorageManager
from crossauction.core.timekeeper import Clock, SystemClock, TimeKeeper
from crossauction.core.vault import OwnerRewardVault, StopSwitch
from crossauction.core.withdrawals import PrincipalWithdrawalEngine
from crossauction.utils.logger import get_logger
from crossauction.utils.validation import (
    validate_address,
    validate_amount,
    validate_period_id,
)

logger = get_logger("auction")


class Auction:
    """
    Public surface of the auction.

    Every write takes the acting identity as its first argument (``caller``).

    Attributes:
        config: Immutable construction parameters
        token: Token ledger acting for the auction account
        native: Native-currency ledger acting for the auction account
        timekeeper: Clock to period mapping
        ledger: Per-period pools
        vault: Owner fee balances
        stop_switch: One-way halt flag
    """

    def __init__(
        self,
        config: AuctionConfig,
        token: TokenLedger,
        native: NativeTransfer,
        clock: Optional[Clock] = None,
        storage_manager: Optional[StorageManager] = None,
    ):
        """
        Initialize the auction.

        Args:
            config: Auction parameters
            token: Token ledger bound to ``config.address``
            native: Native ledger bound to ``config.address``
            clock: Time source. None = system clock.
            storage_manager: Persistence manager. None = in-memory only.
        """
        self.config = config
        self.token = token
        self.native = native
        self.timekeeper = TimeKeeper(config.genesis_time, config.period_length, clock or SystemClock())

        self.ledger = PeriodLedger()
        self.vault = OwnerRewardVault()

        self.storage_manager = storage_manager
        stopped = self._load_from_storage() if storage_manager else False
        self.stop_switch = StopSwitch(stopped)

        self.claims = ClaimEngine(self.ledger, self.vault, self.timekeeper, config.fee_numerator)
        self.withdrawals = PrincipalWithdrawalEngine(self.ledger, self.timekeeper, self.stop_switch)

        self._lock = threading.RLock()

        logger.info(
            f"Auction ready: genesis={config.genesis_time}, period={config.period_length}s, "
            f"fee={config.fee_percent:g}%, owner={config.owner}"
        )

    # =========================================================================
    # Configuration Access
    # =========================================================================

    @property
    def genesis_time(self) -> int:
        return self.config.genesis_time

    @property
    def period_length(self) -> int:
        return self.config.period_length

    @property
    def fee_numerator(self) -> int:
        return self.config.fee_numerator

    @property
    def owner(self) -> str:
        return self.config.owner

    @property
    def address(self) -> str:
        return self.config.address

    @property
    def stopped(self) -> bool:
        with self._lock:
            return self.stop_switch.stopped

    # =========================================================================
    # Argument Checks
    # =========================================================================

    @staticmethod
    def _check(result) -> None:
        is_valid, error = result
        if not is_valid:
            raise InvalidArgument(error)

    def _only_owner(self, caller: str) -> None:
        if caller != self.config.owner:
            raise NotOwner(f"{caller} is not the owner")

    # =========================================================================
    # Asset Movements
    # =========================================================================

    def _pull(self, asset: Asset, payer: str, amount: int) -> None:
        if asset is Asset.NATIVE:
            ok = self.native.receive(payer, amount)
        else:
            ok = self.token.transfer_from(payer, self.config.address, amount)
        if not ok:
            raise TransferFailed(f"Could not collect {amount} {asset.label} from {payer}")

    def _pay(self, asset: Asset, recipient: str, amount: int) -> None:
        if asset is Asset.NATIVE:
            ok = self.native.send(recipient, amount)
        else:
            ok = self.token.transfer(recipient, amount)
        if not ok:
            raise TransferFailed(f"Could not pay {amount} {asset.label} to {recipient}")

    def _commit_then_move(
        self,
        move: Callable[[], None],
        undo: Callable[[], None],
        period_id: Optional[int] = None,
        asset: Optional[Asset] = None,
        users: Iterable[str] = (),
    ) -> None:
        """
        Persist a booked change, then move the assets.

        Assets never move before the booking is stored. If storing fails the
        booking is undone; if the move fails the booking is undone and the
        undone state is stored again. Either way the error propagates.
        """
        try:
            self._persist(period_id, asset, users)
        except Exception:
            undo()
            raise

        try:
            move()
        except Exception:
            undo()
            self._persist(period_id, asset, users)
            raise

    # =========================================================================
    # Time
    # =========================================================================

    def current_period_id(self) -> int:
        """
        Index of the running period.

        Raises:
            NotStarted: Before the genesis instant
        """
        return self.timekeeper.current_period_id()

    # =========================================================================
    # Deposits
    # =========================================================================

    def deposit_native(self, caller: str, period_id: int, value: int) -> int:
        """
        Deposit native currency into a current or future period.

        Returns:
            The caller's total native deposit for the period
        """
        return self._deposit(Asset.NATIVE, caller, period_id, value)

    def deposit_native_current(self, caller: str, value: int) -> int:
        """Deposit native currency into the running period."""
        return self._deposit(Asset.NATIVE, caller, None, value)

    def receive_native(self, caller: str, value: int) -> int:
        """Plain incoming native payment; counts as a deposit for the running period."""
        return self.deposit_native_current(caller, value)

    def deposit_token(self, caller: str, period_id: int, amount: int, value: int = 0) -> int:
        """
        Deposit tokens into a current or future period.

        The auction must be approved to spend ``amount`` of the caller's
        tokens. ``value`` is native currency sent along with the call and
        must be zero.

        Returns:
            The caller's total token deposit for the period
        """
        if value:
            raise UnexpectedNativeValue()
        return self._deposit(Asset.TOKEN, caller, period_id, amount)

    def deposit_token_current(self, caller: str, amount: int, value: int = 0) -> int:
        """Deposit tokens into the running period."""
        if value:
            raise UnexpectedNativeValue()
        return self._deposit(Asset.TOKEN, caller, None, amount)

    def _deposit(self, asset: Asset, caller: str, period_id: Optional[int], amount: int) -> int:
        self._check(validate_address(caller, "caller"))
        self._check(validate_amount(amount))
        if period_id is not None:
            self._check(validate_period_id(period_id))

        with self._lock:
            if self.stop_switch.stopped:
                raise Halted()

            if amount == 0:
                raise EmptyDeposit()

            current = self.timekeeper.current_period_id()
            if period_id is None:
                period_id = current
            elif period_id < current:
                raise PastPeriod(f"Period {period_id} is before current period {current}")

            self.ledger.credit(period_id, asset, caller, amount)
            self._commit_then_move(
                lambda: self._pull(asset, caller, amount),
                lambda: self.ledger.debit(period_id, asset, caller, amount),
                period_id, asset, [caller],
            )

            logger.info(f"{caller} deposited {amount} {asset.label} into period {period_id}")
            return self.ledger.deposit_of(period_id, asset, caller)

    # =========================================================================
    # Reward Claims
    # =========================================================================

    def claim_native_reward(self, caller: str, period_id: int) -> RewardQuote:
        """Token depositors: collect the native share of a closed period."""
        return self._claim(Asset.NATIVE, caller, period_id)

    def claim_token_reward(self, caller: str, period_id: int) -> RewardQuote:
        """Native depositors: collect the token share of a closed period."""
        return self._claim(Asset.TOKEN, caller, period_id)

    def _claim(self, reward_asset: Asset, caller: str, period_id: int) -> RewardQuote:
        self._check(validate_address(caller, "caller"))
        self._check(validate_period_id(period_id))

        with self._lock:
            quote = self.claims.claim(period_id, caller, reward_asset)
            self._commit_then_move(
                lambda: self._pay(reward_asset, caller, quote.net),
                lambda: self.claims.revert(period_id, caller, reward_asset, quote),
                period_id, reward_asset.counterpart, [caller],
            )

            logger.info(
                f"{caller} claimed {quote.net} {reward_asset.label} for period {period_id} "
                f"(fee {quote.fee})"
            )
            return quote

    def calculate_gross_native_return(self, period_id: int, user: str) -> int:
        with self._lock:
            return self.claims.calculate_gross_return(period_id, user, Asset.NATIVE)

    def calculate_native_return(self, period_id: int, user: str) -> RewardQuote:
        with self._lock:
            return self.claims.calculate_return(period_id, user, Asset.NATIVE)

    def calculate_gross_token_return(self, period_id: int, user: str) -> int:
        with self._lock:
            return self.claims.calculate_gross_return(period_id, user, Asset.TOKEN)

    def calculate_token_return(self, period_id: int, user: str) -> RewardQuote:
        with self._lock:
            return self.claims.calculate_return(period_id, user, Asset.TOKEN)

    # =========================================================================
    # Principal Withdrawals
    # =========================================================================

    def withdraw_native_deposit(self, caller: str, period_id: int) -> int:
        """Take back an own native deposit; returns the amount refunded."""
        return self._withdraw(Asset.NATIVE, caller, period_id)

    def withdraw_token_deposit(self, caller: str, period_id: int) -> int:
        """Take back an own token deposit; returns the amount refunded."""
        return self._withdraw(Asset.TOKEN, caller, period_id)

    def _withdraw(self, asset: Asset, caller: str, period_id: int) -> int:
        self._check(validate_address(caller, "caller"))
        self._check(validate_period_id(period_id))

        with self._lock:
            amount = self.withdrawals.withdraw(period_id, caller, asset)
            self._commit_then_move(
                lambda: self._pay(asset, caller, amount),
                lambda: self.withdrawals.revert(period_id, caller, asset, amount),
                period_id, asset, [caller],
            )

            logger.info(f"{caller} withdrew {amount} {asset.label} from period {period_id}")
            return amount

    # =========================================================================
    # Owner Interface
    # =========================================================================

    @property
    def owner_native_reward(self) -> int:
        with self._lock:
            return self.vault.balance(Asset.NATIVE)

    @property
    def owner_token_reward(self) -> int:
        with self._lock:
            return self.vault.balance(Asset.TOKEN)

    def withdraw_owner_native_reward(self, caller: str, beneficiary: str) -> int:
        """Send all accrued native fees to ``beneficiary``; owner only."""
        return self._withdraw_owner_reward(Asset.NATIVE, caller, beneficiary)

    def withdraw_owner_token_reward(self, caller: str, beneficiary: str) -> int:
        """Send all accrued token fees to ``beneficiary``; owner only."""
        return self._withdraw_owner_reward(Asset.TOKEN, caller, beneficiary)

    def _withdraw_owner_reward(self, asset: Asset, caller: str, beneficiary: str) -> int:
        self._check(validate_address(beneficiary, "beneficiary"))

        with self._lock:
            self._only_owner(caller)
            amount = self.vault.drain(asset)
            self._commit_then_move(
                lambda: self._pay(asset, beneficiary, amount),
                lambda: self.vault.refill(asset, amount),
            )

            logger.info(f"Owner reward of {amount} {asset.label} sent to {beneficiary}")
            return amount

    def stop(self, caller: str) -> None:
        """
        Halt the auction permanently; owner only.

        Raises:
            NotOwner: For any other caller
            AlreadyStopped: If already halted
        """
        with self._lock:
            self._only_owner(caller)
            self.stop_switch.engage()
            self._persist()

    # =========================================================================
    # Queries
    # =========================================================================

    def period(self, period_id: int) -> PeriodTotals:
        with self._lock:
            return self.ledger.totals(period_id)

    def period_total_native(self, period_id: int) -> int:
        with self._lock:
            return self.ledger.total(period_id, Asset.NATIVE)

    def period_total_token(self, period_id: int) -> int:
        with self._lock:
            return self.ledger.total(period_id, Asset.TOKEN)

    def user_native_deposit(self, period_id: int, user: str) -> int:
        with self._lock:
            return self.ledger.deposit_of(period_id, Asset.NATIVE, user)

    def user_token_deposit(self, period_id: int, user: str) -> int:
        with self._lock:
            return self.ledger.deposit_of(period_id, Asset.TOKEN, user)

    def is_user_native_payout_claimed(self, period_id: int, user: str) -> bool:
        """Whether a token depositor collected their native reward."""
        with self._lock:
            return self.ledger.is_reward_claimed(period_id, Asset.TOKEN, user)

    def is_user_token_payout_claimed(self, period_id: int, user: str) -> bool:
        """Whether a native depositor collected their token reward."""
        with self._lock:
            return self.ledger.is_reward_claimed(period_id, Asset.NATIVE, user)

    def is_user_native_deposit_withdrawn(self, period_id: int, user: str) -> bool:
        with self._lock:
            return self.ledger.is_withdrawn(period_id, Asset.NATIVE, user)

    def is_user_token_deposit_withdrawn(self, period_id: int, user: str) -> bool:
        with self._lock:
            return self.ledger.is_withdrawn(period_id, Asset.TOKEN, user)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _persist(
        self,
        period_id: Optional[int] = None,
        asset: Optional[Asset] = None,
        users: Iterable[str] = (),
    ) -> None:
        if not self.storage_manager:
            return
        period = self.ledger.touch(period_id) if period_id is not None else None
        self.storage_manager.persist_change(period, asset, users, self.vault, self.stop_switch)

    def _load_from_storage(self) -> bool:
        """
        Rebuild the ledger and vault from storage.

        Returns:
            The persisted stop flag
        """
        pools, positions, state = self.storage_manager.load_ledger_state()

        for period_id, asset, total in pools:
            self.ledger.touch(period_id).pool(Asset(asset)).total = total

        for period_id, asset, user, deposit, claimed, withdrawn in positions:
            pool = self.ledger.touch(period_id).pool(Asset(asset))
            pool.deposits[user] = deposit
            if claimed:
                pool.reward_claimed.add(user)
            if withdrawn:
                pool.withdrawn.add(user)

        self.storage_manager.restore_vault(state, self.vault)
        stopped = self.storage_manager.restore_stopped(state)

        logger.info(f"Loaded auction: {len(self.ledger)} periods, stopped={stopped}")
        return stopped

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return (
            f"Auction(genesis={self.genesis_time}, period_length={self.period_length}, "
            f"periods={len(self.ledger)}, stopped={self.stop_switch.stopped})"
        )

    def stats(self) -> dict:
        """Get auction statistics."""
        with self._lock:
            stats = {
                "current_period": (
                    self.timekeeper.current_period_id() if self.timekeeper.has_started() else None
                ),
                "stopped": self.stop_switch.stopped,
                "fee_numerator": self.config.fee_numerator,
            }
            stats.update(self.ledger.stats())
            stats.update({f"owner_{k}": v for k, v in self.vault.stats().items()})
            return stats
