"""Auction core: periods, settlement, refunds and owner controls"""
from crossauction.core.assets import (
    Asset,
    TokenLedger,
    NativeTransfer,
    InMemoryToken,
    InMemoryNative,
)
from crossauction.core.config import (
    AuctionConfig,
    FULL_PERCENT,
    fee_from_percent,
    load_config,
)
from crossauction.core.timekeeper import Clock, SystemClock, ManualClock, TimeKeeper
from crossauction.core.periods import Period, Pool, PeriodLedger, PeriodTotals
from crossauction.core.claims import ClaimEngine, RewardQuote, compute_return
from crossauction.core.withdrawals import PrincipalWithdrawalEngine
from crossauction.core.vault import OwnerRewardVault, StopSwitch
from crossauction.core.auction import Auction

__all__ = [
    "Asset",
    "TokenLedger",
    "NativeTransfer",
    "InMemoryToken",
    "InMemoryNative",
    "AuctionConfig",
    "FULL_PERCENT",
    "fee_from_percent",
    "load_config",
    "Clock",
    "SystemClock",
    "ManualClock",
    "TimeKeeper",
    "Period",
    "Pool",
    "PeriodLedger",
    "PeriodTotals",
    "ClaimEngine",
    "RewardQuote",
    "compute_return",
    "PrincipalWithdrawalEngine",
    "OwnerRewardVault",
    "StopSwitch",
    "Auction",
]
