"""
Auction configuration parameters.

Defines the immutable construction parameters of an auction: the genesis
instant, the period length, the owner fee and the identities involved.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from crossauction.core.errors import ConfigError

# 100% in fixed point (18 decimals)
FULL_PERCENT = 100 * 10**18

ENV_PREFIX = "AUCTION_"


def fee_from_percent(percent: int) -> int:
    """Convert a whole percentage (e.g. 12) into a fee numerator."""
    return percent * 10**18


@dataclass(frozen=True)
class AuctionConfig:
    """Auction construction parameters, immutable after creation"""

    genesis_time: int                     # Unix seconds of period 0 start
    period_length: int                    # Seconds per period
    fee_numerator: int = 0                # Fraction of FULL_PERCENT kept by owner
    owner: str = "owner"                  # Identity allowed to stop / collect fees
    address: str = "auction"              # Auction account on both asset ledgers

    def __post_init__(self):
        """Reject parameters the auction cannot operate with"""
        if self.period_length <= 0:
            raise ConfigError(f"period_length must be positive, got {self.period_length}")
        if self.genesis_time < 0:
            raise ConfigError(f"genesis_time must be >= 0, got {self.genesis_time}")
        if self.fee_numerator < 0:
            raise ConfigError(f"fee_numerator must be >= 0, got {self.fee_numerator}")
        # A fee above 100% would make net returns negative
        if self.fee_numerator > FULL_PERCENT:
            raise ConfigError(
                f"fee_numerator must be <= FULL_PERCENT ({FULL_PERCENT}), got {self.fee_numerator}"
            )
        if not self.owner:
            raise ConfigError("owner must not be empty")
        if not self.address:
            raise ConfigError("address must not be empty")

    @property
    def fee_percent(self) -> float:
        """Fee as a plain percentage, for display only."""
        return self.fee_numerator * 100 / FULL_PERCENT


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(name: str, required: bool = False) -> Optional[int]:
    raw = _env(name)
    if raw is None:
        if required:
            raise ConfigError(f"Missing required setting {ENV_PREFIX}{name}")
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def load_config(env_file: Optional[str] = None) -> AuctionConfig:
    """
    Load configuration from the environment.

    Reads AUCTION_GENESIS_TIME, AUCTION_PERIOD_LENGTH, AUCTION_FEE_PERCENT
    (or the raw AUCTION_FEE_NUMERATOR), AUCTION_OWNER and AUCTION_ADDRESS.

    Args:
        env_file: Optional .env file loaded first (never overrides the
            process environment)

    Returns:
        AuctionConfig instance
    """
    if env_file:
        load_dotenv(env_file, override=False)

    fee_numerator = _env_int("FEE_NUMERATOR")
    if fee_numerator is None:
        fee_percent = _env_int("FEE_PERCENT")
        fee_numerator = fee_from_percent(fee_percent) if fee_percent is not None else 0

    kwargs = {
        "genesis_time": _env_int("GENESIS_TIME", required=True),
        "period_length": _env_int("PERIOD_LENGTH", required=True),
        "fee_numerator": fee_numerator,
    }
    if _env("OWNER"):
        kwargs["owner"] = _env("OWNER")
    if _env("ADDRESS"):
        kwargs["address"] = _env("ADDRESS")

    return AuctionConfig(**kwargs)
