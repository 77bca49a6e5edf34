"""
crossauction - Periodic dual-asset auction.

Users deposit native currency or a token into per-period pools; once a
period closes each pool is shared out among depositors of the other asset,
proportionally to their deposits and net of an owner fee.

- Time-windowed periods from a genesis instant
- Cross-asset proportional settlement with exact integer math
- Owner fee vault and a one-way emergency stop
- Optional SQLite persistence
"""

__version__ = "0.1.0"
