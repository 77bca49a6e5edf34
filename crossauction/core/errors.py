"""
Errors raised by the auction.

Every rejection is a named, synchronous, non-retryable failure of the
triggering operation. The ledger is left exactly as it was before the call.
"""


class AuctionError(Exception):
    """Base class for all auction rejections."""

    code = "AUCTION_ERROR"
    default_message = "Auction operation rejected"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class NotStarted(AuctionError):
    code = "NOT_STARTED"
    default_message = "Auction not started yet"


class EmptyDeposit(AuctionError):
    code = "EMPTY_DEPOSIT"
    default_message = "Missing a deposit"


class PastPeriod(AuctionError):
    code = "PAST_PERIOD"
    default_message = "Period ID from the past"


class Halted(AuctionError):
    code = "HALTED"
    default_message = "The auction is stopped"


class UnexpectedNativeValue(AuctionError):
    code = "UNEXPECTED_NATIVE_VALUE"
    default_message = "Token deposits do not accept native value"


class PeriodNotFinished(AuctionError):
    code = "PERIOD_NOT_FINISHED"
    default_message = "Period not finished yet"


class MissingOwnDeposit(AuctionError):
    code = "MISSING_OWN_DEPOSIT"
    default_message = "Missing the user deposit"


class MissingCounterpartDeposits(AuctionError):
    code = "MISSING_COUNTERPART_DEPOSITS"
    default_message = "Missing counterpart deposits"


class AlreadyClaimed(AuctionError):
    code = "ALREADY_CLAIMED"
    default_message = "Already claimed"


class NeitherHaltedNorEmptyCounterpart(AuctionError):
    code = "NEITHER_HALTED_NOR_EMPTY_COUNTERPART"
    default_message = "Neither stopped nor 0 counterpart deposit for the period"


class AlreadyWithdrawn(AuctionError):
    code = "ALREADY_WITHDRAWN"
    default_message = "Deposit was already withdrawn"


class NotOwner(AuctionError):
    code = "NOT_OWNER"
    default_message = "Caller is not the owner"


class AlreadyStopped(AuctionError):
    code = "ALREADY_STOPPED"
    default_message = "The auction is already stopped"


class TransferFailed(AuctionError):
    code = "TRANSFER_FAILED"
    default_message = "Asset transfer failed"


class InvalidArgument(AuctionError, ValueError):
    code = "INVALID_ARGUMENT"
    default_message = "Invalid argument"


class ConfigError(ValueError):
    """Raised for an invalid or incomplete auction configuration."""


__all__ = [
    "AuctionError",
    "NotStarted",
    "EmptyDeposit",
    "PastPeriod",
    "Halted",
    "UnexpectedNativeValue",
    "PeriodNotFinished",
    "MissingOwnDeposit",
    "MissingCounterpartDeposits",
    "AlreadyClaimed",
    "NeitherHaltedNorEmptyCounterpart",
    "AlreadyWithdrawn",
    "NotOwner",
    "AlreadyStopped",
    "TransferFailed",
    "InvalidArgument",
    "ConfigError",
]
