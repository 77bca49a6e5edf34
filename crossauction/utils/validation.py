"""
Input Validation - Sanitization of caller-supplied arguments.

Provides validation for all external inputs to prevent:
- Negative or non-integer amounts
- Amounts beyond the 256-bit range the ledgers account in
- Empty or malformed addresses
"""

from typing import Any, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_ADDRESS_LENGTH = 128

# Field bounds (amounts are unsigned 256-bit integers)
MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1
MIN_PERIOD = 0
MAX_PERIOD = 2**64 - 1


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass; a flag is never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate an asset amount."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_period_id(period_id: Any) -> Tuple[bool, str]:
    """Validate a period id."""
    return validate_integer(period_id, "period_id", MIN_PERIOD, MAX_PERIOD)


def validate_address(address: Any, name: str = "address") -> Tuple[bool, str]:
    """
    Validate an account address.

    Addresses are opaque non-empty strings (hex account ids, usernames).

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(address, str):
        return False, f"{name} must be str, got {type(address).__name__}"

    if not address.strip():
        return False, f"{name} must not be empty"

    if len(address) > MAX_ADDRESS_LENGTH:
        return False, f"{name} exceeds max length {MAX_ADDRESS_LENGTH}, got {len(address)}"

    return True, ""
