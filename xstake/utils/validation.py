"""
Input Validation - Sanitization of caller-supplied values.

Provides validation for all external inputs to the ledger:
- Addresses (20 bytes)
- Token and share amounts (bounded non-negative integers)
- Share symbols
"""

import re
from typing import Any, Tuple

from xstake.crypto import ADDRESS_SIZE

# =============================================================================
# Constants
# =============================================================================

MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1  # uint256
MAX_SYMBOL_LENGTH = 11

SYMBOL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")


# =============================================================================
# Validation Functions
# =============================================================================


def validate_address(address: Any, name: str = "address") -> Tuple[bool, str]:
    """Validate a 20-byte address."""
    if not isinstance(address, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(address).__name__}"

    if len(address) != ADDRESS_SIZE:
        return False, f"{name} must be {ADDRESS_SIZE} bytes, got {len(address)}"

    return True, ""


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
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a strictly positive token or share amount."""
    return validate_integer(amount, name, 1, MAX_AMOUNT)


def validate_symbol(symbol: Any) -> Tuple[bool, str]:
    """Validate a share token symbol."""
    if not isinstance(symbol, str):
        return False, f"symbol must be str, got {type(symbol).__name__}"

    if not symbol or len(symbol) > MAX_SYMBOL_LENGTH:
        return False, f"symbol must be 1-{MAX_SYMBOL_LENGTH} characters, got {len(symbol)}"

    if not SYMBOL_PATTERN.match(symbol):
        return False, f"symbol must be alphanumeric, got {symbol!r}"

    return True, ""
