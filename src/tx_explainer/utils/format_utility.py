"""Formatting and input validation helpers."""

import re
from decimal import Decimal

TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")

PLACEHOLDER = "—"


def is_tx_hash(value: str | None) -> bool:
    """Check that ``value`` is a 0x-prefixed 32-byte hex transaction hash."""
    if not isinstance(value, str):
        return False
    return TX_HASH_PATTERN.fullmatch(value) is not None


def short_address(address: str | None) -> str:
    """Shorten an address to ``0x1234…abcd`` form."""
    if not address:
        return PLACEHOLDER
    return f"{address[:6]}…{address[-4:]}"


def format_units(amount: int, decimals: int, places: int = 6) -> str:
    """Convert an integer amount in smallest units to a fixed-point string.

    >>> format_units(3_000_000, 6)
    '3.000000'
    >>> format_units(21000 * 10**9, 18)
    '0.000021'
    """
    value = Decimal(amount).scaleb(-decimals)
    return f"{value:.{places}f}"
