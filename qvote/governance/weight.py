"""
Quadratic vote weight.

A voter's credits are the integer square root of the balance held at the
moment of voting, so influence grows with the square root of holdings
rather than linearly.
"""

import math

from ..constants import U64_MAX


def credits(balance: int) -> int:
    """
    floor(sqrt(balance)) for any u64 balance.

    Uses exact integer square root; a float round-trip loses precision
    above 2**53 (e.g. it returns 2**32 for 2**64 - 1).

    Raises:
        ValueError: If *balance* is not an int in the u64 range
    """
    if isinstance(balance, bool) or not isinstance(balance, int):
        raise ValueError(f"Balance must be an int, got {type(balance).__name__}")
    if balance < 0 or balance > U64_MAX:
        raise ValueError(f"Balance {balance} is outside the u64 range")
    return math.isqrt(balance)
