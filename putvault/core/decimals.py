"""Fixed-point normalization between asset precisions.

Quote asset, option tokens and the pricing oracle each carry their own
number of decimals. Every conversion or comparison across them goes
through this module; the only precision loss allowed is truncation
toward zero (or toward +inf in truncate_up, used when the vault must not
under-charge).
"""

from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_UP, Decimal, localcontext

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT

QUOTE_DECIMALS_DEFAULT: int = 6
OPTION_DECIMALS: int = 8
PRICE_DECIMALS_DEFAULT: int = 8

_FIXED_64X64_ONE: int = 1 << 64


def _quantum(decimals: int) -> Decimal:
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    return Decimal(1).scaleb(-decimals)


def truncate(value: Decimal, decimals: int) -> Decimal:
    """Drop digits beyond `decimals` places, rounding toward zero."""
    with localcontext(VAULT_DECIMAL_CONTEXT):
        return value.quantize(_quantum(decimals), rounding=ROUND_DOWN)


def truncate_up(value: Decimal, decimals: int) -> Decimal:
    """Drop digits beyond `decimals` places, rounding away from zero."""
    with localcontext(VAULT_DECIMAL_CONTEXT):
        return value.quantize(_quantum(decimals), rounding=ROUND_UP)


def rescale(raw: int, from_decimals: int, to_decimals: int) -> int:
    """Re-express an integer fixed-point amount in another precision.

    >>> rescale(1_000_000, 6, 8)
    100000000
    >>> rescale(123_456_789, 8, 6)
    1234567
    """
    if from_decimals < 0 or to_decimals < 0:
        raise ValueError("decimals must be >= 0")
    if to_decimals >= from_decimals:
        return raw * 10 ** (to_decimals - from_decimals)
    divisor = 10 ** (from_decimals - to_decimals)
    # int division floors; truncate toward zero for negative raw amounts
    quotient = abs(raw) // divisor
    return quotient if raw >= 0 else -quotient


def from_raw(raw: int, decimals: int) -> Decimal:
    with localcontext(VAULT_DECIMAL_CONTEXT):
        return Decimal(raw).scaleb(-decimals)


def from_fixed_64x64(raw: int) -> Decimal:
    """Decode a signed 64.64 binary fixed-point number.

    The result is exact: 2**64 is a power of two so the quotient has a
    finite decimal expansion (at most 64 fractional digits); callers
    truncate it to their own precision.
    """
    with localcontext(VAULT_DECIMAL_CONTEXT) as ctx:
        ctx.prec = 100
        return Decimal(raw) / Decimal(_FIXED_64X64_ONE)
