"""Decimal context and refined numeric/string types.

All vault arithmetic runs under VAULT_DECIMAL_CONTEXT: prec=50 so that
18-decimal token amounts multiplied by prices keep every digit before the
final truncation, ROUND_HALF_EVEN, and traps for InvalidOperation,
DivisionByZero and Overflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN as _ROUND_HALF_EVEN
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)
from typing import final

from putvault.core.result import Err, Ok

VAULT_DECIMAL_CONTEXT = Context(
    prec=50,
    rounding=_ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    capitals=1,
    clamp=0,
    flags=[],
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


@final
@dataclass(frozen=True, slots=True)
class PositiveDecimal:
    """Decimal constrained to be > 0."""

    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal) or not (self.value > 0):
            raise TypeError(f"PositiveDecimal requires Decimal > 0, got {self.value!r}")

    @staticmethod
    def parse(raw: Decimal) -> Ok[PositiveDecimal] | Err[str]:
        if not isinstance(raw, Decimal):
            return Err(f"PositiveDecimal requires Decimal, got {type(raw).__name__}")
        if not raw.is_finite() or raw <= 0:
            return Err(f"PositiveDecimal requires finite > 0, got {raw}")
        return Ok(PositiveDecimal(value=raw))


@final
@dataclass(frozen=True, slots=True)
class NonEmptyStr:
    """String constrained to be non-empty."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise TypeError("NonEmptyStr requires non-empty string")

    @staticmethod
    def parse(raw: str) -> Ok[NonEmptyStr] | Err[str]:
        if not isinstance(raw, str) or not raw.strip():
            return Err("NonEmptyStr requires non-empty string")
        return Ok(NonEmptyStr(value=raw))
