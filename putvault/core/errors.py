"""Error value hierarchy for vault operations.

Every rejection is a frozen dataclass value returned inside Err, so callers
pattern-match on the class and read its payload fields. Base class
VaultError, @final subclasses per failure kind. Codes are stable across
releases.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import final

from putvault.core.types import UtcDatetime


@dataclass(frozen=True, slots=True)
class VaultError:
    """Base error value. NOT @final: has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error


class AssetKind(Enum):
    """Which leg of an option contract failed the asset check."""

    UNDERLYING = "underlying"
    COLLATERAL = "collateral"
    STRIKE = "strike"


class RangeKind(Enum):
    EXPIRY = "expiry"
    STRIKE = "strike"


@final
@dataclass(frozen=True, slots=True)
class UnauthorizedError(VaultError):
    """Caller does not hold the role the operation requires."""

    caller: str
    required: str


@final
@dataclass(frozen=True, slots=True)
class OrderNotActiveError(VaultError):
    order_kind: str


@final
@dataclass(frozen=True, slots=True)
class OrderAlreadyActiveError(VaultError):
    order_kind: str


@final
@dataclass(frozen=True, slots=True)
class AssetMismatchError(VaultError):
    """Offered option references the wrong underlying, collateral or strike asset."""

    kind: AssetKind
    expected: str
    actual: str


@final
@dataclass(frozen=True, slots=True)
class OutOfRangeError(VaultError):
    """Expiry or strike outside the inclusive window of the buy order."""

    kind: RangeKind
    min: Decimal | UtcDatetime
    max: Decimal | UtcDatetime
    actual: Decimal | UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class InsufficientOfferError(VaultError):
    required: Decimal
    offered: Decimal


@final
@dataclass(frozen=True, slots=True)
class InsufficientBalanceError(VaultError):
    requested: Decimal
    available: Decimal


@final
@dataclass(frozen=True, slots=True)
class UnknownPositionError(VaultError):
    option: str


@final
@dataclass(frozen=True, slots=True)
class ConfigInvalidError(VaultError):
    field: str
    reason: str


@final
@dataclass(frozen=True, slots=True)
class TransferFailedError(VaultError):
    asset: str
    sender: str
    receiver: str
    amount: Decimal
    reason: str


@final
@dataclass(frozen=True, slots=True)
class NotYetExpiredError(VaultError):
    """Settlement refused: the option has not expired. Sweeps skip on this."""

    option: str


@final
@dataclass(frozen=True, slots=True)
class InvalidAmountError(VaultError):
    amount: Decimal
    reason: str


@final
@dataclass(frozen=True, slots=True)
class PricingError(VaultError):
    """Pricing gateway could not produce a usable quote."""

    instrument: str
    reason: str


@final
@dataclass(frozen=True, slots=True)
class PublishError(VaultError):
    """Event transport rejected a message."""

    topic: str


@final
@dataclass(frozen=True, slots=True)
class OptionTypeMismatchError(VaultError):
    """Offered option is a call where a put is required."""

    option: str
    expected: str
    actual: str
