"""Collaborator protocols consumed by the vault core.

Domain code depends on these abstractions; production adapters and the
in-memory doubles in memory_adapter implement them. Failures come back as
values in the return type, never as exceptions.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable

from putvault.core.errors import NotYetExpiredError, PublishError, TransferFailedError
from putvault.core.result import Err, Ok
from putvault.instrument.option import ExpiryStatus, OptionContract


@runtime_checkable
class EventBus(Protocol):
    """Append-only event transport.

    Messages are keyed for deterministic partitioning. Values are opaque
    bytes; serialization is the caller's responsibility.
    """

    def publish(
        self, topic: str, key: str, value: bytes,
    ) -> Ok[None] | Err[PublishError]: ...


@runtime_checkable
class AssetTransfer(Protocol):
    """Token movement primitive for the quote asset and option tokens."""

    def transfer(
        self, asset: str, sender: str, receiver: str, amount: Decimal,
    ) -> Ok[None] | Err[TransferFailedError]: ...

    def balance_of(self, asset: str, account: str) -> Decimal: ...


@runtime_checkable
class OptionSettlement(Protocol):
    """Options protocol settlement.

    redeem_if_expired burns the holder's tokens of a finalized series and
    pays the payout in the collateral asset; Ok carries the amount paid.
    """

    def redeem_if_expired(
        self, option: OptionContract, holder: str,
    ) -> Ok[Decimal] | Err[NotYetExpiredError | TransferFailedError]: ...

    def expiry_status(self, option: OptionContract) -> ExpiryStatus: ...
