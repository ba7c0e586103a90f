"""Order values and the single-slot order state machine.

Each vault holds at most one buy order and one sell order. An OrderSlot
stores either the active order or nothing, so a stale inactive order can
never be read; the status transitions are checked against
ORDER_TRANSITIONS.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeAlias, TypeVar, final

from putvault.core.errors import OrderAlreadyActiveError, OrderNotActiveError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime
from putvault.instrument.option import OptionContract


class OrderKind(Enum):
    BUY = "buy"
    SELL = "sell"


class OrderStatus(Enum):
    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


TransitionTable: TypeAlias = frozenset[tuple[OrderStatus, OrderStatus]]

ORDER_TRANSITIONS: TransitionTable = frozenset({
    (OrderStatus.INACTIVE, OrderStatus.ACTIVE),
    (OrderStatus.ACTIVE, OrderStatus.FILLED),
    (OrderStatus.ACTIVE, OrderStatus.CANCELLED),
    (OrderStatus.FILLED, OrderStatus.INACTIVE),
    (OrderStatus.CANCELLED, OrderStatus.INACTIVE),
})


@final
@dataclass(frozen=True, slots=True)
class BuyWindow:
    """Inclusive strike and expiry bounds an offered put must fall within."""

    min_strike: Decimal
    max_strike: Decimal
    min_expiry: UtcDatetime
    max_expiry: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class BuyOrder:
    amount: Decimal  # quote-asset units reserved for the purchase
    created_at: UtcDatetime
    window: BuyWindow


@final
@dataclass(frozen=True, slots=True)
class SellOrder:
    option: OptionContract
    amount: Decimal  # option tokens offered
    created_at: UtcDatetime


T = TypeVar("T")


@final
class OrderSlot(Generic[T]):
    """Holds at most one active order of a kind.

    FILLED and CANCELLED are transient: closing an order records the
    outcome in `last_outcome` and returns the slot to INACTIVE.
    """

    def __init__(self, kind: OrderKind) -> None:
        self._kind = kind
        self._order: T | None = None
        self._last_outcome: OrderStatus | None = None

    @property
    def kind(self) -> OrderKind:
        return self._kind

    @property
    def order(self) -> T | None:
        return self._order

    @property
    def status(self) -> OrderStatus:
        return OrderStatus.INACTIVE if self._order is None else OrderStatus.ACTIVE

    @property
    def last_outcome(self) -> OrderStatus | None:
        return self._last_outcome

    def active(self, timestamp: UtcDatetime, source: str) -> Ok[T] | Err[OrderNotActiveError]:
        if self._order is None:
            return Err(self._not_active(timestamp, source))
        return Ok(self._order)

    def open(self, order: T, timestamp: UtcDatetime) -> Ok[T] | Err[OrderAlreadyActiveError]:
        if (self.status, OrderStatus.ACTIVE) not in ORDER_TRANSITIONS:
            return Err(OrderAlreadyActiveError(
                message=f"a {self._kind.value} order is already active",
                code="PV-ORDER-ACTIVE",
                timestamp=timestamp,
                source="orders.OrderSlot.open",
                order_kind=self._kind.value,
            ))
        self._order = order
        return Ok(order)

    def close(
        self, outcome: OrderStatus, timestamp: UtcDatetime,
    ) -> Ok[T] | Err[OrderNotActiveError]:
        """Move ACTIVE -> outcome -> INACTIVE and return the terminal order."""
        if outcome not in (OrderStatus.FILLED, OrderStatus.CANCELLED):
            raise ValueError(f"close outcome must be FILLED or CANCELLED, got {outcome}")
        if self._order is None or (self.status, outcome) not in ORDER_TRANSITIONS:
            return Err(self._not_active(timestamp, "orders.OrderSlot.close"))
        order = self._order
        self._order = None
        self._last_outcome = outcome
        return Ok(order)

    def _not_active(self, timestamp: UtcDatetime, source: str) -> OrderNotActiveError:
        return OrderNotActiveError(
            message=f"no active {self._kind.value} order",
            code="PV-ORDER-INACTIVE",
            timestamp=timestamp,
            source=source,
            order_kind=self._kind.value,
        )
