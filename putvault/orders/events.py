"""Domain events emitted by the vault and the recorder that ships them.

Events are frozen dataclasses. The recorder keeps a bounded window of the
most recent events in process and publishes each event as canonical JSON
bytes, keyed by event type: order and position events on
TOPIC_VAULT_EVENTS, config changes on TOPIC_VAULT_CONFIG. A publish failure does not undo the operation that
produced the event; the event stays in `undelivered` until flush()
succeeds. The bus is the durable record; consumers that need the full
history read it there.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import TypeAlias, final

from putvault.core.errors import PublishError
from putvault.core.result import Err, Ok
from putvault.core.serialization import canonical_bytes
from putvault.core.types import UtcDatetime
from putvault.infra.config import TOPIC_VAULT_CONFIG, TOPIC_VAULT_EVENTS
from putvault.infra.protocols import EventBus
from putvault.orders.types import BuyWindow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Order and position events
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class BuyOrderCreated:
    window: BuyWindow
    amount: Decimal
    created_at: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class BuyOrderFilled:
    option: str
    amount: Decimal        # option tokens taken from the broker
    quote_amount: Decimal  # quote paid to the broker


@final
@dataclass(frozen=True, slots=True)
class BuyOrderCancelled:
    window: BuyWindow
    amount: Decimal
    created_at: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class SellOrderCreated:
    option: str
    amount: Decimal


@final
@dataclass(frozen=True, slots=True)
class SellOrderCancelled:
    option: str
    amount: Decimal


@final
@dataclass(frozen=True, slots=True)
class SellOrderFilled:
    option: str
    amount: Decimal
    quote_amount: Decimal


@final
@dataclass(frozen=True, slots=True)
class OptionRedeemed:
    option: str
    payout: Decimal


# ---------------------------------------------------------------------------
# Config change events
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class StrikeMultiplierChanged:
    min: Decimal
    max: Decimal


@final
@dataclass(frozen=True, slots=True)
class ExpiryDeltaChanged:
    min: timedelta
    max: timedelta


@final
@dataclass(frozen=True, slots=True)
class OptionPremiumRatioChanged:
    value: Decimal


@final
@dataclass(frozen=True, slots=True)
class ItmOptionPriceRatioChanged:
    value: Decimal


@final
@dataclass(frozen=True, slots=True)
class OptionPremiumDiscountChanged:
    value: Decimal


@final
@dataclass(frozen=True, slots=True)
class MinChunkValueChanged:
    value: Decimal


@final
@dataclass(frozen=True, slots=True)
class MaxOrderActiveChanged:
    value: timedelta


OrderEvent: TypeAlias = (
    BuyOrderCreated | BuyOrderFilled | BuyOrderCancelled
    | SellOrderCreated | SellOrderCancelled | SellOrderFilled | OptionRedeemed
)

ConfigEvent: TypeAlias = (
    StrikeMultiplierChanged | ExpiryDeltaChanged | OptionPremiumRatioChanged
    | ItmOptionPriceRatioChanged | OptionPremiumDiscountChanged
    | MinChunkValueChanged | MaxOrderActiveChanged
)

VaultEvent: TypeAlias = OrderEvent | ConfigEvent

_CONFIG_EVENTS = (
    StrikeMultiplierChanged, ExpiryDeltaChanged, OptionPremiumRatioChanged,
    ItmOptionPriceRatioChanged, OptionPremiumDiscountChanged,
    MinChunkValueChanged, MaxOrderActiveChanged,
)


def topic_for(event: VaultEvent) -> str:
    if isinstance(event, _CONFIG_EVENTS):
        return TOPIC_VAULT_CONFIG
    return TOPIC_VAULT_EVENTS


@final
class EventRecorder:
    """Ordered event log with optional EventBus delivery.

    `events` holds at most `history` events, oldest dropped first.
    `undelivered` is not bounded: an event leaves it only once published.
    """

    def __init__(self, bus: EventBus | None = None, history: int = 1000) -> None:
        if history < 1:
            raise ValueError(f"history must be >= 1, got {history}")
        self._bus = bus
        self._log: deque[VaultEvent] = deque(maxlen=history)
        self._undelivered: list[VaultEvent] = []

    @property
    def events(self) -> tuple[VaultEvent, ...]:
        return tuple(self._log)

    @property
    def undelivered(self) -> tuple[VaultEvent, ...]:
        return tuple(self._undelivered)

    def emit(self, event: VaultEvent) -> None:
        self._log.append(event)
        if self._bus is None:
            return
        if self._undelivered:
            self._undelivered.append(event)
            return
        match self._publish(event):
            case Err(e):
                logger.error("event %s not delivered: %s", type(event).__name__, e.message)
                self._undelivered.append(event)
            case Ok(_):
                pass

    def flush(self) -> Ok[int] | Err[PublishError]:
        """Redeliver queued events in order; Ok carries the number delivered."""
        delivered = 0
        while self._undelivered:
            match self._publish(self._undelivered[0]):
                case Err() as e:
                    return e
                case Ok(_):
                    self._undelivered.pop(0)
                    delivered += 1
        return Ok(delivered)

    def _publish(self, event: VaultEvent) -> Ok[None] | Err[PublishError]:
        if self._bus is None:
            return Ok(None)
        match canonical_bytes(event):
            case Err(reason):
                # every event type is a dataclass of serializable fields
                raise TypeError(reason)
            case Ok(payload):
                pass
        return self._bus.publish(topic_for(event), type(event).__name__, payload)
