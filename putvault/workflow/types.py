"""Activity and workflow payloads for the vault keeper.

All payloads are frozen dataclasses so the data converter can tag and
rebuild them on the other side of the Temporal boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import final


@final
@dataclass(frozen=True, slots=True)
class KeeperInput:
    vault_id: str
    interval: timedelta = timedelta(minutes=15)
    max_ticks: int = 96


@final
@dataclass(frozen=True, slots=True)
class SweepInput:
    vault_id: str
    tick: int


@final
@dataclass(frozen=True, slots=True)
class SweepOutput:
    redeemed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()


@final
@dataclass(frozen=True, slots=True)
class StaleOrderInput:
    vault_id: str
    tick: int


@final
@dataclass(frozen=True, slots=True)
class StaleOrderOutput:
    buy_cancelled: bool = False
    sell_cancelled: bool = False

    @property
    def count(self) -> int:
        return int(self.buy_cancelled) + int(self.sell_cancelled)


@final
@dataclass(frozen=True, slots=True)
class KeeperProgress:
    ticks: int
    redeemed: tuple[str, ...]
    cancelled_orders: int


@final
@dataclass(frozen=True, slots=True)
class KeeperResult:
    vault_id: str
    ticks: int
    redeemed: tuple[str, ...]
    failed: tuple[str, ...]
    cancelled_orders: int
    stopped: bool
