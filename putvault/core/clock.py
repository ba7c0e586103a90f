"""Time source for the vault core.

Every read of "now" goes through an injected Clock so order staleness and
expiry windows are deterministic under test (see ManualClock in
putvault.infra.memory_adapter).
"""

from __future__ import annotations

from typing import Protocol, final, runtime_checkable

from putvault.core.types import UtcDatetime


@runtime_checkable
class Clock(Protocol):
    def now(self) -> UtcDatetime: ...


@final
class SystemClock:
    """Wall-clock UTC time."""

    def now(self) -> UtcDatetime:
        return UtcDatetime.now()
