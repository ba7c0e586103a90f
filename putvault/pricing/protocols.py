"""PricingGateway protocol and its test double.

The vault never computes option prices. It asks a gateway for the spot
price of the underlying and for a premium quote per option unit, both in
the gateway's own decimals, at the moment it needs them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, final, runtime_checkable

from putvault.core.errors import PricingError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime


@runtime_checkable
class PricingGateway(Protocol):
    """Spot and premium oracle. Quotes are expressed with `decimals` places."""

    @property
    def decimals(self) -> int: ...

    def spot(self) -> Ok[Decimal] | Err[PricingError]: ...

    def premium(
        self, strike: Decimal, expiry: UtcDatetime, is_put: bool,
    ) -> Ok[Decimal] | Err[PricingError]: ...


@final
class StubPricingGateway:
    """Test double returning configured quotes.

    Quotes are plain attributes so tests can move the market between calls.
    Setting `failure` makes every call return Err with that reason.
    """

    def __init__(
        self,
        spot_price: Decimal,
        premium_price: Decimal,
        decimals: int = 8,
    ) -> None:
        self.spot_price = spot_price
        self.premium_price = premium_price
        self.failure: str | None = None
        self.premium_calls: list[tuple[Decimal, UtcDatetime, bool]] = []
        self._decimals = decimals

    @property
    def decimals(self) -> int:
        return self._decimals

    def _fail(self, instrument: str) -> Err[PricingError]:
        return Err(PricingError(
            message=f"stub pricing failure: {self.failure}",
            code="PV-PRICE",
            timestamp=UtcDatetime.now(),
            source="pricing.StubPricingGateway",
            instrument=instrument,
            reason=self.failure or "",
        ))

    def spot(self) -> Ok[Decimal] | Err[PricingError]:
        if self.failure is not None:
            return self._fail("spot")
        return Ok(self.spot_price)

    def premium(
        self, strike: Decimal, expiry: UtcDatetime, is_put: bool,
    ) -> Ok[Decimal] | Err[PricingError]:
        self.premium_calls.append((strike, expiry, is_put))
        if self.failure is not None:
            return self._fail("premium")
        return Ok(self.premium_price)
