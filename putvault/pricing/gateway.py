"""Pricing gateway over a raw spot feed and a 64.64 premium model.

Feeds report integer answers with their own decimals; the premium model
reports signed 64.64 binary fixed-point numbers. Both are normalized to
the gateway's decimals before they reach order sizing or valuation.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol, final

from putvault.core.decimals import (
    PRICE_DECIMALS_DEFAULT,
    from_fixed_64x64,
    from_raw,
    rescale,
    truncate,
)
from putvault.core.errors import PricingError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime

logger = logging.getLogger(__name__)


class SpotFeed(Protocol):
    """Latest-answer price feed of the underlying in the quote asset."""

    @property
    def decimals(self) -> int: ...

    def latest_answer(self) -> int: ...


class PremiumModel(Protocol):
    """Option premium per unit, as a 64.64 fixed-point number."""

    def quote_64x64(
        self, spot: Decimal, strike: Decimal, expiry: UtcDatetime, is_put: bool,
    ) -> int: ...


def _pricing_error(instrument: str, reason: str, source: str) -> Err[PricingError]:
    return Err(PricingError(
        message=f"{instrument}: {reason}",
        code="PV-PRICE",
        timestamp=UtcDatetime.now(),
        source=source,
        instrument=instrument,
        reason=reason,
    ))


@final
class FeedPricingGateway:
    """PricingGateway backed by a SpotFeed and a PremiumModel. Never caches."""

    def __init__(
        self,
        spot_feed: SpotFeed,
        premium_model: PremiumModel,
        decimals: int = PRICE_DECIMALS_DEFAULT,
    ) -> None:
        self._feed = spot_feed
        self._model = premium_model
        self._decimals = decimals

    @property
    def decimals(self) -> int:
        return self._decimals

    def spot(self) -> Ok[Decimal] | Err[PricingError]:
        answer = self._feed.latest_answer()
        if answer <= 0:
            return _pricing_error(
                "spot", f"feed answer must be positive, got {answer}",
                "pricing.FeedPricingGateway.spot",
            )
        raw = rescale(answer, self._feed.decimals, self._decimals)
        price = from_raw(raw, self._decimals)
        logger.debug("spot %s (feed answer %d, %d decimals)", price, answer, self._feed.decimals)
        return Ok(price)

    def premium(
        self, strike: Decimal, expiry: UtcDatetime, is_put: bool,
    ) -> Ok[Decimal] | Err[PricingError]:
        match self.spot():
            case Err() as e:
                return e
            case Ok(spot):
                pass
        raw = self._model.quote_64x64(spot, strike, expiry, is_put)
        premium = truncate(from_fixed_64x64(raw), self._decimals)
        # zero is a valid quote for a far out-of-the-money option
        if premium < 0:
            return _pricing_error(
                "premium", f"premium must not be negative, got {premium}",
                "pricing.FeedPricingGateway.premium",
            )
        logger.debug(
            "premium %s for strike %s expiry %s put=%s", premium, strike, expiry.isoformat(), is_put,
        )
        return Ok(premium)
