"""Risk parameters governing order sizing and valuation.

VaultConfig is immutable; the controller replaces it wholesale through
the vault's setters. Every field is validated when a config is built, so
a config that exists is always usable by the order policy.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import final

from putvault.core.errors import ConfigInvalidError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime

DEFAULT_STRIKE_MULTIPLIER_MIN = Decimal("0.7")
DEFAULT_STRIKE_MULTIPLIER_MAX = Decimal("0.99")
DEFAULT_EXPIRY_DELTA_MIN = timedelta(hours=1)
DEFAULT_EXPIRY_DELTA_MAX = timedelta(hours=2)
DEFAULT_OPTION_PREMIUM_RATIO = Decimal(1)
DEFAULT_ITM_OPTION_PRICE_RATIO = Decimal("0.99")
DEFAULT_OPTION_PREMIUM_DISCOUNT = Decimal("0.05")
DEFAULT_MIN_CHUNK_VALUE = Decimal(1)
DEFAULT_MAX_ORDER_ACTIVE = timedelta(days=3)


def _invalid(field: str, reason: str) -> Err[ConfigInvalidError]:
    return Err(ConfigInvalidError(
        message=f"{field}: {reason}",
        code="PV-CONFIG",
        timestamp=UtcDatetime.now(),
        source="orders.config",
        field=field,
        reason=reason,
    ))


@final
@dataclass(frozen=True, slots=True)
class StrikeMultiplier:
    """Acceptable strikes as fractions of spot: 0 < min < max < 1."""

    min: Decimal
    max: Decimal

    @staticmethod
    def create(min: Decimal, max: Decimal) -> Ok[StrikeMultiplier] | Err[ConfigInvalidError]:  # noqa: A002
        if not (min.is_finite() and max.is_finite()):
            return _invalid("strike_multiplier", "bounds must be finite")
        if min <= 0:
            return _invalid("strike_multiplier", f"min must be > 0, got {min}")
        if max >= 1:
            return _invalid("strike_multiplier", f"max must be < 1, got {max}")
        if min >= max:
            return _invalid("strike_multiplier", f"min {min} must be < max {max}")
        return Ok(StrikeMultiplier(min=min, max=max))


@final
@dataclass(frozen=True, slots=True)
class ExpiryDelta:
    """Acceptable time-to-expiry measured from order creation: 0 <= min < max."""

    min: timedelta
    max: timedelta

    @staticmethod
    def create(min: timedelta, max: timedelta) -> Ok[ExpiryDelta] | Err[ConfigInvalidError]:  # noqa: A002
        if min < timedelta(0):
            return _invalid("expiry_delta", f"min must be >= 0, got {min}")
        if min >= max:
            return _invalid("expiry_delta", f"min {min} must be < max {max}")
        return Ok(ExpiryDelta(min=min, max=max))


def _check_ratio(
    field: str, value: Decimal, *, allow_zero: bool, allow_one: bool,
) -> Ok[Decimal] | Err[ConfigInvalidError]:
    if not value.is_finite():
        return _invalid(field, "must be finite")
    if value < 0 or (value == 0 and not allow_zero):
        return _invalid(field, f"must be {'>=' if allow_zero else '>'} 0, got {value}")
    if value > 1 or (value == 1 and not allow_one):
        return _invalid(field, f"must be {'<=' if allow_one else '<'} 1, got {value}")
    return Ok(value)


def check_option_premium_ratio(value: Decimal) -> Ok[Decimal] | Err[ConfigInvalidError]:
    """Any finite positive multiplier; a ratio above 1 marks positions above the quote."""
    if not value.is_finite() or value <= 0:
        return _invalid("option_premium_ratio", f"must be finite and > 0, got {value}")
    return Ok(value)


def check_itm_option_price_ratio(value: Decimal) -> Ok[Decimal] | Err[ConfigInvalidError]:
    return _check_ratio("itm_option_price_ratio", value, allow_zero=True, allow_one=True)


def check_option_premium_discount(value: Decimal) -> Ok[Decimal] | Err[ConfigInvalidError]:
    return _check_ratio("option_premium_discount", value, allow_zero=True, allow_one=False)


def check_min_chunk_value(value: Decimal) -> Ok[Decimal] | Err[ConfigInvalidError]:
    if not value.is_finite() or value < 0:
        return _invalid("min_chunk_value", f"must be finite and >= 0, got {value}")
    return Ok(value)


def check_max_order_active(value: timedelta) -> Ok[timedelta] | Err[ConfigInvalidError]:
    if value <= timedelta(0):
        return _invalid("max_order_active", f"must be > 0, got {value}")
    return Ok(value)


@final
@dataclass(frozen=True, slots=True)
class VaultConfig:
    strike_multiplier: StrikeMultiplier
    expiry_delta: ExpiryDelta
    option_premium_ratio: Decimal
    itm_option_price_ratio: Decimal
    option_premium_discount: Decimal
    min_chunk_value: Decimal
    max_order_active: timedelta

    @staticmethod
    def create(
        strike_multiplier: tuple[Decimal, Decimal] = (
            DEFAULT_STRIKE_MULTIPLIER_MIN, DEFAULT_STRIKE_MULTIPLIER_MAX,
        ),
        expiry_delta: tuple[timedelta, timedelta] = (
            DEFAULT_EXPIRY_DELTA_MIN, DEFAULT_EXPIRY_DELTA_MAX,
        ),
        option_premium_ratio: Decimal = DEFAULT_OPTION_PREMIUM_RATIO,
        itm_option_price_ratio: Decimal = DEFAULT_ITM_OPTION_PRICE_RATIO,
        option_premium_discount: Decimal = DEFAULT_OPTION_PREMIUM_DISCOUNT,
        min_chunk_value: Decimal = DEFAULT_MIN_CHUNK_VALUE,
        max_order_active: timedelta = DEFAULT_MAX_ORDER_ACTIVE,
    ) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        match StrikeMultiplier.create(*strike_multiplier):
            case Err() as e:
                return e
            case Ok(multiplier):
                pass
        match ExpiryDelta.create(*expiry_delta):
            case Err() as e:
                return e
            case Ok(delta):
                pass
        for check, value in (
            (check_option_premium_ratio, option_premium_ratio),
            (check_itm_option_price_ratio, itm_option_price_ratio),
            (check_option_premium_discount, option_premium_discount),
            (check_min_chunk_value, min_chunk_value),
        ):
            match check(value):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
        match check_max_order_active(max_order_active):
            case Err() as e:
                return e
            case Ok(_):
                pass
        return Ok(VaultConfig(
            strike_multiplier=multiplier,
            expiry_delta=delta,
            option_premium_ratio=option_premium_ratio,
            itm_option_price_ratio=itm_option_price_ratio,
            option_premium_discount=option_premium_discount,
            min_chunk_value=min_chunk_value,
            max_order_active=max_order_active,
        ))

    @staticmethod
    def default() -> VaultConfig:
        return VaultConfig(
            strike_multiplier=StrikeMultiplier(
                min=DEFAULT_STRIKE_MULTIPLIER_MIN, max=DEFAULT_STRIKE_MULTIPLIER_MAX,
            ),
            expiry_delta=ExpiryDelta(min=DEFAULT_EXPIRY_DELTA_MIN, max=DEFAULT_EXPIRY_DELTA_MAX),
            option_premium_ratio=DEFAULT_OPTION_PREMIUM_RATIO,
            itm_option_price_ratio=DEFAULT_ITM_OPTION_PRICE_RATIO,
            option_premium_discount=DEFAULT_OPTION_PREMIUM_DISCOUNT,
            min_chunk_value=DEFAULT_MIN_CHUNK_VALUE,
            max_order_active=DEFAULT_MAX_ORDER_ACTIVE,
        )

    @staticmethod
    def from_mapping(raw: Mapping[str, object]) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        """Parse a config mapping; missing keys take their defaults.

        Ratios and amounts are given as strings or numbers, durations as
        seconds. Pairs are two-element sequences [min, max].
        """
        base = VaultConfig.default()

        def dec(key: str, default: Decimal) -> Decimal:
            return Decimal(str(raw[key])) if key in raw else default

        def secs(value: object) -> timedelta:
            return timedelta(seconds=float(str(value)))

        try:
            if "strike_multiplier" in raw:
                lo, hi = raw["strike_multiplier"]  # type: ignore[misc]
                multiplier = (Decimal(str(lo)), Decimal(str(hi)))
            else:
                multiplier = (base.strike_multiplier.min, base.strike_multiplier.max)
            if "expiry_delta" in raw:
                lo, hi = raw["expiry_delta"]  # type: ignore[misc]
                delta = (secs(lo), secs(hi))
            else:
                delta = (base.expiry_delta.min, base.expiry_delta.max)
            max_active = (
                secs(raw["max_order_active"]) if "max_order_active" in raw
                else base.max_order_active
            )
            premium_ratio = dec("option_premium_ratio", base.option_premium_ratio)
            itm_ratio = dec("itm_option_price_ratio", base.itm_option_price_ratio)
            discount = dec("option_premium_discount", base.option_premium_discount)
            min_chunk = dec("min_chunk_value", base.min_chunk_value)
        except (TypeError, ValueError, InvalidOperation) as e:
            return _invalid("mapping", f"unparseable value: {e}")
        return VaultConfig.create(
            strike_multiplier=multiplier,
            expiry_delta=delta,
            option_premium_ratio=premium_ratio,
            itm_option_price_ratio=itm_ratio,
            option_premium_discount=discount,
            min_chunk_value=min_chunk,
            max_order_active=max_active,
        )

    def with_strike_multiplier(
        self, min: Decimal, max: Decimal,  # noqa: A002
    ) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return StrikeMultiplier.create(min, max).map(
            lambda m: replace(self, strike_multiplier=m),
        )

    def with_expiry_delta(
        self, min: timedelta, max: timedelta,  # noqa: A002
    ) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return ExpiryDelta.create(min, max).map(lambda d: replace(self, expiry_delta=d))

    def with_option_premium_ratio(self, value: Decimal) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return check_option_premium_ratio(value).map(
            lambda v: replace(self, option_premium_ratio=v),
        )

    def with_itm_option_price_ratio(
        self, value: Decimal,
    ) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return check_itm_option_price_ratio(value).map(
            lambda v: replace(self, itm_option_price_ratio=v),
        )

    def with_option_premium_discount(
        self, value: Decimal,
    ) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return check_option_premium_discount(value).map(
            lambda v: replace(self, option_premium_discount=v),
        )

    def with_min_chunk_value(self, value: Decimal) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return check_min_chunk_value(value).map(lambda v: replace(self, min_chunk_value=v))

    def with_max_order_active(self, value: timedelta) -> Ok[VaultConfig] | Err[ConfigInvalidError]:
        return check_max_order_active(value).map(lambda v: replace(self, max_order_active=v))
