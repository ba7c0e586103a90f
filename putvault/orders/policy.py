"""Order sizing and validation rules.

Pure functions: no state, no I/O, no clock. Callers pass the current time
and the quotes they obtained, which keeps every decision reproducible.

Check order in validate_candidate is part of the contract: option type,
underlying asset, collateral asset, strike asset, expiry window, strike
window. The first failing check is the one reported.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal, localcontext

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT
from putvault.core.decimals import truncate
from putvault.core.errors import (
    AssetKind,
    AssetMismatchError,
    ConfigInvalidError,
    InsufficientOfferError,
    OptionTypeMismatchError,
    OutOfRangeError,
    PricingError,
    RangeKind,
)
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime
from putvault.instrument.option import OptionContract, OptionType
from putvault.orders.config import VaultConfig
from putvault.orders.types import BuyWindow


def derive_buy_window(
    spot_price: Decimal,
    config: VaultConfig,
    now: UtcDatetime,
    price_decimals: int,
) -> Ok[BuyWindow] | Err[ConfigInvalidError | PricingError]:
    """Strike and expiry bounds for a new buy order.

    Strikes are spot * multiplier truncated to the price precision;
    expiries are now + expiry delta.
    """
    source = "orders.policy.derive_buy_window"
    multiplier = config.strike_multiplier
    if multiplier.min <= 0 or multiplier.max >= 1 or multiplier.min > multiplier.max:
        return Err(ConfigInvalidError(
            message=f"strike multiplier [{multiplier.min}, {multiplier.max}] is unusable",
            code="PV-CONFIG",
            timestamp=now,
            source=source,
            field="strike_multiplier",
            reason="requires 0 < min <= max < 1",
        ))
    if spot_price <= 0:
        return Err(PricingError(
            message=f"spot price must be positive, got {spot_price}",
            code="PV-PRICE",
            timestamp=now,
            source=source,
            instrument="spot",
            reason="non-positive spot",
        ))
    with localcontext(VAULT_DECIMAL_CONTEXT):
        min_strike = truncate(spot_price * multiplier.min, price_decimals)
        max_strike = truncate(spot_price * multiplier.max, price_decimals)
    if min_strike >= max_strike:
        return Err(ConfigInvalidError(
            message=f"strike window collapses at spot {spot_price}",
            code="PV-CONFIG",
            timestamp=now,
            source=source,
            field="strike_multiplier",
            reason=f"min strike {min_strike} is not below max strike {max_strike}",
        ))
    return Ok(BuyWindow(
        min_strike=min_strike,
        max_strike=max_strike,
        min_expiry=now.plus(config.expiry_delta.min),
        max_expiry=now.plus(config.expiry_delta.max),
    ))


def validate_candidate(
    option: OptionContract,
    window: BuyWindow,
    underlying_asset: str,
    quote_asset: str,
    now: UtcDatetime,
) -> Ok[OptionContract] | Err[
    OptionTypeMismatchError | AssetMismatchError | OutOfRangeError
]:
    source = "orders.policy.validate_candidate"
    if option.option_type is not OptionType.PUT:
        return Err(OptionTypeMismatchError(
            message=f"{option.option_id} is not a put",
            code="PV-OPTION-TYPE",
            timestamp=now,
            source=source,
            option=option.option_id,
            expected=OptionType.PUT.value,
            actual=option.option_type.value,
        ))
    for kind, expected, actual in (
        (AssetKind.UNDERLYING, underlying_asset, option.underlying_asset),
        (AssetKind.COLLATERAL, quote_asset, option.collateral_asset),
        (AssetKind.STRIKE, quote_asset, option.strike_asset),
    ):
        if expected != actual:
            return Err(AssetMismatchError(
                message=f"{kind.value} asset mismatch: expected {expected}, got {actual}",
                code="PV-ASSET",
                timestamp=now,
                source=source,
                kind=kind,
                expected=expected,
                actual=actual,
            ))
    if not (window.min_expiry <= option.expiry <= window.max_expiry):
        return Err(OutOfRangeError(
            message=(
                f"expiry {option.expiry.isoformat()} outside "
                f"[{window.min_expiry.isoformat()}, {window.max_expiry.isoformat()}]"
            ),
            code="PV-RANGE",
            timestamp=now,
            source=source,
            kind=RangeKind.EXPIRY,
            min=window.min_expiry,
            max=window.max_expiry,
            actual=option.expiry,
        ))
    if not (window.min_strike <= option.strike_price <= window.max_strike):
        return Err(OutOfRangeError(
            message=(
                f"strike {option.strike_price} outside "
                f"[{window.min_strike}, {window.max_strike}]"
            ),
            code="PV-RANGE",
            timestamp=now,
            source=source,
            kind=RangeKind.STRIKE,
            min=window.min_strike,
            max=window.max_strike,
            actual=option.strike_price,
        ))
    return Ok(option)


def required_option_amount(
    order_value: Decimal,
    premium: Decimal,
    discount: Decimal,
    option_decimals: int,
    now: UtcDatetime,
) -> Ok[Decimal] | Err[PricingError]:
    """Option tokens whose discounted-premium proceeds cover order_value.

    quantity = order_value / (premium * (1 + discount)), truncated toward
    zero in the option token's precision.
    """
    if premium <= 0:
        return Err(PricingError(
            message=f"premium must be positive, got {premium}",
            code="PV-PRICE",
            timestamp=now,
            source="orders.policy.required_option_amount",
            instrument="premium",
            reason="non-positive premium",
        ))
    with localcontext(VAULT_DECIMAL_CONTEXT):
        quantity = order_value / (premium * (1 + discount))
    required = truncate(quantity, option_decimals)
    if required <= 0:
        return Err(PricingError(
            message=f"premium {premium} too large for order value {order_value}",
            code="PV-PRICE",
            timestamp=now,
            source="orders.policy.required_option_amount",
            instrument="premium",
            reason="required amount rounds to zero",
        ))
    return Ok(required)


def check_offer(
    required: Decimal, offered: Decimal, now: UtcDatetime,
) -> Ok[Decimal] | Err[InsufficientOfferError]:
    """Ok(required) when the offer covers it."""
    if offered < required:
        return Err(InsufficientOfferError(
            message=f"offered {offered}, required {required}",
            code="PV-OFFER",
            timestamp=now,
            source="orders.policy.check_offer",
            required=required,
            offered=offered,
        ))
    return Ok(required)


def sell_proceeds(
    amount: Decimal, premium: Decimal, discount: Decimal, quote_decimals: int,
) -> Decimal:
    """Quote owed for `amount` options at the discounted premium."""
    with localcontext(VAULT_DECIMAL_CONTEXT):
        gross = amount * premium * (1 - discount)
    return truncate(gross, quote_decimals)


def is_stale(created_at: UtcDatetime, now: UtcDatetime, max_order_active: timedelta) -> bool:
    return now >= created_at.plus(max_order_active)
