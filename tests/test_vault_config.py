"""Tests for putvault.orders.config: risk parameters and their validation."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from hypothesis import given

from putvault.core.errors import ConfigInvalidError
from putvault.core.result import Err, Ok, unwrap
from putvault.orders.config import (
    DEFAULT_MAX_ORDER_ACTIVE,
    DEFAULT_OPTION_PREMIUM_DISCOUNT,
    ExpiryDelta,
    StrikeMultiplier,
    VaultConfig,
    check_itm_option_price_ratio,
    check_max_order_active,
    check_min_chunk_value,
    check_option_premium_discount,
    check_option_premium_ratio,
)
from tests.conftest import vault_configs


class TestStrikeMultiplier:
    def test_valid(self) -> None:
        m = unwrap(StrikeMultiplier.create(Decimal("0.5"), Decimal("0.99")))
        assert (m.min, m.max) == (Decimal("0.5"), Decimal("0.99"))

    def test_rejects_zero_min(self) -> None:
        result = StrikeMultiplier.create(Decimal(0), Decimal("0.9"))
        assert isinstance(result, Err)
        assert result.error.field == "strike_multiplier"

    def test_rejects_max_of_one(self) -> None:
        assert isinstance(StrikeMultiplier.create(Decimal("0.5"), Decimal(1)), Err)

    def test_rejects_inverted(self) -> None:
        assert isinstance(StrikeMultiplier.create(Decimal("0.9"), Decimal("0.5")), Err)

    def test_rejects_equal(self) -> None:
        assert isinstance(StrikeMultiplier.create(Decimal("0.5"), Decimal("0.5")), Err)


class TestExpiryDelta:
    def test_zero_min_allowed(self) -> None:
        assert isinstance(ExpiryDelta.create(timedelta(0), timedelta(hours=1)), Ok)

    def test_rejects_negative_min(self) -> None:
        assert isinstance(ExpiryDelta.create(timedelta(seconds=-1), timedelta(hours=1)), Err)

    def test_rejects_collapsed(self) -> None:
        assert isinstance(ExpiryDelta.create(timedelta(hours=1), timedelta(hours=1)), Err)


class TestScalarChecks:
    def test_premium_ratio_bounds(self) -> None:
        assert isinstance(check_option_premium_ratio(Decimal(1)), Ok)
        assert isinstance(check_option_premium_ratio(Decimal(0)), Err)
        assert isinstance(check_option_premium_ratio(Decimal("1.5")), Ok)
        assert isinstance(check_option_premium_ratio(Decimal("-0.1")), Err)
        assert isinstance(check_option_premium_ratio(Decimal("Infinity")), Err)

    def test_itm_ratio_bounds(self) -> None:
        assert isinstance(check_itm_option_price_ratio(Decimal(0)), Ok)
        assert isinstance(check_itm_option_price_ratio(Decimal(1)), Ok)
        assert isinstance(check_itm_option_price_ratio(Decimal("-0.1")), Err)

    def test_discount_excludes_one(self) -> None:
        assert isinstance(check_option_premium_discount(Decimal(0)), Ok)
        assert isinstance(check_option_premium_discount(Decimal(1)), Err)

    def test_min_chunk_non_negative(self) -> None:
        assert isinstance(check_min_chunk_value(Decimal(0)), Ok)
        assert isinstance(check_min_chunk_value(Decimal("-1")), Err)

    def test_max_order_active_positive(self) -> None:
        assert isinstance(check_max_order_active(timedelta(seconds=1)), Ok)
        assert isinstance(check_max_order_active(timedelta(0)), Err)


class TestVaultConfig:
    def test_defaults(self) -> None:
        config = VaultConfig.default()
        assert config == unwrap(VaultConfig.create())
        assert config.option_premium_discount == DEFAULT_OPTION_PREMIUM_DISCOUNT
        assert config.max_order_active == DEFAULT_MAX_ORDER_ACTIVE == timedelta(days=3)

    def test_create_reports_first_invalid_field(self) -> None:
        result = VaultConfig.create(option_premium_discount=Decimal(2))
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigInvalidError)
        assert result.error.field == "option_premium_discount"

    def test_with_setter_keeps_other_fields(self) -> None:
        base = VaultConfig.default()
        updated = unwrap(base.with_min_chunk_value(Decimal(50)))
        assert updated.min_chunk_value == Decimal(50)
        assert updated.strike_multiplier == base.strike_multiplier
        assert base.min_chunk_value == Decimal(1)

    def test_with_setter_rejects(self) -> None:
        result = VaultConfig.default().with_strike_multiplier(Decimal("0.5"), Decimal(1))
        assert isinstance(result, Err)

    def test_from_mapping(self) -> None:
        config = unwrap(VaultConfig.from_mapping({
            "strike_multiplier": ["0.5", "0.99"],
            "expiry_delta": [0, 86400],
            "option_premium_discount": "0.1",
            "max_order_active": 3600,
        }))
        assert config.strike_multiplier.min == Decimal("0.5")
        assert config.expiry_delta.max == timedelta(days=1)
        assert config.option_premium_discount == Decimal("0.1")
        assert config.max_order_active == timedelta(hours=1)
        assert config.min_chunk_value == Decimal(1)

    def test_from_mapping_unparseable(self) -> None:
        result = VaultConfig.from_mapping({"min_chunk_value": "lots"})
        assert isinstance(result, Err)
        assert result.error.field == "mapping"

    @given(config=vault_configs())
    def test_generated_configs_satisfy_bounds(self, config: VaultConfig) -> None:
        assert 0 < config.strike_multiplier.min < config.strike_multiplier.max < 1
        assert timedelta(0) <= config.expiry_delta.min < config.expiry_delta.max
        assert 0 <= config.option_premium_discount < 1
