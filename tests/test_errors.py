"""Tests for putvault.core.errors: error values and their payloads."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from putvault.core.errors import (
    AssetKind,
    AssetMismatchError,
    InsufficientOfferError,
    NotYetExpiredError,
    OutOfRangeError,
    RangeKind,
    VaultError,
)
from putvault.core.types import UtcDatetime

_TS = UtcDatetime(value=datetime(2025, 6, 15, 10, 0, tzinfo=UTC))


def _offer_error() -> InsufficientOfferError:
    return InsufficientOfferError(
        message="offered 1, required 3.80952380", code="PV-OFFER", timestamp=_TS,
        source="test.fn", required=Decimal("3.80952380"), offered=Decimal(1),
    )


class TestVaultError:
    def test_is_frozen(self) -> None:
        err = VaultError(message="m", code="C", timestamp=_TS, source="s")
        with pytest.raises(dataclasses.FrozenInstanceError):
            err.message = "x"  # type: ignore[misc]

    def test_subclasses_are_vault_errors(self) -> None:
        assert isinstance(_offer_error(), VaultError)

    def test_value_equality(self) -> None:
        assert _offer_error() == _offer_error()


class TestPayloads:
    def test_match_by_class(self) -> None:
        match _offer_error():
            case InsufficientOfferError(required=required, offered=offered):
                assert (required, offered) == (Decimal("3.80952380"), Decimal(1))
            case _:
                pytest.fail("expected InsufficientOfferError")

    def test_not_yet_expired_is_distinguishable(self) -> None:
        err: VaultError = NotYetExpiredError(
            message="m", code="PV-NOT-EXPIRED", timestamp=_TS, source="s", option="oP",
        )
        assert not isinstance(err, InsufficientOfferError)
        assert err.option == "oP"  # type: ignore[attr-defined]

    def test_asset_mismatch_payload(self) -> None:
        err = AssetMismatchError(
            message="m", code="PV-ASSET", timestamp=_TS, source="s",
            kind=AssetKind.COLLATERAL, expected="USDC", actual="WETH",
        )
        assert err.kind is AssetKind.COLLATERAL
        assert (err.expected, err.actual) == ("USDC", "WETH")

    def test_out_of_range_carries_bounds(self) -> None:
        later = UtcDatetime(value=datetime(2025, 7, 1, tzinfo=UTC))
        err = OutOfRangeError(
            message="m", code="PV-RANGE", timestamp=_TS, source="s",
            kind=RangeKind.EXPIRY, min=_TS, max=later, actual=later,
        )
        assert (err.min, err.max, err.actual) == (_TS, later, later)
