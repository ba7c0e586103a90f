"""Tests for the in-memory collaborator doubles."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from putvault.core.errors import NotYetExpiredError, TransferFailedError
from putvault.core.result import Err, Ok, unwrap
from putvault.core.types import UtcDatetime
from putvault.infra.memory_adapter import (
    InMemoryAssetLedger,
    InMemoryEventBus,
    InMemoryOptionSettlement,
    ManualClock,
)
from putvault.infra.protocols import AssetTransfer, EventBus, OptionSettlement
from putvault.instrument.option import OptionContract

_TS = UtcDatetime(value=datetime(2025, 6, 15, 10, 0, tzinfo=UTC))
_EXPIRY = _TS.plus(timedelta(hours=12))


def _put() -> OptionContract:
    return unwrap(OptionContract.create("oWETH-850P", "WETH", "USDC", "USDC", Decimal(850), _EXPIRY))


def _settlement() -> tuple[InMemoryAssetLedger, ManualClock, InMemoryOptionSettlement]:
    assets = InMemoryAssetLedger()
    clock = ManualClock(_TS)
    settlement = InMemoryOptionSettlement(assets, clock)
    assets.mint("USDC", settlement.pool, Decimal(10_000))
    assets.mint("oWETH-850P", "vault", Decimal(4))
    return assets, clock, settlement


class TestProtocolConformance:
    def test_doubles_satisfy_protocols(self) -> None:
        assets = InMemoryAssetLedger()
        assert isinstance(assets, AssetTransfer)
        assert isinstance(InMemoryEventBus(), EventBus)
        assert isinstance(InMemoryOptionSettlement(assets, ManualClock(_TS)), OptionSettlement)


class TestManualClock:
    def test_advance_and_set(self) -> None:
        clock = ManualClock(_TS)
        assert clock.advance(timedelta(minutes=5)) == _TS.plus(timedelta(minutes=5))
        clock.set(_TS)
        assert clock.now() == _TS


class TestInMemoryAssetLedger:
    def test_transfer_moves_balance(self) -> None:
        assets = InMemoryAssetLedger()
        assets.mint("USDC", "a", Decimal(10))
        assert assets.transfer("USDC", "a", "b", Decimal(4)) == Ok(None)
        assert assets.balance_of("USDC", "a") == Decimal(6)
        assert assets.balance_of("USDC", "b") == Decimal(4)
        assert assets.transfer_count == 1

    def test_insufficient_balance(self) -> None:
        assets = InMemoryAssetLedger()
        result = assets.transfer("USDC", "a", "b", Decimal(1))
        assert isinstance(result, Err)
        assert isinstance(result.error, TransferFailedError)
        assert assets.snapshot() == {}

    def test_non_positive_amount(self) -> None:
        assets = InMemoryAssetLedger()
        assets.mint("USDC", "a", Decimal(10))
        assert isinstance(assets.transfer("USDC", "a", "b", Decimal(0)), Err)

    def test_blocked_account(self) -> None:
        assets = InMemoryAssetLedger()
        assets.mint("USDC", "a", Decimal(10))
        assets.block("USDC", "b")
        assert isinstance(assets.transfer("USDC", "a", "b", Decimal(1)), Err)
        assets.unblock("USDC", "b")
        assert isinstance(assets.transfer("USDC", "a", "b", Decimal(1)), Ok)


class TestInMemoryEventBus:
    def test_publish_per_topic(self) -> None:
        bus = InMemoryEventBus()
        bus.publish("t", "k", b"v")
        assert bus.get_messages("t") == [("k", b"v")]
        assert bus.get_messages("other") == []

    def test_offline(self) -> None:
        bus = InMemoryEventBus()
        bus.offline = True
        result = bus.publish("t", "k", b"v")
        assert isinstance(result, Err)
        assert result.error.topic == "t"
        assert bus.get_messages("t") == []


class TestInMemoryOptionSettlement:
    def test_not_expired(self) -> None:
        _, _, settlement = _settlement()
        result = settlement.redeem_if_expired(_put(), "vault")
        assert isinstance(result, Err)
        assert isinstance(result.error, NotYetExpiredError)

    def test_expired_but_not_finalized(self) -> None:
        _, clock, settlement = _settlement()
        clock.set(_EXPIRY)
        settlement.set_expiry_price(_put(), Decimal(800))
        status = settlement.expiry_status(_put())
        assert status.expired and not status.finalized
        assert isinstance(settlement.redeem_if_expired(_put(), "vault").error, NotYetExpiredError)  # type: ignore[union-attr]

    def test_redeem_in_the_money(self) -> None:
        assets, clock, settlement = _settlement()
        clock.set(_EXPIRY)
        settlement.finalize(_put(), Decimal(800))
        assert settlement.redeem_if_expired(_put(), "vault") == Ok(Decimal(200))
        assert assets.balance_of("USDC", "vault") == Decimal(200)
        assert assets.balance_of("oWETH-850P", "vault") == Decimal(0)

    def test_redeem_out_of_the_money(self) -> None:
        assets, clock, settlement = _settlement()
        clock.set(_EXPIRY)
        settlement.finalize(_put(), Decimal(900))
        assert settlement.redeem_if_expired(_put(), "vault") == Ok(Decimal(0))
        assert assets.balance_of("oWETH-850P", "vault") == Decimal(0)

    def test_payout_failure_restores_tokens(self) -> None:
        assets = InMemoryAssetLedger()
        clock = ManualClock(_EXPIRY)
        settlement = InMemoryOptionSettlement(assets, clock)
        assets.mint("oWETH-850P", "vault", Decimal(4))
        settlement.finalize(_put(), Decimal(800))
        assert isinstance(settlement.redeem_if_expired(_put(), "vault"), Err)
        assert assets.balance_of("oWETH-850P", "vault") == Decimal(4)

    def test_injected_failure(self) -> None:
        _, clock, settlement = _settlement()
        clock.set(_EXPIRY)
        settlement.finalize(_put(), Decimal(800))
        settlement.fail_redemption(_put(), "paused")
        result = settlement.redeem_if_expired(_put(), "vault")
        assert isinstance(result.error, TransferFailedError)  # type: ignore[union-attr]
        assert result.error.reason == "paused"  # type: ignore[union-attr]
