"""PutOptionsVault: the public surface of one vault instance.

Wires the order lifecycle, the position ledger and the locked-value
accountant to their collaborators. Operations run one at a time to
completion; each returns Ok or Err and a rejected operation changes
nothing.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal
from typing import final

from putvault.core.clock import Clock, SystemClock
from putvault.core.errors import (
    ConfigInvalidError,
    InsufficientBalanceError,
    InvalidAmountError,
    VaultError,
)
from putvault.core.result import Err, Ok
from putvault.core.roles import Role
from putvault.core.types import UtcDatetime
from putvault.infra.config import VaultSettings
from putvault.infra.protocols import AssetTransfer, EventBus, OptionSettlement
from putvault.instrument.option import OptionContract
from putvault.ledger.accounting import (
    LockedValueAccountant,
    ProportionalShares,
    convert_to_assets,
    convert_to_shares,
)
from putvault.ledger.positions import PositionLedger, SweepReport
from putvault.ledger.transfers import Move, settle
from putvault.orders import policy
from putvault.orders.config import VaultConfig
from putvault.orders.events import (
    BuyOrderFilled,
    ConfigEvent,
    EventRecorder,
    ExpiryDeltaChanged,
    ItmOptionPriceRatioChanged,
    MaxOrderActiveChanged,
    MinChunkValueChanged,
    OptionPremiumDiscountChanged,
    OptionPremiumRatioChanged,
    SellOrderFilled,
    StrikeMultiplierChanged,
)
from putvault.orders.types import BuyOrder, SellOrder
from putvault.pricing.protocols import PricingGateway
from putvault.vault.lifecycle import OrderLifecycle

logger = logging.getLogger(__name__)


@final
class PutOptionsVault:
    """Single-asset vault that turns deposits into put positions."""

    def __init__(
        self,
        settings: VaultSettings,
        transfers: AssetTransfer,
        pricing: PricingGateway,
        settlement: OptionSettlement,
        config: VaultConfig | None = None,
        clock: Clock | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._settings = settings
        self._transfers = transfers
        self._pricing = pricing
        self._config = config if config is not None else VaultConfig.default()
        self._clock = clock if clock is not None else SystemClock()
        self._events = EventRecorder(bus)
        self._shares = ProportionalShares()
        self._positions = PositionLedger(
            holder=settings.vault_account,
            transfers=transfers,
            settlement=settlement,
            events=self._events,
            quote_decimals=settings.quote_decimals,
        )
        self._orders = OrderLifecycle(
            settings=settings,
            transfers=transfers,
            pricing=pricing,
            positions=self._positions,
            events=self._events,
            clock=self._clock,
            config=lambda: self._config,
        )
        self._accountant = LockedValueAccountant(
            settings=settings,
            transfers=transfers,
            positions=self._positions,
            shares=self._shares,
            pricing=pricing,
            buy_order=self._orders.buy_order,
            config=lambda: self._config,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def settings(self) -> VaultSettings:
        return self._settings

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def events(self) -> EventRecorder:
        return self._events

    def buy_order(self) -> BuyOrder | None:
        return self._orders.buy_order()

    def sell_order(self) -> SellOrder | None:
        return self._orders.sell_order()

    def positions(self) -> tuple[OptionContract, ...]:
        return self._positions.positions()

    def total_supply(self) -> Decimal:
        return self._shares.total_supply

    def share_balance(self, holder: str) -> Decimal:
        return self._shares.balance_of(holder)

    def total_assets(self) -> Ok[Decimal] | Err[VaultError]:
        return self._accountant.total_assets()

    def locked_value(self) -> Ok[Decimal] | Err[VaultError]:
        return self._accountant.locked_value()

    def redeemable_value(self) -> Ok[Decimal] | Err[VaultError]:
        return self._accountant.redeemable_value()

    def max_withdraw(self, address: str) -> Ok[Decimal] | Err[VaultError]:
        return self._accountant.max_withdraw(address)

    def max_redeem(self, address: str) -> Ok[Decimal] | Err[VaultError]:
        return self._accountant.max_redeem(address)

    def max_deposit(self, address: str) -> Decimal | None:
        """None means unbounded: only the owner may deposit."""
        return None if address == self._settings.roles.owner else Decimal(0)

    # ------------------------------------------------------------------
    # Owner flows
    # ------------------------------------------------------------------

    def deposit(self, assets: Decimal, caller: str) -> Ok[Decimal] | Err[VaultError]:
        """Pull `assets` of quote from the owner, mint shares, refresh the buy order.

        Ok carries the shares minted.
        """
        now = self._clock.now()
        source = "vault.engine.PutOptionsVault.deposit"
        match self._settings.roles.require(caller, Role.OWNER, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        if assets <= 0:
            return Err(self._invalid_amount(assets, now, source))
        match self._accountant.total_assets():
            case Err() as e:
                return e
            case Ok(total_before):
                pass
        shares = convert_to_shares(
            assets, self._shares.total_supply, total_before, self._settings.share_decimals,
        )
        match settle(self._transfers, (
            Move(self._settings.quote_asset, caller, self._settings.vault_account, assets),
        )):
            case Err() as e:
                return e
            case Ok(moved):
                pass
        match self._orders.refresh_buy_order(assets):
            case Err() as e:
                match settle(self._transfers, tuple(m.reversed() for m in moved)):
                    case Err(undo):
                        logger.error("deposit refund to %s failed: %s", caller, undo.message)
                    case Ok(_):
                        pass
                return e
            case Ok(_):
                pass
        self._shares.mint(caller, shares)
        logger.info("deposit of %s by %s minted %s shares", assets, caller, shares)
        return Ok(shares)

    def withdraw(self, assets: Decimal, caller: str) -> Ok[Decimal] | Err[VaultError]:
        """Send `assets` of free quote to the owner; Ok carries the shares burned."""
        now = self._clock.now()
        source = "vault.engine.PutOptionsVault.withdraw"
        match self._settings.roles.require(caller, Role.OWNER, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        if assets <= 0:
            return Err(self._invalid_amount(assets, now, source))
        match self._accountant.max_withdraw(caller):
            case Err() as e:
                return e
            case Ok(limit):
                pass
        if assets > limit:
            return Err(self._over_limit(assets, limit, now, source))
        match self._accountant.total_assets():
            case Err() as e:
                return e
            case Ok(total):
                pass
        shares = convert_to_shares(
            assets, self._shares.total_supply, total, self._settings.share_decimals,
            round_up=True,
        )
        shares = min(shares, self._shares.balance_of(caller))
        return self._pay_out(caller, assets, shares, now)

    def redeem(self, shares: Decimal, caller: str) -> Ok[Decimal] | Err[VaultError]:
        """Burn `shares` for their share of free quote; Ok carries the assets paid."""
        now = self._clock.now()
        source = "vault.engine.PutOptionsVault.redeem"
        match self._settings.roles.require(caller, Role.OWNER, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        if shares <= 0:
            return Err(self._invalid_amount(shares, now, source))
        match self._accountant.max_redeem(caller):
            case Err() as e:
                return e
            case Ok(limit):
                pass
        if shares > limit:
            return Err(self._over_limit(shares, limit, now, source))
        match self._accountant.total_assets():
            case Err() as e:
                return e
            case Ok(total):
                pass
        assets = convert_to_assets(
            shares, self._shares.total_supply, total, self._settings.quote_decimals,
        )
        match self._pay_out(caller, assets, shares, now):
            case Err() as e:
                return e
            case Ok(_):
                return Ok(assets)

    def _pay_out(
        self, owner: str, assets: Decimal, shares: Decimal, now: UtcDatetime,
    ) -> Ok[Decimal] | Err[VaultError]:
        if assets > 0:
            match settle(self._transfers, (
                Move(self._settings.quote_asset, self._settings.vault_account, owner, assets),
            )):
                case Err() as e:
                    return e
                case Ok(_):
                    pass
        match self._shares.burn(owner, shares, now):
            case Err() as e:
                return e
            case Ok(_):
                pass
        logger.info("paid %s to %s burning %s shares", assets, owner, shares)
        return Ok(shares)

    # ------------------------------------------------------------------
    # Orders and positions
    # ------------------------------------------------------------------

    def create_buy_order(
        self, deposit_value: Decimal, caller: str,
    ) -> Ok[BuyOrder | None] | Err[VaultError]:
        """Open a buy order at the current spot without a deposit (owner only)."""
        now = self._clock.now()
        match self._settings.roles.require(
            caller, Role.OWNER, now, "vault.engine.PutOptionsVault.create_buy_order",
        ):
            case Err() as e:
                return e
            case Ok(_):
                pass
        match self._pricing.spot():
            case Err() as e:
                return e
            case Ok(spot):
                pass
        return self._orders.create_buy_order(deposit_value, spot)

    def fill_buy_order(
        self, option: OptionContract, offered_amount: Decimal, caller: str,
    ) -> Ok[BuyOrderFilled] | Err[VaultError]:
        return self._orders.fill_buy_order(option, offered_amount, caller)

    def cancel_buy_order(self, caller: str) -> Ok[BuyOrder] | Err[VaultError]:
        return self._orders.cancel_buy_order(caller)

    def create_sell_order(
        self, option_id: str, amount: Decimal, caller: str,
    ) -> Ok[SellOrder] | Err[VaultError]:
        return self._orders.create_sell_order(option_id, amount, caller)

    def fill_sell_order(
        self, offered_quote: Decimal, caller: str,
    ) -> Ok[SellOrderFilled] | Err[VaultError]:
        return self._orders.fill_sell_order(offered_quote, caller)

    def cancel_sell_order(self, caller: str) -> Ok[SellOrder] | Err[VaultError]:
        return self._orders.cancel_sell_order(caller)

    def sweep_expired(self) -> Ok[SweepReport]:
        """Redeem expired positions. Anyone may trigger it."""
        report = self._positions.sweep_expired(
            self._clock.now(), self._orders.release_sell_order_for,
        )
        if report.redeemed or report.failed:
            logger.info(
                "sweep: %d redeemed, %d skipped, %d failed",
                len(report.redeemed), len(report.skipped), len(report.failed),
            )
        return Ok(report)

    def is_stale(self, order: BuyOrder | SellOrder) -> bool:
        return policy.is_stale(order.created_at, self._clock.now(), self._config.max_order_active)

    # ------------------------------------------------------------------
    # Controller config setters
    # ------------------------------------------------------------------

    def set_strike_multiplier(
        self, min: Decimal, max: Decimal, caller: str,  # noqa: A002
    ) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_strike_multiplier(min, max),
            StrikeMultiplierChanged(min=min, max=max),
        )

    def set_expiry_delta(
        self, min: timedelta, max: timedelta, caller: str,  # noqa: A002
    ) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_expiry_delta(min, max), ExpiryDeltaChanged(min=min, max=max),
        )

    def set_option_premium_ratio(
        self, value: Decimal, caller: str,
    ) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_option_premium_ratio(value),
            OptionPremiumRatioChanged(value=value),
        )

    def set_itm_option_price_ratio(
        self, value: Decimal, caller: str,
    ) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_itm_option_price_ratio(value),
            ItmOptionPriceRatioChanged(value=value),
        )

    def set_option_premium_discount(
        self, value: Decimal, caller: str,
    ) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_option_premium_discount(value),
            OptionPremiumDiscountChanged(value=value),
        )

    def set_min_chunk_value(self, value: Decimal, caller: str) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_min_chunk_value(value), MinChunkValueChanged(value=value),
        )

    def set_max_order_active(
        self, value: timedelta, caller: str,
    ) -> Ok[VaultConfig] | Err[VaultError]:
        return self._reconfigure(
            caller, self._config.with_max_order_active(value), MaxOrderActiveChanged(value=value),
        )

    def _reconfigure(
        self,
        caller: str,
        candidate: Ok[VaultConfig] | Err[ConfigInvalidError],
        event: ConfigEvent,
    ) -> Ok[VaultConfig] | Err[VaultError]:
        now = self._clock.now()
        match self._settings.roles.require(
            caller, Role.CONTROLLER, now, "vault.engine.PutOptionsVault.reconfigure",
        ):
            case Err() as e:
                return e
            case Ok(_):
                pass
        match candidate:
            case Err() as e:
                return e
            case Ok(config):
                pass
        self._config = config
        logger.info("config changed by %s: %s", caller, type(event).__name__)
        self._events.emit(event)
        return Ok(config)

    # ------------------------------------------------------------------

    @staticmethod
    def _invalid_amount(amount: Decimal, now: UtcDatetime, source: str) -> InvalidAmountError:
        return InvalidAmountError(
            message=f"amount must be positive, got {amount}",
            code="PV-AMOUNT",
            timestamp=now,
            source=source,
            amount=amount,
            reason="non-positive",
        )

    @staticmethod
    def _over_limit(
        requested: Decimal, limit: Decimal, now: UtcDatetime, source: str,
    ) -> InsufficientBalanceError:
        return InsufficientBalanceError(
            message=f"requested {requested} exceeds the redeemable {limit}",
            code="PV-BALANCE",
            timestamp=now,
            source=source,
            requested=requested,
            available=limit,
        )
