"""Creation, fulfillment and cancellation of the vault's buy and sell orders.

One buy order and one sell order at most, each held in an OrderSlot.
Every operation checks everything it can before it touches a balance,
settles its token movements all-or-nothing, and only then updates order
state, positions and events. A rejected operation leaves no trace.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal, localcontext
from typing import final

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT
from putvault.core.clock import Clock
from putvault.core.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    UnauthorizedError,
    UnknownPositionError,
    VaultError,
)
from putvault.core.result import Err, Ok
from putvault.core.roles import Role
from putvault.core.types import UtcDatetime
from putvault.infra.config import VaultSettings
from putvault.infra.protocols import AssetTransfer
from putvault.instrument.option import OptionContract
from putvault.ledger.positions import PositionLedger
from putvault.ledger.transfers import Move, settle
from putvault.orders import policy
from putvault.orders.config import VaultConfig
from putvault.orders.events import (
    BuyOrderCancelled,
    BuyOrderCreated,
    BuyOrderFilled,
    EventRecorder,
    SellOrderCancelled,
    SellOrderCreated,
    SellOrderFilled,
)
from putvault.orders.types import (
    BuyOrder,
    OrderKind,
    OrderSlot,
    OrderStatus,
    SellOrder,
)
from putvault.pricing.protocols import PricingGateway

logger = logging.getLogger(__name__)


def privileged_role(kind: OrderKind) -> Role:
    """Role allowed to cancel an order of `kind` before it goes stale."""
    match kind:
        case OrderKind.BUY:
            return Role.BROKER
        case OrderKind.SELL:
            return Role.LIQUIDATOR


@final
class OrderLifecycle:
    def __init__(
        self,
        settings: VaultSettings,
        transfers: AssetTransfer,
        pricing: PricingGateway,
        positions: PositionLedger,
        events: EventRecorder,
        clock: Clock,
        config: Callable[[], VaultConfig],
    ) -> None:
        self._settings = settings
        self._transfers = transfers
        self._pricing = pricing
        self._positions = positions
        self._events = events
        self._clock = clock
        self._config = config
        self._buy: OrderSlot[BuyOrder] = OrderSlot(OrderKind.BUY)
        self._sell: OrderSlot[SellOrder] = OrderSlot(OrderKind.SELL)

    def buy_order(self) -> BuyOrder | None:
        return self._buy.order

    def sell_order(self) -> SellOrder | None:
        return self._sell.order

    # ------------------------------------------------------------------
    # Buy side
    # ------------------------------------------------------------------

    def create_buy_order(
        self, deposit_value: Decimal, spot_price: Decimal,
    ) -> Ok[BuyOrder | None] | Err[VaultError]:
        """Open a buy order sized to `deposit_value`; Ok(None) below the minimum chunk."""
        now = self._clock.now()
        config = self._config()
        if deposit_value < config.min_chunk_value:
            logger.debug(
                "deposit value %s below min chunk %s, no buy order",
                deposit_value, config.min_chunk_value,
            )
            return Ok(None)
        match policy.derive_buy_window(
            spot_price, config, now, self._settings.price_decimals,
        ):
            case Err() as e:
                return e
            case Ok(window):
                pass
        order = BuyOrder(amount=deposit_value, created_at=now, window=window)
        match self._buy.open(order, now):
            case Err() as e:
                return e
            case Ok(_):
                pass
        logger.info(
            "buy order created: %s quote, strikes [%s, %s]",
            order.amount, window.min_strike, window.max_strike,
        )
        self._events.emit(BuyOrderCreated(window=window, amount=order.amount, created_at=now))
        return Ok(order)

    def refresh_buy_order(self, added_value: Decimal) -> Ok[BuyOrder | None] | Err[VaultError]:
        """Re-open the buy order to cover `added_value` at the current spot.

        An active order is cancelled and replaced by one for the combined
        amount. Nothing changes unless the spot quote and the new window
        are both obtained.
        """
        now = self._clock.now()
        config = self._config()
        current = self._buy.order
        with localcontext(VAULT_DECIMAL_CONTEXT):
            amount = added_value if current is None else current.amount + added_value
        if amount < config.min_chunk_value:
            return Ok(current)
        match self._pricing.spot():
            case Err() as e:
                return e
            case Ok(spot):
                pass
        match policy.derive_buy_window(spot, config, now, self._settings.price_decimals):
            case Err() as e:
                return e
            case Ok(_):
                pass
        if current is not None:
            self._close_buy(OrderStatus.CANCELLED, now)
        return self.create_buy_order(amount, spot)

    def fill_buy_order(
        self, option: OptionContract, offered_amount: Decimal, caller: str,
    ) -> Ok[BuyOrderFilled] | Err[VaultError]:
        now = self._clock.now()
        source = "vault.lifecycle.OrderLifecycle.fill_buy_order"
        match self._settings.roles.require(caller, Role.BROKER, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        match self._buy.active(now, source):
            case Err() as e:
                return e
            case Ok(order):
                pass
        match policy.validate_candidate(
            option, order.window,
            self._settings.option_underlying_asset, self._settings.quote_asset, now,
        ):
            case Err() as e:
                logger.warning("rejected %s from %s: %s", option.option_id, caller, e.error.message)
                return e
            case Ok(_):
                pass
        match self._pricing.premium(option.strike_price, option.expiry, True):
            case Err() as e:
                return e
            case Ok(premium):
                pass
        config = self._config()
        match policy.required_option_amount(
            order.amount, premium, config.option_premium_discount, option.decimals, now,
        ):
            case Err() as e:
                return e
            case Ok(required):
                pass
        match policy.check_offer(required, offered_amount, now):
            case Err() as e:
                logger.warning("under-offer from %s: %s", caller, e.error.message)
                return e
            case Ok(_):
                pass
        vault = self._settings.vault_account
        match settle(self._transfers, (
            Move(option.option_id, caller, vault, required),
            Move(self._settings.quote_asset, vault, caller, order.amount),
        )):
            case Err() as e:
                return e
            case Ok(_):
                pass
        self._buy.close(OrderStatus.FILLED, now)
        self._positions.add(option)
        event = BuyOrderFilled(option=option.option_id, amount=required, quote_amount=order.amount)
        logger.info(
            "buy order filled by %s: %s x %s for %s quote",
            caller, required, option.option_id, order.amount,
        )
        self._events.emit(event)
        return Ok(event)

    def cancel_buy_order(self, caller: str) -> Ok[BuyOrder] | Err[VaultError]:
        now = self._clock.now()
        source = "vault.lifecycle.OrderLifecycle.cancel_buy_order"
        match self._buy.active(now, source):
            case Err() as e:
                return e
            case Ok(order):
                pass
        match self._authorize_cancel(OrderKind.BUY, caller, order.created_at, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        return Ok(self._close_buy(OrderStatus.CANCELLED, now))

    def _close_buy(self, outcome: OrderStatus, now: UtcDatetime) -> BuyOrder:
        match self._buy.close(outcome, now):
            case Err(e):
                raise RuntimeError(e.message)
            case Ok(order):
                pass
        if outcome is OrderStatus.CANCELLED:
            logger.info("buy order cancelled: %s quote", order.amount)
            self._events.emit(BuyOrderCancelled(
                window=order.window, amount=order.amount, created_at=order.created_at,
            ))
        return order

    # ------------------------------------------------------------------
    # Sell side
    # ------------------------------------------------------------------

    def create_sell_order(
        self, option_id: str, amount: Decimal, caller: str,
    ) -> Ok[SellOrder] | Err[VaultError]:
        now = self._clock.now()
        source = "vault.lifecycle.OrderLifecycle.create_sell_order"
        match self._settings.roles.require(caller, Role.LIQUIDATOR, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        option = self._positions.get(option_id)
        if option is None:
            return Err(UnknownPositionError(
                message=f"vault holds no position in {option_id}",
                code="PV-POSITION",
                timestamp=now,
                source=source,
                option=option_id,
            ))
        if amount <= 0:
            return Err(InvalidAmountError(
                message=f"sell amount must be positive, got {amount}",
                code="PV-AMOUNT",
                timestamp=now,
                source=source,
                amount=amount,
                reason="non-positive",
            ))
        available = self._positions.balance(option)
        if amount > available:
            return Err(InsufficientBalanceError(
                message=f"cannot sell {amount} of {option_id}, vault holds {available}",
                code="PV-BALANCE",
                timestamp=now,
                source=source,
                requested=amount,
                available=available,
            ))
        order = SellOrder(option=option, amount=amount, created_at=now)
        match self._sell.open(order, now):
            case Err() as e:
                return e
            case Ok(_):
                pass
        logger.info("sell order created: %s x %s", amount, option_id)
        self._events.emit(SellOrderCreated(option=option_id, amount=amount))
        return Ok(order)

    def fill_sell_order(
        self, offered_quote: Decimal, caller: str,
    ) -> Ok[SellOrderFilled] | Err[VaultError]:
        now = self._clock.now()
        source = "vault.lifecycle.OrderLifecycle.fill_sell_order"
        match self._settings.roles.require(caller, Role.BROKER, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        match self._sell.active(now, source):
            case Err() as e:
                return e
            case Ok(order):
                pass
        option = order.option
        match self._pricing.premium(option.strike_price, option.expiry, option.is_put):
            case Err() as e:
                return e
            case Ok(premium):
                pass
        required = policy.sell_proceeds(
            order.amount, premium, self._config().option_premium_discount,
            self._settings.quote_decimals,
        )
        match policy.check_offer(required, offered_quote, now):
            case Err() as e:
                return e
            case Ok(_):
                pass
        vault = self._settings.vault_account
        moves = (Move(option.option_id, vault, caller, order.amount),)
        if required > 0:
            moves = (Move(self._settings.quote_asset, caller, vault, required), *moves)
        match settle(self._transfers, moves):
            case Err() as e:
                return e
            case Ok(_):
                pass
        self._sell.close(OrderStatus.FILLED, now)
        if self._positions.balance(option) <= 0:
            self._positions.remove(option.option_id)
        event = SellOrderFilled(option=option.option_id, amount=order.amount, quote_amount=required)
        logger.info(
            "sell order filled by %s: %s x %s for %s quote",
            caller, order.amount, option.option_id, required,
        )
        self._events.emit(event)
        return Ok(event)

    def cancel_sell_order(self, caller: str) -> Ok[SellOrder] | Err[VaultError]:
        now = self._clock.now()
        source = "vault.lifecycle.OrderLifecycle.cancel_sell_order"
        match self._sell.active(now, source):
            case Err() as e:
                return e
            case Ok(order):
                pass
        match self._authorize_cancel(OrderKind.SELL, caller, order.created_at, now, source):
            case Err() as e:
                return e
            case Ok(_):
                pass
        return Ok(self._close_sell(now))

    def release_sell_order_for(self, option: OptionContract) -> SellOrder | None:
        """Cancel the sell order if it references `option` (the position is gone)."""
        order = self._sell.order
        if order is None or order.option.option_id != option.option_id:
            return None
        return self._close_sell(self._clock.now())

    def _close_sell(self, now: UtcDatetime) -> SellOrder:
        match self._sell.close(OrderStatus.CANCELLED, now):
            case Err(e):
                raise RuntimeError(e.message)
            case Ok(order):
                pass
        logger.info("sell order cancelled: %s x %s", order.amount, order.option.option_id)
        self._events.emit(SellOrderCancelled(option=order.option.option_id, amount=order.amount))
        return order

    # ------------------------------------------------------------------

    def _authorize_cancel(
        self, kind: OrderKind, caller: str, created_at: UtcDatetime, now: UtcDatetime, source: str,
    ) -> Ok[None] | Err[UnauthorizedError]:
        role = privileged_role(kind)
        if role in self._settings.roles.roles_of(caller):
            return Ok(None)
        if policy.is_stale(created_at, now, self._config().max_order_active):
            logger.info("stale %s order force-cancelled by %s", kind.value, caller)
            return Ok(None)
        return Err(UnauthorizedError(
            message=f"{caller} may not cancel the {kind.value} order before it goes stale",
            code="PV-AUTH",
            timestamp=now,
            source=source,
            caller=caller,
            required=role.value,
        ))
