"""Share accounting and the locked-value view of the vault.

Shares are proportional claims on total assets. Total assets are the
vault's quote balance plus the mark value of its open positions; the part
committed to an active buy order or held as options is locked and cannot
be withdrawn by the owner.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from decimal import Decimal, localcontext
from typing import final

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT
from putvault.core.decimals import truncate, truncate_up
from putvault.core.errors import InsufficientBalanceError, PricingError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime
from putvault.infra.config import VaultSettings
from putvault.infra.protocols import AssetTransfer
from putvault.ledger.positions import PositionLedger
from putvault.orders.config import VaultConfig
from putvault.orders.types import BuyOrder
from putvault.pricing.protocols import PricingGateway


def convert_to_shares(
    assets: Decimal,
    total_supply: Decimal,
    total_assets: Decimal,
    decimals: int,
    *,
    round_up: bool = False,
) -> Decimal:
    """shares = assets * total_supply / total_assets; identity when either total is zero."""
    if total_supply == 0 or total_assets == 0:
        return truncate_up(assets, decimals) if round_up else truncate(assets, decimals)
    with localcontext(VAULT_DECIMAL_CONTEXT):
        shares = assets * total_supply / total_assets
    return truncate_up(shares, decimals) if round_up else truncate(shares, decimals)


def convert_to_assets(
    shares: Decimal,
    total_supply: Decimal,
    total_assets: Decimal,
    decimals: int,
) -> Decimal:
    """assets = shares * total_assets / total_supply; identity when either total is zero."""
    if total_supply == 0 or total_assets == 0:
        return truncate(shares, decimals)
    with localcontext(VAULT_DECIMAL_CONTEXT):
        assets = shares * total_assets / total_supply
    return truncate(assets, decimals)


@final
class ProportionalShares:
    """Share register: balances per holder and total supply."""

    def __init__(self) -> None:
        self._balances: dict[str, Decimal] = defaultdict(Decimal)
        self._total = Decimal(0)

    @property
    def total_supply(self) -> Decimal:
        return self._total

    def balance_of(self, holder: str) -> Decimal:
        return self._balances.get(holder, Decimal(0))

    def mint(self, holder: str, shares: Decimal) -> None:
        with localcontext(VAULT_DECIMAL_CONTEXT):
            self._balances[holder] += shares
            self._total += shares

    def burn(
        self, holder: str, shares: Decimal, now: UtcDatetime,
    ) -> Ok[Decimal] | Err[InsufficientBalanceError]:
        available = self.balance_of(holder)
        if shares > available:
            return Err(InsufficientBalanceError(
                message=f"{holder} holds {available} shares, cannot burn {shares}",
                code="PV-BALANCE",
                timestamp=now,
                source="ledger.accounting.ProportionalShares.burn",
                requested=shares,
                available=available,
            ))
        with localcontext(VAULT_DECIMAL_CONTEXT):
            self._balances[holder] = available - shares
            self._total -= shares
        return Ok(shares)


@final
class LockedValueAccountant:
    """Redeemable versus locked value, recomputed from live state on each query.

    Reads the active buy order through `buy_order` and the current config
    through `config` so it never holds a stale copy of either.
    """

    def __init__(
        self,
        settings: VaultSettings,
        transfers: AssetTransfer,
        positions: PositionLedger,
        shares: ProportionalShares,
        pricing: PricingGateway,
        buy_order: Callable[[], BuyOrder | None],
        config: Callable[[], VaultConfig],
    ) -> None:
        self._settings = settings
        self._transfers = transfers
        self._positions = positions
        self._shares = shares
        self._pricing = pricing
        self._buy_order = buy_order
        self._config = config

    def quote_balance(self) -> Decimal:
        return self._transfers.balance_of(self._settings.quote_asset, self._settings.vault_account)

    def total_assets(self) -> Ok[Decimal] | Err[PricingError]:
        match self._positions.mark_value(self._pricing, self._config()):
            case Err() as e:
                return e
            case Ok(marked):
                pass
        with localcontext(VAULT_DECIMAL_CONTEXT):
            return Ok(self.quote_balance() + marked)

    def locked_value(self) -> Ok[Decimal] | Err[PricingError]:
        match self._positions.mark_value(self._pricing, self._config()):
            case Err() as e:
                return e
            case Ok(marked):
                pass
        order = self._buy_order()
        reserved = order.amount if order is not None else Decimal(0)
        with localcontext(VAULT_DECIMAL_CONTEXT):
            return Ok(reserved + marked)

    def redeemable_value(self) -> Ok[Decimal] | Err[PricingError]:
        match self.total_assets():
            case Err() as e:
                return e
            case Ok(total):
                pass
        match self.locked_value():
            case Err() as e:
                return e
            case Ok(locked):
                pass
        with localcontext(VAULT_DECIMAL_CONTEXT):
            return Ok(max(total - locked, Decimal(0)))

    def max_withdraw(self, address: str) -> Ok[Decimal] | Err[PricingError]:
        if address != self._settings.roles.owner:
            return Ok(Decimal(0))
        return self.redeemable_value()

    def max_redeem(self, address: str) -> Ok[Decimal] | Err[PricingError]:
        if address != self._settings.roles.owner:
            return Ok(Decimal(0))
        match self.redeemable_value():
            case Err() as e:
                return e
            case Ok(redeemable):
                pass
        match self.total_assets():
            case Err() as e:
                return e
            case Ok(total):
                pass
        shares = convert_to_shares(
            redeemable, self._shares.total_supply, total, self._settings.share_decimals,
        )
        return Ok(min(shares, self._shares.balance_of(address)))
