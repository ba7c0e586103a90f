"""Open option positions held by the vault.

Positions are unique by option_id and kept in insertion order, which is
also the sweep order. Balances live in the asset ledger; the position set
only records which series the vault holds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import final

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT
from putvault.core.decimals import truncate
from putvault.core.errors import NotYetExpiredError, PricingError, VaultError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime
from putvault.infra.protocols import AssetTransfer, OptionSettlement
from putvault.instrument.option import OptionContract
from putvault.orders.config import VaultConfig
from putvault.orders.events import EventRecorder, OptionRedeemed
from putvault.pricing.protocols import PricingGateway

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class SweepReport:
    """Outcome of one sweep, per position, in sweep order."""

    at: UtcDatetime
    redeemed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    failed: tuple[tuple[str, VaultError], ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.redeemed)


@final
class PositionLedger:
    def __init__(
        self,
        holder: str,
        transfers: AssetTransfer,
        settlement: OptionSettlement,
        events: EventRecorder,
        quote_decimals: int,
    ) -> None:
        self._holder = holder
        self._transfers = transfers
        self._settlement = settlement
        self._events = events
        self._quote_decimals = quote_decimals
        self._positions: dict[str, OptionContract] = {}

    def positions(self) -> tuple[OptionContract, ...]:
        return tuple(self._positions.values())

    def contains(self, option_id: str) -> bool:
        return option_id in self._positions

    def get(self, option_id: str) -> OptionContract | None:
        return self._positions.get(option_id)

    def add(self, option: OptionContract) -> bool:
        """Track `option`. Returns False when it was already tracked."""
        if option.option_id in self._positions:
            return False
        self._positions[option.option_id] = option
        return True

    def remove(self, option_id: str) -> OptionContract | None:
        return self._positions.pop(option_id, None)

    def balance(self, option: OptionContract) -> Decimal:
        return self._transfers.balance_of(option.option_id, self._holder)

    def sweep_expired(
        self,
        now: UtcDatetime,
        on_redeemed: Callable[[OptionContract], None],
    ) -> SweepReport:
        """Redeem every expired position.

        Not-yet-expired entries are skipped silently. Any other settlement
        failure leaves its entry in place and is listed in the report;
        neither stops the sweep. `on_redeemed` runs right after each
        removal, before the next entry is processed.
        """
        redeemed: list[str] = []
        skipped: list[str] = []
        failed: list[tuple[str, VaultError]] = []
        for option in tuple(self._positions.values()):
            match self._settlement.redeem_if_expired(option, self._holder):
                case Err(NotYetExpiredError()):
                    skipped.append(option.option_id)
                case Err(error):
                    logger.warning("redemption of %s failed: %s", option.option_id, error.message)
                    failed.append((option.option_id, error))
                case Ok(payout):
                    del self._positions[option.option_id]
                    logger.info("redeemed %s for %s", option.option_id, payout)
                    self._events.emit(OptionRedeemed(option=option.option_id, payout=payout))
                    redeemed.append(option.option_id)
                    on_redeemed(option)
        return SweepReport(
            at=now, redeemed=tuple(redeemed), skipped=tuple(skipped), failed=tuple(failed),
        )

    def position_value(
        self, option: OptionContract, pricing: PricingGateway, config: VaultConfig,
    ) -> Ok[Decimal] | Err[PricingError]:
        """Estimated quote value of the vault's holding of one series.

        Live options are marked at premium * premium_ratio. Expired ones
        use the finalized payout, else the in-the-money amount at the
        reported expiry price haircut by itm_option_price_ratio, else zero.
        """
        balance = self.balance(option)
        if balance <= 0:
            return Ok(Decimal(0))
        status = self._settlement.expiry_status(option)
        with localcontext(VAULT_DECIMAL_CONTEXT):
            if not status.expired:
                match pricing.premium(option.strike_price, option.expiry, option.is_put):
                    case Err() as e:
                        return e
                    case Ok(premium):
                        pass
                value = premium * config.option_premium_ratio * balance
            elif status.payout_per_option is not None:
                value = status.payout_per_option * balance
            elif status.expiry_price is not None:
                intrinsic = max(option.strike_price - status.expiry_price, Decimal(0))
                value = intrinsic * config.itm_option_price_ratio * balance
            else:
                value = Decimal(0)
        return Ok(truncate(value, self._quote_decimals))

    def mark_value(
        self, pricing: PricingGateway, config: VaultConfig,
    ) -> Ok[Decimal] | Err[PricingError]:
        total = Decimal(0)
        for option in self._positions.values():
            match self.position_value(option, pricing, config):
                case Err() as e:
                    return e
                case Ok(value):
                    with localcontext(VAULT_DECIMAL_CONTEXT):
                        total += value
        return Ok(total)
