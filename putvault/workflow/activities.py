"""Keeper activities: the I/O side of scheduled vault maintenance.

The vault core never schedules itself. These activities call its sweep
and cancel operations on behalf of a keeper address, which holds no role
and can therefore only cancel orders once they are stale.

Each activity takes a single frozen-dataclass input, returns a
frozen-dataclass output, and is safe to retry: a second sweep or cancel
finds nothing left to do.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import final

from temporalio import activity
from temporalio.exceptions import ApplicationError

from putvault.core.result import Err, Ok
from putvault.vault.engine import PutOptionsVault
from putvault.workflow.types import (
    StaleOrderInput,
    StaleOrderOutput,
    SweepInput,
    SweepOutput,
)


@final
class KeeperActivities:
    def __init__(self, vaults: Mapping[str, PutOptionsVault], keeper_address: str) -> None:
        self._vaults = dict(vaults)
        self._keeper = keeper_address

    def _vault(self, vault_id: str) -> PutOptionsVault:
        vault = self._vaults.get(vault_id)
        if vault is None:
            raise ApplicationError(
                f"unknown vault {vault_id}", type="UnknownVault", non_retryable=True,
            )
        return vault

    @activity.defn(name="sweep_expired_positions")
    async def sweep_expired_positions(self, inp: SweepInput) -> SweepOutput:
        """Timeout: 60s | Retries: 3 | Idempotent: yes."""
        vault = self._vault(inp.vault_id)
        report = vault.sweep_expired().unwrap()
        activity.logger.info(
            "tick %d sweep of %s: redeemed=%s skipped=%d failed=%d",
            inp.tick, inp.vault_id, list(report.redeemed), len(report.skipped), len(report.failed),
        )
        return SweepOutput(
            redeemed=report.redeemed,
            skipped=report.skipped,
            failed=tuple(option_id for option_id, _ in report.failed),
        )

    @activity.defn(name="cancel_stale_orders")
    async def cancel_stale_orders(self, inp: StaleOrderInput) -> StaleOrderOutput:
        """Timeout: 30s | Retries: 3 | Idempotent: yes."""
        vault = self._vault(inp.vault_id)
        buy_cancelled = False
        sell_cancelled = False
        buy = vault.buy_order()
        if buy is not None and vault.is_stale(buy):
            match vault.cancel_buy_order(self._keeper):
                case Err(e):
                    activity.logger.warning("stale buy order not cancelled: %s", e.message)
                case Ok(_):
                    buy_cancelled = True
        sell = vault.sell_order()
        if sell is not None and vault.is_stale(sell):
            match vault.cancel_sell_order(self._keeper):
                case Err(e):
                    activity.logger.warning("stale sell order not cancelled: %s", e.message)
                case Ok(_):
                    sell_cancelled = True
        if buy_cancelled or sell_cancelled:
            activity.logger.info(
                "tick %d on %s: cancelled buy=%s sell=%s",
                inp.tick, inp.vault_id, buy_cancelled, sell_cancelled,
            )
        return StaleOrderOutput(buy_cancelled=buy_cancelled, sell_cancelled=sell_cancelled)
