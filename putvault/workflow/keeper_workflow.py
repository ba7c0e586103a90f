"""Durable keeper loop: sweep expired positions and clear stale orders.

Each tick runs the sweep, then the stale-order check, then waits for the
interval or a stop signal. The loop is bounded by max_ticks; a long-lived
keeper continues as new from its caller.

Determinism contract: no I/O, no system clock, no randomness in this
module. Everything external happens inside activities.
"""

from __future__ import annotations

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from putvault.workflow.activities import KeeperActivities
    from putvault.workflow.types import (
        KeeperInput,
        KeeperProgress,
        KeeperResult,
        StaleOrderInput,
        SweepInput,
    )

SWEEP_TIMEOUT: timedelta = timedelta(seconds=60)
CANCEL_TIMEOUT: timedelta = timedelta(seconds=30)

KEEPER_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=3,
    non_retryable_error_types=["UnknownVault"],
)


@workflow.defn(name="VaultKeeper")
class VaultKeeperWorkflow:
    def __init__(self) -> None:
        self._ticks = 0
        self._redeemed: list[str] = []
        self._failed: list[str] = []
        self._cancelled = 0
        self._stop_requested = False

    @workflow.signal
    async def stop(self) -> None:
        self._stop_requested = True

    @workflow.query
    def progress(self) -> KeeperProgress:
        return KeeperProgress(
            ticks=self._ticks,
            redeemed=tuple(self._redeemed),
            cancelled_orders=self._cancelled,
        )

    @workflow.run
    async def run(self, inp: KeeperInput) -> KeeperResult:
        while self._ticks < inp.max_ticks and not self._stop_requested:
            sweep = await workflow.execute_activity_method(
                KeeperActivities.sweep_expired_positions,
                SweepInput(vault_id=inp.vault_id, tick=self._ticks),
                start_to_close_timeout=SWEEP_TIMEOUT,
                retry_policy=KEEPER_RETRY,
            )
            self._redeemed.extend(sweep.redeemed)
            self._failed.extend(sweep.failed)

            cancelled = await workflow.execute_activity_method(
                KeeperActivities.cancel_stale_orders,
                StaleOrderInput(vault_id=inp.vault_id, tick=self._ticks),
                start_to_close_timeout=CANCEL_TIMEOUT,
                retry_policy=KEEPER_RETRY,
            )
            self._cancelled += cancelled.count
            self._ticks += 1

            if self._ticks >= inp.max_ticks:
                break
            try:
                await workflow.wait_condition(
                    lambda: self._stop_requested, timeout=inp.interval,
                )
            except TimeoutError:
                # interval elapsed without a stop signal: next tick
                continue

        workflow.logger.info(
            "keeper for %s finished after %d ticks", inp.vault_id, self._ticks,
        )
        return KeeperResult(
            vault_id=inp.vault_id,
            ticks=self._ticks,
            redeemed=tuple(self._redeemed),
            failed=tuple(self._failed),
            cancelled_orders=self._cancelled,
            stopped=self._stop_requested,
        )
