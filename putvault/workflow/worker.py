"""Worker wiring for the vault keeper.

Runs the keeper workflow and its activities in the same process as the
vaults they maintain.

Usage::

    import asyncio
    from putvault.workflow.worker import run_worker

    asyncio.run(run_worker(vaults={vault.settings.vault_account: vault}, keeper_address="keeper"))
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from temporalio.client import Client
from temporalio.worker import Worker

from putvault.vault.engine import PutOptionsVault
from putvault.workflow.activities import KeeperActivities
from putvault.workflow.converter import VAULT_DATA_CONVERTER
from putvault.workflow.keeper_workflow import VaultKeeperWorkflow

logger = logging.getLogger(__name__)

TASK_QUEUE = "putvault-keeper"


def build_worker(
    client: Client,
    vaults: Mapping[str, PutOptionsVault],
    keeper_address: str,
    task_queue: str = TASK_QUEUE,
) -> Worker:
    activities = KeeperActivities(vaults, keeper_address)
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[VaultKeeperWorkflow],
        activities=[activities.sweep_expired_positions, activities.cancel_stale_orders],
    )


async def run_worker(
    *,
    vaults: Mapping[str, PutOptionsVault],
    keeper_address: str,
    target_host: str = "localhost:7233",
    namespace: str = "default",
    task_queue: str = TASK_QUEUE,
) -> None:
    """Connect to Temporal and run the keeper worker until interrupted."""
    client = await Client.connect(
        target_host, namespace=namespace, data_converter=VAULT_DATA_CONVERTER,
    )
    logger.info("keeper worker on %s/%s for %d vaults", namespace, task_queue, len(vaults))
    await build_worker(client, vaults, keeper_address, task_queue).run()
