"""putvault.infra: collaborator protocols, in-memory doubles, deployment config."""

from putvault.infra.config import TOPIC_VAULT_CONFIG as TOPIC_VAULT_CONFIG
from putvault.infra.config import TOPIC_VAULT_EVENTS as TOPIC_VAULT_EVENTS
from putvault.infra.config import VaultSettings as VaultSettings
from putvault.infra.memory_adapter import InMemoryAssetLedger as InMemoryAssetLedger
from putvault.infra.memory_adapter import InMemoryEventBus as InMemoryEventBus
from putvault.infra.memory_adapter import InMemoryOptionSettlement as InMemoryOptionSettlement
from putvault.infra.memory_adapter import ManualClock as ManualClock
from putvault.infra.protocols import AssetTransfer as AssetTransfer
from putvault.infra.protocols import EventBus as EventBus
from putvault.infra.protocols import OptionSettlement as OptionSettlement
