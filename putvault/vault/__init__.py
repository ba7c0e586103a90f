"""putvault.vault: the vault facade and its order lifecycle."""

from putvault.vault.engine import PutOptionsVault as PutOptionsVault
from putvault.vault.lifecycle import OrderLifecycle as OrderLifecycle
