"""putvault.ledger: positions, share accounting and token settlement."""

from putvault.ledger.accounting import LockedValueAccountant as LockedValueAccountant
from putvault.ledger.accounting import ProportionalShares as ProportionalShares
from putvault.ledger.accounting import convert_to_assets as convert_to_assets
from putvault.ledger.accounting import convert_to_shares as convert_to_shares
from putvault.ledger.positions import PositionLedger as PositionLedger
from putvault.ledger.positions import SweepReport as SweepReport
from putvault.ledger.transfers import Move as Move
from putvault.ledger.transfers import settle as settle
