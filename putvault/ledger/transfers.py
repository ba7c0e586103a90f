"""Multi-leg token settlement with rollback.

An operation that moves several assets (a fill pays quote one way and
takes options the other) must land all legs or none. Legs are applied in
order; when one fails, the legs already applied are reversed newest
first and the original failure is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import final

from putvault.core.errors import TransferFailedError
from putvault.core.result import Err, Ok
from putvault.infra.protocols import AssetTransfer

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class Move:
    asset: str
    sender: str
    receiver: str
    amount: Decimal

    def reversed(self) -> Move:
        return Move(
            asset=self.asset, sender=self.receiver, receiver=self.sender, amount=self.amount,
        )


def settle(
    transfers: AssetTransfer, moves: tuple[Move, ...],
) -> Ok[tuple[Move, ...]] | Err[TransferFailedError]:
    """Apply every move or none of them."""
    applied: list[Move] = []
    for move in moves:
        match transfers.transfer(move.asset, move.sender, move.receiver, move.amount):
            case Err(error):
                _unwind(transfers, applied)
                return Err(error)
            case Ok(_):
                applied.append(move)
    return Ok(tuple(applied))


def _unwind(transfers: AssetTransfer, applied: list[Move]) -> None:
    for move in reversed(applied):
        back = move.reversed()
        match transfers.transfer(back.asset, back.sender, back.receiver, back.amount):
            case Err(error):
                # balances are now inconsistent with the vault's view; needs operator action
                logger.error(
                    "rollback of %s %s from %s to %s failed: %s",
                    move.amount, move.asset, move.sender, move.receiver, error.message,
                )
            case Ok(_):
                pass
