"""Capability roles and their resolution from caller addresses.

An address is resolved once per operation into the full set of roles it
holds. Every address is at least a CALLER; the same address may be owner
and controller at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from putvault.core.amounts import NonEmptyStr
from putvault.core.errors import UnauthorizedError
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime


class Role(Enum):
    OWNER = "owner"
    BROKER = "broker"
    LIQUIDATOR = "liquidator"
    CONTROLLER = "controller"
    CALLER = "caller"


@final
@dataclass(frozen=True, slots=True)
class RoleBook:
    """Addresses holding each privileged role of one vault."""

    owner: str
    broker: str
    liquidator: str
    controller: str

    @staticmethod
    def create(
        owner: str, broker: str, liquidator: str, controller: str,
    ) -> Ok[RoleBook] | Err[str]:
        for name, address in (
            ("owner", owner), ("broker", broker),
            ("liquidator", liquidator), ("controller", controller),
        ):
            match NonEmptyStr.parse(address):
                case Err(e):
                    return Err(f"RoleBook.{name}: {e}")
                case Ok(_):
                    pass
        return Ok(RoleBook(
            owner=owner, broker=broker, liquidator=liquidator, controller=controller,
        ))

    def address_of(self, role: Role) -> str | None:
        match role:
            case Role.OWNER:
                return self.owner
            case Role.BROKER:
                return self.broker
            case Role.LIQUIDATOR:
                return self.liquidator
            case Role.CONTROLLER:
                return self.controller
            case Role.CALLER:
                return None

    def roles_of(self, address: str) -> frozenset[Role]:
        roles = {Role.CALLER}
        roles.update(r for r in Role if self.address_of(r) == address)
        return frozenset(roles)

    def require(
        self, address: str, role: Role, timestamp: UtcDatetime, source: str,
    ) -> Ok[frozenset[Role]] | Err[UnauthorizedError]:
        """Resolve `address` and check it holds `role`; Ok carries the resolved set."""
        roles = self.roles_of(address)
        if role in roles:
            return Ok(roles)
        return Err(UnauthorizedError(
            message=f"{address} is not the vault {role.value}",
            code="PV-AUTH",
            timestamp=timestamp,
            source=source,
            caller=address,
            required=role.value,
        ))
