"""Deployment settings and event topic names.

No broker client library is imported. Pure configuration data, loadable
from a plain mapping (a parsed JSON/TOML file or environment payload).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import final

from putvault.core.amounts import NonEmptyStr
from putvault.core.decimals import PRICE_DECIMALS_DEFAULT, QUOTE_DECIMALS_DEFAULT
from putvault.core.result import Err, Ok
from putvault.core.roles import RoleBook

# ---------------------------------------------------------------------------
# Topic names
# ---------------------------------------------------------------------------

TOPIC_VAULT_EVENTS: str = "putvault.events"
TOPIC_VAULT_CONFIG: str = "putvault.config"


# ---------------------------------------------------------------------------
# Deployment settings
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class VaultSettings:
    """Immutable deployment parameters of one vault instance.

    quote_asset is both the deposit asset and the collateral/strike asset
    every accepted option must use; option_underlying_asset is the asset
    the puts are written on.
    """

    vault_account: str
    quote_asset: str
    option_underlying_asset: str
    roles: RoleBook
    quote_decimals: int = QUOTE_DECIMALS_DEFAULT
    price_decimals: int = PRICE_DECIMALS_DEFAULT
    share_decimals: int = QUOTE_DECIMALS_DEFAULT

    @staticmethod
    def create(
        vault_account: str,
        quote_asset: str,
        option_underlying_asset: str,
        roles: RoleBook,
        quote_decimals: int = QUOTE_DECIMALS_DEFAULT,
        price_decimals: int = PRICE_DECIMALS_DEFAULT,
        share_decimals: int | None = None,
    ) -> Ok[VaultSettings] | Err[str]:
        for name, raw in (
            ("vault_account", vault_account),
            ("quote_asset", quote_asset),
            ("option_underlying_asset", option_underlying_asset),
        ):
            match NonEmptyStr.parse(raw):
                case Err(e):
                    return Err(f"VaultSettings.{name}: {e}")
                case Ok(_):
                    pass
        if quote_asset == option_underlying_asset:
            return Err("VaultSettings: quote and underlying asset must differ")
        shares = quote_decimals if share_decimals is None else share_decimals
        for name, value in (
            ("quote_decimals", quote_decimals),
            ("price_decimals", price_decimals),
            ("share_decimals", shares),
        ):
            if value < 0:
                return Err(f"VaultSettings.{name} must be >= 0, got {value}")
        return Ok(VaultSettings(
            vault_account=vault_account,
            quote_asset=quote_asset,
            option_underlying_asset=option_underlying_asset,
            roles=roles,
            quote_decimals=quote_decimals,
            price_decimals=price_decimals,
            share_decimals=shares,
        ))

    @staticmethod
    def from_mapping(raw: Mapping[str, object]) -> Ok[VaultSettings] | Err[str]:
        """Parse settings from a plain mapping.

        Expected keys: vault_account, quote_asset, option_underlying_asset,
        roles {owner, broker, liquidator, controller}, and optionally
        quote_decimals, price_decimals, share_decimals.
        """
        roles_raw = raw.get("roles")
        if not isinstance(roles_raw, Mapping):
            return Err("VaultSettings.roles must be a mapping")
        match RoleBook.create(
            owner=str(roles_raw.get("owner", "")),
            broker=str(roles_raw.get("broker", "")),
            liquidator=str(roles_raw.get("liquidator", "")),
            controller=str(roles_raw.get("controller", "")),
        ):
            case Err(e):
                return Err(f"VaultSettings.{e}")
            case Ok(roles):
                pass
        try:
            quote_decimals = int(raw.get("quote_decimals", QUOTE_DECIMALS_DEFAULT))  # type: ignore[call-overload]
            price_decimals = int(raw.get("price_decimals", PRICE_DECIMALS_DEFAULT))  # type: ignore[call-overload]
            share_raw = raw.get("share_decimals")
            share_decimals = None if share_raw is None else int(share_raw)  # type: ignore[call-overload]
        except (TypeError, ValueError) as e:
            return Err(f"VaultSettings decimals: {e}")
        return VaultSettings.create(
            vault_account=str(raw.get("vault_account", "")),
            quote_asset=str(raw.get("quote_asset", "")),
            option_underlying_asset=str(raw.get("option_underlying_asset", "")),
            roles=roles,
            quote_decimals=quote_decimals,
            price_decimals=price_decimals,
            share_decimals=share_decimals,
        )
