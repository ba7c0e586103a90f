"""Option contract descriptors as seen by the vault.

The vault never writes options; it buys and sells tokenized contracts
issued elsewhere. All types are @final @dataclass(frozen=True, slots=True);
smart constructors return Ok | Err.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import final

from putvault.core.amounts import NonEmptyStr, PositiveDecimal
from putvault.core.decimals import OPTION_DECIMALS
from putvault.core.result import Err, Ok
from putvault.core.types import UtcDatetime


class OptionType(Enum):
    CALL = "CALL"
    PUT = "PUT"


@final
@dataclass(frozen=True, slots=True)
class OptionContract:
    """A tokenized option series.

    strike_price is expressed in strike_asset units; token balances of the
    series use `decimals` places.
    """

    option_id: str
    underlying_asset: str
    strike_asset: str
    collateral_asset: str
    strike_price: Decimal
    expiry: UtcDatetime
    option_type: OptionType
    decimals: int = OPTION_DECIMALS

    @property
    def is_put(self) -> bool:
        return self.option_type is OptionType.PUT

    @staticmethod
    def create(
        option_id: str,
        underlying_asset: str,
        strike_asset: str,
        collateral_asset: str,
        strike_price: Decimal,
        expiry: UtcDatetime,
        option_type: OptionType = OptionType.PUT,
        decimals: int = OPTION_DECIMALS,
    ) -> Ok[OptionContract] | Err[str]:
        for name, raw in (
            ("option_id", option_id),
            ("underlying_asset", underlying_asset),
            ("strike_asset", strike_asset),
            ("collateral_asset", collateral_asset),
        ):
            match NonEmptyStr.parse(raw):
                case Err(e):
                    return Err(f"OptionContract.{name}: {e}")
                case Ok(_):
                    pass
        match PositiveDecimal.parse(strike_price):
            case Err(e):
                return Err(f"OptionContract.strike_price: {e}")
            case Ok(_):
                pass
        if decimals < 0:
            return Err(f"OptionContract.decimals must be >= 0, got {decimals}")
        return Ok(OptionContract(
            option_id=option_id,
            underlying_asset=underlying_asset,
            strike_asset=strike_asset,
            collateral_asset=collateral_asset,
            strike_price=strike_price,
            expiry=expiry,
            option_type=option_type,
            decimals=decimals,
        ))


@final
@dataclass(frozen=True, slots=True)
class ExpiryStatus:
    """What the settlement system knows about an option right now.

    expiry_price is set once the oracle price at expiry is reported;
    payout_per_option once the series is finalized for redemption.
    """

    expired: bool
    expiry_price: Decimal | None = None
    payout_per_option: Decimal | None = None

    @property
    def finalized(self) -> bool:
        return self.payout_per_option is not None
