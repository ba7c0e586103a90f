"""putvault.core: result values, errors, decimals, roles and time."""

from putvault.core.amounts import VAULT_DECIMAL_CONTEXT as VAULT_DECIMAL_CONTEXT
from putvault.core.amounts import NonEmptyStr as NonEmptyStr
from putvault.core.amounts import PositiveDecimal as PositiveDecimal
from putvault.core.clock import Clock as Clock
from putvault.core.clock import SystemClock as SystemClock
from putvault.core.errors import AssetKind as AssetKind
from putvault.core.errors import AssetMismatchError as AssetMismatchError
from putvault.core.errors import ConfigInvalidError as ConfigInvalidError
from putvault.core.errors import InsufficientBalanceError as InsufficientBalanceError
from putvault.core.errors import InsufficientOfferError as InsufficientOfferError
from putvault.core.errors import InvalidAmountError as InvalidAmountError
from putvault.core.errors import NotYetExpiredError as NotYetExpiredError
from putvault.core.errors import OptionTypeMismatchError as OptionTypeMismatchError
from putvault.core.errors import OrderAlreadyActiveError as OrderAlreadyActiveError
from putvault.core.errors import OrderNotActiveError as OrderNotActiveError
from putvault.core.errors import OutOfRangeError as OutOfRangeError
from putvault.core.errors import PricingError as PricingError
from putvault.core.errors import PublishError as PublishError
from putvault.core.errors import RangeKind as RangeKind
from putvault.core.errors import TransferFailedError as TransferFailedError
from putvault.core.errors import UnauthorizedError as UnauthorizedError
from putvault.core.errors import UnknownPositionError as UnknownPositionError
from putvault.core.errors import VaultError as VaultError
from putvault.core.result import Err as Err
from putvault.core.result import Ok as Ok
from putvault.core.result import unwrap as unwrap
from putvault.core.roles import Role as Role
from putvault.core.roles import RoleBook as RoleBook
from putvault.core.types import UtcDatetime as UtcDatetime
