"""putvault.orders: order values, sizing policy, risk config and events."""

from putvault.orders.config import ExpiryDelta as ExpiryDelta
from putvault.orders.config import StrikeMultiplier as StrikeMultiplier
from putvault.orders.config import VaultConfig as VaultConfig
from putvault.orders.events import EventRecorder as EventRecorder
from putvault.orders.types import BuyOrder as BuyOrder
from putvault.orders.types import BuyWindow as BuyWindow
from putvault.orders.types import OrderKind as OrderKind
from putvault.orders.types import OrderSlot as OrderSlot
from putvault.orders.types import OrderStatus as OrderStatus
from putvault.orders.types import SellOrder as SellOrder
