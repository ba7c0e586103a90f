"""putvault.instrument: option contracts as held by the vault."""

from putvault.instrument.option import ExpiryStatus as ExpiryStatus
from putvault.instrument.option import OptionContract as OptionContract
from putvault.instrument.option import OptionType as OptionType
