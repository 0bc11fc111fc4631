"""venuelink: exchange connectivity layer."""

from .settings import Settings
from .exchanges import CurrencyPair, ExchangeClient, MarketDataCache

__all__ = [
    "Settings",
    "CurrencyPair",
    "ExchangeClient",
    "MarketDataCache",
]
