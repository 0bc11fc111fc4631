"""Exchange adapters and connectivity layer."""

from .assets import AssetType
from .base import ExchangeBase
from .cache import MarketDataCache, Orderbook, OrderbookItem, Ticker
from .currency import CurrencyPair
from .errors import (
    CacheMissError,
    ConfigurationError,
    CredentialError,
    ExchangeError,
    FunctionNotSupportedError,
    NotYetImplementedError,
    TransportError,
)
from .factory import EXCHANGE_CLIENTS, create_exchange_client
from .protocol import ExchangeClient, OrderSide, OrderType

__all__ = [
    "AssetType",
    "ExchangeBase",
    "MarketDataCache",
    "Orderbook",
    "OrderbookItem",
    "Ticker",
    "CurrencyPair",
    "CacheMissError",
    "ConfigurationError",
    "CredentialError",
    "ExchangeError",
    "FunctionNotSupportedError",
    "NotYetImplementedError",
    "TransportError",
    "EXCHANGE_CLIENTS",
    "create_exchange_client",
    "ExchangeClient",
    "OrderSide",
    "OrderType",
]
