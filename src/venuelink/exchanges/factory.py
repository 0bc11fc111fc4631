"""Factory for creating venue adapter instances."""

from __future__ import annotations

from typing import Type

from ..config import ConfigStore
from .bithumb import BithumbClient
from .cache import MarketDataCache
from .huobi import HuobiClient
from .protocol import ExchangeClient
from .requester import Requester


EXCHANGE_CLIENTS: dict[str, Type[ExchangeClient]] = {
    "bithumb": BithumbClient,
    "huobi": HuobiClient,
}


def create_exchange_client(
    exchange: str,
    cache: MarketDataCache,
    *,
    store: ConfigStore | None = None,
    requester: Requester | None = None,
) -> ExchangeClient:
    """Create a venue adapter instance.

    Args:
        exchange: Exchange name (bithumb, huobi)
        cache: Market data cache the adapter writes into
        store: Config store receiving updated exchange records
        requester: HTTP transport to use instead of the adapter default

    Returns:
        Adapter that still needs `setup()`

    Raises:
        ValueError: If exchange is not supported
    """
    exchange_lower = exchange.lower()

    if exchange_lower not in EXCHANGE_CLIENTS:
        supported = ", ".join(EXCHANGE_CLIENTS.keys())
        raise ValueError(
            f"Unsupported exchange: {exchange}. Supported exchanges: {supported}"
        )

    client_class = EXCHANGE_CLIENTS[exchange_lower]
    return client_class(cache, store=store, requester=requester)
