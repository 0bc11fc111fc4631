from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exchanges.cache import MarketDataCache
from .exchanges.protocol import ExchangeClient

if TYPE_CHECKING:
    from .config import ConfigStore
    from .settings import Settings


@dataclass(slots=True)
class AppContainer:
    store: "ConfigStore"
    market_data: MarketDataCache = field(default_factory=MarketDataCache)
    shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    exchange_clients: dict[str, ExchangeClient] = field(default_factory=dict)

    @property
    def settings(self) -> "Settings":
        return self.store.settings


def build_container(
    store: "ConfigStore",
    exchange_clients: dict[str, ExchangeClient] | None = None,
    market_data: MarketDataCache | None = None,
) -> AppContainer:
    """Build application container with exchange clients and the shared cache."""
    clients = exchange_clients or {}
    return AppContainer(
        store=store,
        market_data=market_data or MarketDataCache(),
        exchange_clients=clients,
    )
