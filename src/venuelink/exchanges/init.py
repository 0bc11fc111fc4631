"""Exchange client initialization from settings."""

from __future__ import annotations

import logging
from typing import Dict

from ..config import ConfigStore
from .cache import MarketDataCache
from .errors import ConfigurationError
from .factory import create_exchange_client
from .protocol import ExchangeClient

logger = logging.getLogger(__name__)


def create_exchange_clients_from_settings(
    store: ConfigStore,
    cache: MarketDataCache,
) -> Dict[str, ExchangeClient]:
    """Create and set up a client for every enabled exchange in `store`.

    Exchanges that are unsupported or whose configuration cannot be
    reconciled are logged and skipped.
    """
    clients: Dict[str, ExchangeClient] = {}

    for exchange_name, exchange_config in store.settings.exchanges.items():
        if not exchange_config.enabled:
            logger.debug("Exchange %s is disabled, skipping", exchange_name)
            continue

        try:
            client = create_exchange_client(exchange_name, cache, store=store)
            client.setup(exchange_config)
        except (ValueError, ConfigurationError) as e:
            logger.error("Failed to initialize exchange client for %s: %s", exchange_name, e)
            continue

        store.save_exchange_config(exchange_config)
        clients[exchange_name] = client
        logger.info("Initialized exchange client for %s", exchange_name)

    return clients
