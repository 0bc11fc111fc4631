"""Tests for exchange client factory and settings-driven setup."""

import pytest

from venuelink.config import ConfigStore
from venuelink.exchanges.bithumb import BithumbClient
from venuelink.exchanges.factory import EXCHANGE_CLIENTS, create_exchange_client
from venuelink.exchanges.huobi import HuobiClient
from venuelink.exchanges.init import create_exchange_clients_from_settings
from venuelink.settings import Settings


class TestExchangeFactory:
    """Tests for exchange client factory."""

    def test_create_bithumb_client(self, market_data):
        """Test creating Bithumb client."""
        client = create_exchange_client("bithumb", market_data)
        assert isinstance(client, BithumbClient)
        assert client.base.cache is market_data

    def test_create_huobi_client(self, market_data, requester):
        """Test creating Huobi client with an injected requester."""
        client = create_exchange_client("huobi", market_data, requester=requester)
        assert isinstance(client, HuobiClient)
        assert client.base.requester is requester

    def test_unsupported_exchange(self, market_data):
        """Test error for unsupported exchange."""
        with pytest.raises(ValueError, match="Unsupported exchange"):
            create_exchange_client("invalid_exchange", market_data)

    def test_all_exchanges_supported(self):
        """Test that all expected exchanges are in factory."""
        assert set(EXCHANGE_CLIENTS) == {"bithumb", "huobi"}

    def test_case_insensitive_exchange_names(self, market_data):
        """Test that exchange names are case-insensitive."""
        client1 = create_exchange_client("HUOBI", market_data)
        client2 = create_exchange_client("huobi", market_data)
        assert type(client1) == type(client2)

    def test_clients_share_injected_cache(self, market_data):
        """Test that separately created clients use the same cache."""
        a = create_exchange_client("bithumb", market_data)
        b = create_exchange_client("huobi", market_data)
        assert a.base.cache is b.base.cache


class TestClientsFromSettings:
    """Tests for building clients from stored configuration."""

    def test_enabled_exchanges_are_set_up(self, market_data):
        """Test that enabled records produce set up clients."""
        settings = Settings.model_validate(
            {
                "exchanges": {
                    "bithumb": {"name": "Bithumb"},
                    "huobi": {"name": "Huobi", "enabled": False},
                }
            }
        )
        store = ConfigStore(settings)

        clients = create_exchange_clients_from_settings(store, market_data)

        assert list(clients) == ["bithumb"]
        assert clients["bithumb"].base.is_enabled()
        # Reconciled defaults are written back to the store
        assert store.load_exchange_config("bithumb").http_timeout == 15.0

    def test_unknown_exchange_skipped(self, market_data):
        """Test that records without an adapter are skipped."""
        settings = Settings.model_validate({"exchanges": {"kraken": {"name": "Kraken"}}})

        clients = create_exchange_clients_from_settings(ConfigStore(settings), market_data)

        assert clients == {}

    def test_invalid_record_skipped(self, market_data):
        """Test that a record failing setup does not stop the others."""
        settings = Settings.model_validate(
            {
                "exchanges": {
                    "bithumb": {"name": "Bithumb", "api": {"endpoints": {"url": "", "url_secondary": ""}}},
                    "huobi": {"name": "Huobi"},
                }
            }
        )

        clients = create_exchange_clients_from_settings(ConfigStore(settings), market_data)

        assert list(clients) == ["huobi"]
