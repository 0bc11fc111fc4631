"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock

import pytest

from venuelink.config import ConfigStore
from venuelink.exchanges.bithumb import BithumbClient
from venuelink.exchanges.cache import MarketDataCache
from venuelink.exchanges.huobi import HuobiClient
from venuelink.exchanges.requester import Requester
from venuelink.settings import ExchangeConfig, Settings


@pytest.fixture
def api_key():
    """Test API key."""
    return "test_api_key_123456"


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def market_data():
    """Isolated market data cache."""
    return MarketDataCache()


@pytest.fixture
def store():
    """In-memory config store."""
    return ConfigStore(Settings())


@pytest.fixture
def requester():
    """Requester whose send() is mocked per test."""
    req = Requester("test")
    req.send = AsyncMock()
    return req


def make_exchange_config(name, api_key=None, api_secret=None, **pairs):
    """Exchange record with optional credentials and spot pairs."""
    data = {"name": name}
    if api_key is not None:
        data["api"] = {
            "authenticated_support": True,
            "credentials": {"key": api_key, "secret": api_secret},
        }
    if pairs:
        data["currency_pairs"] = {"spot": pairs}
    return ExchangeConfig.model_validate(data)


@pytest.fixture
def bithumb(market_data, store, requester, api_key, api_secret):
    """Bithumb client set up with credentials and two enabled pairs."""
    client = BithumbClient(market_data, store=store, requester=requester)
    client.setup(
        make_exchange_config(
            "bithumb",
            api_key,
            api_secret,
            available="BTCKRW,ETHKRW,XRPKRW",
            enabled="BTCKRW,ETHKRW",
        )
    )
    return client


@pytest.fixture
def huobi(market_data, store, requester, api_key, api_secret):
    """Huobi client set up with credentials and two enabled pairs."""
    client = HuobiClient(market_data, store=store, requester=requester)
    client.setup(
        make_exchange_config(
            "huobi",
            api_key,
            api_secret,
            available="BTC-USDT,ETH-USDT",
            enabled="BTC-USDT,ETH-USDT",
        )
    )
    return client
