"""Tests for the shared exchange base."""

import asyncio
import hashlib
import hmac

import pytest

from venuelink.exchanges.assets import AssetType
from venuelink.exchanges.base import AsyncOnce, ExchangeBase, payload_float
from venuelink.exchanges.cache import Ticker
from venuelink.exchanges.currency import CurrencyPair
from venuelink.exchanges.errors import CacheMissError, ConfigurationError, CredentialError, TransportError
from venuelink.exchanges.huobi import huobi_capabilities
from venuelink.exchanges.pairs import PairRole
from venuelink.settings import ExchangeConfig


@pytest.fixture
def base(market_data, requester):
    return ExchangeBase(huobi_capabilities(), market_data, requester=requester)


class TestAsyncOnce:
    """Tests for AsyncOnce."""

    @pytest.mark.asyncio
    async def test_computes_once(self):
        """Test that concurrent callers share one computation."""
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return "42"

        once = AsyncOnce()
        results = await asyncio.gather(*(once.get(compute) for _ in range(5)))

        assert results == ["42"] * 5
        assert calls == 1
        assert once.is_set

    @pytest.mark.asyncio
    async def test_failure_not_stored(self):
        """Test that a failed computation is retried by the next caller."""
        once = AsyncOnce()

        async def fail():
            raise RuntimeError("nope")

        async def ok():
            return 1

        with pytest.raises(RuntimeError):
            await once.get(fail)
        assert not once.is_set
        assert await once.get(ok) == 1

    @pytest.mark.asyncio
    async def test_reset(self):
        """Test that reset forces a new computation."""
        once = AsyncOnce()

        async def first():
            return "a"

        async def second():
            return "b"

        await once.get(first)
        once.reset()
        assert await once.get(second) == "b"


class TestCredentials:
    """Tests for credential handling on the base."""

    def test_not_loaded_validates_credentials(self, base):
        """Test that without setup the credentials decide."""
        assert not base.allow_authenticated_request()

        base.set_api_keys("key", "secret")

        assert base.allow_authenticated_request()

    def test_loaded_uses_authenticated_flag(self, base):
        """Test that after setup the authenticated flag decides."""
        base.setup(ExchangeConfig(name="Huobi"))
        base.set_api_keys("key", "secret")

        assert not base.allow_authenticated_request()
        with pytest.raises(CredentialError):
            base.require_authenticated("balance")

    def test_generate_signature(self):
        """Test both supported HMAC methods."""
        expected = hmac.new(b"secret", b"message", hashlib.sha512).hexdigest()

        assert ExchangeBase.generate_signature(b"secret", "message", "hmac-sha512") == expected
        assert len(ExchangeBase.generate_signature(b"secret", "message")) == 64
        with pytest.raises(ValueError):
            ExchangeBase.generate_signature(b"secret", "message", "md5")


class TestSetupAndPairs:
    """Tests for setup and pair access."""

    def test_pairs_before_setup(self, base):
        """Test that pair updates need setup."""
        with pytest.raises(ConfigurationError):
            base.update_pairs(["btc-usdt"], AssetType.SPOT, PairRole.ENABLED)

    def test_disabled_record(self, base):
        """Test that a disabled record leaves the base disabled."""
        record = ExchangeConfig(name="Huobi", enabled=False)

        base.setup(record)

        assert not base.is_enabled()
        assert base.exchange_config is None
        assert record.http_timeout == 0.0

    def test_setup_enables(self, base):
        """Test a normal setup."""
        base.setup(ExchangeConfig(name="Huobi"))

        assert base.is_enabled()
        assert base.get_api_url() == "https://api.huobi.pro"
        assert base.get_secondary_api_url() == "https://api.huobi.pro"
        assert base.get_websocket_url() == "wss://api.huobi.pro/ws"
        assert base.get_asset_types() == [AssetType.SPOT]
        assert base.supports_auto_pair_updates()
        assert not base.supports_rest_ticker_batch_updates()

    def test_format_exchange_currency(self, base):
        """Test request formatting of pairs."""
        base.setup(ExchangeConfig(name="Huobi"))
        assert base.format_exchange_currency(CurrencyPair("BTC", "USDT"), AssetType.SPOT) == "btcusdt"

    def test_secondary_api_url_from_record(self, base):
        """Test that a configured secondary URL is used and the primary stays."""
        base.setup(
            ExchangeConfig.model_validate(
                {"name": "Huobi", "api": {"endpoints": {"url_secondary": "https://api-aws.huobi.pro"}}}
            )
        )

        assert base.get_api_url() == "https://api.huobi.pro"
        assert base.get_secondary_api_url() == "https://api-aws.huobi.pro"

    @pytest.mark.asyncio
    async def test_default_config_leaves_state(self, base):
        """Test that building defaults does not touch the live config."""
        before = base.config.http_timeout

        cfg = await base.get_default_config()

        assert cfg.name == "Huobi"
        assert cfg.currency_pairs.config_format.delimiter == "-"
        assert cfg.features.enabled.auto_pair_updates is True
        assert base.config.http_timeout == before
        assert base.exchange_config is None

    @pytest.mark.asyncio
    async def test_run_pair_sync_forced(self, base):
        """Test that force runs the sync even with auto updates off."""
        base.setup(
            ExchangeConfig.model_validate(
                {"name": "Huobi", "features": {"enabled": {"auto_pair_updates": False}}}
            )
        )

        async def fetch(asset_type):
            return ["btc-usdt"]

        await base.run_pair_sync(fetch)
        assert base.get_available_pairs(AssetType.SPOT) == []

        await base.run_pair_sync(fetch, force=True)
        assert base.get_available_pairs(AssetType.SPOT) == [CurrencyPair("BTC", "USDT")]


class TestCacheAccess:
    """Tests for cache access through the base."""

    def test_process_and_fetch_ticker(self, base, market_data):
        """Test that tickers land in the injected cache under the venue name."""
        pair = CurrencyPair("BTC", "USDT")
        base.process_ticker(pair, AssetType.SPOT, Ticker(pair=pair, last=1.0))

        assert base.fetch_ticker(pair, AssetType.SPOT).last == 1.0
        assert market_data.tickers.fetch("huobi", pair, AssetType.SPOT).last == 1.0

    def test_fetch_miss(self, base):
        """Test that a miss raises CacheMissError."""
        with pytest.raises(CacheMissError):
            base.fetch_orderbook(CurrencyPair("BTC", "USDT"), AssetType.SPOT)


class TestDefaultConfigPairs:
    """Tests for available pairs in the default record."""

    @pytest.mark.asyncio
    async def test_fetches_available_pairs(self, base):
        """Test that the venue's products become the available pairs."""
        requested = []

        async def fetch(asset_type):
            requested.append(asset_type)
            return ["btc-usdt", "eth-usdt"]

        cfg = await base.get_default_config(fetch)

        assert requested == [AssetType.SPOT]
        assert cfg.currency_pairs.spot.available == "BTC-USDT,ETH-USDT"
        assert base.exchange_config is None
        assert base.get_available_pairs(AssetType.SPOT) == []

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, base):
        """Test that a failed product fetch fails the whole build."""

        async def fetch(asset_type):
            raise TransportError("venue down")

        with pytest.raises(TransportError):
            await base.get_default_config(fetch)


class TestPayloadFloat:
    """Tests for payload_float."""

    @pytest.mark.parametrize("value,expected", [("1.5", 1.5), (2, 2.0), (None, 0.0), ("", 0.0)])
    def test_values(self, value, expected):
        """Test numbers, numeric strings and missing values."""
        assert payload_float(value, "last") == expected

    @pytest.mark.parametrize("value", ["-", "abc", [], {}])
    def test_malformed(self, value):
        """Test that non numbers raise TransportError naming the field."""
        with pytest.raises(TransportError, match="last"):
            payload_float(value, "last")
