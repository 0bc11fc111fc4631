"""Tests for PairSynchronizer."""

from unittest.mock import MagicMock

import pytest

from venuelink.exchanges.assets import AssetType
from venuelink.exchanges.currency import CurrencyPair
from venuelink.exchanges.errors import ConfigurationError
from venuelink.exchanges.pair_format import CurrencyPairs, PairFormat, PairStore
from venuelink.exchanges.pairs import PairRole, PairSynchronizer
from venuelink.settings import ExchangeConfig


def make_synchronizer(available=None, enabled=None, persist=None):
    pairs = CurrencyPairs(
        asset_types=[AssetType.SPOT],
        use_global_pair_format=True,
        request_format=PairFormat(),
        config_format=PairFormat(delimiter="-", uppercase=True),
        stores={AssetType.SPOT: PairStore(available=list(available or []), enabled=list(enabled or []))},
    )
    cfg = ExchangeConfig(name="example")
    return PairSynchronizer("example", pairs, cfg, persist=persist), pairs, cfg


class TestUpdatePairs:
    """Tests for update_pairs."""

    def test_added_and_removed(self):
        """Test the diff against the stored list."""
        persist = MagicMock()
        sync, pairs, cfg = make_synchronizer(available=["BTC-USDT", "ETH-USDT"], persist=persist)

        result = sync.update_pairs(["btc-usdt", "ltc-usdt"], AssetType.SPOT, PairRole.AVAILABLE)

        assert result.added == ["LTC-USDT"]
        assert result.removed == ["ETH-USDT"]
        assert result.changed is True
        assert pairs.get_store(AssetType.SPOT).available == ["BTC-USDT", "LTC-USDT"]
        assert cfg.currency_pairs.spot.available == "BTC-USDT,LTC-USDT"
        persist.assert_called_once_with(cfg)

    def test_unchanged_not_persisted(self):
        """Test that an identical set leaves storage alone."""
        persist = MagicMock()
        sync, pairs, cfg = make_synchronizer(available=["BTC-USDT", "ETH-USDT"], persist=persist)

        result = sync.update_pairs(["ETH-USDT", "BTC-USDT"], AssetType.SPOT, PairRole.AVAILABLE)

        assert result.changed is False
        assert result.added == [] and result.removed == []
        assert pairs.get_store(AssetType.SPOT).available == ["BTC-USDT", "ETH-USDT"]
        assert cfg.currency_pairs is None
        persist.assert_not_called()

    def test_force_replaces(self):
        """Test that force stores an unchanged list."""
        persist = MagicMock()
        sync, _, cfg = make_synchronizer(enabled=["BTC-USDT"], persist=persist)

        result = sync.update_pairs(["BTC-USDT"], AssetType.SPOT, PairRole.ENABLED, force=True)

        assert result.changed is True
        assert cfg.currency_pairs.spot.enabled == "BTC-USDT"
        persist.assert_called_once()

    def test_roles_independent(self):
        """Test that updating enabled leaves available alone."""
        sync, pairs, _ = make_synchronizer(available=["BTC-USDT"], enabled=["BTC-USDT"])

        sync.update_pairs(["ETH-USDT"], AssetType.SPOT, PairRole.ENABLED)

        store = pairs.get_store(AssetType.SPOT)
        assert store.enabled == ["ETH-USDT"]
        assert store.available == ["BTC-USDT"]

    def test_empty_entries_dropped_duplicates_kept(self):
        """Test normalisation of the fetched list."""
        sync, pairs, _ = make_synchronizer()

        sync.update_pairs(["btc-usdt", "", "BTC-USDT", "eth-usdt,ltc-usdt"], AssetType.SPOT, PairRole.AVAILABLE)

        assert pairs.get_store(AssetType.SPOT).available == ["BTC-USDT", "BTC-USDT", "ETH-USDT", "LTC-USDT"]

    @pytest.mark.parametrize("products", [[], [""], [" ", ","]])
    def test_empty_products_raise(self, products):
        """Test that an empty product list is rejected."""
        sync, _, _ = make_synchronizer(available=["BTC-USDT"])

        with pytest.raises(ConfigurationError, match="empty product list"):
            sync.update_pairs(products, AssetType.SPOT, PairRole.AVAILABLE)

    def test_unknown_asset_raises(self):
        """Test that an asset type without a store is rejected."""
        sync, _, _ = make_synchronizer()

        with pytest.raises(ConfigurationError):
            sync.update_pairs(["BTC-USDT"], AssetType.FUTURES, PairRole.AVAILABLE)


class TestSetPairs:
    """Tests for set_pairs."""

    def test_stores_display_format(self):
        """Test that parsed pairs are stored in config format."""
        persist = MagicMock()
        sync, pairs, cfg = make_synchronizer(persist=persist)

        sync.set_pairs([CurrencyPair("btc", "usdt"), CurrencyPair("eth", "btc")], AssetType.SPOT, PairRole.ENABLED)

        assert pairs.get_store(AssetType.SPOT).enabled == ["BTC-USDT", "ETH-BTC"]
        assert cfg.currency_pairs.spot.enabled == "BTC-USDT,ETH-BTC"
        persist.assert_called_once_with(cfg)

    def test_empty_raises(self):
        """Test that an empty list is rejected."""
        sync, _, _ = make_synchronizer()

        with pytest.raises(ConfigurationError):
            sync.set_pairs([], AssetType.SPOT, PairRole.ENABLED)
