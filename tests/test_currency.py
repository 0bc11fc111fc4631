"""Tests for currency pair parsing, formatting and resolution."""

import pytest

from venuelink.exchanges.assets import AssetType, join_asset_types, parse_asset_types
from venuelink.exchanges.currency import (
    CurrencyPair,
    contains_pair,
    find_pair_differences,
    format_pairs,
    join_strings,
    split_strings,
)
from venuelink.exchanges.errors import ConfigurationError
from venuelink.exchanges.pair_format import CurrencyPairs, PairFormat, PairFormatResolver, PairStore


class TestCurrencyPair:
    """Tests for CurrencyPair parsing and display."""

    def test_parse_with_delimiter(self):
        """Test parsing a delimited pair."""
        pair = CurrencyPair.from_string("btc-usdt", "-")
        assert pair.base == "BTC"
        assert pair.quote == "USDT"

    def test_parse_with_index(self):
        """Test locating the quote currency by index."""
        pair = CurrencyPair.from_string("BTCKRW", index="KRW")
        assert (pair.base, pair.quote) == ("BTC", "KRW")

        pair = CurrencyPair.from_string("XRPKRW", index="KRW")
        assert (pair.base, pair.quote) == ("XRP", "KRW")

    def test_parse_fixed_split(self):
        """Test the three letter fallback split."""
        pair = CurrencyPair.from_string("LTCUSD")
        assert (pair.base, pair.quote) == ("LTC", "USD")

    def test_equality_ignores_delimiter(self):
        """Test that pairs compare by currencies only."""
        assert CurrencyPair("btc", "usdt", "-") == CurrencyPair("BTC", "USDT")
        assert hash(CurrencyPair("btc", "usdt", "-")) == hash(CurrencyPair("BTC", "USDT"))

    def test_display(self):
        """Test rendering with delimiter and case."""
        pair = CurrencyPair("btc", "usdt")
        assert pair.display("-") == "BTC-USDT"
        assert pair.display("", uppercase=False) == "btcusdt"
        assert str(CurrencyPair("eth", "btc", "_")) == "ETH_BTC"


class TestPairListHelpers:
    """Tests for pair list helpers."""

    def test_split_drops_empty_entries(self):
        """Test that empty entries are dropped."""
        assert split_strings("BTCKRW,,ETHKRW,") == ["BTCKRW", "ETHKRW"]
        assert split_strings("") == []

    def test_join(self):
        """Test joining with the default separator."""
        assert join_strings(["A", "B"]) == "A,B"

    def test_format_pairs(self):
        """Test parsing a stored list."""
        pairs = format_pairs(["BTC-USDT", "", "ETH-BTC"], "-")
        assert pairs == [CurrencyPair("BTC", "USDT"), CurrencyPair("ETH", "BTC")]
        assert contains_pair(pairs, CurrencyPair("eth", "btc"))
        assert not contains_pair(pairs, CurrencyPair("LTC", "BTC"))

    def test_find_pair_differences(self):
        """Test added and removed detection."""
        added, removed = find_pair_differences(["A", "B", "C"], ["B", "C", "D"])
        assert added == ["D"]
        assert removed == ["A"]

    def test_find_pair_differences_same_set(self):
        """Test that reordering is not a difference."""
        assert find_pair_differences(["A", "B"], ["B", "A"]) == ([], [])


class TestAssetTypes:
    """Tests for asset type helpers."""

    def test_join_and_parse(self):
        """Test the joined config form."""
        joined = join_asset_types([AssetType.SPOT, AssetType.FUTURES])
        assert joined == "spot,futures"
        assert parse_asset_types(joined) == [AssetType.SPOT, AssetType.FUTURES]

    def test_parse_ignores_unknown(self):
        """Test that unknown entries are skipped."""
        assert parse_asset_types("spot,options,, INDEX") == [AssetType.SPOT, AssetType.INDEX]


class TestPairFormatResolver:
    """Tests for PairFormatResolver."""

    def test_global_format(self):
        """Test that global mode ignores the asset type."""
        pairs = CurrencyPairs(
            use_global_pair_format=True,
            request_format=PairFormat(),
            config_format=PairFormat(delimiter="-", uppercase=True),
        )
        resolver = PairFormatResolver(pairs)

        assert resolver.format_pair(CurrencyPair("btc", "usdt"), AssetType.SPOT, False) == "BTC-USDT"
        assert resolver.format_pair(CurrencyPair("btc", "usdt"), AssetType.FUTURES, True) == "btcusdt"

    def test_per_asset_format(self):
        """Test per asset resolution."""
        pairs = CurrencyPairs(
            stores={
                AssetType.SPOT: PairStore(
                    request_format=PairFormat(delimiter="_", uppercase=True),
                    config_format=PairFormat(delimiter="-", uppercase=True),
                )
            }
        )
        resolver = PairFormatResolver(pairs)

        assert resolver.resolve(AssetType.SPOT, True).delimiter == "_"
        assert resolver.resolve(AssetType.SPOT, False).delimiter == "-"

    def test_missing_asset_raises(self):
        """Test that an unconfigured asset type raises."""
        resolver = PairFormatResolver(CurrencyPairs(stores={AssetType.SPOT: PairStore()}))

        with pytest.raises(ConfigurationError):
            resolver.resolve(AssetType.FUTURES, True)
        with pytest.raises(ConfigurationError):
            resolver.resolve(AssetType.SPOT, True)

    def test_format_pairs_uses_separator(self):
        """Test joining several pairs for one request."""
        pairs = CurrencyPairs(
            use_global_pair_format=True,
            request_format=PairFormat(delimiter="_", separator="-"),
        )
        resolver = PairFormatResolver(pairs)

        joined = resolver.format_pairs([CurrencyPair("btc", "usd"), CurrencyPair("eth", "usd")], AssetType.SPOT)
        assert joined == "btc_usd-eth_usd"

    def test_format_pairs_empty_raises(self):
        """Test that an empty result raises."""
        resolver = PairFormatResolver(CurrencyPairs(use_global_pair_format=True))

        with pytest.raises(ConfigurationError):
            resolver.format_pairs([], AssetType.SPOT)

    def test_parse_pairs(self):
        """Test parsing stored pairs with the config format."""
        pairs = CurrencyPairs(
            use_global_pair_format=True,
            config_format=PairFormat(uppercase=True, index="KRW"),
        )
        resolver = PairFormatResolver(pairs)

        assert resolver.parse_pairs(["BTCKRW", "ETHKRW"], AssetType.SPOT) == [
            CurrencyPair("BTC", "KRW"),
            CurrencyPair("ETH", "KRW"),
        ]
