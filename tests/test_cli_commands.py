"""Tests for CLI command parsing and basic functionality."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from venuelink.cli import _parse_pair, app
from venuelink.config import ConfigStore
from venuelink.di import build_container
from venuelink.exchanges.cache import Orderbook, OrderbookItem, Ticker
from venuelink.exchanges.currency import CurrencyPair
from venuelink.exchanges.errors import ExchangeError, TransportError


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        yaml.safe_dump(
            {
                "exchanges": {
                    "bithumb": {"currency_pairs": {"spot": {"enabled": "BTCKRW,ETHKRW"}}},
                    "huobi": {"enabled": False},
                }
            }
        ),
        encoding="utf-8",
    )
    return path


def container_with(client):
    return build_container(ConfigStore(), {"bithumb": client})


def test_cli_help():
    """Test that CLI shows help correctly."""
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Exchange connectivity CLI" in result.output


def test_cli_commands_available():
    """Test that all expected CLI commands are available."""
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("exchanges-list", "pairs-show", "pairs-sync", "ticker-show", "orderbook-show", "default-config"):
        assert command in result.output


@patch("venuelink.exchanges.requester.Requester.send", new_callable=AsyncMock)
def test_default_config(mock_send):
    """Test printing the default record of an exchange with its available pairs."""
    mock_send.return_value = {"status": "0000", "data": {"BTC": {}, "XRP": {}, "date": "1700000000000"}}

    runner = CliRunner()
    result = runner.invoke(app, ["default-config", "bithumb"])

    assert result.exit_code == 0
    assert "bithumb:" in result.output
    assert "https://api.bithumb.com" in result.output
    assert "BTCKRW,XRPKRW" in result.output
    mock_send.assert_awaited_once()


@patch("venuelink.exchanges.requester.Requester.send", new_callable=AsyncMock)
def test_default_config_fetch_failure(mock_send):
    """Test that a failed pair fetch exits with an error."""
    mock_send.side_effect = TransportError("venue down")

    runner = CliRunner()
    result = runner.invoke(app, ["default-config", "bithumb"])

    assert result.exit_code == 1
    assert "venue down" in result.output


def test_default_config_unknown_exchange():
    """Test error for an unsupported exchange."""
    runner = CliRunner()
    result = runner.invoke(app, ["default-config", "kraken"])
    assert result.exit_code == 1
    assert "Unsupported exchange" in result.output


def test_exchanges_list(config_path):
    """Test listing exchanges from a config file."""
    runner = CliRunner()
    result = runner.invoke(app, ["exchanges-list", "--config", str(config_path)])
    assert result.exit_code == 0
    assert "bithumb" in result.output
    assert "huobi" in result.output


def test_pairs_show(config_path):
    """Test showing enabled pairs of a configured exchange."""
    runner = CliRunner()
    result = runner.invoke(app, ["pairs-show", "bithumb", "--config", str(config_path)])
    assert result.exit_code == 0
    assert "BTCKRW" in result.output
    assert "ETHKRW" in result.output
    assert "Total:" in result.output


def test_pairs_show_disabled_exchange(config_path):
    """Test that a disabled exchange is reported as not configured."""
    runner = CliRunner()
    result = runner.invoke(app, ["pairs-show", "huobi", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "not configured" in result.output


def test_pairs_show_unsupported_asset(config_path):
    """Test that an unsupported asset type is rejected."""
    runner = CliRunner()
    result = runner.invoke(app, ["pairs-show", "bithumb", "--asset", "futures", "--config", str(config_path)])
    assert result.exit_code == 1


@patch("venuelink.cli.init_components")
def test_ticker_show(mock_init_components):
    """Test ticker output from a mocked client."""
    pair = CurrencyPair("BTC", "KRW")
    client = MagicMock()
    client.update_ticker = AsyncMock(return_value=Ticker(pair=pair, last=100.0, bid=99.0, ask=101.0))
    client.close = AsyncMock()
    mock_init_components.return_value = container_with(client)

    runner = CliRunner()
    result = runner.invoke(app, ["ticker-show", "bithumb", "BTC-KRW"])

    assert result.exit_code == 0
    assert "100.0" in result.output
    client.update_ticker.assert_awaited_once()
    assert client.update_ticker.call_args.args[0] == pair
    client.close.assert_awaited_once()


@patch("venuelink.cli.init_components")
def test_orderbook_show_depth(mock_init_components):
    """Test that depth limits the levels shown."""
    pair = CurrencyPair("BTC", "KRW")
    book = Orderbook(
        pair=pair,
        bids=[OrderbookItem(price=99.5, amount=1.0), OrderbookItem(price=98.5, amount=2.0)],
        asks=[OrderbookItem(price=101.5, amount=3.0)],
    )
    client = MagicMock()
    client.update_orderbook = AsyncMock(return_value=book)
    client.close = AsyncMock()
    mock_init_components.return_value = container_with(client)

    runner = CliRunner()
    result = runner.invoke(app, ["orderbook-show", "bithumb", "BTC/KRW", "--depth", "1"])

    assert result.exit_code == 0
    assert "99.5" in result.output
    assert "98.5" not in result.output


@patch("venuelink.cli.init_components")
def test_pairs_sync_failure(mock_init_components):
    """Test that a failed sync exits with an error."""
    client = MagicMock()
    client.update_tradable_pairs = AsyncMock(side_effect=ExchangeError("venue down"))
    client.close = AsyncMock()
    mock_init_components.return_value = container_with(client)

    runner = CliRunner()
    result = runner.invoke(app, ["pairs-sync", "bithumb"])

    assert result.exit_code == 1
    assert "venue down" in result.output
    client.close.assert_awaited_once()


class TestParsePair:
    """Tests for pair argument parsing."""

    @pytest.mark.parametrize("text", ["BTC-USDT", "BTC/USDT", "BTC_USDT", "btc-usdt"])
    def test_delimited(self, text):
        """Test each accepted delimiter."""
        assert _parse_pair(text) == CurrencyPair("BTC", "USDT")

    def test_undelimited(self):
        """Test the three letter split."""
        assert _parse_pair("BTCKRW") == CurrencyPair("BTC", "KRW")
