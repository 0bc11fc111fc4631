"""Typer-based CLI for exchange connectivity operations."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from .di import AppContainer
    from .exchanges.protocol import ExchangeClient


def _load_store(config_path: Optional[Path] = None):
    from .config import ConfigStore
    return ConfigStore.from_file(config_path)


def _create_exchange_clients(store, market_data):
    from .exchanges.init import create_exchange_clients_from_settings
    return create_exchange_clients_from_settings(store, market_data)


app = typer.Typer(help="Exchange connectivity CLI")
console = Console()
logger = logging.getLogger(__name__)

PAIR_DELIMITERS = ("-", "/", "_")


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def init_components(config_path: Optional[Path] = None) -> "AppContainer":
    """Load configuration and set up every enabled exchange."""
    from .di import build_container
    from .exchanges.cache import MarketDataCache

    store = _load_store(config_path)
    market_data = MarketDataCache()
    exchange_clients = _create_exchange_clients(store, market_data)
    return build_container(store, exchange_clients, market_data)


def _get_client(container: "AppContainer", exchange: str) -> "ExchangeClient":
    client = container.exchange_clients.get(exchange.lower())
    if client is None:
        console.print(f"[red]Error:[/red] Exchange '{exchange}' not configured")
        raise typer.Exit(1)
    return client


def _parse_asset(asset: str):
    from .exchanges.assets import AssetType

    try:
        return AssetType(asset.lower())
    except ValueError:
        console.print(f"[red]Error:[/red] Unknown asset type '{asset}'")
        raise typer.Exit(1)


def _parse_pair(text: str):
    """Parse BTC-USDT, BTC/USDT or BTC_USDT; anything else splits after three letters."""
    from .exchanges.currency import CurrencyPair

    for delimiter in PAIR_DELIMITERS:
        if delimiter in text:
            return CurrencyPair.from_string(text, delimiter)
    return CurrencyPair.from_string(text)


@app.command()
def exchanges_list(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List supported exchanges and their configuration state."""
    from .exchanges.cache import MarketDataCache
    from .exchanges.factory import EXCHANGE_CLIENTS, create_exchange_client

    try:
        store = _load_store(config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Exchanges")
    table.add_column("Exchange", style="cyan")
    table.add_column("Configured", style="magenta")
    table.add_column("Enabled", style="green")
    table.add_column("Withdrawals", style="yellow")

    market_data = MarketDataCache()
    for name in EXCHANGE_CLIENTS:
        client = create_exchange_client(name, market_data)
        exchange_config = store.settings.get_exchange_config(name)
        table.add_row(
            name,
            "yes" if exchange_config is not None else "no",
            "yes" if exchange_config is not None and exchange_config.enabled else "no",
            client.format_withdraw_permissions(),
        )

    console.print(table)


@app.command()
def pairs_show(
    exchange: str = typer.Argument(..., help="Exchange name"),
    asset: str = typer.Option("spot", help="Asset type"),
    available: bool = typer.Option(False, "--available", help="Show available instead of enabled pairs"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show enabled (or available) pairs of an exchange."""
    container = init_components(config)
    client = _get_client(container, exchange)
    asset_type = _parse_asset(asset)

    if not client.is_asset_type_supported(asset_type):
        console.print(f"[red]Error:[/red] {exchange} does not support {asset_type}")
        raise typer.Exit(1)

    pairs = client.get_available_pairs(asset_type) if available else client.get_enabled_pairs(asset_type)
    role = "available" if available else "enabled"
    if not pairs:
        console.print(f"[yellow]No {role} pairs for {exchange} {asset_type}[/yellow]")
        return

    table = Table(title=f"{exchange} {asset_type} {role} pairs")
    table.add_column("Pair", style="green")
    table.add_column("Base", style="cyan")
    table.add_column("Quote", style="magenta")
    for pair in pairs:
        table.add_row(str(pair), pair.base, pair.quote)

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(pairs)}")


@app.command()
def pairs_sync(
    exchange: str = typer.Argument(..., help="Exchange name"),
    force: bool = typer.Option(False, "--force", help="Replace stored pairs even if unchanged"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Fetch tradable pairs from the exchange and store them."""
    container = init_components(config)
    client = _get_client(container, exchange)

    async def _sync() -> None:
        try:
            await client.update_tradable_pairs(force)
        finally:
            await client.close()

    try:
        asyncio.run(_sync())
    except Exception as e:
        logger.error("Failed to sync pairs: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    from .exchanges.assets import AssetType

    count = len(client.get_available_pairs(AssetType.SPOT))
    console.print(Panel.fit(
        f"[green]✓ Pairs synchronised[/green]\n"
        f"Exchange: [cyan]{exchange}[/cyan]\n"
        f"Available pairs: {count}",
        title="Pair Sync"
    ))


@app.command()
def ticker_show(
    exchange: str = typer.Argument(..., help="Exchange name"),
    pair: str = typer.Argument(..., help="Pair, e.g. BTC-USDT"),
    asset: str = typer.Option("spot", help="Asset type"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Fetch and show the ticker of a pair."""
    container = init_components(config)
    client = _get_client(container, exchange)
    asset_type = _parse_asset(asset)
    currency_pair = _parse_pair(pair)

    async def _fetch():
        try:
            return await client.update_ticker(currency_pair, asset_type)
        finally:
            await client.close()

    try:
        ticker = asyncio.run(_fetch())
    except Exception as e:
        logger.error("Failed to fetch ticker: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"Pair: [green]{ticker.pair}[/green]\n"
        f"Last: [bold]{ticker.last}[/bold]\n"
        f"Bid: {ticker.bid}  Ask: {ticker.ask}\n"
        f"High: {ticker.high}  Low: {ticker.low}\n"
        f"Volume: {ticker.volume}",
        title=f"{exchange} ticker"
    ))


@app.command()
def orderbook_show(
    exchange: str = typer.Argument(..., help="Exchange name"),
    pair: str = typer.Argument(..., help="Pair, e.g. BTC-USDT"),
    depth: int = typer.Option(10, help="Levels to show per side"),
    asset: str = typer.Option("spot", help="Asset type"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Fetch and show the orderbook of a pair."""
    container = init_components(config)
    client = _get_client(container, exchange)
    asset_type = _parse_asset(asset)
    currency_pair = _parse_pair(pair)

    async def _fetch():
        try:
            return await client.update_orderbook(currency_pair, asset_type)
        finally:
            await client.close()

    try:
        orderbook = asyncio.run(_fetch())
    except Exception as e:
        logger.error("Failed to fetch orderbook: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"{exchange} {orderbook.pair} orderbook")
    table.add_column("Bid amount", style="green")
    table.add_column("Bid price", style="green")
    table.add_column("Ask price", style="red")
    table.add_column("Ask amount", style="red")

    bids = orderbook.bids[:depth]
    asks = orderbook.asks[:depth]
    for i in range(max(len(bids), len(asks))):
        bid = bids[i] if i < len(bids) else None
        ask = asks[i] if i < len(asks) else None
        table.add_row(
            f"{bid.amount}" if bid else "",
            f"{bid.price}" if bid else "",
            f"{ask.price}" if ask else "",
            f"{ask.amount}" if ask else "",
        )

    console.print(table)


@app.command()
def default_config(
    exchange: str = typer.Argument(..., help="Exchange name"),
) -> None:
    """Print the default configuration record of an exchange as YAML."""
    from .config import exchange_config_to_yaml
    from .exchanges.cache import MarketDataCache
    from .exchanges.factory import create_exchange_client

    try:
        client = create_exchange_client(exchange, MarketDataCache())
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    async def _build():
        try:
            return await client.get_default_config()
        finally:
            await client.close()

    try:
        exchange_config = asyncio.run(_build())
    except Exception as e:
        logger.error("Failed to build default config: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(exchange_config_to_yaml(exchange_config), markup=False, highlight=False)


def main():
    """CLI main entry point."""
    app()


if __name__ == "__main__":
    main()
