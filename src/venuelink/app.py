from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import ConfigStore
from .di import AppContainer, build_container
from .exchanges.cache import MarketDataCache
from .logging import configure_logging
from .runtime import close_clients, run

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point supporting both CLI commands and bot mode.

    - `venuelink` or `venuelink bot`: connect every configured exchange
    - `venuelink <typer-subcommand>`: run CLI mode (e.g. `venuelink pairs-show bithumb`)
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        return _run_bot_mode([])

    if argv[0] == "bot":
        return _run_bot_mode(argv[1:])

    return _run_cli_mode(argv)


async def _bot(container: AppContainer) -> None:
    try:
        await run(container)
    finally:
        await close_clients(container)


def _run_bot_mode(argv: list[str]) -> int:
    """Run in bot mode."""
    parser = argparse.ArgumentParser(
        prog="venuelink bot", description="Set up every configured exchange and synchronise pairs"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (default: VENUELINK_CONFIG or ./config.yml)",
    )

    args = parser.parse_args(argv)
    configure_logging(Path("logs"))

    store = ConfigStore.from_file(args.config)
    market_data = MarketDataCache()

    from .exchanges.init import create_exchange_clients_from_settings

    exchange_clients = create_exchange_clients_from_settings(store, market_data)
    container = build_container(store, exchange_clients, market_data)

    logger.info("venuelink booting")
    asyncio.run(_bot(container))
    logger.info("venuelink exit")

    return 0


def _run_cli_mode(argv: list[str]) -> int:
    """Run in CLI mode using Typer."""
    try:
        configure_logging(Path("logs"))

        # Imported here so bot mode does not load typer
        from .cli import run_cli
        run_cli(argv)
        return 0
    except SystemExit as e:
        return e.code if e.code else 0
    except Exception as e:
        logger.error("CLI error: %s", e, exc_info=True)
        return 1
