from __future__ import annotations

import asyncio
import logging

from .di import AppContainer
from .exchanges.errors import ExchangeError
from .exchanges.protocol import ExchangeClient

logger = logging.getLogger(__name__)


async def _start_client(name: str, client: ExchangeClient, started: list[str]) -> None:
    try:
        await client.start()
    except ExchangeError as e:
        logger.error("%s startup failed: %s", name, e)
        return
    except Exception as e:
        logger.error("%s startup failed unexpectedly: %s", name, e, exc_info=True)
        return
    started.append(name)
    logger.info("%s started", name)


async def run(container: AppContainer) -> list[str]:
    """Run the startup sequence of every adapter concurrently.

    Returns once every adapter has finished. An adapter whose startup fails
    is logged and left out of the returned names; the others are unaffected.
    """
    logger.info("runtime starting")
    logger.debug("settings=%s", container.settings.redacted())

    if not container.exchange_clients:
        logger.warning("no exchange clients configured")
        await asyncio.sleep(0)
        logger.info("runtime stopped")
        return []

    started: list[str] = []
    async with asyncio.TaskGroup() as tg:
        for name, client in container.exchange_clients.items():
            tg.create_task(_start_client(name, client, started))

    logger.info("runtime startup complete: %d/%d exchanges", len(started), len(container.exchange_clients))
    return started


async def close_clients(container: AppContainer) -> None:
    for name, client in container.exchange_clients.items():
        try:
            await client.close()
        except Exception as e:
            logger.warning("%s close failed: %s", name, e)
    logger.info("runtime stopped")
