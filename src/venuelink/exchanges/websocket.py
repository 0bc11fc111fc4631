"""Streaming transport settings.

Only the state the exchange base manages is modelled here: whether streaming
is enabled, where it connects and through which proxy.
"""

from __future__ import annotations

import logging

from .requester import validate_proxy_address

logger = logging.getLogger(__name__)


class Websocket:
    def __init__(self, exchange_name: str, url: str = "") -> None:
        self.exchange_name = exchange_name
        self.url = url
        self.proxy_address: str | None = None
        self._enabled = False

    def set_enabled(self, enabled: bool) -> None:
        if enabled != self._enabled:
            logger.debug("%s websocket %s", self.exchange_name, "enabled" if enabled else "disabled")
        self._enabled = enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def set_proxy_address(self, address: str) -> None:
        self.proxy_address = validate_proxy_address(address)
