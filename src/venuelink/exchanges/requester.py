"""Rate limited HTTP transport used by the venue adapters."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import aiohttp

from .errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 15.0
DEFAULT_USER_AGENT = "venuelink/1.0"


@dataclass
class RateLimit:
    """At most `rate` requests per `duration` seconds. A rate of 0 is unlimited."""

    duration: float = 1.0
    rate: int = 0


class RateLimiter:
    """Sliding window limiter for one request class."""

    def __init__(self, limit: RateLimit) -> None:
        self.limit = limit
        self._sent: deque[float] = deque()
        self._lock = asyncio.Lock()

    def set_limit(self, limit: RateLimit) -> None:
        self.limit = limit
        self._sent.clear()

    async def acquire(self) -> None:
        if self.limit.rate <= 0:
            return
        async with self._lock:
            now = time.monotonic()
            while self._sent and now - self._sent[0] >= self.limit.duration:
                self._sent.popleft()
            if len(self._sent) >= self.limit.rate:
                wait = self.limit.duration - (now - self._sent[0])
                if wait > 0:
                    await asyncio.sleep(wait)
                self._sent.popleft()
            self._sent.append(time.monotonic())


def validate_proxy_address(address: str) -> str:
    """Return `address` if it is an absolute proxy URL.

    Raises:
        ConfigurationError: If the address cannot be used as a proxy
    """
    parts = urlsplit(address)
    if parts.scheme not in {"http", "https", "socks5"} or not parts.netloc:
        raise ConfigurationError(f"invalid proxy address: {address}")
    return address


class Requester:
    """HTTP client with per-class rate limiting, timeout, user agent and proxy."""

    def __init__(
        self,
        name: str,
        authenticated_limit: RateLimit | None = None,
        unauthenticated_limit: RateLimit | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.name = name
        self.authenticated = RateLimiter(authenticated_limit or RateLimit())
        self.unauthenticated = RateLimiter(unauthenticated_limit or RateLimit())
        self.timeout = timeout
        self.user_agent = user_agent
        self.proxy: str | None = None
        self.session: aiohttp.ClientSession | None = None

    def get_rate_limit(self, authenticated: bool) -> RateLimit:
        limiter = self.authenticated if authenticated else self.unauthenticated
        return limiter.limit

    def set_rate_limit(self, authenticated: bool, duration: float, rate: int) -> None:
        limiter = self.authenticated if authenticated else self.unauthenticated
        limiter.set_limit(RateLimit(duration, rate))

    def set_proxy(self, address: str) -> None:
        self.proxy = validate_proxy_address(address)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            connector = aiohttp.TCPConnector()
            self.session = aiohttp.ClientSession(connector=connector)
        return self.session

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        `body` is sent as JSON, `data` as a form.

        Raises:
            TransportError: On connection failure, timeout, a non-200 status
                or an undecodable body
        """
        limiter = self.authenticated if authenticated else self.unauthenticated
        await limiter.acquire()

        session = await self._ensure_session()
        request_headers = {"User-Agent": self.user_agent}
        if headers:
            request_headers.update(headers)

        logger.debug("%s %s %s params=%s", self.name, method, url, params)
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=body,
                data=data,
                headers=request_headers,
                proxy=self.proxy,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                if resp.status != 200:
                    raise TransportError(
                        f"{self.name} {method} {url} failed with status {resp.status}",
                        status=resp.status,
                    )
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as exc:
            raise TransportError(f"{self.name} {method} {url} failed: {exc}") from exc

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
