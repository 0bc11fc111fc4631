"""In-memory store of the latest ticker and orderbook snapshots.

Entries are keyed by (venue, pair, asset type). A snapshot is only written by
`process`, which adapters call after a successful venue fetch, so a failed
refresh never replaces what is already cached.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, TypeVar

from .assets import AssetType
from .currency import CurrencyPair
from .errors import CacheMissError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class Ticker:
    pair: CurrencyPair
    bid: float = 0.0
    ask: float = 0.0
    last: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: float = 0.0
    last_updated: float = 0.0


@dataclass
class OrderbookItem:
    price: float
    amount: float


@dataclass
class Orderbook:
    """Bid and ask levels in the order the venue returned them."""

    pair: CurrencyPair
    bids: list[OrderbookItem] = field(default_factory=list)
    asks: list[OrderbookItem] = field(default_factory=list)
    last_updated: float = 0.0


SnapshotT = TypeVar("SnapshotT", Ticker, Orderbook)
CacheKey = tuple[str, CurrencyPair, AssetType]


class SnapshotCache(Generic[SnapshotT]):
    """Keyed store for one snapshot kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: dict[CacheKey, SnapshotT] = {}

    @staticmethod
    def _key(venue: str, pair: CurrencyPair, asset_type: AssetType) -> CacheKey:
        return (venue.lower(), pair, asset_type)

    def __len__(self) -> int:
        return len(self._entries)

    def fetch(self, venue: str, pair: CurrencyPair, asset_type: AssetType) -> SnapshotT:
        """Return the cached snapshot without touching the network.

        Raises:
            CacheMissError: If nothing is cached under the key
        """
        try:
            return self._entries[self._key(venue, pair, asset_type)]
        except KeyError:
            raise CacheMissError(f"no {self.kind} for {venue} {pair} {asset_type}") from None

    def process(self, venue: str, pair: CurrencyPair, asset_type: AssetType, snapshot: SnapshotT) -> None:
        """Validate and store a freshly fetched snapshot.

        Raises:
            ConfigurationError: If the venue name or pair is empty
        """
        if not venue:
            raise ConfigurationError(f"{self.kind} exchange name is empty")
        if not pair.base or not pair.quote:
            raise ConfigurationError(f"{self.kind} currency pair is empty")

        snapshot.pair = pair
        if not snapshot.last_updated:
            snapshot.last_updated = time.time()
        self._entries[self._key(venue, pair, asset_type)] = snapshot
        logger.debug("%s %s %s %s stored", venue, self.kind, pair, asset_type)

    async def get_or_refresh(
        self,
        venue: str,
        pair: CurrencyPair,
        asset_type: AssetType,
        refresh: Callable[[], Awaitable[SnapshotT]],
    ) -> SnapshotT:
        """Return the cached snapshot, calling `refresh` only on a miss.

        A present snapshot is returned as is, however old. Errors raised by
        `refresh` propagate and leave the cache as it was.
        """
        key = self._key(venue, pair, asset_type)
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        snapshot = await refresh()
        if key not in self._entries:
            self.process(venue, pair, asset_type, snapshot)
        return snapshot


class MarketDataCache:
    """Ticker and orderbook caches shared by every adapter."""

    def __init__(self) -> None:
        self.tickers: SnapshotCache[Ticker] = SnapshotCache("ticker")
        self.orderbooks: SnapshotCache[Orderbook] = SnapshotCache("orderbook")
