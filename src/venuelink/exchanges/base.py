"""Shared exchange state composed by every venue adapter."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from ..config import ConfigStore
from ..settings import APIConfig, EndpointsConfig, ExchangeConfig
from .assets import AssetType
from .cache import MarketDataCache, Orderbook, Ticker
from .capabilities import EffectiveConfig, ExchangeCapabilities
from .credentials import decode_base64, validate_credentials
from .currency import CurrencyPair, join_strings
from .errors import ConfigurationError, CredentialError, ExchangeError, TransportError
from .pair_format import PairFormat, PairFormatResolver
from .pairs import PairRole, PairSynchronizer, PairUpdate
from .protocol import CancelAllOrdersResponse, OrderCancellation
from .reconciler import ConfigReconciler, apply_api_keys, supports_auto_pair_updates
from .requester import DEFAULT_HTTP_TIMEOUT, Requester
from .websocket import Websocket
from .withdraw import format_withdraw_permissions, supports_withdraw_permissions

logger = logging.getLogger(__name__)

T = TypeVar("T")


def payload_float(value: Any, field: str) -> float:
    """Read a number from a venue payload. Missing or empty values read as 0.

    Raises:
        TransportError: If the value is not a number
    """
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise TransportError(f"malformed {field} value in venue response: {value!r}") from exc


class AsyncOnce(Generic[T]):
    """Holds the first successful result of an async computation.

    Concurrent callers wait on the same lock, so the computation runs at most
    once until it succeeds.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._value: T | None = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    async def get(self, compute: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            if not self._is_set:
                self._value = await compute()
                self._is_set = True
            return self._value  # type: ignore[return-value]

    def reset(self) -> None:
        self._value = None
        self._is_set = False


class ExchangeBase:
    """Configuration, credentials, pairs and cache access for one venue.

    Adapters hold an instance and delegate to it; the venue specific wire
    mapping stays in the adapter.
    """

    def __init__(
        self,
        capabilities: ExchangeCapabilities,
        cache: MarketDataCache,
        *,
        store: ConfigStore | None = None,
        requester: Requester | None = None,
    ):
        """Initialize exchange state.

        Args:
            capabilities: What the venue supports, declared by the adapter
            cache: Market data cache shared with the other adapters
            store: Config store receiving updated records, if any
            requester: HTTP transport (built from capability rate limits if
                omitted)
        """
        self.name = capabilities.name
        self.capabilities = capabilities
        self.cache = cache
        self.store = store
        self.requester = requester or Requester(
            capabilities.name,
            capabilities.authenticated_rate_limit,
            capabilities.unauthenticated_rate_limit,
        )
        self.websocket = Websocket(capabilities.name, capabilities.endpoints.websocket_url)
        self.config = EffectiveConfig.from_capabilities(capabilities)
        self.resolver = PairFormatResolver(self.config.currency_pairs)
        self.exchange_config: ExchangeConfig | None = None
        self._pairs: PairSynchronizer | None = None

    # Setup

    async def get_default_config(
        self,
        fetch: Callable[[AssetType], Awaitable[list[str]]] | None = None,
    ) -> ExchangeConfig:
        """Return a new persisted record holding this venue's defaults.

        When the venue supports auto pair updates and `fetch` is given, the
        available pairs of every asset type are fetched into the record. The
        live configuration of this instance is left alone.
        """
        endpoints = self.capabilities.endpoints
        exchange_config = ExchangeConfig(
            name=self.name,
            http_timeout=DEFAULT_HTTP_TIMEOUT,
            base_currencies=join_strings(self.capabilities.base_currencies),
            api=APIConfig(
                endpoints=EndpointsConfig(
                    url=endpoints.url,
                    url_secondary=endpoints.url_secondary,
                    websocket_url=endpoints.websocket_url,
                ),
            ),
        )
        effective = ConfigReconciler(self.capabilities).setup_defaults(exchange_config)

        if fetch is not None and supports_auto_pair_updates(self.capabilities):
            synchronizer = PairSynchronizer(self.name, effective.currency_pairs, exchange_config)
            for asset_type in effective.currency_pairs.asset_types:
                products = await fetch(asset_type)
                synchronizer.update_pairs(products, asset_type, PairRole.AVAILABLE, force=True)
        return exchange_config

    def setup(self, exchange_config: ExchangeConfig) -> None:
        """Reconcile `exchange_config` and adopt the result.

        A disabled record leaves the adapter disabled without touching it.

        Raises:
            ConfigurationError: If the record cannot be used
        """
        if not exchange_config.enabled:
            logger.info("%s disabled in configuration", self.name)
            self.config.enabled = False
            return

        reconciler = ConfigReconciler(self.capabilities, self.requester, self.websocket)
        self.config = reconciler.setup_defaults(exchange_config)
        self.exchange_config = exchange_config
        self.resolver = PairFormatResolver(self.config.currency_pairs)
        self._pairs = PairSynchronizer(
            self.name,
            self.config.currency_pairs,
            exchange_config,
            persist=self._persist,
        )
        if self.config.verbose:
            logger.info(
                "%s set up: assets=%s auth=%s websocket=%s",
                self.name,
                [str(a) for a in self.config.currency_pairs.asset_types],
                self.config.authenticated_support,
                self.config.websocket_enabled,
            )

    def _persist(self, exchange_config: ExchangeConfig) -> None:
        if self.store is not None:
            self.store.save_exchange_config(exchange_config)

    def save_config(self) -> None:
        if self.exchange_config is not None:
            self._persist(self.exchange_config)

    def is_enabled(self) -> bool:
        return self.config.enabled

    # Endpoints

    def get_api_url(self) -> str:
        return self.config.endpoints.url or self.config.endpoints.url_secondary

    def get_secondary_api_url(self) -> str:
        return self.config.endpoints.url_secondary or self.config.endpoints.url

    def get_websocket_url(self) -> str:
        return self.config.endpoints.websocket_url

    # Credentials

    def set_api_keys(self, key: str, secret: str, client_id: str = "") -> None:
        apply_api_keys(self.config, key, secret, client_id)

    def validate_api_credentials(self) -> bool:
        valid = validate_credentials(self.config.credential_requirements, self.config.credentials)
        if not valid:
            logger.warning("%s API credentials are missing or invalid", self.name)
        return valid

    def allow_authenticated_request(self) -> bool:
        if self.config.loaded_by_config:
            return self.config.authenticated_support
        return self.validate_api_credentials()

    def require_authenticated(self, operation: str) -> None:
        """Raises CredentialError unless authenticated requests are allowed."""
        if not self.allow_authenticated_request():
            raise CredentialError(f"{self.name} {operation}: authenticated requests are not allowed")

    def secret_bytes(self) -> bytes:
        """The API secret as used for signing, base64 decoded if required."""
        if self.config.credential_requirements.requires_base64_decode_secret:
            return decode_base64(self.config.credentials.secret)
        return self.config.credentials.secret.encode()

    @staticmethod
    def generate_signature(secret: bytes, message: str, method: str = "hmac-sha256") -> str:
        """Generate an HMAC signature.

        Args:
            secret: Secret key
            message: Message to sign
            method: hmac-sha256 or hmac-sha512

        Returns:
            Hex-encoded signature
        """
        if method == "hmac-sha256":
            return hmac.new(secret, message.encode(), hashlib.sha256).hexdigest()
        elif method == "hmac-sha512":
            return hmac.new(secret, message.encode(), hashlib.sha512).hexdigest()
        else:
            raise ValueError(f"Unsupported signature method: {method}")

    # Feature queries

    def supports_rest(self) -> bool:
        return self.config.features.supports.rest

    def supports_websocket(self) -> bool:
        return self.config.features.supports.websocket

    def is_websocket_enabled(self) -> bool:
        return self.config.websocket_enabled

    def supports_auto_pair_updates(self) -> bool:
        return supports_auto_pair_updates(self.capabilities)

    def supports_rest_ticker_batch_updates(self) -> bool:
        return self.config.features.supports.rest_capabilities.ticker_batching

    def is_asset_type_supported(self, asset_type: AssetType) -> bool:
        return asset_type in self.config.currency_pairs.asset_types

    def get_asset_types(self) -> list[AssetType]:
        return list(self.config.currency_pairs.asset_types)

    def get_withdraw_capabilities(self) -> int:
        return self.capabilities.withdraw_permissions

    def supports_withdraw_permissions(self, permissions: int) -> bool:
        return supports_withdraw_permissions(self.capabilities.withdraw_permissions, permissions)

    def format_withdraw_permissions(self) -> str:
        return format_withdraw_permissions(self.capabilities.withdraw_permissions)

    # Pairs

    @property
    def pairs(self) -> PairSynchronizer:
        if self._pairs is None:
            raise ConfigurationError(f"{self.name} has not been set up")
        return self._pairs

    def get_pair_format(self, asset_type: AssetType, request_format: bool) -> PairFormat:
        return self.resolver.resolve(asset_type, request_format)

    def format_exchange_currency(self, pair: CurrencyPair, asset_type: AssetType) -> str:
        """Render `pair` the way the venue expects it in requests."""
        return self.resolver.format_pair(pair, asset_type, True)

    def get_enabled_pairs(self, asset_type: AssetType) -> list[CurrencyPair]:
        store = self.config.currency_pairs.get_store(asset_type)
        return self.resolver.parse_pairs(store.enabled, asset_type)

    def get_available_pairs(self, asset_type: AssetType) -> list[CurrencyPair]:
        store = self.config.currency_pairs.get_store(asset_type)
        return self.resolver.parse_pairs(store.available, asset_type)

    def update_pairs(
        self,
        products: list[str],
        asset_type: AssetType,
        role: PairRole,
        force: bool = False,
    ) -> PairUpdate:
        return self.pairs.update_pairs(products, asset_type, role, force)

    def set_pairs(self, pairs: list[CurrencyPair], asset_type: AssetType, role: PairRole) -> None:
        self.pairs.set_pairs(pairs, asset_type, role)

    async def sync_tradable_pairs(
        self,
        fetch: Callable[[AssetType], Awaitable[list[str]]],
        force: bool = False,
    ) -> None:
        """Fetch the venue pair list of every asset type and store it as available."""
        for asset_type in self.get_asset_types():
            products = await fetch(asset_type)
            self.update_pairs(products, asset_type, PairRole.AVAILABLE, force)

    async def run_pair_sync(
        self,
        fetch: Callable[[AssetType], Awaitable[list[str]]],
        force: bool = False,
    ) -> None:
        """Startup pair synchronisation, skipped unless auto updates are enabled."""
        if not force and not self.config.features.enabled.auto_pair_updates:
            logger.debug("%s auto pair updates disabled, skipping pair sync", self.name)
            return
        await self.sync_tradable_pairs(fetch, force)

    # Market data

    def process_ticker(self, pair: CurrencyPair, asset_type: AssetType, ticker: Ticker) -> None:
        self.cache.tickers.process(self.name, pair, asset_type, ticker)

    def fetch_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        return self.cache.tickers.fetch(self.name, pair, asset_type)

    async def get_or_refresh_ticker(
        self,
        pair: CurrencyPair,
        asset_type: AssetType,
        refresh: Callable[[], Awaitable[Ticker]],
    ) -> Ticker:
        return await self.cache.tickers.get_or_refresh(self.name, pair, asset_type, refresh)

    def process_orderbook(self, pair: CurrencyPair, asset_type: AssetType, orderbook: Orderbook) -> None:
        self.cache.orderbooks.process(self.name, pair, asset_type, orderbook)

    def fetch_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        return self.cache.orderbooks.fetch(self.name, pair, asset_type)

    async def get_or_refresh_orderbook(
        self,
        pair: CurrencyPair,
        asset_type: AssetType,
        refresh: Callable[[], Awaitable[Orderbook]],
    ) -> Orderbook:
        return await self.cache.orderbooks.get_or_refresh(self.name, pair, asset_type, refresh)

    # Orders

    async def cancel_all_orders(
        self,
        list_open_orders: Callable[[CurrencyPair], Awaitable[list[OrderCancellation]]],
        cancel: Callable[[OrderCancellation], Awaitable[None]],
        asset_type: AssetType = AssetType.SPOT,
    ) -> CancelAllOrdersResponse:
        """Cancel every open order on every enabled pair.

        Listing failures propagate. Cancellation failures are collected in
        the response keyed by order ID and do not stop the remaining
        cancellations.
        """
        orders: list[OrderCancellation] = []
        for pair in self.get_enabled_pairs(asset_type):
            orders.extend(await list_open_orders(pair))

        response = CancelAllOrdersResponse()
        for order in orders:
            try:
                await cancel(order)
            except ExchangeError as e:
                logger.warning("%s failed to cancel order %s: %s", self.name, order.order_id, e)
                response.order_status[order.order_id] = str(e)
        return response

    async def close(self) -> None:
        """Close connections."""
        await self.requester.close()
