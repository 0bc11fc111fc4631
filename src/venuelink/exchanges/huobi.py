"""Huobi exchange adapter."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode, urlsplit

from ..config import ConfigStore
from ..settings import ExchangeConfig
from .assets import AssetType
from .base import AsyncOnce, ExchangeBase, payload_float
from .cache import MarketDataCache, Orderbook, OrderbookItem, Ticker
from .capabilities import (
    Endpoints,
    ExchangeCapabilities,
    Features,
    FeaturesEnabled,
    FeaturesSupported,
    ProtocolFeatures,
    TradingSupported,
)
from .credentials import CredentialRequirements
from .currency import CurrencyPair, join_strings
from .errors import ExchangeError, FunctionNotSupportedError, NotYetImplementedError, TransportError
from .pair_format import CurrencyPairs, PairFormat, PairStore
from .pairs import PairRole
from .protocol import (
    AccountCurrencyInfo,
    AccountInfo,
    CancelAllOrdersResponse,
    OrderCancellation,
    OrderModification,
    OrderSide,
    OrderType,
    SubmitOrderResponse,
)
from .requester import RateLimit, Requester
from .websocket import Websocket
from .withdraw import WithdrawPermission

logger = logging.getLogger(__name__)

API_URL = "https://api.huobi.pro"
WEBSOCKET_URL = "wss://api.huobi.pro/ws"

AUTH_RATE = 100
UNAUTH_RATE = 100

LEGACY_BASE_CURRENCY = "CNY"
DEFAULT_BASE_CURRENCY = "USD"
RESET_PAIRS = ["btc-usdt"]


def huobi_capabilities() -> ExchangeCapabilities:
    return ExchangeCapabilities(
        name="Huobi",
        features=Features(
            supports=FeaturesSupported(
                rest=True,
                websocket=True,
                rest_capabilities=ProtocolFeatures(auto_pair_updates=True, ticker_batching=False),
                trading=TradingSupported(spot=True),
            ),
            enabled=FeaturesEnabled(auto_pair_updates=True),
        ),
        currency_pairs=CurrencyPairs(
            asset_types=[AssetType.SPOT],
            use_global_pair_format=True,
            request_format=PairFormat(),
            config_format=PairFormat(delimiter="-", uppercase=True),
            stores={
                AssetType.SPOT: PairStore(
                    request_format=PairFormat(),
                    config_format=PairFormat(delimiter="-", uppercase=True),
                )
            },
        ),
        credential_requirements=CredentialRequirements(requires_key=True, requires_secret=True),
        withdraw_permissions=WithdrawPermission.AUTO_WITHDRAW_CRYPTO_WITH_SETUP,
        endpoints=Endpoints(url=API_URL, websocket_url=WEBSOCKET_URL),
        authenticated_rate_limit=RateLimit(10.0, AUTH_RATE),
        unauthenticated_rate_limit=RateLimit(10.0, UNAUTH_RATE),
        base_currencies=[DEFAULT_BASE_CURRENCY],
    )


def _first(levels: Any, field: str) -> float:
    if levels:
        return payload_float(levels[0], field)
    return 0.0


def _levels(levels: Any, side: str) -> list[OrderbookItem]:
    try:
        return [
            OrderbookItem(price=payload_float(p, side), amount=payload_float(a, side))
            for p, a in levels or []
        ]
    except (TypeError, ValueError) as exc:
        raise TransportError(f"malformed {side} levels in venue response") from exc


class HuobiClient:
    """Huobi exchange client."""

    def __init__(
        self,
        cache: MarketDataCache,
        *,
        store: ConfigStore | None = None,
        requester: Requester | None = None,
    ):
        self.base = ExchangeBase(huobi_capabilities(), cache, store=store, requester=requester)
        self.name = self.base.name
        self._account_id: AsyncOnce[str] = AsyncOnce()

    # Setup and lifecycle

    async def get_default_config(self) -> ExchangeConfig:
        return await self.base.get_default_config(self.fetch_tradable_pairs)

    def setup(self, exchange_config: ExchangeConfig) -> None:
        self.base.setup(exchange_config)

    async def start(self) -> None:
        await self.run()

    async def run(self) -> None:
        """Migrate legacy CNY settings, then synchronise pairs."""
        config = self.base.config
        spot = config.currency_pairs.get_store(AssetType.SPOT)
        if config.verbose:
            logger.info(
                "%s websocket %s (url: %s)",
                self.name,
                "enabled" if self.base.is_websocket_enabled() else "disabled",
                self.base.get_websocket_url(),
            )
            logger.info("%s %d currencies enabled: %s", self.name, len(spot.enabled), spot.enabled)

        force = any(LEGACY_BASE_CURRENCY in p for p in spot.enabled + spot.available)

        if LEGACY_BASE_CURRENCY in config.base_currencies:
            config.base_currencies = [DEFAULT_BASE_CURRENCY]
            if self.base.exchange_config is not None:
                self.base.exchange_config.base_currencies = join_strings(config.base_currencies)
                self.base.save_config()

        if force:
            logger.warning(
                "Available and enabled pairs for %s reset due to config upgrade, "
                "please enable the ones you would like again",
                self.name,
            )
            self.base.update_pairs(RESET_PAIRS, AssetType.SPOT, PairRole.ENABLED, force=True)

        await self.base.run_pair_sync(self.fetch_tradable_pairs, force)

    async def close(self) -> None:
        await self.base.close()

    # Transport

    def _check(self, data: Any, path: str) -> Any:
        if not isinstance(data, dict):
            raise TransportError(f"{self.name} {path}: unexpected response")
        if data.get("status") == "error":
            raise TransportError(f"{self.name} {path}: {data.get('err-msg', 'request failed')}")
        return data

    async def _public(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base.get_api_url()}{path}"
        data = await self.base.requester.send("GET", url, params=params)
        return self._check(data, path)

    def _get_signature(self, method: str, path: str, params: dict[str, Any]) -> str:
        """Generate Huobi signature."""
        host = urlsplit(self.base.get_api_url()).netloc
        payload = "\n".join([method, host, path, urlencode(sorted(params.items()))])
        return base64.b64encode(
            hmac.new(self.base.secret_bytes(), payload.encode(), hashlib.sha256).digest()
        ).decode()

    async def _private(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        self.base.require_authenticated(path)
        signed: dict[str, Any] = {
            "AccessKeyId": self.base.config.credentials.key,
            "SignatureMethod": "HmacSHA256",
            "SignatureVersion": "2",
            "Timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S"),
        }
        if params:
            signed.update(params)
        signed["Signature"] = self._get_signature(method, path, signed)

        url = f"{self.base.get_api_url()}{path}"
        data = await self.base.requester.send(method, url, params=signed, body=body, authenticated=True)
        return self._check(data, path)

    # Market data

    async def fetch_tradable_pairs(self, asset_type: AssetType) -> list[str]:
        data = await self._public("/v1/common/symbols")
        try:
            return [f"{s['base-currency']}-{s['quote-currency']}" for s in data.get("data") or []]
        except (KeyError, TypeError) as exc:
            raise TransportError(f"{self.name} /v1/common/symbols: malformed symbol entry {exc}") from exc

    async def update_tradable_pairs(self, force: bool = False) -> None:
        await self.base.sync_tradable_pairs(self.fetch_tradable_pairs, force)

    def _tick(self, data: dict[str, Any], path: str) -> dict[str, Any]:
        tick = data.get("tick")
        if not isinstance(tick, dict):
            raise TransportError(f"{self.name} {path}: response carries no tick")
        return tick

    async def update_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        symbol = self.base.format_exchange_currency(pair, asset_type)
        data = await self._public("/market/detail/merged", {"symbol": symbol})
        tick = self._tick(data, "/market/detail/merged")

        ticker = Ticker(
            pair=pair,
            low=payload_float(tick.get("low"), "low"),
            last=payload_float(tick.get("close"), "close"),
            volume=payload_float(tick.get("vol"), "vol"),
            high=payload_float(tick.get("high"), "high"),
            ask=_first(tick.get("ask"), "ask"),
            bid=_first(tick.get("bid"), "bid"),
        )
        self.base.process_ticker(pair, asset_type, ticker)
        return self.base.fetch_ticker(pair, asset_type)

    async def get_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        return await self.base.get_or_refresh_ticker(
            pair, asset_type, lambda: self.update_ticker(pair, asset_type)
        )

    async def update_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        symbol = self.base.format_exchange_currency(pair, asset_type)
        data = await self._public("/market/depth", {"symbol": symbol, "type": "step1"})
        tick = self._tick(data, "/market/depth")

        orderbook = Orderbook(
            pair=pair,
            bids=_levels(tick.get("bids"), "bids"),
            asks=_levels(tick.get("asks"), "asks"),
        )
        self.base.process_orderbook(pair, asset_type, orderbook)
        return self.base.fetch_orderbook(pair, asset_type)

    async def get_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        return await self.base.get_or_refresh_orderbook(
            pair, asset_type, lambda: self.update_orderbook(pair, asset_type)
        )

    # Account and orders

    async def _fetch_account_id(self) -> str:
        data = await self._private("GET", "/v1/account/accounts")
        accounts = data.get("data") or []
        if not accounts:
            raise ExchangeError(f"{self.name} no account ID found")

        spot = next((a for a in accounts if a.get("type") == "spot"), accounts[0])
        logger.debug("%s using account %s", self.name, spot["id"])
        return str(spot["id"])

    async def get_account_id(self) -> str:
        """Return the spot account ID, fetched once and then reused."""
        return await self._account_id.get(self._fetch_account_id)

    async def get_account_info(self) -> AccountInfo:
        """Fetch balances, combining trade and frozen amounts per currency.

        Raises:
            CredentialError: If authenticated requests are not allowed
        """
        account_id = await self.get_account_id()
        data = await self._private("GET", f"/v1/account/accounts/{account_id}/balance")

        currencies: dict[str, AccountCurrencyInfo] = {}
        for item in data.get("data", {}).get("list", []):
            balance_type = item.get("type")
            if balance_type not in ("trade", "frozen"):
                continue
            amount = payload_float(item.get("balance"), "balance")
            if amount <= 0:
                continue

            curr = item.get("currency", "").upper()
            info = currencies.setdefault(curr, AccountCurrencyInfo(curr, 0.0, 0.0))
            info.total_value += amount
            if balance_type == "frozen":
                info.hold += amount

        return AccountInfo(self.name, list(currencies.values()))

    async def submit_order(
        self,
        pair: CurrencyPair,
        side: OrderSide,
        order_type: OrderType,
        amount: float,
        price: float = 0.0,
        client_ref: str = "",
    ) -> SubmitOrderResponse:
        account_id = await self.get_account_id()
        body: dict[str, Any] = {
            "account-id": account_id,
            "symbol": self.base.format_exchange_currency(pair, AssetType.SPOT),
            "type": f"{side.value}-{order_type.value}",
            "amount": str(amount),
            "source": "api",
        }
        if order_type is OrderType.LIMIT:
            body["price"] = str(price)
        if client_ref:
            body["client-order-id"] = client_ref

        data = await self._private("POST", "/v1/order/orders/place", body=body)
        order_id = data.get("data")
        return SubmitOrderResponse(order_id=str(order_id) if order_id else "", is_order_placed=True)

    async def cancel_order(self, order: OrderCancellation) -> None:
        await self._private("POST", f"/v1/order/orders/{order.order_id}/submitcancel")

    async def modify_order(self, order: OrderModification) -> str:
        raise FunctionNotSupportedError()

    async def _open_orders(self, pair: CurrencyPair, side: OrderSide | None) -> list[OrderCancellation]:
        account_id = await self.get_account_id()
        params: dict[str, Any] = {
            "account-id": account_id,
            "symbol": self.base.format_exchange_currency(pair, AssetType.SPOT),
        }
        if side is not None:
            params["side"] = side.value

        data = await self._private("GET", "/v1/order/openOrders", params=params)
        orders = []
        for item in data.get("data") or []:
            order_side = OrderSide.BUY if str(item.get("type", "")).startswith("buy") else OrderSide.SELL
            orders.append(OrderCancellation(str(item.get("id")), pair, order_side, account_id=account_id))
        return orders

    async def cancel_all_orders(self, order: OrderCancellation | None = None) -> CancelAllOrdersResponse:
        side = order.side if order is not None else None
        return await self.base.cancel_all_orders(
            lambda pair: self._open_orders(pair, side),
            self.cancel_order,
        )

    # Shared queries

    def get_enabled_pairs(self, asset_type: AssetType) -> list[CurrencyPair]:
        return self.base.get_enabled_pairs(asset_type)

    def get_available_pairs(self, asset_type: AssetType) -> list[CurrencyPair]:
        return self.base.get_available_pairs(asset_type)

    def is_asset_type_supported(self, asset_type: AssetType) -> bool:
        return self.base.is_asset_type_supported(asset_type)

    def supports_withdraw_permissions(self, permissions: int) -> bool:
        return self.base.supports_withdraw_permissions(permissions)

    def format_withdraw_permissions(self) -> str:
        return self.base.format_withdraw_permissions()

    def get_withdraw_capabilities(self) -> int:
        return self.base.get_withdraw_capabilities()

    def get_websocket(self) -> Websocket:
        return self.base.websocket

    # Not offered

    async def get_funding_history(self) -> Any:
        raise FunctionNotSupportedError()

    async def get_fee_by_type(self, fee_request: Any) -> float:
        raise NotYetImplementedError()

    async def get_exchange_history(self, pair: CurrencyPair, asset_type: AssetType) -> Any:
        raise NotYetImplementedError()

    async def get_order_info(self, order_id: str) -> Any:
        raise NotYetImplementedError()

    async def get_deposit_address(self, currency: str, account_id: str = "") -> str:
        raise NotYetImplementedError()

    async def withdraw_cryptocurrency_funds(self, request: Any) -> str:
        raise NotYetImplementedError()

    async def withdraw_fiat_funds(self, request: Any) -> str:
        raise NotYetImplementedError()

    async def withdraw_fiat_funds_to_international_bank(self, request: Any) -> str:
        raise NotYetImplementedError()
