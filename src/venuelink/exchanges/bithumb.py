"""Bithumb exchange adapter."""

from __future__ import annotations

import base64
import logging
import time
from typing import Any
from urllib.parse import urlencode

from ..config import ConfigStore
from ..settings import ExchangeConfig
from .assets import AssetType
from .base import ExchangeBase, payload_float
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
from .currency import CurrencyPair
from .errors import ExchangeError, FunctionNotSupportedError, NotYetImplementedError, TransportError
from .pair_format import CurrencyPairs, PairFormat, PairStore
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

API_URL = "https://api.bithumb.com"
QUOTE_CURRENCY = "KRW"
STATUS_OK = "0000"

AUTH_RATE = 95
UNAUTH_RATE = 95

_SIDE_TYPES = {OrderSide.BUY: "bid", OrderSide.SELL: "ask"}


def bithumb_capabilities() -> ExchangeCapabilities:
    spot = PairStore(
        request_format=PairFormat(uppercase=True),
        config_format=PairFormat(uppercase=True, index=QUOTE_CURRENCY),
    )
    return ExchangeCapabilities(
        name="Bithumb",
        features=Features(
            supports=FeaturesSupported(
                rest=True,
                rest_capabilities=ProtocolFeatures(auto_pair_updates=True, ticker_batching=True),
                trading=TradingSupported(spot=True),
            ),
            enabled=FeaturesEnabled(auto_pair_updates=True),
        ),
        currency_pairs=CurrencyPairs(
            asset_types=[AssetType.SPOT],
            use_global_pair_format=True,
            request_format=PairFormat(uppercase=True),
            config_format=PairFormat(uppercase=True, index=QUOTE_CURRENCY),
            stores={AssetType.SPOT: spot},
        ),
        credential_requirements=CredentialRequirements(requires_key=True, requires_secret=True),
        withdraw_permissions=WithdrawPermission.AUTO_WITHDRAW_CRYPTO | WithdrawPermission.AUTO_WITHDRAW_FIAT,
        endpoints=Endpoints(url=API_URL),
        authenticated_rate_limit=RateLimit(1.0, AUTH_RATE),
        unauthenticated_rate_limit=RateLimit(1.0, UNAUTH_RATE),
        base_currencies=[QUOTE_CURRENCY],
    )


def _levels(levels: Any, side: str) -> list[OrderbookItem]:
    items = []
    for level in levels or []:
        if not isinstance(level, dict):
            raise TransportError(f"malformed {side} level in venue response: {level!r}")
        items.append(
            OrderbookItem(
                price=payload_float(level.get("price"), "price"),
                amount=payload_float(level.get("quantity"), "quantity"),
            )
        )
    return items


class BithumbClient:
    """Bithumb exchange client.

    Pairs are stored as the traded currency followed by KRW (BTCKRW); the
    venue itself is addressed by the traded currency alone.
    """

    def __init__(
        self,
        cache: MarketDataCache,
        *,
        store: ConfigStore | None = None,
        requester: Requester | None = None,
    ):
        self.base = ExchangeBase(bithumb_capabilities(), cache, store=store, requester=requester)
        self.name = self.base.name

    # Setup and lifecycle

    async def get_default_config(self) -> ExchangeConfig:
        return await self.base.get_default_config(self.fetch_tradable_pairs)

    def setup(self, exchange_config: ExchangeConfig) -> None:
        self.base.setup(exchange_config)

    async def start(self) -> None:
        await self.run()

    async def run(self) -> None:
        if self.base.config.verbose:
            enabled = self.base.config.currency_pairs.get_store(AssetType.SPOT).enabled
            logger.info("%s %d currencies enabled: %s", self.name, len(enabled), enabled)
        await self.base.run_pair_sync(self.fetch_tradable_pairs)

    async def close(self) -> None:
        await self.base.close()

    # Transport

    async def _public(self, path: str) -> Any:
        url = f"{self.base.get_api_url()}{path}"
        data = await self.base.requester.send("GET", url)
        return self._check(data, path)

    async def _private(self, path: str, params: dict[str, Any] | None = None) -> Any:
        self.base.require_authenticated(path)
        form = {"endpoint": path, **(params or {})}
        query = urlencode(form)
        nonce = str(int(time.time() * 1000))

        message = f"{path}\x00{query}\x00{nonce}"
        signature = self.base.generate_signature(self.base.secret_bytes(), message, "hmac-sha512")
        headers = {
            "Api-Key": self.base.config.credentials.key,
            "Api-Sign": base64.b64encode(signature.encode()).decode(),
            "Api-Nonce": nonce,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        url = f"{self.base.get_api_url()}{path}"
        data = await self.base.requester.send("POST", url, data=form, headers=headers, authenticated=True)
        return self._check(data, path)

    def _check(self, data: Any, path: str) -> Any:
        if not isinstance(data, dict):
            raise TransportError(f"{self.name} {path}: unexpected response")
        status = data.get("status")
        if status != STATUS_OK:
            raise TransportError(f"{self.name} {path}: {data.get('message', 'request failed')} (status {status})")
        return data

    # Market data

    async def _get_all_tickers(self) -> dict[str, dict[str, Any]]:
        data = await self._public("/public/ticker/ALL")
        tickers = data.get("data")
        if not isinstance(tickers, dict):
            raise TransportError(f"{self.name} /public/ticker/ALL: response carries no tickers")
        return {k: v for k, v in tickers.items() if k != "date" and isinstance(v, dict)}

    async def fetch_tradable_pairs(self, asset_type: AssetType) -> list[str]:
        tickers = await self._get_all_tickers()
        return [f"{currency}{QUOTE_CURRENCY}" for currency in tickers]

    async def update_tradable_pairs(self, force: bool = False) -> None:
        await self.base.sync_tradable_pairs(self.fetch_tradable_pairs, force)

    async def update_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        """Fetch every ticker in one call and cache each enabled pair.

        Nothing is cached unless the whole batch parses.
        """
        tickers = await self._get_all_tickers()
        if pair.base not in tickers:
            raise ExchangeError(f"{self.name} no ticker returned for {pair}")

        pairs = self.base.get_enabled_pairs(asset_type)
        if pair not in pairs:
            pairs.append(pair)

        parsed: list[Ticker] = []
        for p in pairs:
            raw = tickers.get(p.base)
            if raw is None:
                logger.debug("%s no ticker returned for %s", self.name, p)
                continue
            parsed.append(
                Ticker(
                    pair=p,
                    ask=payload_float(raw.get("sell_price"), "sell_price"),
                    bid=payload_float(raw.get("buy_price"), "buy_price"),
                    low=payload_float(raw.get("min_price"), "min_price"),
                    last=payload_float(raw.get("closing_price"), "closing_price"),
                    volume=payload_float(raw.get("volume_1day"), "volume_1day"),
                    high=payload_float(raw.get("max_price"), "max_price"),
                )
            )

        for ticker in parsed:
            self.base.process_ticker(ticker.pair, asset_type, ticker)
        return self.base.fetch_ticker(pair, asset_type)

    async def get_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        return await self.base.get_or_refresh_ticker(
            pair, asset_type, lambda: self.update_ticker(pair, asset_type)
        )

    async def update_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        data = await self._public(f"/public/orderbook/{pair.base}")
        book = data.get("data") or {}

        orderbook = Orderbook(
            pair=pair,
            bids=_levels(book.get("bids"), "bids"),
            asks=_levels(book.get("asks"), "asks"),
        )
        self.base.process_orderbook(pair, asset_type, orderbook)
        return self.base.fetch_orderbook(pair, asset_type)

    async def get_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        return await self.base.get_or_refresh_orderbook(
            pair, asset_type, lambda: self.update_orderbook(pair, asset_type)
        )

    # Account and orders

    async def get_account_info(self) -> AccountInfo:
        """Fetch balances of every currency.

        Raises:
            CredentialError: If authenticated requests are not allowed
            ExchangeError: If a currency has a total but no in-use amount
        """
        data = await self._private("/info/balance", {"currency": "ALL"})
        balances = data.get("data", {})

        currencies = []
        for key, total in balances.items():
            if not key.startswith("total_"):
                continue
            currency = key[len("total_") :]
            hold = balances.get(f"in_use_{currency}")
            if hold is None:
                raise ExchangeError(
                    f"{self.name} get account info error - in use item not found for currency {currency}"
                )
            currencies.append(
                AccountCurrencyInfo(
                    currency.upper(),
                    payload_float(total, key),
                    payload_float(hold, f"in_use_{currency}"),
                )
            )

        return AccountInfo(self.name, currencies)

    async def submit_order(
        self,
        pair: CurrencyPair,
        side: OrderSide,
        order_type: OrderType,
        amount: float,
        price: float = 0.0,
        client_ref: str = "",
    ) -> SubmitOrderResponse:
        params: dict[str, Any] = {
            "order_currency": pair.base,
            "payment_currency": pair.quote or QUOTE_CURRENCY,
            "units": amount,
        }
        if order_type is OrderType.MARKET:
            path = "/trade/market_buy" if side is OrderSide.BUY else "/trade/market_sell"
        else:
            path = "/trade/place"
            params["price"] = price
            params["type"] = _SIDE_TYPES[side]

        data = await self._private(path, params)
        order_id = str(data.get("order_id", ""))
        return SubmitOrderResponse(order_id=order_id, is_order_placed=True)

    async def cancel_order(self, order: OrderCancellation) -> None:
        params: dict[str, Any] = {
            "order_id": order.order_id,
            "order_currency": order.pair.base,
        }
        if order.side is not None:
            params["type"] = _SIDE_TYPES[order.side]
        await self._private("/trade/cancel", params)

    async def modify_order(self, order: OrderModification) -> str:
        """Re-place an open order with a new amount and price.

        Returns:
            Contract ID of the modified order
        """
        params: dict[str, Any] = {
            "order_id": order.order_id,
            "order_currency": order.pair.base,
            "payment_currency": order.pair.quote or QUOTE_CURRENCY,
            "type": _SIDE_TYPES[order.side],
            "units": order.amount,
            "price": int(order.price),
        }
        data = await self._private("/trade/place", params)
        contracts = data.get("data") or []
        if not contracts or "cont_id" not in contracts[0]:
            raise TransportError(f"{self.name} modify order {order.order_id}: no contract returned")
        return str(contracts[0]["cont_id"])

    async def _open_orders(self, pair: CurrencyPair, side: OrderSide | None) -> list[OrderCancellation]:
        params: dict[str, Any] = {"order_currency": pair.base, "count": 100}
        if side is not None:
            params["type"] = _SIDE_TYPES[side]

        data = await self._private("/info/orders", params)
        orders = []
        for item in data.get("data") or []:
            order_side = OrderSide.BUY if item.get("type") == "bid" else OrderSide.SELL
            orders.append(OrderCancellation(str(item.get("order_id")), pair, order_side))
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
