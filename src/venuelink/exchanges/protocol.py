"""Protocol definition for venue adapters."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from ..settings import ExchangeConfig
from .assets import AssetType
from .cache import Orderbook, Ticker
from .currency import CurrencyPair
from .websocket import Websocket


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


class AccountCurrencyInfo:
    """Balance of a single currency. `hold` is the part locked in orders."""

    def __init__(self, currency: str, total_value: float, hold: float = 0.0):
        self.currency = currency
        self.total_value = total_value
        self.hold = hold

    @property
    def free(self) -> float:
        return self.total_value - self.hold

    def __repr__(self) -> str:
        return f"AccountCurrencyInfo({self.currency!r}, {self.total_value}, hold={self.hold})"


class AccountInfo:
    """Represents the balances held on one exchange."""

    def __init__(self, exchange_name: str, currencies: list[AccountCurrencyInfo] | None = None):
        self.exchange_name = exchange_name
        self.currencies = currencies or []

    def get(self, currency: str) -> AccountCurrencyInfo | None:
        currency = currency.upper()
        for info in self.currencies:
            if info.currency == currency:
                return info
        return None


class SubmitOrderResponse:
    def __init__(self, order_id: str = "", is_order_placed: bool = False):
        self.order_id = order_id
        self.is_order_placed = is_order_placed


class OrderCancellation:
    """Identifies an order to cancel."""

    def __init__(
        self,
        order_id: str,
        pair: CurrencyPair,
        side: OrderSide | None = None,
        *,
        account_id: str = "",
        asset_type: AssetType = AssetType.SPOT,
    ):
        self.order_id = order_id
        self.account_id = account_id
        self.pair = pair
        self.side = side
        self.asset_type = asset_type


class OrderModification:
    """New amount and price for an open order."""

    def __init__(
        self,
        order_id: str,
        pair: CurrencyPair,
        side: OrderSide,
        amount: float,
        price: float,
    ):
        self.order_id = order_id
        self.pair = pair
        self.side = side
        self.amount = amount
        self.price = price


class CancelAllOrdersResponse:
    """Failure reasons keyed by order ID. Empty when every cancel succeeded."""

    def __init__(self, order_status: dict[str, str] | None = None):
        self.order_status = order_status or {}


class ExchangeClient(Protocol):
    """Protocol for venue connectivity."""

    name: str

    async def get_default_config(self) -> ExchangeConfig:
        """Return a fresh persisted record filled with this venue's defaults.

        Venues with auto pair updates also fetch their available pairs.
        """
        ...

    def setup(self, exchange_config: ExchangeConfig) -> None:
        """Reconcile the persisted record with the venue's capabilities.

        Raises:
            ConfigurationError: If the record cannot be used
        """
        ...

    async def start(self) -> None:
        """Run the startup sequence (pair synchronisation)."""
        ...

    async def run(self) -> None:
        ...

    async def fetch_tradable_pairs(self, asset_type: AssetType) -> list[str]:
        """Fetch the venue's tradable pairs in config format.

        Args:
            asset_type: Asset class to list

        Returns:
            Pair strings as they are stored in configuration
        """
        ...

    async def update_tradable_pairs(self, force: bool = False) -> None:
        ...

    async def update_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        """Fetch a ticker from the venue and store it in the cache."""
        ...

    async def get_ticker(self, pair: CurrencyPair, asset_type: AssetType) -> Ticker:
        """Return the cached ticker, fetching it only when none is cached."""
        ...

    async def update_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        ...

    async def get_orderbook(self, pair: CurrencyPair, asset_type: AssetType) -> Orderbook:
        ...

    async def get_account_info(self) -> AccountInfo:
        """Fetch balances.

        Raises:
            CredentialError: If authenticated requests are not allowed
        """
        ...

    async def submit_order(
        self,
        pair: CurrencyPair,
        side: OrderSide,
        order_type: OrderType,
        amount: float,
        price: float = 0.0,
        client_ref: str = "",
    ) -> SubmitOrderResponse:
        """Place an order.

        Args:
            pair: Instrument to trade
            side: buy or sell
            order_type: market or limit
            amount: Order quantity
            price: Limit price, ignored for market orders
            client_ref: Client reference sent where the venue accepts one

        Returns:
            SubmitOrderResponse with the venue order ID
        """
        ...

    async def modify_order(self, order: OrderModification) -> str:
        """Change amount and price of an open order.

        Returns:
            ID the venue assigned to the modified order
        """
        ...

    async def cancel_order(self, order: OrderCancellation) -> None:
        ...

    async def cancel_all_orders(self, order: OrderCancellation | None = None) -> CancelAllOrdersResponse:
        """Cancel every open order on every enabled pair.

        Returns:
            Response whose map holds only the orders that failed to cancel
        """
        ...

    def get_enabled_pairs(self, asset_type: AssetType) -> list[CurrencyPair]:
        ...

    def get_available_pairs(self, asset_type: AssetType) -> list[CurrencyPair]:
        ...

    def is_asset_type_supported(self, asset_type: AssetType) -> bool:
        ...

    def supports_withdraw_permissions(self, permissions: int) -> bool:
        ...

    def format_withdraw_permissions(self) -> str:
        ...

    def get_withdraw_capabilities(self) -> int:
        ...

    def get_websocket(self) -> Websocket:
        ...

    async def get_funding_history(self) -> Any:
        ...

    async def get_fee_by_type(self, fee_request: Any) -> float:
        ...

    async def get_exchange_history(self, pair: CurrencyPair, asset_type: AssetType) -> Any:
        ...

    async def get_order_info(self, order_id: str) -> Any:
        ...

    async def get_deposit_address(self, currency: str, account_id: str = "") -> str:
        ...

    async def withdraw_cryptocurrency_funds(self, request: Any) -> str:
        ...

    async def withdraw_fiat_funds(self, request: Any) -> str:
        ...

    async def withdraw_fiat_funds_to_international_bank(self, request: Any) -> str:
        ...

    async def close(self) -> None:
        """Close connections (HTTP session, etc.)."""
        ...
