from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr

DEFAULT_API_KEY = "Key"
DEFAULT_API_SECRET = "Secret"
DEFAULT_API_CLIENT_ID = "ClientID"
DEFAULT_PEM_KEY_MARKER = "JUSTADUMMY"
APIURL_NON_DEFAULT_MESSAGE = "NON_DEFAULT_HTTP_LINK_TO_EXCHANGE_API"
WEBSOCKET_URL_NON_DEFAULT_MESSAGE = "NON_DEFAULT_HTTP_LINK_TO_WEBSOCKET_EXCHANGE_API"


class PairFormatConfig(BaseModel):
    delimiter: str = ""
    uppercase: bool = False
    separator: str = ""
    index: str = ""

    model_config = {"extra": "forbid"}


class CurrencyPairConfig(BaseModel):
    request_format: PairFormatConfig | None = None
    config_format: PairFormatConfig | None = None
    available: str = ""
    enabled: str = ""

    model_config = {"extra": "forbid"}


class CurrencyPairsConfig(BaseModel):
    asset_types: str = ""
    request_format: PairFormatConfig | None = None
    config_format: PairFormatConfig | None = None
    spot: CurrencyPairConfig | None = None
    futures: CurrencyPairConfig | None = None
    last_updated: int = 0

    model_config = {"extra": "forbid"}


class CredentialsConfig(BaseModel):
    key: SecretStr = SecretStr(DEFAULT_API_KEY)
    secret: SecretStr = SecretStr(DEFAULT_API_SECRET)
    client_id: SecretStr = SecretStr(DEFAULT_API_CLIENT_ID)
    pem_key: SecretStr = SecretStr("")

    model_config = {"extra": "forbid"}


class CredentialsValidatorConfig(BaseModel):
    requires_key: bool = False
    requires_secret: bool = False
    requires_client_id: bool = False
    requires_pem: bool = False
    requires_base64_decode_secret: bool = False

    model_config = {"extra": "forbid"}


class EndpointsConfig(BaseModel):
    url: str = APIURL_NON_DEFAULT_MESSAGE
    url_secondary: str = APIURL_NON_DEFAULT_MESSAGE
    websocket_url: str = WEBSOCKET_URL_NON_DEFAULT_MESSAGE

    model_config = {"extra": "forbid"}


class APIConfig(BaseModel):
    authenticated_support: bool = False
    pem_key_support: bool = False
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    credentials_validator: CredentialsValidatorConfig = Field(default_factory=CredentialsValidatorConfig)
    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)

    model_config = {"extra": "forbid"}


class RateLimitConfig(BaseModel):
    duration: float = Field(default=1.0, gt=0)
    rate: int = Field(default=0, ge=0)

    model_config = {"extra": "forbid"}


class HTTPRateLimitConfig(BaseModel):
    authenticated: RateLimitConfig = Field(default_factory=RateLimitConfig)
    unauthenticated: RateLimitConfig = Field(default_factory=RateLimitConfig)

    model_config = {"extra": "forbid"}


class ProtocolFeaturesConfig(BaseModel):
    auto_pair_updates: bool = False
    ticker_batching: bool = False

    model_config = {"extra": "forbid"}


class TradingConfig(BaseModel):
    spot: bool = False
    futures: bool = False
    margin: bool = False
    perpetual_swaps: bool = False
    index: bool = False

    model_config = {"extra": "forbid"}


class FeaturesSupportedConfig(BaseModel):
    rest: bool = False
    websocket: bool = False
    rest_capabilities: ProtocolFeaturesConfig = Field(default_factory=ProtocolFeaturesConfig)
    trading: TradingConfig = Field(default_factory=TradingConfig)

    model_config = {"extra": "forbid"}


class FeaturesEnabledConfig(BaseModel):
    auto_pair_updates: bool = False
    websocket: bool = False

    model_config = {"extra": "forbid"}


class FeaturesConfig(BaseModel):
    supports: FeaturesSupportedConfig = Field(default_factory=FeaturesSupportedConfig)
    enabled: FeaturesEnabledConfig = Field(default_factory=FeaturesEnabledConfig)

    model_config = {"extra": "forbid"}


class ExchangeConfig(BaseModel):
    """Persisted per-exchange record, owned by the config store."""

    name: str
    enabled: bool = True
    verbose: bool = False
    http_timeout: float = 0.0
    http_user_agent: str = ""
    proxy_address: str = ""
    base_currencies: str = ""
    currency_pairs: CurrencyPairsConfig | None = None
    api: APIConfig = Field(default_factory=APIConfig)
    features: FeaturesConfig | None = None
    http_rate_limiter: HTTPRateLimitConfig | None = None
    # Legacy flag, migrated into `features` on first setup.
    supports_auto_pair_updates: bool | None = None

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    env: str = "dev"
    exchanges: dict[str, ExchangeConfig] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    def get_exchange_config(self, name: str) -> ExchangeConfig | None:
        return self.exchanges.get(name.lower())

    def update_exchange_config(self, exchange_config: ExchangeConfig) -> None:
        self.exchanges[exchange_config.name.lower()] = exchange_config

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        for exch in data.get("exchanges", {}).values():
            creds = exch.get("api", {}).get("credentials")
            if isinstance(creds, dict):
                for field in ("key", "secret", "client_id", "pem_key"):
                    if creds.get(field):
                        creds[field] = "***"
        return data
