"""Hard-coded exchange capabilities and the effective runtime configuration."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from ..settings import FeaturesSupportedConfig, ProtocolFeaturesConfig, TradingConfig
from .credentials import CredentialRequirements, Credentials
from .pair_format import CurrencyPairs
from .requester import DEFAULT_HTTP_TIMEOUT, RateLimit


@dataclass
class TradingSupported:
    spot: bool = False
    futures: bool = False
    margin: bool = False
    perpetual_swaps: bool = False
    index: bool = False

    def to_config(self) -> TradingConfig:
        return TradingConfig(
            spot=self.spot,
            futures=self.futures,
            margin=self.margin,
            perpetual_swaps=self.perpetual_swaps,
            index=self.index,
        )


@dataclass
class ProtocolFeatures:
    auto_pair_updates: bool = False
    ticker_batching: bool = False


@dataclass
class FeaturesSupported:
    rest: bool = False
    websocket: bool = False
    rest_capabilities: ProtocolFeatures = field(default_factory=ProtocolFeatures)
    websocket_capabilities: ProtocolFeatures = field(default_factory=ProtocolFeatures)
    trading: TradingSupported = field(default_factory=TradingSupported)

    def to_config(self) -> FeaturesSupportedConfig:
        return FeaturesSupportedConfig(
            rest=self.rest,
            websocket=self.websocket,
            rest_capabilities=ProtocolFeaturesConfig(
                auto_pair_updates=self.rest_capabilities.auto_pair_updates,
                ticker_batching=self.rest_capabilities.ticker_batching,
            ),
            trading=self.trading.to_config(),
        )


@dataclass
class FeaturesEnabled:
    auto_pair_updates: bool = False
    websocket: bool = False


@dataclass
class Features:
    supports: FeaturesSupported = field(default_factory=FeaturesSupported)
    enabled: FeaturesEnabled = field(default_factory=FeaturesEnabled)


@dataclass
class Endpoints:
    url: str = ""
    url_secondary: str = ""
    websocket_url: str = ""


@dataclass
class ExchangeCapabilities:
    """What an adapter supports, declared in code and never overridden by config."""

    name: str
    features: Features = field(default_factory=Features)
    currency_pairs: CurrencyPairs = field(default_factory=CurrencyPairs)
    credential_requirements: CredentialRequirements = field(default_factory=CredentialRequirements)
    withdraw_permissions: int = 0
    endpoints: Endpoints = field(default_factory=Endpoints)
    authenticated_rate_limit: RateLimit = field(default_factory=RateLimit)
    unauthenticated_rate_limit: RateLimit = field(default_factory=RateLimit)
    base_currencies: list[str] = field(default_factory=list)


@dataclass
class EffectiveConfig:
    """Capability defaults merged with a persisted ExchangeConfig."""

    name: str
    enabled: bool = False
    loaded_by_config: bool = False
    verbose: bool = False
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    http_user_agent: str = ""
    proxy_address: str = ""
    authenticated_support: bool = False
    pem_key_support: bool = False
    credentials: Credentials = field(default_factory=Credentials)
    credential_requirements: CredentialRequirements = field(default_factory=CredentialRequirements)
    endpoints: Endpoints = field(default_factory=Endpoints)
    authenticated_rate_limit: RateLimit = field(default_factory=RateLimit)
    unauthenticated_rate_limit: RateLimit = field(default_factory=RateLimit)
    features: Features = field(default_factory=Features)
    currency_pairs: CurrencyPairs = field(default_factory=CurrencyPairs)
    base_currencies: list[str] = field(default_factory=list)
    websocket_enabled: bool = False

    @classmethod
    def from_capabilities(cls, capabilities: ExchangeCapabilities) -> "EffectiveConfig":
        """Effective config of an adapter that has not been set up yet."""
        return cls(
            name=capabilities.name,
            features=copy.deepcopy(capabilities.features),
            currency_pairs=copy.deepcopy(capabilities.currency_pairs),
            credential_requirements=copy.deepcopy(capabilities.credential_requirements),
            endpoints=copy.deepcopy(capabilities.endpoints),
            authenticated_rate_limit=copy.deepcopy(capabilities.authenticated_rate_limit),
            unauthenticated_rate_limit=copy.deepcopy(capabilities.unauthenticated_rate_limit),
            base_currencies=list(capabilities.base_currencies),
        )
