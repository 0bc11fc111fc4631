"""Merging of adapter capabilities with the persisted exchange config.

Capability support flags always come from the adapter. Enabled flags and
tunables come from the persisted record, and any default the record lacks is
written back into it so the next load starts from the same state.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Callable

from ..settings import (
    APIURL_NON_DEFAULT_MESSAGE,
    WEBSOCKET_URL_NON_DEFAULT_MESSAGE,
    CurrencyPairsConfig,
    ExchangeConfig,
    FeaturesConfig,
    FeaturesEnabledConfig,
    HTTPRateLimitConfig,
    RateLimitConfig,
)
from .assets import AssetType, join_asset_types
from .capabilities import EffectiveConfig, ExchangeCapabilities
from .credentials import Credentials, decode_base64
from .currency import join_strings, split_strings
from .errors import ConfigurationError
from .pairs import pair_config_for
from .requester import DEFAULT_HTTP_TIMEOUT, RateLimit, Requester, validate_proxy_address
from .websocket import Websocket

logger = logging.getLogger(__name__)


def apply_api_keys(effective: EffectiveConfig, key: str, secret: str, client_id: str = "") -> None:
    """Store API keys on `effective`.

    A secret that must be base64 but does not decode disables authenticated
    support instead of failing.
    """
    effective.credentials = Credentials(
        key=key,
        secret=secret,
        client_id=client_id,
        pem_key=effective.credentials.pem_key,
    )
    if effective.credential_requirements.requires_base64_decode_secret:
        try:
            decode_base64(secret)
        except ValueError:
            logger.warning(
                "%s API secret is not valid base64, authenticated requests disabled", effective.name
            )
            effective.authenticated_support = False


def supports_auto_pair_updates(capabilities: ExchangeCapabilities) -> bool:
    supports = capabilities.features.supports
    return supports.rest_capabilities.auto_pair_updates or supports.websocket_capabilities.auto_pair_updates


class ConfigReconciler:
    """Produces the EffectiveConfig of one adapter.

    Not safe to run concurrently for the same adapter; callers run it once at
    startup.
    """

    def __init__(
        self,
        capabilities: ExchangeCapabilities,
        requester: Requester | None = None,
        websocket: Websocket | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.capabilities = capabilities
        self.requester = requester
        self.websocket = websocket
        self.clock = clock

    def setup_defaults(self, exchange_config: ExchangeConfig) -> EffectiveConfig:
        """Reconcile `exchange_config` in place and return the effective config.

        Raises:
            ConfigurationError: If the endpoints or the proxy address are
                unusable
        """
        effective = EffectiveConfig.from_capabilities(self.capabilities)

        self._apply_basics(exchange_config, effective)
        self._apply_rate_limits(exchange_config, effective)
        self._apply_currency_pair_formats(exchange_config)
        self._apply_features(exchange_config, effective)
        self._apply_endpoints(exchange_config, effective)
        self._apply_credential_requirements(exchange_config, effective)
        self._apply_proxy(exchange_config, effective)
        self._apply_pairs(exchange_config, effective)
        self._apply_websocket(effective)
        return effective

    def _apply_basics(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        effective.enabled = True
        effective.loaded_by_config = True
        effective.verbose = cfg.verbose
        effective.authenticated_support = cfg.api.authenticated_support
        effective.pem_key_support = cfg.api.pem_key_support

        if effective.authenticated_support:
            creds = cfg.api.credentials
            apply_api_keys(
                effective,
                creds.key.get_secret_value(),
                creds.secret.get_secret_value(),
                creds.client_id.get_secret_value(),
            )
            if effective.pem_key_support:
                effective.credentials.pem_key = creds.pem_key.get_secret_value()

        if cfg.http_timeout <= 0:
            logger.warning(
                "%s HTTP timeout not set, using default %ss", cfg.name, DEFAULT_HTTP_TIMEOUT
            )
            cfg.http_timeout = DEFAULT_HTTP_TIMEOUT
        effective.http_timeout = cfg.http_timeout
        effective.http_user_agent = cfg.http_user_agent

        if self.requester is not None:
            self.requester.timeout = effective.http_timeout
            if effective.http_user_agent:
                self.requester.user_agent = effective.http_user_agent

    def _apply_rate_limits(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        if cfg.http_rate_limiter is None:
            auth = effective.authenticated_rate_limit
            unauth = effective.unauthenticated_rate_limit
            cfg.http_rate_limiter = HTTPRateLimitConfig(
                authenticated=RateLimitConfig(duration=auth.duration, rate=auth.rate),
                unauthenticated=RateLimitConfig(duration=unauth.duration, rate=unauth.rate),
            )
        else:
            persisted = cfg.http_rate_limiter
            effective.authenticated_rate_limit = RateLimit(
                persisted.authenticated.duration, persisted.authenticated.rate
            )
            effective.unauthenticated_rate_limit = RateLimit(
                persisted.unauthenticated.duration, persisted.unauthenticated.rate
            )

        if self.requester is not None:
            for authenticated, limit in (
                (True, effective.authenticated_rate_limit),
                (False, effective.unauthenticated_rate_limit),
            ):
                self.requester.set_rate_limit(authenticated, limit.duration, limit.rate)

    def _apply_currency_pair_formats(self, cfg: ExchangeConfig) -> None:
        caps_pairs = self.capabilities.currency_pairs
        if cfg.currency_pairs is None:
            cfg.currency_pairs = CurrencyPairsConfig()
        pairs_cfg = cfg.currency_pairs

        asset_types = join_asset_types(caps_pairs.asset_types)
        if pairs_cfg.asset_types != asset_types:
            if pairs_cfg.asset_types:
                logger.info(
                    "%s asset types changed from %r to %r", cfg.name, pairs_cfg.asset_types, asset_types
                )
                if AssetType.FUTURES in caps_pairs.stores:
                    pairs_cfg.futures = None
                    pair_config_for(cfg, AssetType.FUTURES, create=True)
            pairs_cfg.asset_types = asset_types

        for asset_type in caps_pairs.stores:
            pair_config_for(cfg, asset_type, create=True)

        if caps_pairs.use_global_pair_format:
            if pairs_cfg.request_format is None:
                pairs_cfg.request_format = caps_pairs.request_format.to_config()
            if pairs_cfg.config_format is None:
                pairs_cfg.config_format = caps_pairs.config_format.to_config()
            return

        for asset_type, store in caps_pairs.stores.items():
            sub = pair_config_for(cfg, asset_type)
            if sub is None:
                continue
            if sub.request_format is None and store.request_format is not None:
                sub.request_format = store.request_format.to_config()
            if sub.config_format is None and store.config_format is not None:
                sub.config_format = store.config_format.to_config()

    def _apply_features(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        caps = self.capabilities
        supports = caps.features.supports
        auto_supported = supports_auto_pair_updates(caps)

        if cfg.features is None:
            auto_enabled = auto_supported
            if cfg.supports_auto_pair_updates is not None:
                auto_enabled = cfg.supports_auto_pair_updates and auto_supported
            cfg.features = FeaturesConfig(
                supports=supports.to_config(),
                enabled=FeaturesEnabledConfig(
                    auto_pair_updates=auto_enabled,
                    websocket=caps.features.enabled.websocket and supports.websocket,
                ),
            )
            cfg.supports_auto_pair_updates = None
            if not auto_supported:
                self._stamp_last_updated(cfg)
        else:
            was_supported = cfg.features.supports.rest_capabilities.auto_pair_updates
            cfg.features.supports = supports.to_config()
            if was_supported and not auto_supported:
                logger.warning("%s no longer supports auto pair updates", cfg.name)
                self._stamp_last_updated(cfg)

        effective.features.enabled.auto_pair_updates = cfg.features.enabled.auto_pair_updates and auto_supported
        effective.features.enabled.websocket = cfg.features.enabled.websocket and supports.websocket

    def _stamp_last_updated(self, cfg: ExchangeConfig) -> None:
        assert cfg.currency_pairs is not None
        cfg.currency_pairs.last_updated = int(self.clock())

    def _apply_endpoints(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        endpoints = cfg.api.endpoints
        if not endpoints.url and not endpoints.url_secondary:
            raise ConfigurationError(f"{cfg.name} API URL and secondary API URL are both empty")

        if endpoints.url and endpoints.url != APIURL_NON_DEFAULT_MESSAGE:
            effective.endpoints.url = endpoints.url
        if endpoints.url_secondary and endpoints.url_secondary != APIURL_NON_DEFAULT_MESSAGE:
            effective.endpoints.url_secondary = endpoints.url_secondary
        if endpoints.websocket_url and endpoints.websocket_url not in (
            WEBSOCKET_URL_NON_DEFAULT_MESSAGE,
            APIURL_NON_DEFAULT_MESSAGE,
        ):
            effective.endpoints.websocket_url = endpoints.websocket_url

        if self.websocket is not None and effective.endpoints.websocket_url:
            self.websocket.url = effective.endpoints.websocket_url

    def _apply_credential_requirements(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        requirements = self.capabilities.credential_requirements
        cfg.api.credentials_validator = requirements.to_config()
        effective.credential_requirements = copy.deepcopy(requirements)

    def _apply_proxy(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        effective.proxy_address = cfg.proxy_address
        if not cfg.proxy_address:
            return

        validate_proxy_address(cfg.proxy_address)
        if self.requester is not None:
            self.requester.set_proxy(cfg.proxy_address)
        if self.websocket is not None:
            self.websocket.set_proxy_address(cfg.proxy_address)

    def _apply_pairs(self, cfg: ExchangeConfig, effective: EffectiveConfig) -> None:
        if not cfg.base_currencies:
            cfg.base_currencies = join_strings(self.capabilities.base_currencies)
        effective.base_currencies = split_strings(cfg.base_currencies)

        assert cfg.currency_pairs is not None
        for asset_type, store in effective.currency_pairs.stores.items():
            sub = pair_config_for(cfg, asset_type)
            if sub is None:
                continue
            store.available = split_strings(sub.available)
            store.enabled = split_strings(sub.enabled)
        effective.currency_pairs.last_updated = cfg.currency_pairs.last_updated

    def _apply_websocket(self, effective: EffectiveConfig) -> None:
        if not effective.features.supports.websocket:
            effective.websocket_enabled = False
            return

        effective.websocket_enabled = effective.features.enabled.websocket
        if self.websocket is not None:
            self.websocket.set_enabled(effective.websocket_enabled)
