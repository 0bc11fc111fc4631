"""Synchronisation of stored currency pair lists with venue data."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from ..settings import CurrencyPairConfig, CurrencyPairsConfig, ExchangeConfig
from .assets import AssetType
from .currency import CurrencyPair, find_pair_differences, join_strings
from .errors import ConfigurationError
from .pair_format import CurrencyPairs, PairFormatResolver

logger = logging.getLogger(__name__)


class PairRole(Enum):
    """Which of the two independent pair lists is addressed."""

    AVAILABLE = "available"
    ENABLED = "enabled"


@dataclass
class PairUpdate:
    """Outcome of a pair update."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: bool = False


def pair_config_for(exchange_config: ExchangeConfig, asset_type: AssetType, *, create: bool = False) -> CurrencyPairConfig | None:
    """Return the persisted sub-config holding pairs for `asset_type`."""
    if exchange_config.currency_pairs is None:
        if not create:
            return None
        exchange_config.currency_pairs = CurrencyPairsConfig()

    pairs_cfg = exchange_config.currency_pairs
    if asset_type not in (AssetType.SPOT, AssetType.FUTURES):
        return None

    sub = getattr(pairs_cfg, asset_type.value)
    if sub is None and create:
        sub = CurrencyPairConfig()
        setattr(pairs_cfg, asset_type.value, sub)
    return sub


class PairSynchronizer:
    """Keeps runtime and persisted pair lists in step with the venue.

    A stored list is replaced wholesale, and persisted, only when the fresh
    list differs from it or the update is forced.
    """

    def __init__(
        self,
        name: str,
        currency_pairs: CurrencyPairs,
        exchange_config: ExchangeConfig,
        *,
        persist: Callable[[ExchangeConfig], None] | None = None,
    ) -> None:
        self.name = name
        self.currency_pairs = currency_pairs
        self.exchange_config = exchange_config
        self.resolver = PairFormatResolver(currency_pairs)
        self.persist = persist

    def get_pairs(self, asset_type: AssetType, role: PairRole) -> list[str]:
        store = self.currency_pairs.get_store(asset_type)
        return store.enabled if role is PairRole.ENABLED else store.available

    def update_pairs(
        self,
        products: Sequence[str],
        asset_type: AssetType,
        role: PairRole,
        force: bool = False,
    ) -> PairUpdate:
        """Reconcile a freshly fetched product list with the stored list.

        Products are uppercased and empty entries dropped. Duplicates are
        kept as the venue returned them.

        Raises:
            ConfigurationError: If the product list is empty or the asset
                type has no pair store
        """
        normalized = [
            item.strip().upper()
            for product in products
            for item in product.split(",")
            if item.strip()
        ]
        if not normalized:
            raise ConfigurationError(f"{self.name} update pairs error - empty product list")

        stored = self.get_pairs(asset_type, role)
        added, removed = find_pair_differences(stored, normalized)
        changed = force or bool(added) or bool(removed)

        if force:
            logger.info("%s forced update of %s %s pairs", self.name, asset_type, role.value)
        else:
            if added:
                logger.info("%s updating %s pairs - new: %s", self.name, role.value, added)
            if removed:
                logger.info("%s updating %s pairs - removed: %s", self.name, role.value, removed)

        if changed:
            self._store(asset_type, role, normalized)

        return PairUpdate(added=added, removed=removed, changed=changed)

    def set_pairs(self, pairs: Sequence[CurrencyPair], asset_type: AssetType, role: PairRole) -> None:
        """Store parsed pairs in the display format of `asset_type`."""
        if not pairs:
            raise ConfigurationError(f"{self.name} set pairs error - pairs is empty")

        fmt = self.resolver.resolve(asset_type, False)
        self._store(asset_type, role, [p.display(fmt.delimiter, fmt.uppercase) for p in pairs])

    def _store(self, asset_type: AssetType, role: PairRole, pairs: list[str]) -> None:
        store = self.currency_pairs.get_store(asset_type)
        sub = pair_config_for(self.exchange_config, asset_type, create=True)

        joined = join_strings(pairs)
        if role is PairRole.ENABLED:
            store.enabled = list(pairs)
            if sub is not None:
                sub.enabled = joined
        else:
            store.available = list(pairs)
            if sub is not None:
                sub.available = joined

        if self.persist is not None:
            self.persist(self.exchange_config)
