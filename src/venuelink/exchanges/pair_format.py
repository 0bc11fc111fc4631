"""Currency pair format rules and their resolution per asset class."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from ..settings import PairFormatConfig
from .assets import AssetType
from .currency import CurrencyPair, format_pairs
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class PairFormat:
    """How a pair is written for requests or for display/config storage."""

    delimiter: str = ""
    uppercase: bool = False
    separator: str = ""
    index: str = ""

    @classmethod
    def from_config(cls, cfg: PairFormatConfig) -> "PairFormat":
        return cls(cfg.delimiter, cfg.uppercase, cfg.separator, cfg.index)

    def to_config(self) -> PairFormatConfig:
        return PairFormatConfig(
            delimiter=self.delimiter,
            uppercase=self.uppercase,
            separator=self.separator,
            index=self.index,
        )


@dataclass
class PairStore:
    """Formats and pair lists for a single asset class."""

    request_format: PairFormat | None = None
    config_format: PairFormat | None = None
    available: list[str] = field(default_factory=list)
    enabled: list[str] = field(default_factory=list)


@dataclass
class CurrencyPairs:
    """Runtime pair state of an exchange."""

    asset_types: list[AssetType] = field(default_factory=list)
    use_global_pair_format: bool = False
    request_format: PairFormat = field(default_factory=PairFormat)
    config_format: PairFormat = field(default_factory=PairFormat)
    stores: dict[AssetType, PairStore] = field(default_factory=dict)
    last_updated: int = 0

    def get_store(self, asset_type: AssetType) -> PairStore:
        store = self.stores.get(asset_type)
        if store is None:
            raise ConfigurationError(f"no pair configuration for asset type {asset_type}")
        return store


class PairFormatResolver:
    """Resolves the effective PairFormat for an asset class and direction."""

    def __init__(self, currency_pairs: CurrencyPairs) -> None:
        self.currency_pairs = currency_pairs

    def resolve(self, asset_type: AssetType, request_format: bool) -> PairFormat:
        """Return the rule to use for `asset_type`.

        Args:
            asset_type: Asset class being formatted
            request_format: True for the venue request format, False for the
                display/config format

        Returns:
            Fully specified PairFormat

        Raises:
            ConfigurationError: If the asset class has no configured rule
        """
        pairs = self.currency_pairs
        if pairs.use_global_pair_format:
            return pairs.request_format if request_format else pairs.config_format

        store = pairs.get_store(asset_type)
        fmt = store.request_format if request_format else store.config_format
        if fmt is None:
            direction = "request" if request_format else "config"
            raise ConfigurationError(f"no {direction} pair format for asset type {asset_type}")
        return fmt

    def format_pair(self, pair: CurrencyPair, asset_type: AssetType, request_format: bool = True) -> str:
        fmt = self.resolve(asset_type, request_format)
        return pair.display(fmt.delimiter, fmt.uppercase)

    def format_pairs(self, pairs: Iterable[CurrencyPair], asset_type: AssetType) -> str:
        """Join pairs in request format using the format's separator.

        Raises:
            ConfigurationError: If the result is empty
        """
        fmt = self.resolve(asset_type, True)
        joined = fmt.separator.join(p.display(fmt.delimiter, fmt.uppercase) for p in pairs)
        if not joined:
            raise ConfigurationError("formatted pair list is empty")
        return joined

    def parse_pairs(self, symbols: Iterable[str], asset_type: AssetType) -> list[CurrencyPair]:
        """Parse stored pair strings using the config format."""
        fmt = self.resolve(asset_type, False)
        return format_pairs(symbols, fmt.delimiter, fmt.index)
