"""Asset classes an exchange can trade."""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class AssetType(Enum):
    """Trading category with its own pair universe and format rules."""

    SPOT = "spot"
    FUTURES = "futures"
    MARGIN = "margin"
    PERPETUAL_SWAP = "perpetualswap"
    INDEX = "index"

    def __str__(self) -> str:
        return self.value


def join_asset_types(asset_types: Iterable[AssetType], separator: str = ",") -> str:
    return separator.join(a.value for a in asset_types)


def parse_asset_types(raw: str, separator: str = ",") -> list[AssetType]:
    """Parse a joined asset type list, ignoring unknown entries."""
    result: list[AssetType] = []
    for item in raw.split(separator):
        item = item.strip().lower()
        if not item:
            continue
        try:
            result.append(AssetType(item))
        except ValueError:
            continue
    return result
