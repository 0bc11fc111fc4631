"""Canonical currency pair and pair list utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyPair:
    """A tradable instrument, independent of venue formatting.

    Currencies are stored uppercase. The delimiter only records how the pair
    was written and takes no part in equality.
    """

    base: str
    quote: str
    delimiter: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", self.base.strip().upper())
        object.__setattr__(self, "quote", self.quote.strip().upper())

    @classmethod
    def from_string(cls, symbol: str, delimiter: str = "", index: str = "") -> "CurrencyPair":
        """Parse a stored pair string.

        Handles the three stored forms:
        - BTC-USDT with delimiter '-' -> (BTC, USDT)
        - BTCKRW with index 'KRW' -> (BTC, KRW)
        - BTCUSD with neither -> (BTC, USD), split after three letters

        Args:
            symbol: Pair as stored in configuration
            delimiter: Delimiter between base and quote, if any
            index: Currency code used to locate the split point, if any

        Returns:
            Parsed CurrencyPair
        """
        symbol = symbol.strip()
        if delimiter and delimiter in symbol:
            base, _, quote = symbol.partition(delimiter)
            return cls(base, quote, delimiter)

        if index:
            pos = symbol.upper().find(index.upper())
            if pos == 0:
                return cls(symbol[: len(index)], symbol[len(index) :])
            if pos > 0:
                return cls(symbol[:pos], symbol[pos:])
            logger.debug("Index %s not found in %s, falling back to fixed split", index, symbol)

        return cls(symbol[:3], symbol[3:])

    def display(self, delimiter: str | None = None, uppercase: bool = True) -> str:
        """Render the pair with the given delimiter and case."""
        if delimiter is None:
            delimiter = self.delimiter
        text = f"{self.base}{delimiter}{self.quote}"
        return text if uppercase else text.lower()

    def __str__(self) -> str:
        return self.display()


def split_strings(raw: str, separator: str = ",") -> list[str]:
    """Split a joined list, dropping empty entries."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(separator) if item.strip()]


def join_strings(items: Iterable[str], separator: str = ",") -> str:
    return separator.join(items)


def format_pairs(symbols: Iterable[str], delimiter: str = "", index: str = "") -> list[CurrencyPair]:
    """Parse stored pair strings into CurrencyPair objects."""
    return [
        CurrencyPair.from_string(symbol, delimiter, index)
        for symbol in symbols
        if symbol
    ]


def contains_pair(pairs: Iterable[CurrencyPair], pair: CurrencyPair) -> bool:
    return any(p == pair for p in pairs)


def find_pair_differences(old: Sequence[str], new: Sequence[str]) -> tuple[list[str], list[str]]:
    """Return (added, removed) between two pair lists.

    Order follows the input lists and duplicates are reported as they
    appear.
    """
    old_set = set(old)
    new_set = set(new)
    added = [p for p in new if p not in old_set]
    removed = [p for p in old if p not in new_set]
    return added, removed
