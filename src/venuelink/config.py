from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import SecretStr, ValidationError

from .settings import ExchangeConfig, Settings

logger = logging.getLogger(__name__)


def _deep_set(obj: dict[str, Any], path: list[str], value: Any) -> None:
    cur: dict[str, Any] = obj
    for key in path[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[path[-1]] = value


def _parse_env_value(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _apply_env_overrides(data: dict[str, Any], *, prefix: str = "VENUELINK_") -> dict[str, Any]:
    merged: dict[str, Any] = dict(data)

    for key, raw_value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        if remainder in {"CONFIG", "LOG_LEVEL"}:
            continue

        path = [p.lower() for p in remainder.split("__") if p]
        if not path:
            continue

        _deep_set(merged, path, _parse_env_value(raw_value))

    return merged


def _resolve_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        config_path = os.environ.get("VENUELINK_CONFIG", "config.yml")
    return Path(config_path)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be a mapping, got: {type(loaded)!r}")
    return loaded


def _normalise_exchanges(data: dict[str, Any]) -> dict[str, Any]:
    # Records are keyed by lowercase name and carry their display name.
    exchanges = data.get("exchanges")
    if not isinstance(exchanges, dict):
        return data

    normalised: dict[str, Any] = {}
    for key, record in exchanges.items():
        if isinstance(record, dict):
            record.setdefault("name", key)
        normalised[str(key).lower()] = record
    data["exchanges"] = normalised
    return data


def load_settings(config_path: str | Path | None = None) -> Settings:
    data = _normalise_exchanges(_read_yaml(_resolve_path(config_path)))
    data = _normalise_exchanges(_apply_env_overrides(data))

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _to_plain(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def save_settings(settings: Settings, config_path: str | Path) -> None:
    """Write settings as YAML, secrets included."""
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = _to_plain(settings.model_dump())
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")


def exchange_config_to_yaml(exchange_config: ExchangeConfig) -> str:
    """Render one exchange record the way it is stored in the config file."""
    data = _to_plain(exchange_config.model_dump())
    return yaml.safe_dump({exchange_config.name.lower(): data}, sort_keys=False)


class ConfigStore:
    """Durable storage for per-exchange configuration records.

    Adapters read their record once at setup and hand it back whenever pairs
    or base currencies change. When no path is given the store only keeps the
    records in memory.
    """

    def __init__(self, settings: Settings | None = None, path: str | Path | None = None) -> None:
        self.settings = settings or Settings()
        self.path = Path(path) if path is not None else None

    @classmethod
    def from_file(cls, config_path: str | Path | None = None) -> "ConfigStore":
        path = _resolve_path(config_path)
        return cls(load_settings(path), path)

    def load_exchange_config(self, name: str) -> ExchangeConfig:
        exchange_config = self.settings.get_exchange_config(name)
        if exchange_config is None:
            raise KeyError(f"exchange {name} not found in configuration")
        return exchange_config

    def save_exchange_config(self, exchange_config: ExchangeConfig) -> None:
        self.settings.update_exchange_config(exchange_config)
        if self.path is None:
            return
        save_settings(self.settings, self.path)
        logger.debug("Persisted configuration for %s to %s", exchange_config.name, self.path)
