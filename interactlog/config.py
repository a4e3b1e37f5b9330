"""
interactlog configuration.

Sources, later ones winning:
    1. LedgerConfig defaults
    2. YAML file            (LedgerConfig.from_yaml)
    3. Environment          (INTERACTLOG_STORE, INTERACTLOG_LOG_LEVEL,
                             INTERACTLOG_NOTIFY_PATH)

Example interactlog.yaml:

    store_path: .interactlog/interactions.jsonl
    log_level: INFO
    notify_path: .interactlog/notices.jsonl
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from interactlog.core.exceptions import ConfigError
from interactlog.core.ledger import InteractionLedger
from interactlog.core.models import ZERO_IDENTITY
from interactlog.core.observers import JsonlObserver
from interactlog.core.store import JsonlStore

DEFAULT_STORE_PATH = ".interactlog/interactions.jsonl"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_ENV_KEYS = {
    "INTERACTLOG_STORE":       "store_path",
    "INTERACTLOG_LOG_LEVEL":   "log_level",
    "INTERACTLOG_NOTIFY_PATH": "notify_path",
}


@dataclass(frozen=True)
class LedgerConfig:
    """Settings for building a ledger and its surroundings."""

    store_path:    Path          = Path(DEFAULT_STORE_PATH)
    zero_identity: Any           = ZERO_IDENTITY
    log_level:     str           = "WARNING"
    notify_path:   Optional[Path] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base: Optional["LedgerConfig"] = None) -> "LedgerConfig":
        """Apply a mapping of overrides on top of base (or the defaults)."""
        known   = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                "Unknown configuration key(s)",
                {"keys": ", ".join(unknown)},
            )

        values = dict(data)
        for key in ("store_path", "notify_path"):
            if values.get(key) is not None:
                values[key] = Path(values[key])
        if "log_level" in values:
            values["log_level"] = _check_level(values["log_level"])

        return replace(base or cls(), **values)

    @classmethod
    def from_yaml(cls, path, base: Optional["LedgerConfig"] = None) -> "LedgerConfig":
        """Load configuration from a YAML file."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as exc:
            raise ConfigError("Config file not found", {"path": path}) from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML: {exc}", {"path": path}) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping", {"path": path})
        return cls.from_mapping(data, base)

    @classmethod
    def from_env(cls, base: Optional["LedgerConfig"] = None, environ: Optional[Mapping[str, str]] = None) -> "LedgerConfig":
        environ   = os.environ if environ is None else environ
        overrides = {
            name: environ[var]
            for var, name in _ENV_KEYS.items()
            if environ.get(var)
        }
        return cls.from_mapping(overrides, base)

    @classmethod
    def load(cls, path=None, environ: Optional[Mapping[str, str]] = None) -> "LedgerConfig":
        """Defaults, then the YAML file if given, then the environment."""
        config = cls.from_yaml(path) if path else cls()
        return cls.from_env(config, environ)


def build_ledger(config: LedgerConfig) -> InteractionLedger:
    """InteractionLedger backed by the configured store and notice sink."""
    ledger = InteractionLedger(
        store=         JsonlStore(config.store_path),
        zero_identity= config.zero_identity,
    )
    if config.notify_path is not None:
        ledger.subscribe(JsonlObserver("notify-file", config.notify_path))
    return ledger


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=  getattr(logging, _check_level(level)),
        format= "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _check_level(level: Any) -> str:
    name = str(level).upper()
    if name not in _LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level: {level}",
            {"allowed": ", ".join(_LOG_LEVELS)},
        )
    return name
