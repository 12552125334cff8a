"""TOML configuration loader for the NutriCart client."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class APIConfig:
    base_url: str = "http://localhost:4000/api"
    timeout: float = 10.0


@dataclass
class StorageConfig:
    path: str = "~/.config/nutricart/storage.db"


@dataclass
class SubscriptionConfig:
    payment_delay: float = 2.0


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class NutriCartConfig:
    api: APIConfig = field(default_factory=APIConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    subscription: SubscriptionConfig = field(default_factory=SubscriptionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> NutriCartConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    ``NUTRICART_API_BASE_URL`` and ``NUTRICART_LOG_LEVEL`` override the file.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    api = raw.get("api", {})
    sto = raw.get("storage", {})
    sub = raw.get("subscription", {})
    log = raw.get("logging", {})

    # Environment wins over the file for deploy-specific values
    base_url = os.environ.get("NUTRICART_API_BASE_URL") or api.get(
        "base_url", APIConfig.base_url
    )
    level = os.environ.get("NUTRICART_LOG_LEVEL") or log.get("level", "INFO")

    return NutriCartConfig(
        api=APIConfig(
            base_url=base_url,
            timeout=float(api.get("timeout", 10.0)),
        ),
        storage=StorageConfig(
            path=sto.get("path", StorageConfig.path),
        ),
        subscription=SubscriptionConfig(
            payment_delay=float(sub.get("payment_delay", 2.0)),
        ),
        logging=LoggingConfig(level=str(level).upper()),
    )
