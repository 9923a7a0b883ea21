"""Config loading for the Kraken client and command line tool."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from krakenapi.client import DEFAULT_TIMEOUT_SECONDS, DEFAULT_URL, DEFAULT_USER_AGENT, DEFAULT_VERSION

API_KEY_ENV = "KRAKEN_API_KEY"
API_SECRET_ENV = "KRAKEN_API_SECRET"
DEFAULT_CONFIG_PATH = Path(os.getenv("KRAKENAPI_CONFIG", "config/krakenapi.yaml"))


@dataclass
class KrakenConfig:
    base_url: str = DEFAULT_URL
    version: str = DEFAULT_VERSION
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    api_key: str = ""
    api_secret: str = ""

    def __repr__(self) -> str:
        return (
            f"KrakenConfig(base_url={self.base_url!r}, version={self.version!r}, "
            f"timeout_seconds={self.timeout_seconds!r}, api_key={'***' if self.api_key else ''!r})"
        )


@dataclass
class MetricsConfig:
    emit_textfile: bool = False
    metrics_file: str = "var/krakenapi.prom"


@dataclass
class AppConfig:
    kraken: KrakenConfig = field(default_factory=KrakenConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log_level: str = "INFO"


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load YAML config, falling back to defaults when the file is missing.

    ``KRAKEN_API_KEY`` and ``KRAKEN_API_SECRET`` override the file's credentials.
    """

    resolved = Path(path).expanduser()
    raw: Dict[str, Any] = {}
    if resolved.exists():
        with resolved.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    else:
        logging.getLogger(__name__).warning("Config file %s not found, using defaults", resolved)

    kraken = raw.get("kraken", {}) or {}
    metrics = raw.get("metrics", {}) or {}

    return AppConfig(
        kraken=KrakenConfig(
            base_url=kraken.get("base_url", DEFAULT_URL),
            version=str(kraken.get("version", DEFAULT_VERSION)),
            user_agent=kraken.get("user_agent", DEFAULT_USER_AGENT),
            timeout_seconds=float(kraken.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            api_key=env_or_default(API_KEY_ENV, kraken.get("api_key", "")),
            api_secret=env_or_default(API_SECRET_ENV, kraken.get("api_secret", "")),
        ),
        metrics=MetricsConfig(
            emit_textfile=bool(metrics.get("emit_textfile", False)),
            metrics_file=metrics.get("metrics_file", "var/krakenapi.prom"),
        ),
        log_level=raw.get("log_level", "INFO"),
    )


def env_or_default(key: str, default: str) -> str:
    return os.getenv(key) or default


__all__ = ["load_config", "AppConfig", "KrakenConfig", "MetricsConfig", "env_or_default"]
