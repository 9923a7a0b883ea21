"""Infrastructure utilities for configuration, logging, and metrics."""

from .config import AppConfig, KrakenConfig, MetricsConfig, load_config
from .logging import configure_logging
from .metrics import RequestMetrics

__all__ = [
    "AppConfig",
    "KrakenConfig",
    "MetricsConfig",
    "load_config",
    "configure_logging",
    "RequestMetrics",
]
