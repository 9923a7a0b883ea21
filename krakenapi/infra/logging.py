"""Structured JSON logging with credential redaction."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

REDACTED = "***"

# LogRecord attributes that are not user supplied extras.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; credential-looking extras are masked."""

    sensitive_keys = frozenset({"api_key", "api_sign", "api_secret", "signature", "secret"})

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - logging interface name
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            payload[key] = REDACTED if key.lower() in self.sensitive_keys else value
        return json.dumps(payload, default=str)


def configure_logging(default_level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Route the root logger to a single JSON handler.

    ``LOG_LEVEL`` in the environment takes precedence over ``default_level``.
    """

    level_name = os.getenv("LOG_LEVEL", default_level)
    level = getattr(logging, level_name.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


__all__ = ["JsonFormatter", "configure_logging", "REDACTED"]
