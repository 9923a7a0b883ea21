"""Per-endpoint request metrics fed by the client's metrics callback."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Tuple


@dataclass
class RequestMetrics:
    """Counts requests by endpoint and outcome and keeps the last latency.

    Pass :meth:`observe` as ``KrakenClient(metrics_callback=...)``.
    """

    metrics_file: Path = Path("var/krakenapi.prom")
    emit_textfile: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("krakenapi.metrics"))
    requests: Dict[Tuple[str, str], int] = field(default_factory=dict)
    latency_ms: Dict[str, float] = field(default_factory=dict)
    _lock: threading.Lock = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self.metrics_file = Path(self.metrics_file)

    def observe(self, endpoint: str, values: Mapping[str, float]) -> None:
        outcome = "error" if values.get("errors", 0) else "ok"
        with self._lock:
            key = (endpoint, outcome)
            self.requests[key] = self.requests.get(key, 0) + 1
            if "latency_ms" in values:
                self.latency_ms[endpoint] = float(values["latency_ms"])
            if self.emit_textfile:
                self._write_textfile()

    def count(self, endpoint: str, outcome: str = "ok") -> int:
        with self._lock:
            return self.requests.get((endpoint, outcome), 0)

    def render(self) -> str:
        """Prometheus text exposition of the current counters and gauges."""

        with self._lock:
            return self._render_unlocked()

    def _render_unlocked(self) -> str:
        lines = ["# TYPE krakenapi_requests_total counter"]
        for (endpoint, outcome), value in sorted(self.requests.items()):
            lines.append(f'krakenapi_requests_total{{endpoint="{endpoint}",outcome="{outcome}"}} {value}')
        lines.append("# TYPE krakenapi_request_latency_ms gauge")
        for endpoint, value in sorted(self.latency_ms.items()):
            lines.append(f'krakenapi_request_latency_ms{{endpoint="{endpoint}"}} {value}')
        return "\n".join(lines) + "\n"

    def _write_textfile(self) -> None:
        try:
            self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.metrics_file.with_suffix(".tmp")
            temp_path.write_text(self._render_unlocked(), encoding="utf-8")
            os.replace(temp_path, self.metrics_file)
        except OSError as exc:
            self.logger.warning("Metrics textfile write failed: %s", exc)


__all__ = ["RequestMetrics"]
