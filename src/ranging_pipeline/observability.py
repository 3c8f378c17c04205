"""Metrics export and health checks."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Iterable

from .pipeline import PipelineController

HISTORY_TAIL = 500


@dataclass
class HealthStatus:
    """Health status snapshot."""

    last_tick: float
    last_record: float | None
    ok: bool


class HealthMonitor:
    """Track freshness of pipeline ticks and incoming records."""

    def __init__(self, freshness_window: float = 10.0) -> None:
        self._freshness_window = freshness_window
        self._last_tick: float | None = None
        self._last_record: float | None = None

    def mark_tick(self) -> None:
        self._last_tick = time.time()

    def mark_record(self) -> None:
        self._last_record = time.time()

    def status(self) -> HealthStatus:
        now = time.time()
        last_tick = self._last_tick or 0.0
        ok = now - last_tick <= self._freshness_window if last_tick else False
        return HealthStatus(last_tick=last_tick, last_record=self._last_record, ok=ok)


def collect_metrics(controller: PipelineController) -> dict[str, float]:
    """Flatten the controller's read-only state into metric name/value pairs."""

    metrics: dict[str, float] = {
        "total_samples": float(controller.dispersion.total_samples),
        "standard_deviation_m": controller.dispersion.standard_deviation,
    }
    estimate = controller.last_estimate
    if estimate is not None:
        metrics["avg_distance_m"] = estimate.avg_distance
        metrics["avg_signal_strength_db"] = estimate.avg_signal_strength
    summary = controller.window_summary()
    metrics["window_count"] = float(summary.count)
    if summary.count:
        metrics["window_min_distance_m"] = summary.min_distance or 0.0
        metrics["window_max_distance_m"] = summary.max_distance or 0.0
        metrics["window_min_signal_strength_db"] = summary.min_signal_strength or 0.0
        metrics["window_max_signal_strength_db"] = summary.max_signal_strength or 0.0
    return metrics


class MetricsExporter:
    """HTTP server exposing metrics, health and dispersion endpoints."""

    def __init__(self, controller: PipelineController, health: HealthMonitor) -> None:
        self._controller = controller
        self._health = health
        self._server: HTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int | None:
        return self._server.server_address[1] if self._server else None

    def start(self, host: str, port: int) -> None:
        controller = self._controller
        health = self._health

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                if self.path == "/metrics":
                    body = [f"{key} {value}" for key, value in collect_metrics(controller).items()]
                    self._reply(200, "text/plain", "\n".join(body).encode())
                elif self.path == "/health":
                    status = health.status()
                    self._reply(200 if status.ok else 503, "application/json", json.dumps(asdict(status)).encode())
                elif self.path == "/dispersion":
                    tracker = controller.dispersion
                    payload = {
                        "total_samples": tracker.total_samples,
                        "standard_deviation": tracker.standard_deviation,
                        "history": list(tracker.history()[-HISTORY_TAIL:]),
                        "histogram": tracker.histogram(),
                    }
                    self._reply(200, "application/json", json.dumps(payload).encode())
                else:
                    self.send_response(404)
                    self.end_headers()

            def _reply(self, status: int, content_type: str, body: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format: str, *args: Iterable[object]) -> None:  # noqa: A002
                return

        self._server = HTTPServer((host, port), Handler)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
        if self._thread:
            self._thread.join(timeout=1.0)
