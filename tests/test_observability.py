import json
import logging
import urllib.error
import urllib.request

import pytest

from ranging_pipeline.config import PipelineConfig
from ranging_pipeline.logging_utils import JsonFormatter
from ranging_pipeline.observability import HealthMonitor, MetricsExporter, collect_metrics
from ranging_pipeline.pipeline import PipelineController
from ranging_pipeline.samples import Sample, SampleWindow


def _controller() -> PipelineController:
    window = SampleWindow(window_size=4)
    for index, distance in enumerate((10.0, 12.0, 11.0)):
        window.append(Sample(distance=distance, signal_strength=-49.0, timestamp_ms=index))
    return PipelineController(window, config=PipelineConfig(window_size=4))


def test_health_monitor_requires_recent_tick() -> None:
    health = HealthMonitor(freshness_window=5.0)
    assert not health.status().ok
    health.mark_tick()
    health.mark_record()
    status = health.status()
    assert status.ok
    assert status.last_record is not None


def test_collect_metrics_reports_estimate_and_window() -> None:
    controller = _controller()
    controller.tick()
    metrics = collect_metrics(controller)
    assert metrics["avg_distance_m"] == pytest.approx(11.0)
    assert metrics["total_samples"] == 1.0
    assert metrics["window_count"] == 3.0
    assert metrics["window_min_distance_m"] == 10.0
    assert metrics["window_max_distance_m"] == 12.0


def test_exporter_serves_endpoints() -> None:
    controller = _controller()
    controller.tick()
    health = HealthMonitor()
    health.mark_tick()
    exporter = MetricsExporter(controller, health)
    exporter.start("127.0.0.1", 0)
    base = f"http://127.0.0.1:{exporter.port}"
    try:
        with urllib.request.urlopen(f"{base}/metrics", timeout=5) as response:
            body = response.read().decode()
        assert "avg_distance_m 11.0" in body

        with urllib.request.urlopen(f"{base}/health", timeout=5) as response:
            assert json.loads(response.read())["ok"] is True

        with urllib.request.urlopen(f"{base}/dispersion", timeout=5) as response:
            payload = json.loads(response.read())
        assert payload["total_samples"] == 1
        assert len(payload["histogram"]) == 50

        with pytest.raises(urllib.error.HTTPError):
            urllib.request.urlopen(f"{base}/missing", timeout=5)
    finally:
        exporter.stop()


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("ranging", logging.WARNING, __file__, 1, "record_dropped", None, None)
    record.error = "bad format"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "record_dropped"
    assert payload["level"] == "WARNING"
    assert payload["error"] == "bad format"
