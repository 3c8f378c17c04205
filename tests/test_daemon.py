import threading

import pytest

from ranging_pipeline.api import build_pipeline
from ranging_pipeline.config import RangingSettings
from ranging_pipeline.daemon import PipelineDaemon
from ranging_pipeline.ingestion import parse_record
from ranging_pipeline.simulation import SimulatedRangeSource


def test_simulated_source_emits_sensor_records() -> None:
    source = SimulatedRangeSource(base_distance=5.0, fluctuation=1.0, seed=7)
    for _ in range(100):
        distance, rssi = parse_record(source.line())
        assert 4.0 <= distance <= 6.0
        assert -70 <= rssi <= -31


def test_simulated_source_is_reproducible() -> None:
    first = SimulatedRangeSource(seed=3)
    second = SimulatedRangeSource(seed=3)
    assert [first() for _ in range(5)] == [second() for _ in range(5)]


def test_simulated_source_rejects_bad_ranges() -> None:
    with pytest.raises(ValueError):
        SimulatedRangeSource(rssi_range=(-30, -70))


def test_daemon_ingests_and_ticks() -> None:
    runtime = build_pipeline(RangingSettings(), configure_logs=False)
    lines = iter(["5.00 -50\n", "5.20 -52\n", "junk\n", "4.80 -48\n"])
    done = threading.Event()

    def line_source() -> str:
        line = next(lines, "")
        if not line:
            done.set()
        return line

    daemon = PipelineDaemon(runtime, line_source, interval_s=0.01)
    daemon.start_reader()
    assert done.wait(timeout=5)
    daemon.run_once()
    daemon.stop()

    estimate = runtime.controller.last_estimate
    assert estimate is not None
    assert estimate.avg_distance == pytest.approx(5.0)
    assert runtime.ingestor.accepted == 3
    assert runtime.ingestor.dropped == 1
    assert runtime.health.status().ok


def test_stop_joins_reader_thread() -> None:
    runtime = build_pipeline(RangingSettings(), configure_logs=False)
    release = threading.Event()

    def line_source() -> str:
        release.wait(timeout=0.2)
        return "5.00 -50\n"

    daemon = PipelineDaemon(runtime, line_source, interval_s=0.01)
    daemon.start_reader()
    assert daemon.reader_alive
    release.set()
    daemon.stop()

    assert not daemon.reader_alive
