"""Daemon service for running the pipeline in a long-lived process."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .api import PipelineRuntime, build_pipeline
from .config import RangingSettings
from .ingestion import open_line_source
from .simulation import SimulatedRangeSource


class PipelineDaemon:
    """Tick the pipeline on a fixed cadence while a reader thread ingests lines."""

    def __init__(
        self,
        runtime: PipelineRuntime,
        line_source: Callable[[], str],
        interval_s: float | None = None,
    ) -> None:
        self._runtime = runtime
        self._line_source = line_source
        self._interval_s = interval_s
        self._logger = logging.getLogger(__name__)
        self._running = threading.Event()
        self._reader: threading.Thread | None = None

    @property
    def interval_s(self) -> float:
        if self._interval_s is not None:
            return self._interval_s
        return self._runtime.controller.config.update_interval_ms / 1000.0

    def _read_loop(self) -> None:
        while self._running.is_set():
            try:
                line = self._line_source()
            except OSError as exc:
                self._logger.error("line_source_failed", extra={"error": str(exc)})
                return
            if line == "":
                # EOF from a file-backed source.
                self._logger.info("line_source_exhausted")
                return
            self._runtime.ingestor.feed_line(line)

    def start_reader(self) -> None:
        self._running.set()
        self._reader = threading.Thread(target=self._read_loop, name="ranging-reader", daemon=True)
        self._reader.start()

    def run_once(self) -> None:
        """Run one tick and refresh health bookkeeping."""

        result = self._runtime.controller.tick()
        if result is not None:
            self._runtime.health.mark_tick()
            self._logger.debug(
                "tick",
                extra={
                    "avg_distance": result.estimate.avg_distance,
                    "avg_signal_strength": result.estimate.avg_signal_strength,
                    "samples": result.sample_count,
                },
            )

    def run(self) -> None:
        """Run the daemon loop until stopped."""

        self.start_reader()
        self._logger.info("daemon_started", extra={"interval_s": self.interval_s})
        while self._running.is_set():
            self.run_once()
            time.sleep(self.interval_s)

    def stop(self) -> None:
        """Stop the daemon loop."""

        self._running.clear()
        self._runtime.exporter.stop()
        if self._reader and self._reader is not threading.current_thread():
            self._reader.join(timeout=1.0)
            if self._reader.is_alive():
                self._logger.warning("reader_still_blocked", extra={"timeout_s": 1.0})
            else:
                self._reader = None

    @property
    def reader_alive(self) -> bool:
        return self._reader is not None and self._reader.is_alive()


def make_line_source(settings: RangingSettings) -> Callable[[], str]:
    if settings.ingestion.source == "simulate":
        # Paced to roughly the real sensor's rate.
        simulator = SimulatedRangeSource(seed=settings.ingestion.simulation_seed)

        def simulated() -> str:
            time.sleep(0.007)
            return simulator.line()

        return simulated
    return open_line_source(settings.ingestion.source)


def run_daemon(settings: RangingSettings | None = None) -> None:
    """Entry point for a basic daemon execution."""

    settings = settings or RangingSettings()
    runtime = build_pipeline(settings=settings)
    daemon = PipelineDaemon(runtime, make_line_source(settings))
    try:
        daemon.run()
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("daemon_interrupted")
    finally:
        daemon.stop()
