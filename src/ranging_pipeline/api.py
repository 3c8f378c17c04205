"""Public API facade for the ranging pipeline.

This module provides a single entry point that assembles the window, the
controller, the ingestion boundary and observability from one settings object.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .config import RangingSettings
from .dispersion import DispersionTracker
from .ingestion import LineIngestor
from .logging_utils import configure_logging
from .observability import HealthMonitor, MetricsExporter
from .outliers import RssiOutlierFilter
from .pipeline import PipelineController
from .samples import SampleWindow
from .strategies import StrategyRegistry, default_registry


@dataclass
class PipelineRuntime:
    """Structured runtime handles for operators."""

    controller: PipelineController
    window: SampleWindow
    ingestor: LineIngestor
    health: HealthMonitor
    exporter: MetricsExporter


def build_pipeline(
    settings: RangingSettings | None = None,
    registry: StrategyRegistry | None = None,
    logger: logging.Logger | None = None,
    configure_logs: bool = True,
) -> PipelineRuntime:
    """Create a pipeline with sensible defaults and observability."""

    settings = settings or RangingSettings()
    if configure_logs:
        configure_logging(settings.logging)

    logger = logger or logging.getLogger(__name__)
    config = settings.pipeline
    window = SampleWindow(window_size=config.window_size)
    controller = PipelineController(
        window=window,
        registry=registry or default_registry(config.max_speed_mps),
        outlier_filter=RssiOutlierFilter(threshold_db=config.outlier_threshold_db, enabled=config.use_outlier_filter),
        dispersion=DispersionTracker(),
        config=config,
        logger=logger,
    )

    health = HealthMonitor(freshness_window=settings.metrics.freshness_window_s)
    ingestor = LineIngestor(window, logger=logger, on_record=health.mark_record)
    exporter = MetricsExporter(controller, health)
    if settings.metrics.enabled:
        exporter.start(settings.metrics.host, settings.metrics.port)

    return PipelineRuntime(controller=controller, window=window, ingestor=ingestor, health=health, exporter=exporter)
