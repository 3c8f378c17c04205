"""Top-level package for real-time range/signal-strength estimation."""

from .api import PipelineRuntime, build_pipeline
from .config import IngestionConfig, LoggingConfig, MetricsConfig, PipelineConfig, RangingSettings
from .daemon import PipelineDaemon, run_daemon
from .dispersion import DispersionTracker, DispersionUpdate
from .ingestion import LineIngestor, MalformedRecordError, open_line_source, parse_record
from .kalman import KalmanCovariance, KalmanFilterStrategy, KalmanState
from .logging_utils import JsonFormatter, configure_logging
from .models import RangeRecordModel
from .observability import HealthMonitor, HealthStatus, MetricsExporter, collect_metrics
from .outliers import RssiOutlierFilter
from .pipeline import PipelineController, TickResult
from .samples import Sample, SampleWindow, WindowSummary
from .simulation import SimulatedRangeSource
from .strategies import (
    KALMAN_FILTER,
    MEDIAN_AVERAGE,
    MOVING_AVERAGE,
    EstimateResult,
    EstimationStrategy,
    MedianStrategy,
    MovingAverageStrategy,
    StrategyRegistry,
    default_registry,
)

__all__ = [
    "PipelineRuntime",
    "build_pipeline",
    "IngestionConfig",
    "LoggingConfig",
    "MetricsConfig",
    "PipelineConfig",
    "RangingSettings",
    "PipelineDaemon",
    "run_daemon",
    "DispersionTracker",
    "DispersionUpdate",
    "LineIngestor",
    "MalformedRecordError",
    "open_line_source",
    "parse_record",
    "KalmanCovariance",
    "KalmanFilterStrategy",
    "KalmanState",
    "JsonFormatter",
    "configure_logging",
    "RangeRecordModel",
    "HealthMonitor",
    "HealthStatus",
    "MetricsExporter",
    "collect_metrics",
    "RssiOutlierFilter",
    "PipelineController",
    "TickResult",
    "Sample",
    "SampleWindow",
    "WindowSummary",
    "SimulatedRangeSource",
    "KALMAN_FILTER",
    "MEDIAN_AVERAGE",
    "MOVING_AVERAGE",
    "EstimateResult",
    "EstimationStrategy",
    "MedianStrategy",
    "MovingAverageStrategy",
    "StrategyRegistry",
    "default_registry",
]
