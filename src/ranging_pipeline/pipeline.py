"""Pipeline controller that runs one estimation tick at a time.

A tick takes a copy of the trailing window, optionally drops signal-strength
outliers, asks the active strategy for an estimate and feeds the result into
the dispersion tracker. Ticks never overlap: a tick requested while another
is in flight is skipped. Strategy swaps, reconfiguration and resets requested
while a tick is running are queued and applied at the next tick boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Any

from pydantic import ValidationError

from .config import PipelineConfig
from .dispersion import DispersionTracker, DispersionUpdate
from .outliers import RssiOutlierFilter
from .samples import SampleWindow, WindowSummary
from .strategies import EstimateResult, EstimationStrategy, StrategyRegistry, default_registry


@dataclass(frozen=True)
class TickResult:
    """Outcome of a completed tick."""

    estimate: EstimateResult
    dispersion: DispersionUpdate | None
    sample_count: int
    filtered_count: int
    strategy_id: str


class PipelineController:
    """Own the active strategy and dispersion state and run ticks."""

    def __init__(
        self,
        window: SampleWindow,
        registry: StrategyRegistry | None = None,
        outlier_filter: RssiOutlierFilter | None = None,
        dispersion: DispersionTracker | None = None,
        config: PipelineConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._window = window
        self._registry = registry or default_registry(self._config.max_speed_mps)
        self._outliers = outlier_filter or RssiOutlierFilter()
        self._dispersion = dispersion or DispersionTracker()
        self._logger = logger or logging.getLogger(__name__)

        self._tick_guard = threading.Lock()
        self._pending_lock = threading.Lock()
        self._pending_config: PipelineConfig | None = None
        self._reset_requested = False
        self._last_estimate: EstimateResult | None = None

        self._apply_tunables(self._config)
        self._strategy: EstimationStrategy = self._registry.get(self._config.algorithm)
        self._strategy.reset()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def active_strategy_id(self) -> str:
        return self._strategy.strategy_id

    @property
    def last_estimate(self) -> EstimateResult | None:
        return self._last_estimate

    @property
    def dispersion(self) -> DispersionTracker:
        return self._dispersion

    def window_summary(self) -> WindowSummary:
        return self._window.summary()

    def tick(self) -> TickResult | None:
        """Run one snapshot/filter/estimate/dispersion cycle.

        Returns:
            The tick result, or None if the tick was skipped (another tick in
            flight, empty window) or discarded (non-finite estimate).
        """

        if not self._tick_guard.acquire(blocking=False):
            self._logger.debug("tick_skipped", extra={"reason": "in_flight"})
            return None
        try:
            self._drain_pending()
            snapshot = self._window.snapshot(self._config.window_size)
            if not snapshot:
                return None
            filtered = self._outliers.apply(snapshot)
            estimate = self._strategy.compute(filtered)
            if not estimate.is_finite:
                self._logger.warning(
                    "tick_discarded",
                    extra={"strategy": self._strategy.strategy_id, "avg_distance": estimate.avg_distance},
                )
                return None
            update = self._dispersion.update(estimate, filtered)
            self._last_estimate = estimate
            return TickResult(
                estimate=estimate,
                dispersion=update,
                sample_count=len(snapshot),
                filtered_count=len(filtered),
                strategy_id=self._strategy.strategy_id,
            )
        finally:
            self._tick_guard.release()

    def select_strategy(self, strategy_id: str) -> None:
        """Switch the active strategy; unknown ids select the moving average."""

        with self._pending_lock:
            base = self._pending_config or self._config
        self.apply_config(base.model_copy(update={"algorithm": strategy_id}))

    def update_config(self, **changes: Any) -> bool:
        """Validate and apply a partial configuration change.

        Invalid values are logged and ignored; the prior configuration stays
        in effect.

        Returns:
            True if the change was accepted.
        """

        with self._pending_lock:
            base = self._pending_config or self._config
        try:
            config = PipelineConfig.model_validate({**base.model_dump(), **changes})
        except ValidationError as exc:
            self._logger.warning("config_rejected", extra={"changes": changes, "error": str(exc)})
            return False
        self.apply_config(config)
        return True

    def apply_config(self, config: PipelineConfig) -> None:
        """Apply a full configuration now, or at the next tick boundary."""

        with self._pending_lock:
            self._pending_config = config
        self._drain_if_idle()

    def reset_all(self) -> None:
        """Clear dispersion history, counters and the active strategy's state."""

        with self._pending_lock:
            self._reset_requested = True
        self._drain_if_idle()

    def _drain_if_idle(self) -> None:
        if not self._tick_guard.acquire(blocking=False):
            self._logger.debug("change_deferred", extra={"reason": "tick_in_flight"})
            return
        try:
            self._drain_pending()
        finally:
            self._tick_guard.release()

    def _drain_pending(self) -> None:
        with self._pending_lock:
            config, self._pending_config = self._pending_config, None
            reset, self._reset_requested = self._reset_requested, False
        if config is not None:
            self._switch(config)
        if reset:
            self._dispersion.reset()
            self._strategy.reset()
            self._last_estimate = None
            self._logger.info("pipeline_reset", extra={"strategy": self._strategy.strategy_id})

    def _switch(self, config: PipelineConfig) -> None:
        previous = self._strategy
        speed_changed = config.max_speed_kmh != self._config.max_speed_kmh
        self._apply_tunables(config)
        strategy = self._registry.get(config.algorithm)
        speed_relevant = speed_changed and hasattr(strategy, "set_max_speed")
        if strategy is not previous or speed_relevant:
            strategy.reset()
            self._logger.info(
                "strategy_reset",
                extra={
                    "strategy": strategy.strategy_id,
                    "previous": previous.strategy_id,
                    "speed_changed": speed_changed,
                },
            )
        self._strategy = strategy
        self._config = config

    def _apply_tunables(self, config: PipelineConfig) -> None:
        self._window.resize(config.window_size)
        self._outliers.enabled = config.use_outlier_filter
        self._outliers.threshold_db = config.outlier_threshold_db
        for strategy in self._registry:
            set_max_speed = getattr(strategy, "set_max_speed", None)
            if set_max_speed is not None:
                set_max_speed(config.max_speed_mps)
