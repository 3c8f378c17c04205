"""Estimation strategies that turn a window of samples into a point estimate.

Each strategy is independent math behind the same two-method contract
(``compute`` and ``reset``), so the controller can swap them at runtime. The
registry is an explicit lookup table built at startup and handed to the
controller.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Iterable, Iterator, Protocol, Sequence

from .samples import Sample

MOVING_AVERAGE = "movingAverage"
MEDIAN_AVERAGE = "medianAverage"
KALMAN_FILTER = "kalmanFilter"

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimateResult:
    """Point estimate produced by a strategy for one tick."""

    avg_distance: float
    avg_signal_strength: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.avg_distance) and math.isfinite(self.avg_signal_strength)


ZERO_ESTIMATE = EstimateResult(avg_distance=0.0, avg_signal_strength=0.0)


class EstimationStrategy(Protocol):
    """Protocol for pluggable window estimators."""

    strategy_id: str

    def compute(self, samples: Sequence[Sample]) -> EstimateResult:
        """Return the estimate for the given window; zero for an empty window."""

    def reset(self) -> None:
        """Return any internal state to its initial condition."""


class MovingAverageStrategy:
    """Arithmetic mean of distance and signal strength."""

    strategy_id = MOVING_AVERAGE

    def compute(self, samples: Sequence[Sample]) -> EstimateResult:
        if not samples:
            return ZERO_ESTIMATE
        count = len(samples)
        return EstimateResult(
            avg_distance=sum(sample.distance for sample in samples) / count,
            avg_signal_strength=sum(sample.signal_strength for sample in samples) / count,
        )

    def reset(self) -> None:
        return None


class MedianStrategy:
    """Median of distance and of signal strength, taken independently.

    The two medians are sorted separately, so they need not come from the
    same physical sample.
    """

    strategy_id = MEDIAN_AVERAGE

    def compute(self, samples: Sequence[Sample]) -> EstimateResult:
        if not samples:
            return ZERO_ESTIMATE
        return EstimateResult(
            avg_distance=_median(sample.distance for sample in samples),
            avg_signal_strength=_median(sample.signal_strength for sample in samples),
        )

    def reset(self) -> None:
        return None


def _median(values: Iterable[float]) -> float:
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


class StrategyRegistry:
    """Map strategy identifiers to strategy instances.

    Lookups never fail: unknown identifiers fall back to the moving average.
    """

    def __init__(self, *strategies: EstimationStrategy) -> None:
        self._strategies: dict[str, EstimationStrategy] = {}
        self._fallback: EstimationStrategy = MovingAverageStrategy()
        self.register(self._fallback)
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: EstimationStrategy) -> None:
        self._strategies[strategy.strategy_id] = strategy
        if strategy.strategy_id == MOVING_AVERAGE:
            self._fallback = strategy

    def get(self, strategy_id: str) -> EstimationStrategy:
        strategy = self._strategies.get(strategy_id)
        if strategy is None:
            _LOGGER.debug("unknown_strategy", extra={"strategy_id": strategy_id, "fallback": MOVING_AVERAGE})
            return self._fallback
        return strategy

    def ids(self) -> list[str]:
        return list(self._strategies)

    def __iter__(self) -> Iterator[EstimationStrategy]:
        return iter(self._strategies.values())


def default_registry(max_speed_mps: float | None = None) -> StrategyRegistry:
    """Build a registry holding the three built-in strategies."""

    from .kalman import KalmanFilterStrategy  # noqa: PLC0415

    kalman = KalmanFilterStrategy()
    if max_speed_mps is not None:
        kalman.set_max_speed(max_speed_mps)
    return StrategyRegistry(MovingAverageStrategy(), MedianStrategy(), kalman)
