import math

import pytest

from ranging_pipeline.kalman import KalmanFilterStrategy
from ranging_pipeline.samples import Sample
from ranging_pipeline.strategies import (
    KALMAN_FILTER,
    MEDIAN_AVERAGE,
    MOVING_AVERAGE,
    EstimateResult,
    MedianStrategy,
    MovingAverageStrategy,
    StrategyRegistry,
    default_registry,
)

T0 = 1_700_000_000_000


def _scenario() -> list[Sample]:
    return [
        Sample(distance=10.0, signal_strength=-50.0, timestamp_ms=T0),
        Sample(distance=12.0, signal_strength=-48.0, timestamp_ms=T0 + 10),
        Sample(distance=11.0, signal_strength=-49.0, timestamp_ms=T0 + 20),
    ]


def test_moving_average_scenario() -> None:
    result = MovingAverageStrategy().compute(_scenario())
    assert result.avg_distance == pytest.approx(11.0)
    assert result.avg_signal_strength == pytest.approx(-49.0)


def test_median_scenario() -> None:
    result = MedianStrategy().compute(_scenario())
    assert result.avg_distance == 11.0
    assert result.avg_signal_strength == -49.0


def test_moving_average_matches_arithmetic_mean() -> None:
    distances = [0.5, 3.25, 7.0, 1.125, 9.75, 2.0]
    samples = [Sample(distance=value, signal_strength=-60.0) for value in distances]
    result = MovingAverageStrategy().compute(samples)
    assert math.isclose(result.avg_distance, sum(distances) / len(distances), rel_tol=1e-12)


def test_median_even_count_averages_central_pair() -> None:
    samples = [
        Sample(distance=4.0, signal_strength=-40.0),
        Sample(distance=1.0, signal_strength=-70.0),
        Sample(distance=3.0, signal_strength=-60.0),
        Sample(distance=2.0, signal_strength=-50.0),
    ]
    result = MedianStrategy().compute(samples)
    assert result.avg_distance == 2.5
    assert result.avg_signal_strength == -55.0


def test_median_sorts_signal_strength_independently() -> None:
    samples = [
        Sample(distance=1.0, signal_strength=-30.0),
        Sample(distance=2.0, signal_strength=-90.0),
        Sample(distance=3.0, signal_strength=-60.0),
    ]
    result = MedianStrategy().compute(samples)
    # The median distance comes from the -90 dB sample, the median RSSI from another.
    assert result.avg_distance == 2.0
    assert result.avg_signal_strength == -60.0


@pytest.mark.parametrize("strategy", [MovingAverageStrategy(), MedianStrategy(), KalmanFilterStrategy()])
def test_empty_window_yields_zero_estimate(strategy) -> None:
    assert strategy.compute([]) == EstimateResult(avg_distance=0.0, avg_signal_strength=0.0)


def test_registry_unknown_id_falls_back_to_moving_average() -> None:
    registry = default_registry()
    fallback = registry.get("doesNotExist")
    assert fallback is registry.get(MOVING_AVERAGE)
    assert fallback.compute(_scenario()) == registry.get(MOVING_AVERAGE).compute(_scenario())


def test_default_registry_contains_builtins() -> None:
    registry = default_registry(max_speed_mps=3.0)
    assert set(registry.ids()) == {MOVING_AVERAGE, MEDIAN_AVERAGE, KALMAN_FILTER}
    kalman = registry.get(KALMAN_FILTER)
    assert isinstance(kalman, KalmanFilterStrategy)
    assert kalman.max_speed_mps == 3.0


def test_registry_register_replaces_fallback() -> None:
    custom = MovingAverageStrategy()
    registry = StrategyRegistry(custom)
    assert registry.get("unknown") is custom
