"""Compare the built-in estimation strategies on a simulated stream.

The stream holds a constant distance, steps to a new distance halfway through
and then pauses long enough to trigger the Kalman gap reset. Each strategy
runs through its own pipeline with identical input.
"""

from __future__ import annotations

from dataclasses import dataclass

from ranging_pipeline.config import PipelineConfig
from ranging_pipeline.pipeline import PipelineController
from ranging_pipeline.samples import Sample, SampleWindow
from ranging_pipeline.simulation import SimulatedRangeSource
from ranging_pipeline.strategies import KALMAN_FILTER, MEDIAN_AVERAGE, MOVING_AVERAGE


@dataclass
class ComparisonResult:
    label: str
    mean_abs_error: float
    final_std_dev: float


def _stream() -> list[tuple[float, Sample]]:
    near = SimulatedRangeSource(base_distance=3.0, fluctuation=0.5, seed=11)
    far = SimulatedRangeSource(base_distance=6.0, fluctuation=0.5, seed=12)
    samples = []
    timestamp_ms = 0
    for step in range(600):
        source, truth = (near, 3.0) if step < 300 else (far, 6.0)
        if step == 450:
            timestamp_ms += 8_000
        timestamp_ms += 20
        distance, rssi = source.measure()
        samples.append((truth, Sample(distance=distance, signal_strength=float(rssi), timestamp_ms=timestamp_ms)))
    return samples


def _run(algorithm: str) -> ComparisonResult:
    window = SampleWindow(window_size=25)
    controller = PipelineController(window, config=PipelineConfig(window_size=25, algorithm=algorithm))
    errors = []
    for truth, sample in _stream():
        window.append(sample)
        result = controller.tick()
        if result is not None:
            errors.append(abs(result.estimate.avg_distance - truth))
    return ComparisonResult(
        label=algorithm,
        mean_abs_error=sum(errors) / len(errors),
        final_std_dev=controller.dispersion.standard_deviation,
    )


def run() -> list[ComparisonResult]:
    return [_run(algorithm) for algorithm in (MOVING_AVERAGE, MEDIAN_AVERAGE, KALMAN_FILTER)]


if __name__ == "__main__":
    for result in run():
        print(f"{result.label} mean_abs_error={result.mean_abs_error:.4f} final_std_dev={result.final_std_dev:.4f}")
