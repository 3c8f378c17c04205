"""Constant-velocity Kalman filter strategy for range tracking.

State vector:
    x = [position, velocity]

State transition:
    position_{k+1} = position_k + velocity_k * dt
    velocity_{k+1} = velocity_k

Measurement:
    z = position + measurement noise

The covariance is kept as four explicit elements so every step of the
propagation stays readable without a linear algebra dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import math
import time
from typing import Sequence, Tuple

from .samples import Sample
from .strategies import KALMAN_FILTER, ZERO_ESTIMATE, EstimateResult

# Assumed sensor variance of a single distance measurement (m^2).
MEASUREMENT_NOISE = 0.5
# Fraction of max_speed^2 used as the process noise intensity.
PROCESS_NOISE_SCALE = 0.1
# Step substituted for ties and non-monotonic timestamps (~50 Hz).
NOMINAL_DT_S = 0.02
# Gaps longer than this are treated as a discontinuity, not motion.
MAX_GAP_S = 5.0
DEFAULT_MAX_SPEED_MPS = 20.0 / 3.6

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class KalmanCovariance:
    """The 2x2 error covariance for [position, velocity]."""

    p00: float
    p01: float
    p10: float
    p11: float

    @classmethod
    def identity(cls) -> "KalmanCovariance":
        return cls(p00=1.0, p01=0.0, p10=0.0, p11=1.0)

    def as_matrix(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Return the covariance as a nested tuple for debugging or logging."""

        return ((self.p00, self.p01), (self.p10, self.p11))

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for value in (self.p00, self.p01, self.p10, self.p11))


@dataclass
class KalmanState:
    """Mutable filter state owned by a single strategy instance.

    Attributes:
        initialized: False until the first valid sample seeds the filter.
        position: Estimated distance in meters.
        velocity: Estimated radial velocity in meters/second.
        covariance: Error covariance of [position, velocity].
        last_timestamp_ms: Timestamp of the last sample folded in.
        max_speed_mps: Physical speed limit used for clamping and process noise.
        version: Incremented on every committed change.
    """

    initialized: bool = False
    position: float = 0.0
    velocity: float = 0.0
    covariance: KalmanCovariance = field(default_factory=KalmanCovariance.identity)
    last_timestamp_ms: int | None = None
    max_speed_mps: float = DEFAULT_MAX_SPEED_MPS
    version: int = 0

    def seed(self, distance: float, timestamp_ms: int) -> None:
        self.initialized = True
        self.position = distance
        self.velocity = 0.0
        self.covariance = KalmanCovariance.identity()
        self.last_timestamp_ms = timestamp_ms


class KalmanFilterStrategy:
    """Two-state Kalman estimator with velocity clamping and gap reset."""

    strategy_id = KALMAN_FILTER

    def __init__(self, max_speed_mps: float = DEFAULT_MAX_SPEED_MPS) -> None:
        self._state = KalmanState()
        self.set_max_speed(max_speed_mps)

    @property
    def state(self) -> KalmanState:
        """Return a copy of the current filter state."""

        return replace(self._state)

    @property
    def max_speed_mps(self) -> float:
        return self._state.max_speed_mps

    def set_max_speed(self, value: float) -> bool:
        """Set the speed limit in m/s.

        Non-finite and non-positive values are ignored.

        Returns:
            True if the stored limit changed.
        """

        if not math.isfinite(value) or value <= 0:
            return False
        if value == self._state.max_speed_mps:
            return False
        self._state.max_speed_mps = value
        self._state.velocity = max(-value, min(value, self._state.velocity))
        self._state.version += 1
        return True

    def reset(self) -> None:
        self._state = KalmanState(max_speed_mps=self._state.max_speed_mps, version=self._state.version + 1)

    def compute(self, samples: Sequence[Sample]) -> EstimateResult:
        """Fold the window into the filter and return the filtered position.

        The step runs on a copy of the state which is only committed if the
        result is finite; otherwise the previous state is kept and a
        non-finite estimate is returned.
        """

        ordered = sorted(
            (sample for sample in samples if math.isfinite(sample.distance)),
            key=_timestamp_of,
        )
        if not ordered:
            return ZERO_ESTIMATE

        state = replace(self._state)
        if not state.initialized:
            latest = ordered[-1]
            state.seed(latest.distance, _timestamp_of(latest))

        for sample in ordered:
            timestamp_ms = _timestamp_of(sample)
            dt = (timestamp_ms - state.last_timestamp_ms) / 1000.0 if state.last_timestamp_ms is not None else 0.0
            if not math.isfinite(dt) or dt <= 0:
                dt = NOMINAL_DT_S
            elif dt > MAX_GAP_S:
                _LOGGER.info("kalman_gap_reset", extra={"gap_s": dt, "distance": sample.distance})
                state.seed(sample.distance, timestamp_ms)
                continue
            self._step(state, sample.distance, dt)
            state.last_timestamp_ms = timestamp_ms

        estimate = EstimateResult(
            avg_distance=state.position,
            avg_signal_strength=sum(sample.signal_strength for sample in ordered) / len(ordered),
        )
        if not (math.isfinite(state.position) and math.isfinite(state.velocity) and state.covariance.is_finite()):
            _LOGGER.warning("kalman_state_non_finite", extra={"position": state.position, "velocity": state.velocity})
            return EstimateResult(avg_distance=math.nan, avg_signal_strength=estimate.avg_signal_strength)

        state.version += 1
        self._state = state
        return estimate

    @staticmethod
    def _step(state: KalmanState, measured: float, dt: float) -> None:
        cov = state.covariance

        # Discretized white-acceleration noise: Q = q * [[dt^4/4, dt^3/2], [dt^3/2, dt^2]]
        q = state.max_speed_mps**2 * PROCESS_NOISE_SCALE
        dt2 = dt * dt
        dt3 = dt2 * dt
        dt4 = dt3 * dt
        q00 = q * dt4 / 4.0
        q01 = q * dt3 / 2.0
        q11 = q * dt2

        # Prediction: x = F x where F = [[1, dt], [0, 1]]
        position = state.position + state.velocity * dt
        velocity = state.velocity

        # Covariance prediction: P = F P F^T + Q
        p00 = cov.p00 + dt * (cov.p10 + cov.p01) + dt2 * cov.p11 + q00
        p01 = cov.p01 + dt * cov.p11 + q01
        p10 = cov.p10 + dt * cov.p11 + q01
        p11 = cov.p11 + q11

        # Innovation covariance: S = H P H^T + R = P00 + R, with H = [1, 0]
        innovation_cov = p00 + MEASUREMENT_NOISE
        gain_position = p00 / innovation_cov
        gain_velocity = p10 / innovation_cov
        residual = measured - position

        position += gain_position * residual
        velocity += gain_velocity * residual
        limit = state.max_speed_mps
        velocity = max(-limit, min(limit, velocity))

        # Covariance update: P = (I - K H) P
        state.covariance = KalmanCovariance(
            p00=(1 - gain_position) * p00,
            p01=(1 - gain_position) * p01,
            p10=p10 - gain_velocity * p00,
            p11=p11 - gain_velocity * p01,
        )
        state.position = position
        state.velocity = velocity


def _timestamp_of(sample: Sample) -> int:
    if sample.timestamp_ms is None:
        return int(time.time() * 1000)
    return sample.timestamp_ms
