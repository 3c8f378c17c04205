"""Dispersion statistics of raw samples around the current estimate."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import math
import threading
from typing import Sequence

from .samples import Sample
from .strategies import EstimateResult

HISTORY_CAPACITY = 10_000


@dataclass(frozen=True)
class DispersionUpdate:
    """Statistics produced by one accepted tick."""

    latest_deviation: float
    variance: float
    standard_deviation: float
    total_samples: int


class DispersionTracker:
    """Keep a bounded history of deviations from the running estimate.

    Only the newest sample's deviation is recorded per tick; the standard
    deviation covers the whole window the estimate was computed from. Reads
    may come from the exporter thread while ticks append.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._lock = threading.Lock()
        self._history: deque[float] = deque(maxlen=capacity)
        self._total_samples = 0
        self._last: DispersionUpdate | None = None

    @property
    def capacity(self) -> int:
        return self._history.maxlen or 0

    @property
    def total_samples(self) -> int:
        return self._total_samples

    @property
    def latest(self) -> DispersionUpdate | None:
        return self._last

    @property
    def standard_deviation(self) -> float:
        return self._last.standard_deviation if self._last else 0.0

    def update(self, estimate: EstimateResult, samples: Sequence[Sample]) -> DispersionUpdate | None:
        """Record one tick; non-finite estimates and empty windows are ignored."""

        if not estimate.is_finite or not samples:
            return None

        deviations = [sample.distance - estimate.avg_distance for sample in samples]
        variance = sum(deviation * deviation for deviation in deviations) / len(deviations)
        with self._lock:
            self._history.append(deviations[-1])
            self._total_samples += 1
            self._last = DispersionUpdate(
                latest_deviation=deviations[-1],
                variance=variance,
                standard_deviation=math.sqrt(variance),
                total_samples=self._total_samples,
            )
            return self._last

    def history(self) -> tuple[float, ...]:
        with self._lock:
            return tuple(self._history)

    def histogram(self, bins: int = 50, minimum: float = -2.0, maximum: float = 2.0) -> list[int]:
        """Bin the deviation history; values outside the range land in the edge bins."""

        if bins <= 0:
            raise ValueError("bins must be positive")
        if maximum <= minimum:
            raise ValueError("maximum must exceed minimum")
        width = (maximum - minimum) / bins
        counts = [0] * bins
        for deviation in self.history():
            index = math.floor((deviation - minimum) / width)
            counts[max(0, min(bins - 1, index))] += 1
        return counts

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
            self._total_samples = 0
            self._last = None
