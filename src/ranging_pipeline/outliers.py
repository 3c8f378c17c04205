"""Signal-strength outlier rejection applied before estimation."""

from __future__ import annotations

import math
import statistics
from typing import Sequence

from .samples import Sample

MIN_THRESHOLD_DB = 1.0


class RssiOutlierFilter:
    """Drop samples whose signal strength strays too far from the median.

    Samples with a non-finite signal strength cannot be judged and are always
    kept. The filter never empties a window: if every sample would be
    rejected, the input is returned as-is.
    """

    def __init__(self, threshold_db: float = 6.0, enabled: bool = False) -> None:
        self._threshold_db = max(MIN_THRESHOLD_DB, threshold_db) if math.isfinite(threshold_db) else 6.0
        self.enabled = enabled

    @property
    def threshold_db(self) -> float:
        return self._threshold_db

    @threshold_db.setter
    def threshold_db(self, value: float) -> None:
        if not math.isfinite(value):
            return
        self._threshold_db = max(MIN_THRESHOLD_DB, value)

    def apply(self, samples: Sequence[Sample]) -> list[Sample]:
        """Return the samples that survive the median-deviation test."""

        if not self.enabled:
            return list(samples)

        finite = [sample.signal_strength for sample in samples if math.isfinite(sample.signal_strength)]
        if not finite:
            return list(samples)

        median = statistics.median(finite)
        kept = [
            sample
            for sample in samples
            if not math.isfinite(sample.signal_strength)
            or abs(sample.signal_strength - median) <= self._threshold_db
        ]
        if not kept:
            return list(samples)
        return kept
