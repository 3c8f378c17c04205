"""Raw range samples and the bounded ingestion window.

The window is the only structure shared between the ingestion path and the
estimation tick, so reads always hand out copies rather than live views.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import threading


@dataclass(frozen=True)
class Sample:
    """A single raw measurement from the ranging sensor.

    Attributes:
        distance: Reported distance in meters.
        signal_strength: Reported signal strength (RSSI) in dB.
        timestamp_ms: Arrival time in milliseconds, if known.
    """

    distance: float
    signal_strength: float
    timestamp_ms: int | None = None

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.distance) and math.isfinite(self.signal_strength)


@dataclass(frozen=True)
class WindowSummary:
    """Min/max overview of the current window for display purposes."""

    count: int
    min_distance: float | None = None
    max_distance: float | None = None
    min_signal_strength: float | None = None
    max_signal_strength: float | None = None


class SampleWindow:
    """Bounded buffer holding the most recent samples in arrival order.

    Up to ``2 * window_size`` samples are retained before the buffer is
    compacted back down to ``window_size``, so compaction cost is amortized
    over many appends.
    """

    def __init__(self, window_size: int = 50) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self._window_size = window_size
        self._samples: list[Sample] = []
        self._lock = threading.Lock()

    @property
    def window_size(self) -> int:
        return self._window_size

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: Sample) -> bool:
        """Append a sample, dropping it if any value is not finite.

        Returns:
            True if the sample was stored.
        """

        if not sample.is_finite:
            return False
        with self._lock:
            self._samples.append(sample)
            if len(self._samples) > self._window_size * 2:
                self._samples = self._samples[-self._window_size :]
        return True

    def snapshot(self, size: int | None = None) -> tuple[Sample, ...]:
        """Return a copy of the trailing ``size`` samples in arrival order."""

        size = self._window_size if size is None else size
        if size <= 0:
            return ()
        with self._lock:
            return tuple(self._samples[-size:])

    def resize(self, window_size: int) -> None:
        """Change the window bound; non-positive sizes are ignored."""

        if window_size <= 0:
            return
        with self._lock:
            self._window_size = window_size
            if len(self._samples) > window_size * 2:
                self._samples = self._samples[-window_size:]

    def clear(self) -> None:
        with self._lock:
            self._samples = []

    def summary(self) -> WindowSummary:
        samples = self.snapshot()
        if not samples:
            return WindowSummary(count=0)
        distances = [sample.distance for sample in samples]
        strengths = [sample.signal_strength for sample in samples]
        return WindowSummary(
            count=len(samples),
            min_distance=min(distances),
            max_distance=max(distances),
            min_signal_strength=min(strengths),
            max_signal_strength=max(strengths),
        )
