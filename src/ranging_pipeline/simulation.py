"""Simulated ranging sensor for demos and tests.

The generator produces records in the same ``"%.2f %d"`` text format the
real sensor emits, so it can stand in for a device line source.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import random


@dataclass
class SimulatedRangeSource:
    """A simulated sensor reporting a noisy, roughly constant distance.

    Attributes:
        base_distance: True distance in meters.
        fluctuation: Half-width of the uniform distance noise in meters.
        rssi_range: Inclusive (low, high) bounds of the reported RSSI in dB.
        seed: Optional RNG seed for a reproducible stream.
    """

    base_distance: float = 5.0
    fluctuation: float = 1.0
    rssi_range: tuple[int, int] = (-70, -31)
    seed: int | None = None
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.fluctuation < 0:
            raise ValueError("fluctuation must be non-negative")
        if self.rssi_range[0] > self.rssi_range[1]:
            raise ValueError("rssi_range must be (low, high)")
        self._rng = random.Random(self.seed)

    def measure(self) -> tuple[float, int]:
        """Generate one (distance, rssi) pair."""

        distance = self.base_distance + self._rng.uniform(-self.fluctuation, self.fluctuation)
        rssi = self._rng.randint(*self.rssi_range)
        return distance, rssi

    def line(self) -> str:
        """Generate one newline-terminated text record."""

        distance, rssi = self.measure()
        return f"{distance:.2f} {rssi}\n"

    __call__ = line
