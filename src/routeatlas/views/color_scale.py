"""Passenger-volume colour ramp used for route arcs and trails."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from routeatlas.ingest.domain_types import FlightRecord

RGB = Tuple[int, int, int]

LOW_COLOR: RGB = (59, 130, 246)


def to_hex(color: RGB) -> str:
    return "#{:02X}{:02X}{:02X}".format(*color)


def ramp(value: float) -> RGB:
    """Blue -> green -> yellow -> red for ``value`` in [0, 1]."""
    if value < 0.33:
        u = value * 3
        return (
            math.floor(59 * (1 - u)),
            math.floor(130 * (1 - u) + 200 * u),
            math.floor(246 * (1 - u)),
        )
    if value < 0.66:
        u = (value - 0.33) * 3
        return (math.floor(255 * u), math.floor(200 * (1 - u) + 255 * u), 0)
    u = (value - 0.66) * 3
    return (255, max(0, math.floor(255 * (1 - u))), 0)


@dataclass(frozen=True)
class PassengerColorScale:
    """Log scale over passenger counts, clamped to its domain."""

    minimum: float = 1.0
    maximum: float = 1.0

    @classmethod
    def from_flights(cls, flights: Iterable[FlightRecord]) -> "PassengerColorScale":
        counts = np.array([f.passengers for f in flights], dtype=float)
        if counts.size == 0:
            return cls()
        return cls(minimum=max(1.0, float(counts.min())), maximum=max(1.0, float(counts.max())))

    def normalize(self, passengers: float) -> float:
        low, high = math.log(self.minimum), math.log(self.maximum)
        if high == low:
            return 0.5
        value = (math.log(max(passengers, 1e-12)) - low) / (high - low)
        return min(1.0, max(0.0, value))

    def rgb(self, passengers: float) -> RGB:
        if passengers <= 0:
            return LOW_COLOR
        return ramp(self.normalize(passengers))

    def color(self, passengers: float) -> str:
        return to_hex(self.rgb(passengers))
