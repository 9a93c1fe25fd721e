"""Core dataclasses shared across the ingest, views and animation packages."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

Position = Tuple[float, float]

PLACEHOLDER_POSITION: Position = (0.0, 0.0)

_PERIOD_RE = re.compile(r"^\d{6}$")


def coord_key(longitude: float, latitude: float) -> str:
    """Coordinate identity of an airport: both axes rounded to 4 decimals."""
    return f"{float(longitude):.4f},{float(latitude):.4f}"


# ------------------------------------------------------------------- periods
def normalize_period(value: object) -> str:
    """Return the 6-digit year-month code for a raw feed value.

    Numeric values (``202301`` or ``202301.0``) are rendered without a
    fractional part; strings are stripped. NaN, infinities and ``None`` become
    ``""``.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return ""
        return str(int(value))
    return str(value).strip()


def is_valid_period(period: str) -> bool:
    if not _PERIOD_RE.match(period or ""):
        return False
    month = int(period[4:])
    return 1 <= month <= 12


def period_sort_key(period: str) -> Tuple[int, int]:
    """(year, month) of a period code; malformed codes sort first."""
    if not is_valid_period(period):
        return (-1, -1)
    return int(period[:4]), int(period[4:])


def format_period(period: str) -> str:
    """Human readable ``YYYY-MM`` label; malformed codes are returned as-is."""
    if not is_valid_period(period):
        return period
    return f"{period[:4]}-{period[4:]}"


# ------------------------------------------------------------------ entities
@dataclass(frozen=True)
class FlightRecord:
    """One aggregated route record for a single period.

    ``index`` is the record's position in the canonical record list held by
    :class:`~routeatlas.ingest.record_store.RecordStore`. Enriched copies
    (positions looked up from the airport index, ``arc_angle``) are produced
    with :func:`dataclasses.replace` and keep the same index.
    """

    source: str
    target: str
    period: str
    passengers: float = 0.0
    flights: int = 0
    load_factor: float = 0.0
    airlines: Tuple[str, ...] = ()
    source_position: Optional[Position] = None
    target_position: Optional[Position] = None
    source_coord_key: str = ""
    target_coord_key: str = ""
    index: int = -1
    arc_angle: Optional[float] = None

    @property
    def route_id(self) -> str:
        return f"{self.source}-{self.target}"

    @property
    def period_label(self) -> str:
        return format_period(self.period)


@dataclass(frozen=True)
class Airport:
    """Airport deduplicated by coordinate key.

    ``passengers`` and ``flights`` are cumulative over the whole feed when the
    airport comes from the store, and period-scoped when returned by
    :meth:`DerivedViewCache.period_airports`.
    """

    name: str
    longitude: float
    latitude: float
    coord_key: str
    passengers: float = 0.0
    flights: int = 0

    @property
    def position(self) -> Position:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class TimeSeriesPoint:
    period: str
    passengers: float
    flights: int
    label: str = field(default="")

    def __post_init__(self) -> None:
        if not self.label:
            object.__setattr__(self, "label", format_period(self.period))


class NoDirectService:
    """Marker returned when a country query matched zero records."""

    _instance: Optional["NoDirectService"] = None

    def __new__(cls) -> "NoDirectService":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "NO_DIRECT_SERVICE"


NO_DIRECT_SERVICE = NoDirectService()
