"""Country boundary dataset loading and simplification."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from shapely.geometry import Point, box, shape
from shapely.strtree import STRtree

from .polygon_ops import nearest_by_vertex, point_in_polygon

logger = logging.getLogger(__name__)

_NAME_KEYS = ("NAME", "name", "ADMIN", "admin")
_ISO_KEYS = ("ISO_A2", "iso_a2", "isoCode", "iso_code")
_POLYGON_TYPES = {"Polygon", "MultiPolygon"}

Bounds = Tuple[float, float, float, float]


def _first(props: Mapping[str, object], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = props.get(key)
        if value not in (None, ""):
            return str(value)
    return None


@dataclass(frozen=True)
class CountryBoundary:
    """Simplified boundary feature: geometry plus name and ISO code only."""

    name: str
    iso_code: Optional[str]
    geometry: Mapping[str, object] = field(repr=False, compare=False)
    bounds: Bounds = field(default=(-180.0, -90.0, 180.0, 90.0), compare=False)

    def contains(self, lon: float, lat: float) -> bool:
        return point_in_polygon(lon, lat, self.geometry)


def simplify_feature(feature: Mapping[str, object]) -> Optional[CountryBoundary]:
    """Reduce a raw boundary feature; non-polygon features return ``None``."""
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping) or geometry.get("type") not in _POLYGON_TYPES:
        return None
    props = feature.get("properties") or {}
    try:
        bounds = shape(geometry).bounds
    except (ValueError, TypeError, AttributeError) as exc:
        logger.warning("Dropping boundary %r with invalid geometry: %s", _first(props, _NAME_KEYS), exc)
        return None
    return CountryBoundary(
        name=_first(props, _NAME_KEYS) or "Unknown",
        iso_code=_first(props, _ISO_KEYS),
        geometry={"type": geometry["type"], "coordinates": geometry.get("coordinates")},
        bounds=tuple(float(v) for v in bounds),  # type: ignore[arg-type]
    )


def boundaries_from_features(features: Iterable[Mapping[str, object]]) -> List[CountryBoundary]:
    boundaries: List[CountryBoundary] = []
    dropped = 0
    for feature in features:
        boundary = simplify_feature(feature)
        if boundary is None:
            dropped += 1
            continue
        boundaries.append(boundary)
    if dropped:
        logger.debug("Dropped %d non-polygon boundary features", dropped)
    return boundaries


def load_boundaries(path: str | Path) -> List[CountryBoundary]:
    """Read a polygon feature collection and simplify it."""
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    features = payload.get("features") or []
    boundaries = boundaries_from_features(features)
    logger.info("Loaded %d country boundaries from %s", len(boundaries), path)
    return boundaries


class BoundaryLocator:
    """Point-to-boundary lookup over a fixed boundary list.

    An STR-tree over the bounding boxes narrows each query to candidate
    boundaries; containment itself is decided by ray casting on the GeoJSON
    rings. Candidates are visited in list order so the first containing
    boundary wins, as does the first boundary at the minimum vertex distance.
    """

    def __init__(self, boundaries: Sequence[CountryBoundary]):
        self._boundaries = list(boundaries)
        self._sindex = STRtree([box(*b.bounds) for b in self._boundaries]) if self._boundaries else None

    def __len__(self) -> int:
        return len(self._boundaries)

    def candidates(self, lon: float, lat: float) -> List[CountryBoundary]:
        """Boundaries whose bounding box covers the point, in list order."""
        if self._sindex is None:
            return []
        hits = self._sindex.query(Point(lon, lat), predicate="intersects")
        return [self._boundaries[idx] for idx in sorted(int(i) for i in hits)]

    def locate(self, lon: float, lat: float) -> Optional[CountryBoundary]:
        """Containing boundary, or the nearest one by vertex distance."""
        for boundary in self.candidates(lon, lat):
            if boundary.contains(lon, lat):
                return boundary
        idx = nearest_by_vertex(lon, lat, (b.geometry for b in self._boundaries))
        return self._boundaries[idx] if idx is not None else None


def index_by_name(boundaries: Iterable[CountryBoundary]) -> Dict[str, CountryBoundary]:
    return {boundary.name: boundary for boundary in boundaries}
