"""Great-circle arc sampling with antimeridian segmentation.

:func:`great_circle_arc` returns either one continuous list of points or,
when the path crosses the +/-180 meridian, a list of segments that are each
continuous in longitude. Points are ``(lon, lat)`` tuples, or ``(lon, lat,
height)`` when ``include_height`` is set; ``height`` is the radial lift above
the unit sphere.

The lift follows a ``sin(t * pi)`` envelope whose peak grows with the angular
length of the route, capped at ``max_height``. Because the lift is radial it
leaves longitude and latitude unchanged; renderers that draw in 3D read it from
the third coordinate.
"""

from __future__ import annotations

import logging
import math
from typing import List, Sequence, Tuple, Union

import numpy as np

from routeatlas.errors import ArcGeometryError

logger = logging.getLogger(__name__)

Point = Tuple[float, ...]
Segment = List[Point]
ArcPath = Union[Segment, List[Segment]]

DEFAULT_HEIGHT_FACTOR = 0.5
DEFAULT_NUM_POINTS = 100
MAX_HEIGHT = 0.5
_MIN_ANGULAR_DISTANCE = 1e-12


def crosses_antimeridian(lon1: float, lon2: float) -> bool:
    return abs(lon2 - lon1) > 180.0


def _validate(start: Sequence[float], end: Sequence[float]) -> Tuple[float, float, float, float]:
    try:
        lon1, lat1 = float(start[0]), float(start[1])
        lon2, lat2 = float(end[0]), float(end[1])
    except (TypeError, ValueError, IndexError) as exc:
        raise ArcGeometryError(f"Invalid arc endpoints {start!r} -> {end!r}") from exc
    if not all(math.isfinite(v) for v in (lon1, lat1, lon2, lat2)):
        raise ArcGeometryError(f"Non-finite arc endpoints {start!r} -> {end!r}")
    return lon1, lat1, lon2, lat2


def _as_point(value: object) -> Point:
    try:
        return tuple(value)  # type: ignore[arg-type]
    except TypeError:
        return (value,)  # type: ignore[return-value]


def angular_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Central angle in radians along the shortest great-circle path."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)
    if crosses_antimeridian(lon1, lon2):
        delta_lambda += -2 * math.pi if delta_lambda > 0 else 2 * math.pi
    cos_dist = math.sin(phi1) * math.sin(phi2) + math.cos(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    return math.acos(max(-1.0, min(1.0, cos_dist)))


def effective_height(height_factor: float, distance: float, max_height: float = MAX_HEIGHT) -> float:
    """Peak lift for a route of ``distance`` radians."""
    return min(max_height, height_factor * (distance / math.pi) * 3)


def _slerp(
    lon1: float, lat1: float, lon2: float, lat2: float, distance: float, num_points: int, peak: float
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    phi1, lambda1 = math.radians(lat1), math.radians(lon1)
    phi2, lambda2 = math.radians(lat2), math.radians(lon2)
    sin_d = math.sin(distance)
    if abs(sin_d) < _MIN_ANGULAR_DISTANCE:
        raise ArcGeometryError("Antipodal endpoints have no unique great circle")

    t = np.arange(num_points + 1, dtype=float) / num_points
    a = np.sin((1.0 - t) * distance) / sin_d
    b = np.sin(t * distance) / sin_d
    x = a * math.cos(phi1) * math.cos(lambda1) + b * math.cos(phi2) * math.cos(lambda2)
    y = a * math.cos(phi1) * math.sin(lambda1) + b * math.cos(phi2) * math.sin(lambda2)
    z = a * math.sin(phi1) + b * math.sin(phi2)
    lat = np.arctan2(z, np.hypot(x, y))
    lon = np.arctan2(y, x)

    lift = np.sin(t * math.pi) * peak
    if peak > 0:
        radius = 1.0 + lift
        xc = np.cos(lat) * np.cos(lon) * radius
        yc = np.cos(lat) * np.sin(lon) * radius
        zc = np.sin(lat) * radius
        lat = np.arctan2(zc, np.hypot(xc, yc))
        lon = np.arctan2(yc, xc)
    return np.degrees(lon), np.degrees(lat), lift


def split_at_antimeridian(points: Sequence[Point]) -> ArcPath:
    """Split a point sequence wherever consecutive longitudes jump by >180.

    The crossing latitude (and height, if present) is linearly interpolated
    and duplicated at +/-180 on both sides of the split.
    """
    if len(points) < 2:
        return list(points)
    segments: List[Segment] = []
    current: Segment = [points[0]]
    for prev, curr in zip(points, points[1:]):
        prev_lon, curr_lon = prev[0], curr[0]
        if abs(curr_lon - prev_lon) > 180.0:
            if prev_lon > 0 > curr_lon:
                before, after = 180.0 - prev_lon, 180.0 + curr_lon
                exit_lon, entry_lon = 180.0, -180.0
            else:
                before, after = 180.0 + prev_lon, 180.0 - curr_lon
                exit_lon, entry_lon = -180.0, 180.0
            ratio = before / (before + after) if before + after > 0 else 0.0
            rest = tuple(p + (c - p) * ratio for p, c in zip(prev[1:], curr[1:]))
            current.append((exit_lon, *rest))
            segments.append(current)
            current = [(entry_lon, *rest)]
        current.append(curr)
    segments.append(current)
    return segments if len(segments) > 1 else list(points)


def is_segmented(path: ArcPath) -> bool:
    if not path or not isinstance(path[0], list) or not path[0]:
        return False
    return isinstance(path[0][0], (list, tuple))


def as_segments(path: ArcPath) -> List[Segment]:
    """Always return a list of segments."""
    if is_segmented(path):
        return list(path)  # type: ignore[arg-type]
    return [list(path)]  # type: ignore[arg-type]


def great_circle_arc(
    start: Sequence[float],
    end: Sequence[float],
    height_factor: float = DEFAULT_HEIGHT_FACTOR,
    num_points: int = DEFAULT_NUM_POINTS,
    *,
    max_height: float = MAX_HEIGHT,
    include_height: bool = False,
) -> ArcPath:
    """Sample ``num_points + 1`` points along the shortest great-circle path.

    Parameters
    ----------
    start, end:
        ``(lon, lat)`` endpoints in degrees.
    height_factor:
        Scale of the radial lift; scaled by the route's angular length and
        capped at ``max_height``.
    num_points:
        Number of interpolation steps.
    include_height:
        Emit ``(lon, lat, height)`` triples instead of ``(lon, lat)`` pairs.

    Returns the straight ``[start, end]`` pair when the endpoints are
    unusable, and the two endpoints with zero height when they coincide.
    """
    if num_points < 1:
        raise ValueError("num_points must be at least 1.")
    try:
        lon1, lat1, lon2, lat2 = _validate(start, end)
        distance = angular_distance(lon1, lat1, lon2, lat2)
        if distance < _MIN_ANGULAR_DISTANCE:
            if include_height:
                return [(lon1, lat1, 0.0), (lon2, lat2, 0.0)]
            return [(lon1, lat1), (lon2, lat2)]
        peak = effective_height(height_factor, distance, max_height)
        lons, lats, lifts = _slerp(lon1, lat1, lon2, lat2, distance, num_points, peak)
    except ArcGeometryError as exc:
        logger.warning("Arc geometry fallback to straight segment: %s", exc)
        return [_as_point(start), _as_point(end)]

    if include_height:
        points: Segment = [(float(x), float(y), float(h)) for x, y, h in zip(lons, lats, lifts)]
    else:
        points = [(float(x), float(y)) for x, y in zip(lons, lats)]
    return split_at_antimeridian(points)


__all__ = [
    "ArcPath",
    "Point",
    "Segment",
    "angular_distance",
    "as_segments",
    "crosses_antimeridian",
    "effective_height",
    "great_circle_arc",
    "is_segmented",
    "split_at_antimeridian",
]
