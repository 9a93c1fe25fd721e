"""Planar point-in-polygon tests and great-circle distances on GeoJSON rings.

Geometries are plain GeoJSON mappings (``{"type": "Polygon", "coordinates":
...}``) so that results match the boundary dataset exactly. Containment uses
ray casting with the even-odd rule over every ring of a polygon, so inner
rings carve holes out of the outer ring regardless of winding order.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional, Sequence

Ring = Sequence[Sequence[float]]

EARTH_RADIUS_KM = 6371.0


def haversine_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Approximate great-circle distance between two WGS84 points."""
    rad_lat1, rad_lon1 = math.radians(lat1), math.radians(lon1)
    rad_lat2, rad_lon2 = math.radians(lat2), math.radians(lon2)
    dlat = rad_lat2 - rad_lat1
    dlon = rad_lon2 - rad_lon1
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def polygon_parts(geometry: Optional[Mapping[str, object]]) -> List[Sequence[Ring]]:
    """Return the polygons (each a list of rings) of a Polygon/MultiPolygon."""
    if not geometry:
        return []
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if geom_type == "Polygon":
        return [coordinates]  # type: ignore[list-item]
    if geom_type == "MultiPolygon":
        return list(coordinates)  # type: ignore[arg-type]
    return []


def _ray_crossings(lon: float, lat: float, ring: Ring) -> int:
    crossings = 0
    count = len(ring)
    j = count - 1
    for i in range(count):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat):
            if lon < (xj - xi) * (lat - yi) / (yj - yi) + xi:
                crossings += 1
        j = i
    return crossings


def point_in_ring(lon: float, lat: float, ring: Ring) -> bool:
    return _ray_crossings(lon, lat, ring) % 2 == 1


def point_in_polygon(lon: float, lat: float, geometry: Optional[Mapping[str, object]]) -> bool:
    """Even-odd containment test against a Polygon or MultiPolygon."""
    for rings in polygon_parts(geometry):
        crossings = sum(_ray_crossings(lon, lat, ring) for ring in rings)
        if crossings % 2 == 1:
            return True
    return False


def min_vertex_distance_km(lon: float, lat: float, geometry: Optional[Mapping[str, object]]) -> float:
    """Smallest haversine distance from the point to any ring vertex.

    This is a vertex distance, not a distance to the polygon boundary; long
    edges with distant vertices can make a close polygon look far away.
    """
    best = math.inf
    for rings in polygon_parts(geometry):
        for ring in rings:
            for vertex in ring:
                distance = haversine_km(lon, lat, vertex[0], vertex[1])
                if distance < best:
                    best = distance
    return best


def nearest_by_vertex(lon: float, lat: float, geometries: Iterable[Mapping[str, object]]) -> Optional[int]:
    """Index of the geometry with the closest vertex; first minimum wins."""
    best_idx: Optional[int] = None
    best_distance = math.inf
    for idx, geometry in enumerate(geometries):
        distance = min_vertex_distance_km(lon, lat, geometry)
        if distance < best_distance:
            best_distance = distance
            best_idx = idx
    return best_idx
