"""Country boundary, selection and assignment exports."""

from .boundaries import BoundaryLocator, CountryBoundary, boundaries_from_features, load_boundaries
from .country_assigner import (
    CountryAssignment,
    CountryAssignmentTask,
    assign_countries,
    country_names,
)
from .polygon_ops import haversine_km, min_vertex_distance_km, point_in_polygon
from .selection import ByName, CountrySelection, ReferenceRegion, Resolved, RouteSelection

__all__ = [
    "BoundaryLocator",
    "ByName",
    "CountryAssignment",
    "CountryAssignmentTask",
    "CountryBoundary",
    "CountrySelection",
    "ReferenceRegion",
    "Resolved",
    "RouteSelection",
    "assign_countries",
    "boundaries_from_features",
    "country_names",
    "haversine_km",
    "load_boundaries",
    "min_vertex_distance_km",
    "point_in_polygon",
]
