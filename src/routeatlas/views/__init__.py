"""Derived view exports."""

from .color_scale import PassengerColorScale
from .derived_views import DerivedViewCache, assign_arc_angles
from .rankings import (
    CountryRankings,
    PeriodStats,
    RankedEntry,
    RouteChange,
    period_stats,
    route_changes,
    top_countries,
    top_routes,
)
from .view_cache import BoundedCache, ViewCacheRegistry

__all__ = [
    "BoundedCache",
    "CountryRankings",
    "DerivedViewCache",
    "PassengerColorScale",
    "PeriodStats",
    "RankedEntry",
    "RouteChange",
    "ViewCacheRegistry",
    "assign_arc_angles",
    "period_stats",
    "route_changes",
    "top_countries",
    "top_routes",
]
