"""Flight-route records to renderable arcs, trails and country views."""

from .config import EngineConfig
from .ingest import NO_DIRECT_SERVICE, Airport, FlightRecord, RecordStore, TimeSeriesPoint

__all__ = [
    "Airport",
    "EngineConfig",
    "FlightRecord",
    "NO_DIRECT_SERVICE",
    "RecordStore",
    "RouteAtlasService",
    "TimeSeriesPoint",
]


def __getattr__(name):
    if name == "RouteAtlasService":
        from .service import RouteAtlasService

        return RouteAtlasService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
