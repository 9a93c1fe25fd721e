"""Ingest package exports."""

from .domain_types import (
    NO_DIRECT_SERVICE,
    Airport,
    FlightRecord,
    NoDirectService,
    TimeSeriesPoint,
    coord_key,
    format_period,
    period_sort_key,
)
from .feed_loader import IngestResult, ingest, ingest_file, load_feed, split_airlines
from .record_store import RecordStore

__all__ = [
    "Airport",
    "FlightRecord",
    "IngestResult",
    "NO_DIRECT_SERVICE",
    "NoDirectService",
    "RecordStore",
    "TimeSeriesPoint",
    "coord_key",
    "format_period",
    "ingest",
    "ingest_file",
    "load_feed",
    "period_sort_key",
    "split_airlines",
]
