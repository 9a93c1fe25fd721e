"""Parse raw route features into normalized flight records and airports.

The feed is a GeoJSON-like feature collection. Each feature carries either a
two-point ``LineString`` geometry or origin/destination coordinate properties,
plus airport names, a period code and traffic counts. Property names are
looked up through :data:`FEED_FIELDS`, which accepts both the English keys and
the Chinese keys used by the published CAA aggregate feed.

Ingestion runs in two passes. The first pass records, per rounded coordinate,
the last airport name seen at that location; the feed is assumed to be in
chronological order, so later names win. The second pass builds the records
with those resolved names and accumulates per-airport totals.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from routeatlas.errors import FeedDataError

from .domain_types import (
    PLACEHOLDER_POSITION,
    Airport,
    FlightRecord,
    coord_key,
    normalize_period,
)

logger = logging.getLogger(__name__)


FEED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "source": ("source", "origin", "出發機場"),
    "target": ("target", "destination", "到達機場"),
    "period": ("period", "year_month", "yearMonth", "年月"),
    "passengers": ("passengers", "載客人次"),
    "flights": ("flights", "航班數"),
    "load_factor": ("load_factor", "loadFactor", "平均載客率"),
    "airlines": ("airlines", "airline_list", "航空公司列表"),
    "source_lon": ("source_lon", "origin_lon", "出發經度"),
    "source_lat": ("source_lat", "origin_lat", "出發緯度"),
    "target_lon": ("target_lon", "destination_lon", "到達經度"),
    "target_lat": ("target_lat", "destination_lat", "到達緯度"),
}

AIRLINE_DELIMITERS: Sequence[str] = (",", "，", "、", "|")

_PLACEHOLDER_COORDS = (*PLACEHOLDER_POSITION, *PLACEHOLDER_POSITION)


@dataclass
class IngestResult:
    """Output of :func:`ingest`."""

    flights: List[FlightRecord] = field(default_factory=list)
    airports: List[Airport] = field(default_factory=list)
    period_index: Dict[str, List[FlightRecord]] = field(default_factory=dict)
    airport_index: Dict[str, Airport] = field(default_factory=dict)


# -------------------------------------------------------------------- helpers
def _prop(props: Mapping[str, object], name: str) -> object:
    for key in FEED_FIELDS[name]:
        if key in props and props[key] is not None:
            return props[key]
    return None


def _name(props: Mapping[str, object], name: str) -> str:
    value = _prop(props, name)
    if value is None:
        return ""
    return str(value).strip()


def _to_float(value: object, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def _finite(value: object) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise FeedDataError(f"Non-numeric coordinate {value!r}") from exc
    if not math.isfinite(result):
        raise FeedDataError(f"Non-finite coordinate {value!r}")
    return result


def extract_coordinates(feature: Mapping[str, object]) -> Tuple[float, float, float, float]:
    """Return ``(src_lon, src_lat, dst_lon, dst_lat)`` for a feature.

    Raises :class:`FeedDataError` when neither the geometry nor the
    coordinate properties are usable.
    """
    geometry = feature.get("geometry")
    if isinstance(geometry, Mapping) and geometry.get("type") == "LineString":
        coords = geometry.get("coordinates") or []
        if len(coords) >= 2:
            start, end = coords[0], coords[1]
            try:
                return (_finite(start[0]), _finite(start[1]), _finite(end[0]), _finite(end[1]))
            except (TypeError, IndexError) as exc:
                raise FeedDataError(f"Malformed LineString coordinates {coords!r}") from exc

    props = feature.get("properties") or {}
    values = [_prop(props, key) for key in ("source_lon", "source_lat", "target_lon", "target_lat")]
    if any(value is None or value == "" for value in values):
        raise FeedDataError("Feature has no usable geometry or coordinate properties")
    return tuple(_finite(value) for value in values)  # type: ignore[return-value]


def _coordinates_or_placeholder(
    feature: Mapping[str, object], position: int, *, warn: bool
) -> Tuple[float, float, float, float]:
    try:
        return extract_coordinates(feature)
    except FeedDataError as exc:
        if warn:
            logger.warning(
                "Feature %d: %s; using placeholder coordinates (0, 0).", position, exc
            )
        return _PLACEHOLDER_COORDS


def split_airlines(value: object) -> List[str]:
    """Normalize the airline field to a list of names."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        for delimiter in AIRLINE_DELIMITERS:
            if delimiter in text:
                return [part.strip() for part in text.split(delimiter) if part.strip()]
        return [text]
    return [str(value)]


# ---------------------------------------------------------------------- entry
def load_feed(path: str | Path) -> List[Mapping[str, object]]:
    """Read a feature collection from disk and return its features."""
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    features = payload.get("features") if isinstance(payload, Mapping) else None
    if not features:
        logger.warning("Feed %s contains no features.", path)
        return []
    return list(features)


def ingest(features: Iterable[Mapping[str, object]]) -> IngestResult:
    """Build flight records, deduplicated airports and lookup indexes."""
    items = [feature for feature in features]

    # Pass 1: last-seen name per rounded coordinate.
    latest_name: Dict[str, str] = {}
    for position, feature in enumerate(items):
        if not isinstance(feature, Mapping) or not feature.get("properties"):
            continue
        props = feature["properties"]
        src_lon, src_lat, dst_lon, dst_lat = _coordinates_or_placeholder(
            feature, position, warn=False
        )
        source = _name(props, "source")
        target = _name(props, "target")
        if source:
            latest_name[coord_key(src_lon, src_lat)] = source
        if target:
            latest_name[coord_key(dst_lon, dst_lat)] = target

    # Pass 2: records and cumulative airport totals.
    result = IngestResult()
    airports_by_key: Dict[str, Airport] = {}
    totals: Dict[str, List[float]] = {}
    for position, feature in enumerate(items):
        if not isinstance(feature, Mapping) or not feature.get("properties"):
            logger.warning("Feature %d has no properties; skipped.", position)
            continue
        props = feature["properties"]
        src_lon, src_lat, dst_lon, dst_lat = _coordinates_or_placeholder(
            feature, position, warn=True
        )
        source_key = coord_key(src_lon, src_lat)
        target_key = coord_key(dst_lon, dst_lat)
        passengers = _to_float(_prop(props, "passengers"))
        flights = int(_to_float(_prop(props, "flights")))

        record = FlightRecord(
            source=latest_name.get(source_key) or _name(props, "source"),
            target=latest_name.get(target_key) or _name(props, "target"),
            period=normalize_period(_prop(props, "period")),
            passengers=passengers,
            flights=flights,
            load_factor=_to_float(_prop(props, "load_factor")),
            airlines=tuple(split_airlines(_prop(props, "airlines"))),
            source_position=(src_lon, src_lat),
            target_position=(dst_lon, dst_lat),
            source_coord_key=source_key,
            target_coord_key=target_key,
            index=len(result.flights),
        )
        result.flights.append(record)
        result.period_index.setdefault(record.period, []).append(record)

        for name, key, lon, lat in (
            (record.source, source_key, src_lon, src_lat),
            (record.target, target_key, dst_lon, dst_lat),
        ):
            if key not in airports_by_key:
                airports_by_key[key] = Airport(name=name, longitude=lon, latitude=lat, coord_key=key)
                totals[key] = [0.0, 0]
            totals[key][0] += passengers
            totals[key][1] += flights

    result.airports = [
        replace(airport, passengers=totals[key][0], flights=int(totals[key][1]))
        for key, airport in airports_by_key.items()
    ]
    for airport in result.airports:
        result.airport_index[airport.name] = airport

    logger.info(
        "Ingested %d records, %d airports, %d periods",
        len(result.flights),
        len(result.airports),
        len(result.period_index),
    )
    return result


def ingest_file(path: str | Path) -> IngestResult:
    return ingest(load_feed(path))


def airport_for(index: Mapping[str, Airport], name: Optional[str]) -> Optional[Airport]:
    """Index lookup that logs and returns ``None`` on a miss."""
    if not name:
        return None
    airport = index.get(name)
    if airport is None:
        logger.debug("Airport %r is not in the index; skipping enrichment.", name)
    return airport
