"""Per-selection projections of the record store.

Three views are memoized in a :class:`ViewCacheRegistry`:

* ``enhanced_flights(period, cap)`` - the ``cap`` busiest records of a period
  with endpoint positions and a bidirectional arc angle attached.
* ``period_airports(period)`` - airports active in a period with
  period-scoped passenger and flight totals.
* ``time_series(selection)`` - monthly totals for a route (both directions) or
  for cross-border traffic with a country, over the whole feed.

A query that misses the cache is a new selection: after storing the result
the registry applies its size policy, so no category holds more than
``limit`` entries once a query returns.

Every call hands back a new list over frozen records, so callers may modify
the list without touching the cached entry.

:meth:`DerivedViewCache.visible_flights` narrows the capped flight list to one
airport or to cross-border traffic with one country; it is a cheap filter over
the memoized list and is not cached itself.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Hashable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from routeatlas.countries.country_assigner import CountryAssignment
from routeatlas.countries.polygon_ops import point_in_polygon
from routeatlas.countries.selection import ByName, CountrySelection, ReferenceRegion, Resolved, RouteSelection
from routeatlas.ingest.domain_types import (
    NO_DIRECT_SERVICE,
    PLACEHOLDER_POSITION,
    Airport,
    FlightRecord,
    NoDirectService,
    TimeSeriesPoint,
    period_sort_key,
)
from routeatlas.ingest.record_store import RecordStore

from .view_cache import AIRPORTS, FLIGHTS, SERIES, ViewCacheRegistry

logger = logging.getLogger(__name__)

Selection = Union[RouteSelection, ByName, Resolved]
SeriesResult = Union[List[TimeSeriesPoint], NoDirectService]
AssignmentProvider = Callable[[], Mapping[str, CountryAssignment]]


def assign_arc_angles(records: List[FlightRecord], angle: float = 30.0) -> Dict[str, float]:
    """Map each directed ``route_id`` to ``+angle`` or ``-angle``.

    The first direction seen for an unordered endpoint pair gets ``+angle``;
    the opposite direction, if present, gets ``-angle``. Signs depend on the
    order of ``records`` and are not stable across calls with other inputs.
    """
    angles: Dict[str, float] = {}
    for record in records:
        if record.route_id in angles:
            continue
        reverse = f"{record.target}-{record.source}"
        angles[record.route_id] = -angle if reverse in angles else angle
    return angles


def _series_from_records(records: List[FlightRecord]) -> List[TimeSeriesPoint]:
    frame = pd.DataFrame(
        [(r.period, r.passengers, r.flights) for r in records],
        columns=["period", "passengers", "flights"],
    )
    totals = frame.groupby("period", sort=False).sum()
    ordered = sorted(totals.index, key=period_sort_key)
    return [
        TimeSeriesPoint(
            period=str(period),
            passengers=float(totals.at[period, "passengers"]),
            flights=int(totals.at[period, "flights"]),
        )
        for period in ordered
    ]


class DerivedViewCache:
    """Memoized derived views over a :class:`RecordStore`."""

    def __init__(
        self,
        store: RecordStore,
        *,
        region: ReferenceRegion,
        assignments: Optional[AssignmentProvider] = None,
        registry: Optional[ViewCacheRegistry] = None,
        arc_angle: float = 30.0,
        default_cap: int = 250,
    ) -> None:
        self._store = store
        self._region = region
        self._assignments = assignments or (lambda: {})
        self.registry = registry or ViewCacheRegistry()
        self.arc_angle = float(arc_angle)
        self.default_cap = int(default_cap)

    # ------------------------------------------------------------------ helpers
    def _memo(self, category: str, key: Hashable, compute: Callable[[], object]):
        """Cached view as a fresh list; the cache keeps an immutable tuple."""
        cache = self.registry[category]
        if key in cache:
            value = cache.get(key)
        else:
            computed = compute()
            value = cache.put(key, tuple(computed) if isinstance(computed, list) else computed)
            self.registry.on_selection_change()
        return list(value) if isinstance(value, tuple) else value

    # -------------------------------------------------------------------- views
    def enhanced_flights(self, period: str, cap: Optional[int] = None) -> List[FlightRecord]:
        cap = self.default_cap if cap is None else int(cap)
        if cap <= 0:
            raise ValueError("cap must be positive.")
        return self._memo(FLIGHTS, (str(period), cap), lambda: self._compute_enhanced(str(period), cap))

    def period_airports(self, period: str) -> List[Airport]:
        return self._memo(AIRPORTS, (str(period),), lambda: self._compute_period_airports(str(period)))

    def time_series(self, selection: Selection) -> SeriesResult:
        if isinstance(selection, RouteSelection):
            key: Tuple[Hashable, ...] = ("route", selection.source, selection.target)
            return self._memo(SERIES, key, lambda: self._route_series(selection))
        if isinstance(selection, (ByName, Resolved)):
            assignments = self._assignments()
            key = ("country", selection, len(assignments))
            return self._memo(SERIES, key, lambda: self._country_series(selection, assignments))
        raise TypeError(f"Unsupported selection {selection!r}")

    def visible_flights(
        self,
        period: str,
        cap: Optional[int] = None,
        *,
        airport: Optional[str] = None,
        country: Optional[CountrySelection] = None,
    ) -> List[FlightRecord]:
        """Capped flights of ``period`` that touch ``airport`` and/or ``country``.

        The airport filter keeps records with that name at either end. The
        country filter keeps cross-border records whose foreign endpoint is in
        the selected country, using the same membership test as
        :meth:`time_series`.
        """
        flights = self.enhanced_flights(period, cap)
        if airport:
            flights = [f for f in flights if airport in (f.source, f.target)]
        if country is not None:
            assignments = self._assignments()
            flights = [f for f in flights if self._in_country(f, country, assignments)]
        return flights

    # ---------------------------------------------------------------- internals
    def _compute_enhanced(self, period: str, cap: int) -> List[FlightRecord]:
        records = sorted(self._store.records_for_period(period), key=lambda r: r.passengers, reverse=True)
        selected = records[:cap]
        if len(records) > cap:
            logger.debug("Period %s: keeping %d of %d records", period, cap, len(records))
        angles = assign_arc_angles(selected, self.arc_angle)
        enhanced: List[FlightRecord] = []
        for record in selected:
            updates: Dict[str, object] = {"arc_angle": angles[record.route_id]}
            source = self._store.airport(record.source)
            target = self._store.airport(record.target)
            if source is not None:
                updates["source_position"] = source.position
            if target is not None:
                updates["target_position"] = target.position
            enhanced.append(replace(record, **updates))
        return enhanced

    def _compute_period_airports(self, period: str) -> List[Airport]:
        totals: Dict[str, List[float]] = {}
        for record in self._store.records_for_period(period):
            for name in (record.source, record.target):
                if not name:
                    continue
                entry = totals.setdefault(name, [0.0, 0])
                entry[0] += record.passengers
                entry[1] += record.flights or 1
        airports: List[Airport] = []
        for name, (passengers, flights) in totals.items():
            airport = self._store.airport(name)
            if airport is None:
                continue
            airports.append(replace(airport, passengers=passengers, flights=int(flights)))
        return airports

    def _route_series(self, selection: RouteSelection) -> List[TimeSeriesPoint]:
        records = [r for r in self._store.flights if selection.matches(r.source, r.target)]
        if not records:
            return []
        return _series_from_records(records)

    def _country_series(
        self, selection: CountrySelection, assignments: Mapping[str, CountryAssignment]
    ) -> SeriesResult:
        records = [r for r in self._store.flights if self._in_country(r, selection, assignments)]
        logger.debug("Found %d records to/from %s", len(records), selection.name)
        if not records:
            return NO_DIRECT_SERVICE
        return _series_from_records(records)

    def _in_country(
        self,
        record: FlightRecord,
        selection: CountrySelection,
        assignments: Mapping[str, CountryAssignment],
    ) -> bool:
        foreign = self._region.foreign_endpoint(record.source, record.target)
        if foreign is None:
            return False
        name, is_source = foreign
        assignment = assignments.get(name)
        if assignment is not None:
            return assignment.country_name == selection.name
        position = record.source_position if is_source else record.target_position
        geometry = selection.geometry if isinstance(selection, Resolved) else None
        if geometry and position and position != PLACEHOLDER_POSITION:
            return point_in_polygon(position[0], position[1], geometry)
        return selection.name in name
