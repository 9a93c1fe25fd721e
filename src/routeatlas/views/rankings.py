"""Period summaries: top routes, top countries, route changes and totals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from routeatlas.countries.country_assigner import CountryAssignment
from routeatlas.countries.selection import ReferenceRegion
from routeatlas.ingest.record_store import RecordStore

UNKNOWN_COUNTRY = "Unknown"


@dataclass(frozen=True)
class RankedEntry:
    name: str
    passengers: float
    flights: int
    rank: int
    previous_rank: Optional[int] = None

    @property
    def rank_change(self) -> Optional[int]:
        """Positive when the entry climbed since the previous period."""
        if self.previous_rank is None:
            return None
        return self.previous_rank - self.rank


@dataclass(frozen=True)
class RouteChange:
    source: str
    target: str
    passengers: float


@dataclass(frozen=True)
class PeriodStats:
    period: str
    total_flights: int
    total_passengers: float
    mean_load_factor: float


@dataclass
class CountryRankings:
    destinations: List[RankedEntry] = field(default_factory=list)
    departures: List[RankedEntry] = field(default_factory=list)


def _period_frame(store: RecordStore, period: Optional[str]) -> pd.DataFrame:
    if period is None:
        return store.to_dataframe([])
    return store.to_dataframe(store.records_for_period(period))


def _ranked(totals: pd.DataFrame, limit: Optional[int]) -> pd.DataFrame:
    ordered = totals.sort_values("passengers", ascending=False, kind="mergesort")
    if limit is not None:
        ordered = ordered.head(limit)
    return ordered


def _previous_ranks(totals: pd.DataFrame) -> Dict[str, int]:
    ordered = _ranked(totals, None)
    return {str(name): idx + 1 for idx, name in enumerate(ordered.index)}


def _entries(totals: pd.DataFrame, previous: Dict[str, int], limit: int) -> List[RankedEntry]:
    return [
        RankedEntry(
            name=str(name),
            passengers=float(row.passengers),
            flights=int(row.flights),
            rank=idx + 1,
            previous_rank=previous.get(str(name)),
        )
        for idx, (name, row) in enumerate(_ranked(totals, limit).iterrows())
    ]


# ------------------------------------------------------------------- routes --
def _route_totals(frame: pd.DataFrame) -> pd.DataFrame:
    return frame.groupby("route_id", sort=False)[["passengers", "flights"]].sum()


def top_routes(store: RecordStore, period: str, limit: int = 5) -> List[RankedEntry]:
    """Busiest directed routes of ``period`` with their previous-period rank."""
    current = _route_totals(_period_frame(store, period))
    previous = _route_totals(_period_frame(store, store.previous_period(period)))
    return _entries(current, _previous_ranks(previous), limit)


def route_changes(store: RecordStore, period: str) -> Tuple[List[RouteChange], List[RouteChange]]:
    """Routes that appeared and disappeared relative to the previous period.

    For the first period every route counts as new.
    """
    current = store.records_for_period(period)
    previous_period = store.previous_period(period)
    previous = store.records_for_period(previous_period) if previous_period else []
    current_ids = {r.route_id for r in current}
    previous_ids = {r.route_id for r in previous}
    new_routes = [
        RouteChange(r.source, r.target, r.passengers) for r in current if r.route_id not in previous_ids
    ]
    discontinued = [
        RouteChange(r.source, r.target, r.passengers) for r in previous if r.route_id not in current_ids
    ]
    return new_routes, discontinued


# ---------------------------------------------------------------- countries --
def _country_totals(
    store: RecordStore,
    period: Optional[str],
    region: ReferenceRegion,
    assignments: Mapping[str, CountryAssignment],
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    rows = []
    for record in store.records_for_period(period) if period else []:
        foreign = region.foreign_endpoint(record.source, record.target)
        if foreign is None:
            continue
        name, is_source = foreign
        assignment = assignments.get(name)
        rows.append(
            {
                "direction": "departure" if is_source else "destination",
                "country": assignment.country_name if assignment else UNKNOWN_COUNTRY,
                "passengers": record.passengers,
                "flights": record.flights or 1,
            }
        )
    frame = pd.DataFrame(rows, columns=["direction", "country", "passengers", "flights"])

    def totals(direction: str) -> pd.DataFrame:
        subset = frame[frame["direction"] == direction]
        return subset.groupby("country", sort=False)[["passengers", "flights"]].sum()

    return totals("destination"), totals("departure")


def top_countries(
    store: RecordStore,
    period: str,
    region: ReferenceRegion,
    assignments: Mapping[str, CountryAssignment],
    limit: int = 5,
) -> CountryRankings:
    """Destination and departure country rankings for cross-border traffic."""
    destinations, departures = _country_totals(store, period, region, assignments)
    prev_dest, prev_dept = _country_totals(store, store.previous_period(period), region, assignments)
    return CountryRankings(
        destinations=_entries(destinations, _previous_ranks(prev_dest), limit),
        departures=_entries(departures, _previous_ranks(prev_dept), limit),
    )


# ------------------------------------------------------------------- totals --
def period_stats(store: RecordStore, period: str) -> PeriodStats:
    frame = _period_frame(store, period)
    if frame.empty:
        return PeriodStats(period=period, total_flights=0, total_passengers=0.0, mean_load_factor=0.0)
    return PeriodStats(
        period=period,
        total_flights=int(frame["flights"].sum()),
        total_passengers=float(frame["passengers"].sum()),
        mean_load_factor=float(frame["load_factor"].mean()),
    )
