"""High-level API that owns every process-wide cache of the engine.

:class:`RouteAtlasService` is constructed once at startup and handed to every
consumer. It owns the record store, the simplified boundary dataset, the
airport-to-country assignments and the derived-view caches. Its lifecycle is
explicit: construct, populate on demand, then :meth:`close` at shutdown.

Country assignment is driven cooperatively. The host loop calls
:meth:`step_assignment` once per scheduling tick until it returns ``False``;
:meth:`ensure_assignments` runs the remaining batches in one go.

Example
-------
>>> service = RouteAtlasService.from_files("flights.geojson", "countries.geojson")
>>> while service.step_assignment():
...     pass
>>> flights = service.enhanced_flights()
>>> frame = service.trails(phase=0.25)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from routeatlas.animation.trail_animator import TrailAnimator, TrailSegment
from routeatlas.config import EngineConfig
from routeatlas.countries.boundaries import CountryBoundary, index_by_name, load_boundaries
from routeatlas.countries.country_assigner import CountryAssignment, CountryAssignmentTask
from routeatlas.countries.selection import ByName, CountrySelection, ReferenceRegion, Resolved, RouteSelection
from routeatlas.geometry.great_circle import ArcPath
from routeatlas.ingest.domain_types import Airport, FlightRecord
from routeatlas.ingest.record_store import RecordStore
from routeatlas.views.color_scale import PassengerColorScale
from routeatlas.views.derived_views import DerivedViewCache, Selection, SeriesResult
from routeatlas.views.view_cache import ViewCacheRegistry

logger = logging.getLogger(__name__)


class RouteAtlasService:
    """Owner of the record store, boundary data and all derived caches."""

    def __init__(
        self,
        store: RecordStore,
        *,
        boundaries: Sequence[CountryBoundary] = (),
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.store = store
        self.region = ReferenceRegion(self.config.reference_keywords)
        self._boundaries: List[CountryBoundary] = list(boundaries)
        self._boundaries_by_name: Dict[str, CountryBoundary] = index_by_name(self._boundaries)
        self._assignments: Dict[str, CountryAssignment] = {}
        self._task: Optional[CountryAssignmentTask] = None
        self.registry = ViewCacheRegistry(self.config.cache_limit)
        self.views = DerivedViewCache(
            store,
            region=self.region,
            assignments=lambda: self._assignments,
            registry=self.registry,
            arc_angle=self.config.arc_angle_degrees,
            default_cap=self.config.max_visible_flights,
        )
        self.animator = TrailAnimator(self.config.trails, self.config.arcs)
        self._arcs: Dict[tuple, Dict[int, ArcPath]] = {}
        self._closed = False

    @classmethod
    def from_files(
        cls,
        feed_path: str | Path,
        boundaries_path: str | Path | None = None,
        *,
        config_path: str | Path | None = None,
    ) -> "RouteAtlasService":
        config = EngineConfig.from_yaml(config_path) if config_path else None
        boundaries = load_boundaries(boundaries_path) if boundaries_path else []
        return cls(RecordStore.from_file(feed_path), boundaries=boundaries, config=config)

    # --------------------------------------------------------------- lifecycle
    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("RouteAtlasService has been closed.")

    def close(self) -> None:
        """Drop every cache; the service is unusable afterwards."""
        self.registry.clear()
        self._arcs.clear()
        self._assignments = {}
        self._task = None
        self._closed = True

    def __enter__(self) -> "RouteAtlasService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------ country assignment
    @property
    def boundaries(self) -> List[CountryBoundary]:
        return list(self._boundaries)

    @property
    def country_assignments(self) -> Dict[str, CountryAssignment]:
        """Assignments merged so far; complete once the task is done."""
        return self._assignments

    @property
    def assignment_complete(self) -> bool:
        return self._task is not None and self._task.done

    def assignment_task(self) -> CountryAssignmentTask:
        """The single assignment task, created on first use."""
        self._check_open()
        if self._task is None:
            self._task = CountryAssignmentTask(
                self.store.airports,
                self._boundaries,
                region=self.region,
                batch_size=self.config.assignment_batch_size,
                assignments=self._assignments,
            )
        return self._task

    def step_assignment(self) -> bool:
        """Process one batch; ``True`` while more batches remain."""
        if not self._boundaries:
            logger.debug("No boundary dataset loaded; country assignment skipped.")
            return False
        return self.assignment_task().step()

    def ensure_assignments(self) -> Dict[str, CountryAssignment]:
        if self._boundaries:
            self.assignment_task().run_to_completion()
        return self._assignments

    def select_country(self, name: str) -> CountrySelection:
        """Resolved selection when the boundary dataset knows ``name``."""
        boundary = self._boundaries_by_name.get(name)
        if boundary is None:
            return ByName(name)
        return Resolved.from_boundary(boundary)

    # ------------------------------------------------------------------- views
    def _period(self, period: Optional[str]) -> str:
        resolved = period or self.store.latest_period
        if resolved is None:
            raise ValueError("The record store has no valid periods.")
        return resolved

    def enhanced_flights(self, period: Optional[str] = None, cap: Optional[int] = None) -> List[FlightRecord]:
        self._check_open()
        return self.views.enhanced_flights(self._period(period), cap)

    def period_airports(self, period: Optional[str] = None) -> List[Airport]:
        self._check_open()
        return self.views.period_airports(self._period(period))

    def time_series(self, selection: Selection) -> SeriesResult:
        self._check_open()
        return self.views.time_series(selection)

    def visible_flights(
        self,
        period: Optional[str] = None,
        cap: Optional[int] = None,
        *,
        airport: Optional[str] = None,
        country: Optional[CountrySelection] = None,
    ) -> List[FlightRecord]:
        """Capped flights narrowed to a selected airport and/or country."""
        self._check_open()
        return self.views.visible_flights(self._period(period), cap, airport=airport, country=country)

    def color_scale(self, period: Optional[str] = None, cap: Optional[int] = None) -> PassengerColorScale:
        return PassengerColorScale.from_flights(self.enhanced_flights(period, cap))

    # --------------------------------------------------------------- animation
    def arcs(
        self,
        period: Optional[str] = None,
        cap: Optional[int] = None,
        *,
        airport: Optional[str] = None,
        country: Optional[CountrySelection] = None,
    ) -> Dict[int, ArcPath]:
        """Arc geometry of the visible flights, keyed by record index."""
        country_key = None if country is None else (country, len(self._assignments))
        key = (self._period(period), cap, airport or None, country_key)
        if key not in self._arcs:
            if len(self._arcs) >= self.config.cache_limit:
                self._arcs.clear()
            flights = self.visible_flights(period, cap, airport=airport, country=country)
            self._arcs[key] = self.animator.arcs_for(flights)
        return dict(self._arcs[key])

    def trails(
        self,
        phase: float,
        *,
        period: Optional[str] = None,
        cap: Optional[int] = None,
        highlight: Optional[RouteSelection] = None,
        airport: Optional[str] = None,
        country: Optional[CountrySelection] = None,
    ) -> List[TrailSegment]:
        """Trail segments for one animation tick.

        Colours come from the unfiltered capped list, so a route keeps its
        colour when an airport or country filter is applied.
        """
        flights = self.visible_flights(period, cap, airport=airport, country=country)
        return self.animator.frame(
            flights,
            phase,
            color_scale=self.color_scale(period, cap),
            highlight=highlight,
            arcs=self.arcs(period, cap, airport=airport, country=country),
        )

    def flight(self, flight_ref: int) -> Optional[FlightRecord]:
        """Resolve a trail's ``flight_ref`` back to its record."""
        return self.store.flight(flight_ref)
