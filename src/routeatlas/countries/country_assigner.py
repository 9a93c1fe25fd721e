"""Resumable, batched assignment of airports to country boundaries.

The work is O(airports x polygons x vertices), so it is split into slices of
``batch_size`` airports. Each call to :meth:`CountryAssignmentTask.step`
processes exactly one slice and returns; any cooperative loop (a GUI timer,
an asyncio task, a plain ``while`` loop) can drive it:

.. code-block:: python

    task = CountryAssignmentTask(airports, boundaries, region=region)
    while task.step():
        yield_to_scheduler()
    assignments = task.assignments
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from routeatlas.ingest.domain_types import Airport

from .boundaries import BoundaryLocator, CountryBoundary
from .selection import ReferenceRegion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountryAssignment:
    country_name: str
    iso_code: Optional[str] = None
    geometry: Optional[Mapping[str, object]] = field(default=None, compare=False, repr=False)


class CountryAssignmentTask:
    """State machine with a progress cursor over the airport list."""

    def __init__(
        self,
        airports: Sequence[Airport],
        boundaries: Sequence[CountryBoundary],
        *,
        region: ReferenceRegion,
        batch_size: int = 100,
        assignments: Optional[Dict[str, CountryAssignment]] = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive.")
        self._airports = list(airports)
        self._locator = BoundaryLocator(boundaries)
        self._region = region
        self.batch_size = int(batch_size)
        self._assignments: Dict[str, CountryAssignment] = assignments if assignments is not None else {}
        self._cursor = 0
        self._skipped = 0

    # ---------------------------------------------------------------- properties
    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def total(self) -> int:
        return len(self._airports)

    @property
    def done(self) -> bool:
        return self._cursor >= len(self._airports)

    @property
    def assignments(self) -> Dict[str, CountryAssignment]:
        return self._assignments

    # --------------------------------------------------------------------- API
    def step(self) -> bool:
        """Process one batch. Returns ``True`` while airports remain."""
        if self.done:
            return False
        end = min(self._cursor + self.batch_size, len(self._airports))
        for airport in self._airports[self._cursor:end]:
            self._assign_one(airport)
        self._cursor = end
        logger.debug("Country assignment progress %d/%d", self._cursor, self.total)
        if self.done:
            logger.info(
                "Assigned %d airports to countries (%d reference-region airports skipped)",
                len(self._assignments),
                self._skipped,
            )
        return not self.done

    def batches(self) -> Iterator[int]:
        """Generator form: yields the cursor after each processed batch."""
        while self.step():
            yield self._cursor
        yield self._cursor

    def run_to_completion(self, on_batch: Optional[Callable[[int, int], None]] = None) -> Dict[str, CountryAssignment]:
        for cursor in self.batches():
            if on_batch is not None:
                on_batch(cursor, self.total)
        return self._assignments

    # ---------------------------------------------------------------- internals
    def _assign_one(self, airport: Airport) -> None:
        if self._region.matches(airport.name):
            self._skipped += 1
            return
        if airport.name in self._assignments:
            return
        boundary = self._locator.locate(airport.longitude, airport.latitude)
        if boundary is None:
            return
        self._assignments[airport.name] = CountryAssignment(
            country_name=boundary.name,
            iso_code=boundary.iso_code,
            geometry=boundary.geometry,
        )


def assign_countries(
    airports: Sequence[Airport],
    boundaries: Sequence[CountryBoundary],
    *,
    region: ReferenceRegion,
    batch_size: int = 100,
) -> Dict[str, CountryAssignment]:
    """Run a :class:`CountryAssignmentTask` to completion in one call."""
    task = CountryAssignmentTask(airports, boundaries, region=region, batch_size=batch_size)
    return task.run_to_completion()


def country_names(assignments: Mapping[str, CountryAssignment]) -> List[str]:
    return sorted({assignment.country_name for assignment in assignments.values()})
