"""In-memory store of ingested flight records with period and airport indexes."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .domain_types import Airport, FlightRecord, is_valid_period
from .feed_loader import IngestResult, airport_for, ingest, ingest_file


class RecordStore:
    """Read-only view over an :class:`IngestResult`.

    Records keep their canonical ``index`` so downstream geometry can refer
    back to them without holding the record itself.
    """

    def __init__(self, result: IngestResult):
        self._flights = list(result.flights)
        self._airports = list(result.airports)
        self._period_index = {period: list(records) for period, records in result.period_index.items()}
        self._airport_index = dict(result.airport_index)
        # Fixed-width codes: lexicographic order is chronological order.
        self._periods = sorted(p for p in self._period_index if is_valid_period(p))

    @classmethod
    def from_features(cls, features: Iterable[Mapping[str, object]]) -> "RecordStore":
        return cls(ingest(features))

    @classmethod
    def from_file(cls, path: str | Path) -> "RecordStore":
        return cls(ingest_file(path))

    # ---------------------------------------------------------------- properties
    @property
    def flights(self) -> List[FlightRecord]:
        return self._flights

    @property
    def airports(self) -> List[Airport]:
        return self._airports

    @property
    def periods(self) -> List[str]:
        return list(self._periods)

    @property
    def latest_period(self) -> Optional[str]:
        return self._periods[-1] if self._periods else None

    # ------------------------------------------------------------------ lookups
    def records_for_period(self, period: str) -> List[FlightRecord]:
        return list(self._period_index.get(str(period), []))

    def airport(self, name: Optional[str]) -> Optional[Airport]:
        return airport_for(self._airport_index, name)

    def flight(self, index: int) -> Optional[FlightRecord]:
        if 0 <= index < len(self._flights):
            return self._flights[index]
        return None

    def previous_period(self, period: str) -> Optional[str]:
        try:
            position = self._periods.index(str(period))
        except ValueError:
            return None
        return self._periods[position - 1] if position > 0 else None

    # ---------------------------------------------------------------------- IO
    def to_dataframe(self, records: Optional[Iterable[FlightRecord]] = None) -> pd.DataFrame:
        """Tabular view of records (all records when ``records`` is ``None``)."""
        rows = [
            {
                "index": record.index,
                "source": record.source,
                "target": record.target,
                "route_id": record.route_id,
                "period": record.period,
                "passengers": record.passengers,
                "flights": record.flights,
                "load_factor": record.load_factor,
                "airlines": "|".join(record.airlines),
            }
            for record in (self._flights if records is None else records)
        ]
        columns = [
            "index",
            "source",
            "target",
            "route_id",
            "period",
            "passengers",
            "flights",
            "load_factor",
            "airlines",
        ]
        return pd.DataFrame(rows, columns=columns)
