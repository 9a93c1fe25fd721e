"""CLI that ingests a route feed, assigns countries and summarizes a period."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Sequence

import pandas as pd
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from routeatlas.countries.country_assigner import country_names
from routeatlas.ingest.domain_types import FlightRecord, format_period
from routeatlas.service import RouteAtlasService
from routeatlas.views.rankings import RankedEntry, period_stats, route_changes, top_countries, top_routes

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--feed", required=True, help="GeoJSON feature collection of route records.")
    parser.add_argument(
        "--boundaries",
        default=None,
        help="GeoJSON polygon collection of country boundaries (enables country rankings).",
    )
    parser.add_argument("--config", default=None, help="Optional engine YAML configuration.")
    parser.add_argument("--period", default=None, help="Period code YYYYMM (defaults to the latest).")
    parser.add_argument("--max-flights", type=int, default=None, help="Cap on visible flights.")
    parser.add_argument("--output-csv", default=None, help="Write the capped flight list to this CSV.")
    parser.add_argument("--top", type=int, default=5, help="Number of ranked entries to print.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def _assign_with_progress(service: RouteAtlasService) -> None:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        transient=True,
    )
    task = service.assignment_task()
    with progress:
        task_id = progress.add_task("Assigning airports to countries", total=task.total)
        for cursor in task.batches():
            progress.update(task_id, completed=cursor)


def _ranking_table(title: str, entries: List[RankedEntry]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Passengers", justify="right")
    table.add_column("Flights", justify="right")
    table.add_column("Prev #", justify="right")
    for entry in entries:
        table.add_row(
            str(entry.rank),
            entry.name,
            f"{entry.passengers:,.0f}",
            f"{entry.flights:,d}",
            "-" if entry.previous_rank is None else str(entry.previous_rank),
        )
    return table


def _write_flights_csv(path: str | Path, flights: List[FlightRecord]) -> None:
    rows = [
        {
            "index": f.index,
            "source": f.source,
            "target": f.target,
            "period": f.period,
            "passengers": f.passengers,
            "flights": f.flights,
            "load_factor": f.load_factor,
            "arc_angle": f.arc_angle,
            "source_lon": f.source_position[0] if f.source_position else None,
            "source_lat": f.source_position[1] if f.source_position else None,
            "target_lon": f.target_position[0] if f.target_position else None,
            "target_lat": f.target_position[1] if f.target_position else None,
        }
        for f in flights
    ]
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows).to_csv(output_path, index=False)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    console = Console()

    try:
        service = RouteAtlasService.from_files(args.feed, args.boundaries, config_path=args.config)
    except (OSError, ValueError, TypeError) as exc:
        raise SystemExit(str(exc)) from exc

    with service:
        period = args.period or service.store.latest_period
        if period is None or period not in service.store.periods:
            raise SystemExit(f"Unknown period {period!r}; available: {', '.join(service.store.periods)}")

        if service.boundaries:
            _assign_with_progress(service)
            names = country_names(service.country_assignments)
            console.print(
                f"Countries served: {', '.join(names) or 'none'} "
                f"({len(service.country_assignments)} airports assigned)"
            )

        flights = service.enhanced_flights(period, args.max_flights)
        stats = period_stats(service.store, period)
        console.print(
            f"[bold]{format_period(period)}[/bold]: {stats.total_flights:,d} flights, "
            f"{stats.total_passengers:,.0f} passengers, "
            f"load factor {stats.mean_load_factor * 100:.1f}% "
            f"({len(flights)} routes visible)"
        )
        console.print(_ranking_table("Top routes", top_routes(service.store, period, args.top)))

        if service.boundaries:
            rankings = top_countries(
                service.store, period, service.region, service.country_assignments, args.top
            )
            console.print(_ranking_table("Top destination countries", rankings.destinations))
            console.print(_ranking_table("Top departure countries", rankings.departures))

        new_routes, discontinued = route_changes(service.store, period)
        console.print(f"{len(new_routes)} new routes, {len(discontinued)} discontinued routes")

        if args.output_csv:
            _write_flights_csv(args.output_csv, flights)
            logger.info("Wrote %d flights to %s", len(flights), args.output_csv)


if __name__ == "__main__":
    main()
