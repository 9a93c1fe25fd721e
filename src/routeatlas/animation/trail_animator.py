"""Fading trail geometry for simulated aircraft moving along route arcs."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from routeatlas.config import ArcSettings, TrailSettings
from routeatlas.countries.selection import RouteSelection
from routeatlas.geometry.great_circle import ArcPath, Point, as_segments, great_circle_arc
from routeatlas.ingest.domain_types import FlightRecord
from routeatlas.views.color_scale import PassengerColorScale

logger = logging.getLogger(__name__)

HEAD_STYLE = (1.0, 2.5, 0.0)  # opacity, width, blur
GLOW_STYLE = (0.7, 4.0, 2.0)


@dataclass(frozen=True)
class TrailSegment:
    """Two-point line with style attributes.

    ``flight_ref`` is the canonical record index of the originating flight.
    """

    source_point: Point
    target_point: Point
    color: str
    width: float
    opacity: float
    blur: float
    flight_ref: int


def planar_distance(source: Sequence[float], target: Sequence[float]) -> float:
    """Degree-space distance with the shorter longitude delta across +/-180."""
    dx = target[0] - source[0]
    dy = target[1] - source[1]
    if abs(dx) > 180:
        dx = dx - 360 if dx > 0 else dx + 360
    return math.hypot(dx, dy)


def locate_segment(segments: Sequence[Sequence[Point]], time: float) -> Tuple[int, float]:
    """Map global time in [0, 1) to ``(segment_index, local_time)``.

    Each segment gets a share of the timeline proportional to its sample
    count so traversal speed is uniform across antimeridian splits.
    """
    if len(segments) <= 1:
        return 0, time
    total = sum(len(segment) for segment in segments)
    accum = 0.0
    for idx, segment in enumerate(segments):
        share = len(segment) / total
        if time < accum + share:
            return idx, (time - accum) / share
        accum += share
    return 0, time


class TrailAnimator:
    """Builds per-tick trail segments for the visible flights."""

    def __init__(self, settings: Optional[TrailSettings] = None, arcs: Optional[ArcSettings] = None):
        self.settings = settings or TrailSettings()
        self.arc_settings = arcs or ArcSettings()

    # ------------------------------------------------------------------ sizing
    def aircraft_count(self, source: Sequence[float], target: Sequence[float]) -> int:
        s = self.settings
        count = math.ceil(planar_distance(source, target) / s.distance_divisor)
        return max(s.min_aircraft, min(s.max_aircraft, count))

    def trail_length(self, sample_count: int) -> int:
        s = self.settings
        return max(s.min_trail_points, min(s.max_trail_points, math.floor(sample_count * s.trail_fraction)))

    def phase_offset(self, slot: int, count: int, route_index: int) -> float:
        return (slot / count + route_index * self.settings.route_phase_step) % 1

    # ---------------------------------------------------------------- geometry
    def trail(
        self,
        flight: FlightRecord,
        arc: ArcPath,
        phase: float,
        *,
        route_index: int = 0,
        color: str = "#3B82F6",
        highlighted: bool = False,
    ) -> List[TrailSegment]:
        """Trail segments of every simulated aircraft on one route."""
        if flight.source_position is None or flight.target_position is None:
            return []
        segments = as_segments(arc)
        color = self.settings.highlight_color if highlighted else color
        count = self.aircraft_count(flight.source_position, flight.target_position)

        output: List[TrailSegment] = []
        for slot in range(count):
            current = (phase + self.phase_offset(slot, count, route_index)) % 1
            seg_idx, local = locate_segment(segments, current)
            segment = segments[seg_idx]
            if len(segment) < 2:
                continue
            head_idx = math.floor(local * len(segment))
            length = self.trail_length(len(segment))
            if head_idx < length:
                continue
            points = segment[max(0, head_idx - length):head_idx + 1]
            if len(points) < 2:
                continue
            output.extend(self._style(points, color, flight.index))
        return output

    def _style(self, points: Sequence[Point], color: str, flight_ref: int) -> List[TrailSegment]:
        head_start, head_end = points[-2], points[-1]
        styled = [
            TrailSegment(head_start, head_end, color, width, opacity, blur, flight_ref)
            for opacity, width, blur in (HEAD_STYLE, GLOW_STYLE)
        ]
        tail_count = len(points) - 2
        for s in range(tail_count):
            fade = math.sqrt(s / tail_count)
            styled.append(
                TrailSegment(
                    source_point=points[s],
                    target_point=points[s + 1],
                    color=color,
                    width=0.5 + 1.5 * fade,
                    opacity=0.1 + 0.7 * fade,
                    blur=2.0 - 2.0 * fade,
                    flight_ref=flight_ref,
                )
            )
        return styled

    # ------------------------------------------------------------------ frames
    def arcs_for(self, flights: Sequence[FlightRecord]) -> Dict[int, ArcPath]:
        """Arc geometry for each flight, keyed by record index."""
        a = self.arc_settings
        arcs: Dict[int, ArcPath] = {}
        for flight in flights:
            if flight.source_position is None or flight.target_position is None:
                continue
            arcs[flight.index] = great_circle_arc(
                flight.source_position,
                flight.target_position,
                a.height_factor,
                a.num_points,
                max_height=a.max_height,
            )
        return arcs

    def frame(
        self,
        flights: Sequence[FlightRecord],
        phase: float,
        *,
        color_scale: Optional[PassengerColorScale] = None,
        highlight: Optional[RouteSelection] = None,
        arcs: Optional[Dict[int, ArcPath]] = None,
    ) -> List[TrailSegment]:
        """All trail segments for one animation tick.

        ``arcs`` may be passed in to reuse geometry between ticks; otherwise
        it is computed once for this call.
        """
        scale = color_scale or PassengerColorScale.from_flights(flights)
        arcs = arcs if arcs is not None else self.arcs_for(flights)
        segments: List[TrailSegment] = []
        for route_index, flight in enumerate(flights):
            arc = arcs.get(flight.index)
            if arc is None:
                continue
            highlighted = highlight is not None and highlight.matches(flight.source, flight.target)
            segments.extend(
                self.trail(
                    flight,
                    arc,
                    phase,
                    route_index=route_index,
                    color=scale.color(flight.passengers),
                    highlighted=highlighted,
                )
            )
        return segments


def phase_for_tick(tick: int, period: int = 100) -> float:
    """Normalized animation phase for an integer clock tick."""
    if period <= 0:
        raise ValueError("period must be positive.")
    return (tick % period) / period
