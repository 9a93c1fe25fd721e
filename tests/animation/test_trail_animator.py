from __future__ import annotations

import math

import pytest

from routeatlas.animation.trail_animator import (
    GLOW_STYLE,
    HEAD_STYLE,
    TrailAnimator,
    locate_segment,
    phase_for_tick,
    planar_distance,
)
from routeatlas.config import TrailSettings
from routeatlas.countries.selection import RouteSelection
from routeatlas.geometry.great_circle import great_circle_arc
from routeatlas.ingest.domain_types import FlightRecord
from routeatlas.views.color_scale import PassengerColorScale


def _flight(source, target, *, index=7, passengers=100.0, names=("Here", "There")):
    return FlightRecord(
        source=names[0],
        target=names[1],
        period="202301",
        passengers=passengers,
        source_position=source,
        target_position=target,
        index=index,
    )


@pytest.fixture
def animator():
    return TrailAnimator()


@pytest.fixture
def short_hop():
    flight = _flight((0.0, 0.0), (10.0, 0.0))
    return flight, great_circle_arc(flight.source_position, flight.target_position)


# ------------------------------------------------------------------ sizing
def test_planar_distance_takes_short_way_round():
    assert planar_distance((179.0, 0.0), (-179.0, 0.0)) == pytest.approx(2.0)
    assert planar_distance((0.0, 0.0), (3.0, 4.0)) == pytest.approx(5.0)


@pytest.mark.parametrize(
    "target, expected",
    [((0.0, 0.0), 1), ((10.0, 0.0), 1), ((50.0, 0.0), 2), ((100.0, 0.0), 3), ((170.0, 0.0), 3)],
)
def test_aircraft_count_is_clamped(animator, target, expected):
    assert animator.aircraft_count((0.0, 0.0), target) == expected


def test_aircraft_count_respects_settings():
    animator = TrailAnimator(TrailSettings(min_aircraft=2, max_aircraft=5, distance_divisor=10))
    assert animator.aircraft_count((0.0, 0.0), (1.0, 0.0)) == 2
    assert animator.aircraft_count((0.0, 0.0), (45.0, 0.0)) == 5


@pytest.mark.parametrize("samples, expected", [(101, 10), (30, 4), (20, 3), (10, 3)])
def test_trail_length(animator, samples, expected):
    assert animator.trail_length(samples) == expected


def test_phase_offset_spreads_aircraft_and_routes(animator):
    assert animator.phase_offset(1, 2, 0) == pytest.approx(0.5)
    assert animator.phase_offset(2, 3, 4) == pytest.approx((2 / 3 + 0.4) % 1)


# ------------------------------------------------------------------- trails
def test_trail_not_drawn_until_head_has_room(animator, short_hop):
    flight, arc = short_hop
    assert animator.trail(flight, arc, 0.05) == []


def test_trail_styles_head_glow_and_tail(animator, short_hop):
    flight, arc = short_hop
    segments = animator.trail(flight, arc, 0.5, color="#123456")

    assert len(segments) == 11
    head, glow, *tail = segments
    assert (head.opacity, head.width, head.blur) == HEAD_STYLE
    assert (glow.opacity, glow.width, glow.blur) == GLOW_STYLE
    assert head.source_point == arc[49]
    assert head.target_point == arc[50]
    assert tail[0].source_point == arc[40]
    assert (tail[0].opacity, tail[0].width, tail[0].blur) == pytest.approx((0.1, 0.5, 2.0))
    fade = math.sqrt(8 / 9)
    assert tail[-1].opacity == pytest.approx(0.1 + 0.7 * fade)
    assert tail[-1].width == pytest.approx(0.5 + 1.5 * fade)
    assert all(s.color == "#123456" for s in segments)
    assert {s.flight_ref for s in segments} == {7}


def test_highlight_overrides_color(animator, short_hop):
    flight, arc = short_hop
    segments = animator.trail(flight, arc, 0.5, color="#123456", highlighted=True)
    assert {s.color for s in segments} == {"#FFFF00"}


def test_trail_needs_both_positions(animator, short_hop):
    _, arc = short_hop
    assert animator.trail(_flight(None, (10.0, 0.0)), arc, 0.5) == []


def test_trail_segments_stay_within_one_side_of_antimeridian(animator):
    flight = _flight((179.0, 0.0), (-179.0, 0.0))
    arc = great_circle_arc(flight.source_position, flight.target_position)

    drawn = 0
    for tick in range(100):
        for segment in animator.trail(flight, arc, phase_for_tick(tick)):
            drawn += 1
            assert abs(segment.target_point[0] - segment.source_point[0]) <= 180.0
    assert drawn > 0


def test_locate_segment_shares_time_by_sample_count():
    segments = [[(0, 0)] * 3, [(1, 1)]]
    assert locate_segment(segments, 0.5) == (0, pytest.approx(2 / 3))
    assert locate_segment(segments, 0.8) == (1, pytest.approx(0.2))
    assert locate_segment([[(0, 0), (1, 1)]], 0.3) == (0, 0.3)


# ------------------------------------------------------------------- frames
def test_frame_highlights_matching_route_in_both_directions(animator):
    outbound = _flight((0.0, 0.0), (10.0, 0.0), index=0, passengers=10.0, names=("A", "B"))
    inbound = _flight((10.0, 0.0), (0.0, 0.0), index=1, passengers=1000.0, names=("B", "A"))
    other = _flight((0.0, 5.0), (10.0, 5.0), index=2, passengers=100.0, names=("C", "D"))
    flights = [outbound, inbound, other]

    segments = animator.frame(flights, 0.5, highlight=RouteSelection("A", "B"))
    colors = {}
    for segment in segments:
        colors.setdefault(segment.flight_ref, set()).add(segment.color)

    assert colors[0] == {"#FFFF00"}
    assert colors[1] == {"#FFFF00"}
    scale = PassengerColorScale.from_flights(flights)
    assert colors[2] == {scale.color(100.0)}


def test_frame_reuses_supplied_arcs(animator):
    flight = _flight((0.0, 0.0), (10.0, 0.0), index=3)
    arcs = animator.arcs_for([flight])

    assert set(arcs) == {3}
    assert len(arcs[3]) == 101
    assert animator.frame([flight], 0.5, arcs={}) == []
    assert animator.frame([flight], 0.5, arcs=arcs) == animator.frame([flight], 0.5)


def test_phase_for_tick():
    assert phase_for_tick(150) == 0.5
    assert phase_for_tick(7, period=10) == pytest.approx(0.7)
    with pytest.raises(ValueError):
        phase_for_tick(1, period=0)
