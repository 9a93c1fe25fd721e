from __future__ import annotations

import math

import pytest

from routeatlas.geometry.great_circle import (
    angular_distance,
    as_segments,
    effective_height,
    great_circle_arc,
    is_segmented,
    split_at_antimeridian,
)


def _flatten(points):
    return [value for point in points for value in point]


def _max_jump(segment):
    return max((abs(b[0] - a[0]) for a, b in zip(segment, segment[1:])), default=0.0)


def test_antimeridian_crossing_is_split():
    path = great_circle_arc((179.0, 0.0), (-179.0, 0.0))

    assert is_segmented(path)
    assert len(path) == 2
    west, east = path
    assert west[0][0] == pytest.approx(179.0)
    assert west[-1][0] == 180.0
    assert east[0][0] == -180.0
    assert east[-1][0] == pytest.approx(-179.0)
    for segment in path:
        assert _max_jump(segment) <= 180.0
        assert all(lat == pytest.approx(0.0, abs=1e-9) for _, lat in segment)


def test_long_route_without_crossing_is_one_path():
    path = great_circle_arc((0.0, 0.0), (170.0, 0.0), num_points=40)

    assert not is_segmented(path)
    assert len(path) == 41
    assert path[0] == pytest.approx((0.0, 0.0))
    assert path[-1] == pytest.approx((170.0, 0.0))
    assert _max_jump(path) < 180.0


def test_path_is_symmetric_in_direction():
    forward = great_circle_arc((121.2325, 25.0777), (140.3929, 35.772))
    backward = great_circle_arc((140.3929, 35.772), (121.2325, 25.0777))

    assert _flatten(forward) == pytest.approx(_flatten(list(reversed(backward))), abs=1e-9)


@pytest.mark.parametrize("include_height", [False, True])
def test_crossing_path_is_symmetric_in_direction(include_height):
    forward = great_circle_arc((170.0, 10.0), (-160.0, 40.0), include_height=include_height)
    backward = great_circle_arc((-160.0, 40.0), (170.0, 10.0), include_height=include_height)

    assert is_segmented(forward) and is_segmented(backward)
    assert len(forward) == len(backward) == 2
    assert forward[0][-1][0] == 180.0
    assert backward[0][-1][0] == -180.0

    unwound = [list(reversed(segment)) for segment in reversed(backward)]
    assert [len(s) for s in unwound] == [len(s) for s in forward]
    assert _flatten(_flatten(forward)) == pytest.approx(_flatten(_flatten(unwound)), abs=1e-9)


def test_arc_is_deterministic():
    args = ((-73.78, 40.64), (121.2325, 25.0777))
    assert great_circle_arc(*args) == great_circle_arc(*args)


def test_lift_does_not_move_the_ground_track():
    flat = great_circle_arc((10.0, 20.0), (60.0, 45.0), height_factor=0.0)
    lifted = great_circle_arc((10.0, 20.0), (60.0, 45.0), height_factor=0.5)
    assert _flatten(lifted) == pytest.approx(_flatten(flat), abs=1e-9)


def test_height_peaks_mid_route_and_is_capped():
    path = great_circle_arc((0.0, 0.0), (90.0, 0.0), include_height=True)

    assert len(path) == 101
    assert path[0][2] == pytest.approx(0.0, abs=1e-12)
    assert path[50][0] == pytest.approx(45.0)
    assert path[50][2] == pytest.approx(0.5)
    assert max(point[2] for point in path) <= 0.5 + 1e-12

    short = great_circle_arc((0.0, 0.0), (10.0, 0.0), include_height=True)
    assert short[50][2] == pytest.approx(0.5 * (10.0 / 180.0) * 3)


def test_effective_height():
    assert effective_height(0.5, math.pi / 2) == 0.5
    assert effective_height(0.5, math.pi / 18) == pytest.approx(1 / 12)
    assert effective_height(0.5, math.pi, max_height=0.2) == 0.2


def test_angular_distance_wraps_across_antimeridian():
    assert angular_distance(179.0, 0.0, -179.0, 0.0) == pytest.approx(math.radians(2.0))
    assert angular_distance(0.0, 0.0, 0.0, 90.0) == pytest.approx(math.pi / 2)


def test_coincident_endpoints():
    assert great_circle_arc((121.0, 25.0), (121.0, 25.0)) == [(121.0, 25.0), (121.0, 25.0)]
    assert great_circle_arc((121.0, 25.0), (121.0, 25.0), include_height=True) == [
        (121.0, 25.0, 0.0),
        (121.0, 25.0, 0.0),
    ]


def test_non_finite_endpoint_falls_back_to_straight_pair(caplog):
    path = great_circle_arc((float("nan"), 0.0), (1.0, 1.0))

    assert len(path) == 2
    assert math.isnan(path[0][0])
    assert path[1] == (1.0, 1.0)
    assert "fallback" in caplog.text


def test_antipodal_endpoints_fall_back_to_straight_pair():
    assert great_circle_arc([0.0, 0.0], [180.0, 0.0]) == [(0.0, 0.0), (180.0, 0.0)]


def test_num_points_must_be_positive():
    with pytest.raises(ValueError):
        great_circle_arc((0.0, 0.0), (1.0, 1.0), num_points=0)


def test_split_interpolates_crossing_latitude():
    assert split_at_antimeridian([(170.0, 10.0), (-170.0, 20.0)]) == [
        [(170.0, 10.0), (180.0, 15.0)],
        [(-180.0, 15.0), (-170.0, 20.0)],
    ]
    assert split_at_antimeridian([(-170.0, 0.0, 0.2), (170.0, 4.0, 0.4)]) == [
        [(-170.0, 0.0, 0.2), (-180.0, 2.0, pytest.approx(0.3))],
        [(180.0, 2.0, pytest.approx(0.3)), (170.0, 4.0, 0.4)],
    ]


def test_split_without_crossing_returns_points():
    points = [(0.0, 0.0), (10.0, 5.0)]
    assert split_at_antimeridian(points) == points
    assert as_segments(points) == [points]
    assert as_segments([[(0.0, 0.0)], [(1.0, 1.0)]]) == [[(0.0, 0.0)], [(1.0, 1.0)]]
    assert not is_segmented([])
