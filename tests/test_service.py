from __future__ import annotations

import json

import pandas as pd
import pytest

import routeatlas
from routeatlas.cli import main
from routeatlas.config import EngineConfig
from routeatlas.countries.selection import ByName, Resolved, RouteSelection
from routeatlas.ingest.domain_types import NO_DIRECT_SERVICE
from routeatlas.ingest.record_store import RecordStore
from routeatlas.service import RouteAtlasService


def _write_collection(path, features):
    path.write_text(
        json.dumps({"type": "FeatureCollection", "features": features}, ensure_ascii=False),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def paths(tmp_path, route_features, japan_boundaries):
    feed = _write_collection(tmp_path / "flights.geojson", route_features)
    boundaries = _write_collection(tmp_path / "countries.geojson", japan_boundaries)
    config = tmp_path / "engine.yaml"
    EngineConfig.from_mapping({"assignment": {"batch_size": 1}, "cache": {"limit": 5}}).to_yaml(config)
    return feed, boundaries, config


@pytest.fixture
def service(paths):
    feed, boundaries, config = paths
    with RouteAtlasService.from_files(feed, boundaries, config_path=config) as svc:
        yield svc


def test_package_exposes_service_lazily():
    assert routeatlas.RouteAtlasService is RouteAtlasService
    with pytest.raises(AttributeError):
        routeatlas.NotAThing  # noqa: B018


def test_assignment_is_stepped_one_batch_per_call(service):
    assert service.config.assignment_batch_size == 1
    assert not service.assignment_complete

    steps = 0
    while service.step_assignment():
        steps += 1
        assert not service.assignment_complete

    assert steps == 3
    assert service.assignment_complete
    assert service.step_assignment() is False
    assert {name: a.country_name for name, a in service.country_assignments.items()} == {
        "東京成田": "Japan",
        "大阪關西": "Japan",
    }


def test_country_selection_and_series(service):
    service.ensure_assignments()

    japan = service.select_country("Japan")
    assert isinstance(japan, Resolved)
    assert japan.code == "JP"
    assert isinstance(service.select_country("Atlantis"), ByName)

    series = service.time_series(japan)
    assert [(p.period, p.passengers) for p in series] == [
        ("202212", 400),
        ("202301", 900),
        ("202302", 650),
    ]
    assert service.time_series(service.select_country("Atlantis")) is NO_DIRECT_SERVICE
    route = service.time_series(RouteSelection("東京成田", "臺北桃園"))
    assert [p.passengers for p in route] == [400, 800, 450]


def test_views_default_to_latest_period(service):
    flights = service.enhanced_flights()
    assert [f.route_id for f in flights] == ["臺北桃園-東京成田", "高雄小港-大阪關西"]
    assert [a.name for a in service.period_airports()] == ["臺北桃園", "東京成田", "高雄小港", "大阪關西"]
    scale = service.color_scale()
    assert (scale.minimum, scale.maximum) == (200, 450)


def test_trails_resolve_back_to_records(service):
    segments = service.trails(0.5)

    assert segments
    for segment in segments:
        record = service.flight(segment.flight_ref)
        assert record is not None
        assert record.period == "202302"
    assert service.arcs() == service.arcs()
    assert service.arcs() is not service.arcs()
    assert service.flight(-1) is None


def test_trails_highlight_route(service):
    segments = service.trails(0.5, highlight=RouteSelection("東京成田", "臺北桃園"))
    highlighted = {s.flight_ref for s in segments if s.color == "#FFFF00"}
    assert highlighted == {5}


def test_airport_filter_narrows_arcs_and_trails(service):
    assert set(service.arcs(airport="大阪關西")) == {6}
    assert set(service.arcs()) == {5, 6}
    assert [f.index for f in service.visible_flights(airport="東京成田")] == [5]

    segments = [s for tick in range(20) for s in service.trails(tick / 20, airport="大阪關西")]
    assert segments
    assert {s.flight_ref for s in segments} == {6}
    # Colours stay on the unfiltered scale.
    assert {s.color for s in segments} == {service.color_scale().color(200)}


def test_country_filter_tracks_assignment_progress(service):
    assert service.arcs(country=ByName("Japan")) == {}
    assert service.trails(0.5, country=ByName("Japan")) == []

    service.ensure_assignments()
    assert set(service.arcs(country=ByName("Japan"))) == {5, 6}
    assert set(service.arcs(country=service.select_country("Japan"), airport="東京成田")) == {5}
    assert service.visible_flights("202301", country=ByName("Atlantis")) == []


def test_closed_service_rejects_queries(service):
    service.close()
    with pytest.raises(RuntimeError):
        service.enhanced_flights()
    with pytest.raises(RuntimeError):
        service.step_assignment()


def test_service_without_boundaries(route_features):
    service = RouteAtlasService(RecordStore.from_features(route_features))
    assert service.step_assignment() is False
    assert service.ensure_assignments() == {}
    assert service.time_series(ByName("Japan")) is NO_DIRECT_SERVICE


def test_empty_store_has_no_default_period():
    service = RouteAtlasService(RecordStore.from_features([]))
    with pytest.raises(ValueError):
        service.enhanced_flights()


# -------------------------------------------------------------------- config
def test_config_yaml_round_trip(tmp_path):
    saved = EngineConfig.from_mapping(
        {
            "reference_region": {"keywords": ["桃園", "松山"]},
            "views": {"max_visible_flights": 50, "arc_angle_degrees": 20},
            "trails": {"max_aircraft": 4},
            "source": "caa",
        }
    )
    path = tmp_path / "nested" / "engine.yaml"
    saved.to_yaml(path)
    loaded = EngineConfig.from_yaml(path)

    assert loaded == saved
    assert loaded.reference_keywords == ("桃園", "松山")
    assert loaded.trails.max_aircraft == 4
    assert loaded.metadata == {"source": "caa"}


def test_config_defaults_and_validation(tmp_path):
    assert EngineConfig.from_mapping({}) == EngineConfig()
    with pytest.raises(ValueError):
        EngineConfig.from_mapping({"cache": {"limit": 0}})
    with pytest.raises(TypeError):
        EngineConfig.from_mapping({"reference_region": {"keywords": "桃園"}})
    with pytest.raises(TypeError):
        EngineConfig.from_mapping({"arcs": [1, 2]})
    with pytest.raises(FileNotFoundError):
        EngineConfig.from_yaml(tmp_path / "missing.yaml")


# ----------------------------------------------------------------------- cli
def test_cli_writes_flight_csv(paths, tmp_path, capsys):
    feed, boundaries, config = paths
    output = tmp_path / "out" / "flights.csv"

    main(
        [
            "--feed", str(feed),
            "--boundaries", str(boundaries),
            "--config", str(config),
            "--period", "202301",
            "--max-flights", "3",
            "--output-csv", str(output),
        ]
    )

    frame = pd.read_csv(output)
    assert list(frame["passengers"]) == [500, 300, 100]
    assert list(frame["arc_angle"]) == [30.0, -30.0, 30.0]
    out = capsys.readouterr().out
    assert "Top routes" in out
    assert "Countries served: Japan (2 airports assigned)" in out


def test_cli_rejects_unknown_period(paths):
    feed, _, _ = paths
    with pytest.raises(SystemExit):
        main(["--feed", str(feed), "--period", "209901"])
