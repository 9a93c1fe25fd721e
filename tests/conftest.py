from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

TPE = ("臺北桃園", (121.2325, 25.0777))
KHH = ("高雄小港", (120.3500, 22.5771))
NRT = ("東京成田", (140.3929, 35.7720))
KIX = ("大阪關西", (135.2440, 34.4347))


def make_feature(
    source: Sequence[object],
    target: Sequence[object],
    period: str,
    *,
    passengers: float = 100,
    flights: int = 2,
    load_factor: float = 0.8,
    airlines: object = None,
    geometry: bool = True,
) -> Dict[str, object]:
    (source_name, source_pos), (target_name, target_pos) = source, target
    props: Dict[str, object] = {
        "出發機場": source_name,
        "到達機場": target_name,
        "年月": period,
        "載客人次": passengers,
        "航班數": flights,
        "平均載客率": load_factor,
    }
    if airlines is not None:
        props["航空公司列表"] = airlines
    feature: Dict[str, object] = {"type": "Feature", "properties": props}
    if geometry:
        feature["geometry"] = {
            "type": "LineString",
            "coordinates": [list(source_pos), list(target_pos)],
        }
    else:
        feature["geometry"] = None
    return feature


def square(x0: float, y0: float, size: float) -> List[List[float]]:
    return [[x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size], [x0, y0]]


def boundary_feature(name: str, geometry: Dict[str, object], iso: Optional[str] = None) -> Dict[str, object]:
    return {
        "type": "Feature",
        "properties": {"NAME": name, "ISO_A2": iso, "POP_EST": 1000, "CONTINENT": "Asia"},
        "geometry": geometry,
    }


@pytest.fixture
def route_features() -> List[Dict[str, object]]:
    """Three periods of traffic between Taiwan and Japan, in feed order."""
    return [
        make_feature(TPE, NRT, "202212", passengers=400, flights=4),
        make_feature(TPE, NRT, "202301", passengers=500, flights=5),
        make_feature(NRT, TPE, "202301", passengers=300, flights=3),
        make_feature(TPE, KIX, "202301", passengers=100, flights=1),
        make_feature(KHH, TPE, "202301", passengers=50, flights=1),
        make_feature(TPE, NRT, "202302", passengers=450, flights=4),
        make_feature(KHH, KIX, "202302", passengers=200, flights=2),
    ]


@pytest.fixture
def japan_boundaries() -> List[Dict[str, object]]:
    return [
        boundary_feature(
            "Japan",
            {"type": "Polygon", "coordinates": [square(129.0, 30.0, 17.0)]},
            iso="JP",
        ),
        boundary_feature(
            "Taiwan",
            {"type": "Polygon", "coordinates": [square(119.0, 21.0, 4.0)]},
            iso="TW",
        ),
    ]


@pytest.fixture
def feature():
    """Factory for feed features: ``feature((name, (lon, lat)), (name, (lon, lat)), period)``."""
    return make_feature


@pytest.fixture
def places() -> Dict[str, object]:
    return {"TPE": TPE, "KHH": KHH, "NRT": NRT, "KIX": KIX}
