from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_KEYWORDS: Tuple[str, ...] = (
    "桃園",
    "臺北",
    "高雄",
    "臺中",
    "花蓮",
    "澎湖",
    "臺南",
    "台北",
    "台中",
    "台南",
)

_KNOWN_SECTIONS = {"reference_region", "assignment", "cache", "views", "arcs", "trails"}


def _section(data: Mapping[str, object], name: str) -> Mapping[str, object]:
    block = data.get(name) or {}
    if not isinstance(block, Mapping):
        raise TypeError(f"'{name}' must be a mapping")
    return block


def _positive_int(value: object, label: str) -> int:
    result = int(value)  # type: ignore[arg-type]
    if result <= 0:
        raise ValueError(f"{label} must be positive")
    return result


@dataclass(frozen=True)
class ArcSettings:
    height_factor: float = 0.5
    num_points: int = 100
    max_height: float = 0.5

    def __post_init__(self) -> None:
        if self.num_points < 1:
            raise ValueError("arcs.num_points must be at least 1")
        if self.height_factor < 0 or self.max_height < 0:
            raise ValueError("arcs height settings must be non-negative")


@dataclass(frozen=True)
class TrailSettings:
    """Aircraft-per-route clamp and trail styling."""

    min_aircraft: int = 1
    max_aircraft: int = 3
    distance_divisor: float = 40.0
    trail_fraction: float = 0.15
    min_trail_points: int = 3
    max_trail_points: int = 10
    route_phase_step: float = 0.1
    highlight_color: str = "#FFFF00"

    def __post_init__(self) -> None:
        if self.min_aircraft < 1 or self.max_aircraft < self.min_aircraft:
            raise ValueError("trails aircraft bounds must satisfy 1 <= min <= max")
        if self.distance_divisor <= 0:
            raise ValueError("trails.distance_divisor must be positive")
        if not 2 <= self.min_trail_points <= self.max_trail_points:
            raise ValueError("trails point bounds must satisfy 2 <= min <= max")


@dataclass(frozen=True)
class EngineConfig:
    """Settings for ingestion-derived views, assignment and animation."""

    reference_keywords: Tuple[str, ...] = DEFAULT_REFERENCE_KEYWORDS
    assignment_batch_size: int = 100
    cache_limit: int = 30
    max_visible_flights: int = 250
    arc_angle_degrees: float = 30.0
    arcs: ArcSettings = field(default_factory=ArcSettings)
    trails: TrailSettings = field(default_factory=TrailSettings)
    metadata: Dict[str, object] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        for label, value in (
            ("assignment.batch_size", self.assignment_batch_size),
            ("cache.limit", self.cache_limit),
            ("views.max_visible_flights", self.max_visible_flights),
        ):
            if value <= 0:
                raise ValueError(f"{label} must be positive")

    # --------------------------------------------------------------------- I/O --
    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "EngineConfig":
        if not isinstance(data, Mapping):
            raise TypeError("EngineConfig expects a mapping at the top level")
        region = _section(data, "reference_region")
        assignment = _section(data, "assignment")
        cache = _section(data, "cache")
        views = _section(data, "views")
        arcs = _section(data, "arcs")
        trails = _section(data, "trails")

        keywords = region.get("keywords")
        if keywords is None:
            keywords = DEFAULT_REFERENCE_KEYWORDS
        elif isinstance(keywords, str) or not isinstance(keywords, (list, tuple)):
            raise TypeError("reference_region.keywords must be a list of strings")

        metadata = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}
        if metadata:
            logger.debug("Keeping unknown config keys as metadata: %s", ", ".join(sorted(metadata)))

        return cls(
            reference_keywords=tuple(str(k) for k in keywords),
            assignment_batch_size=_positive_int(assignment.get("batch_size", 100), "assignment.batch_size"),
            cache_limit=_positive_int(cache.get("limit", 30), "cache.limit"),
            max_visible_flights=_positive_int(views.get("max_visible_flights", 250), "views.max_visible_flights"),
            arc_angle_degrees=float(views.get("arc_angle_degrees", 30.0)),
            arcs=ArcSettings(
                height_factor=float(arcs.get("height_factor", 0.5)),
                num_points=int(arcs.get("num_points", 100)),
                max_height=float(arcs.get("max_height", 0.5)),
            ),
            trails=TrailSettings(
                min_aircraft=int(trails.get("min_aircraft", 1)),
                max_aircraft=int(trails.get("max_aircraft", 3)),
                distance_divisor=float(trails.get("distance_divisor", 40.0)),
                trail_fraction=float(trails.get("trail_fraction", 0.15)),
                min_trail_points=int(trails.get("min_trail_points", 3)),
                max_trail_points=int(trails.get("max_trail_points", 10)),
                route_phase_step=float(trails.get("route_phase_step", 0.1)),
                highlight_color=str(trails.get("highlight_color", "#FFFF00")),
            ),
            metadata=metadata,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "EngineConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Engine config YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        return cls.from_mapping(data)

    def to_mapping(self) -> Dict[str, object]:
        return {
            **self.metadata,
            "reference_region": {"keywords": list(self.reference_keywords)},
            "assignment": {"batch_size": self.assignment_batch_size},
            "cache": {"limit": self.cache_limit},
            "views": {
                "max_visible_flights": self.max_visible_flights,
                "arc_angle_degrees": self.arc_angle_degrees,
            },
            "arcs": {
                "height_factor": self.arcs.height_factor,
                "num_points": self.arcs.num_points,
                "max_height": self.arcs.max_height,
            },
            "trails": {
                "min_aircraft": self.trails.min_aircraft,
                "max_aircraft": self.trails.max_aircraft,
                "distance_divisor": self.trails.distance_divisor,
                "trail_fraction": self.trails.trail_fraction,
                "min_trail_points": self.trails.min_trail_points,
                "max_trail_points": self.trails.max_trail_points,
                "route_phase_step": self.trails.route_phase_step,
                "highlight_color": self.trails.highlight_color,
            },
        }

    def to_yaml(self, path: str | Path) -> None:
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(self.to_mapping(), handle, sort_keys=True, allow_unicode=True)


__all__ = ["ArcSettings", "EngineConfig", "TrailSettings", "DEFAULT_REFERENCE_KEYWORDS"]
