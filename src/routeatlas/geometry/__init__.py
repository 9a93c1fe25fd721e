"""Spherical geometry exports."""

from .great_circle import (
    ArcPath,
    angular_distance,
    as_segments,
    crosses_antimeridian,
    great_circle_arc,
    is_segmented,
    split_at_antimeridian,
)

__all__ = [
    "ArcPath",
    "angular_distance",
    "as_segments",
    "crosses_antimeridian",
    "great_circle_arc",
    "is_segmented",
    "split_at_antimeridian",
]
