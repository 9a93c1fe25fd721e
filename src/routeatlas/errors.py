"""Exception types raised inside the engine and degraded at module boundaries."""

from __future__ import annotations


class FeedDataError(ValueError):
    """A raw feature is missing usable geometry or fields."""


class ArcGeometryError(ValueError):
    """Coordinates that cannot be interpolated reached the arc engine."""
