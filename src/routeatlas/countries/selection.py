"""Country selection variants and the reference-region keyword matcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Tuple, Union

from .boundaries import CountryBoundary


@dataclass(frozen=True)
class ByName:
    """Country chosen by name only; no geometry available."""

    name: str


@dataclass(frozen=True)
class Resolved:
    """Country chosen from the boundary dataset."""

    name: str
    code: Optional[str] = None
    geometry: Optional[Mapping[str, object]] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_boundary(cls, boundary: CountryBoundary) -> "Resolved":
        return cls(name=boundary.name, code=boundary.iso_code, geometry=boundary.geometry)


CountrySelection = Union[ByName, Resolved]


@dataclass(frozen=True)
class RouteSelection:
    """Directed route between two airport names."""

    source: str
    target: str

    def matches(self, source: str, target: str) -> bool:
        """True for either direction of the route."""
        return (source, target) in ((self.source, self.target), (self.target, self.source))


class ReferenceRegion:
    """Matches airports of the home region by name keyword."""

    def __init__(self, keywords: Iterable[str]):
        self._keywords: Tuple[str, ...] = tuple(k for k in keywords if k)

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self._keywords

    def matches(self, airport_name: Optional[str]) -> bool:
        if not airport_name:
            return False
        return any(keyword in airport_name for keyword in self._keywords)

    def foreign_endpoint(self, source: str, target: str) -> Optional[Tuple[str, bool]]:
        """Return ``(name, is_source)`` of the single non-reference endpoint.

        ``None`` when both or neither endpoint is in the reference region.
        """
        source_home = self.matches(source)
        target_home = self.matches(target)
        if source_home == target_home:
            return None
        return (target, False) if source_home else (source, True)
