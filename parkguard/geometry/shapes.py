"""Immutable containers for the park, buffer-zone, vegetation and shoreline geometries.

Coordinates are stored as read-only float64 arrays so a loaded set can be
shared by concurrent batch runs without locks. A "reload" builds a new
GeometrySet; nothing here is ever mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence, Union

import numpy as np

from parkguard.errors import GeometryError
from parkguard.models import Coordinate


def as_coordinate_array(coords: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Convert a coordinate sequence to a read-only Nx2 float64 array.

    Extra dimensions (altitude) are dropped.
    """
    try:
        arr = np.array(coords, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise GeometryError(f"Coordinates are not numeric: {exc}") from exc

    if arr.size == 0:
        arr = arr.reshape((0, 2))
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise GeometryError(f"Coordinates must be Nx2, got shape {arr.shape}")

    arr = np.ascontiguousarray(arr[:, :2])
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Polygon:
    """
    One outer ring plus optional holes.

    Attributes:
        outer: Nx2 array of (lon, lat) vertices, implicitly closed
        holes: tuple of Nx2 hole rings
    """

    outer: np.ndarray
    holes: tuple[np.ndarray, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "outer", as_coordinate_array(self.outer))
        object.__setattr__(self, "holes", tuple(as_coordinate_array(h) for h in self.holes))

        if len(self.outer) > 0 and np.all(np.isfinite(self.outer)):
            bbox = (
                float(self.outer[:, 0].min()), float(self.outer[:, 1].min()),
                float(self.outer[:, 0].max()), float(self.outer[:, 1].max()),
            )
        else:
            bbox = (np.nan, np.nan, np.nan, np.nan)
        object.__setattr__(self, "_bbox", bbox)

    @classmethod
    def from_rings(cls, rings: Sequence[Sequence[Coordinate]]) -> Polygon:
        """Build from GeoJSON-style rings: first is the outer ring."""
        if len(rings) == 0:
            raise GeometryError("Polygon has no rings")
        return cls(outer=rings[0], holes=tuple(rings[1:]))

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """(min_lon, min_lat, max_lon, max_lat); NaN when the ring is unusable."""
        return self._bbox

    @property
    def is_degenerate(self) -> bool:
        return len(self.outer) < 3

    @property
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.outer))) and all(
            bool(np.all(np.isfinite(h))) for h in self.holes
        )

    def bbox_contains(self, point: Coordinate, margin_lon: float = 0.0,
                      margin_lat: float = 0.0) -> bool:
        min_lon, min_lat, max_lon, max_lat = self._bbox
        x, y = point
        # NaN bounds fail every comparison
        return (min_lon - margin_lon <= x <= max_lon + margin_lon
                and min_lat - margin_lat <= y <= max_lat + margin_lat)


@dataclass(frozen=True, eq=False)
class Feature:
    """A (multi)polygon with its classification metadata."""

    polygons: tuple[Polygon, ...]
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "polygons", tuple(self.polygons))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def name(self) -> str:
        return str(self.properties.get("name", ""))


@dataclass(frozen=True, eq=False)
class LineFeature:
    """Shoreline linework: an open polyline of at least two vertices."""

    coords: np.ndarray
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "coords", as_coordinate_array(self.coords))
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


AnyFeature = Union[Feature, LineFeature]


@dataclass(frozen=True, eq=False)
class GeometrySet:
    """A named, read-only collection of features for one semantic boundary."""

    name: str
    features: tuple[AnyFeature, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "features", tuple(self.features))

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[AnyFeature]:
        return iter(self.features)

    @property
    def is_empty(self) -> bool:
        return len(self.features) == 0

    def polygons(self) -> Iterator[tuple[Feature, Polygon]]:
        """Yield (feature, polygon) for every polygon in the set."""
        for feature in self.features:
            if isinstance(feature, Feature):
                for polygon in feature.polygons:
                    yield feature, polygon

    def lines(self) -> Iterator[np.ndarray]:
        """Yield every polyline, treating polygon outer rings as closed lines."""
        for feature in self.features:
            if isinstance(feature, LineFeature):
                yield feature.coords
            else:
                for polygon in feature.polygons:
                    if len(polygon.outer) >= 2:
                        yield np.vstack([polygon.outer, polygon.outer[:1]])
