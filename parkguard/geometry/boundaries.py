"""Boundary index: containment and proximity queries over the loaded sets."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional

from parkguard.geometry.primitives import (
    distance_to_polyline_m,
    distance_to_ring_m,
    local_scale,
    min_distance_point_to_polygon_boundary,
    point_in_polygon,
)
from parkguard.geometry.shapes import Feature, GeometrySet
from parkguard.models import Coordinate

logger = logging.getLogger(__name__)

PARK = "park"
BUFFER_ZONE = "buffer_zone"
VEGETATION = "vegetation"
SHORELINE = "shoreline"

SET_NAMES = (PARK, BUFFER_ZONE, VEGETATION, SHORELINE)
# Shoreline is optional: its absence only disables the shore rule
REQUIRED_SETS = (PARK, BUFFER_ZONE, VEGETATION)


class BoundaryIndex:
    """Read-only view over the park, buffer-zone, vegetation and shoreline sets.

    An empty or unset set answers "no containment" and "not near". That means
    the feature is unavailable, not that the point is definitely outside.
    """

    def __init__(self, park: GeometrySet | None = None,
                 buffer_zone: GeometrySet | None = None,
                 vegetation: GeometrySet | None = None,
                 shoreline: GeometrySet | None = None,
                 respect_holes: bool = False):
        self._sets: dict[str, GeometrySet | None] = {
            PARK: park,
            BUFFER_ZONE: buffer_zone,
            VEGETATION: vegetation,
            SHORELINE: shoreline,
        }
        self._respect_holes = respect_holes

    def __repr__(self) -> str:
        sizes = ", ".join(
            f"{name}={len(s) if s is not None else None}" for name, s in self._sets.items()
        )
        return f"BoundaryIndex({sizes})"

    @property
    def respect_holes(self) -> bool:
        return self._respect_holes

    def get(self, set_name: str) -> GeometrySet | None:
        if set_name not in self._sets:
            raise ValueError(f"Unknown geometry set: {set_name!r}")
        return self._sets[set_name]

    def has_set(self, set_name: str) -> bool:
        geometry_set = self.get(set_name)
        return geometry_set is not None and not geometry_set.is_empty

    def missing_sets(self) -> list[str]:
        """Names of required sets that are unset or empty."""
        return [name for name in REQUIRED_SETS if not self.has_set(name)]

    def replace(self, **sets: GeometrySet | None) -> BoundaryIndex:
        """Return a new index with some sets swapped; this one is untouched."""
        unknown = set(sets) - set(SET_NAMES)
        if unknown:
            raise ValueError(f"Unknown geometry sets: {sorted(unknown)}")
        merged = {**self._sets, **sets}
        logger.info("Boundary sets replaced: %s", ", ".join(sorted(sets)))
        return BoundaryIndex(respect_holes=self._respect_holes, **merged)

    # --- containment ---

    def feature_at(self, point: Coordinate, set_name: str) -> Feature | None:
        """First feature of the set containing the point."""
        geometry_set = self.get(set_name)
        if geometry_set is None:
            return None

        for feature, polygon in geometry_set.polygons():
            if not polygon.bbox_contains(point):
                continue
            if point_in_polygon(point, polygon, self._respect_holes):
                return feature
        return None

    def is_inside(self, point: Coordinate, set_name: str) -> bool:
        return self.feature_at(point, set_name) is not None

    def classify_geometry_at(self, point: Coordinate,
                             set_name: str) -> Optional[Mapping[str, Any]]:
        """Metadata of the containing feature (e.g. vegetation condition), or None."""
        feature = self.feature_at(point, set_name)
        if feature is None:
            return None
        return feature.properties

    # --- proximity ---

    def is_near_boundary(self, point: Coordinate, set_name: str,
                         threshold_m: float) -> bool:
        """True if the point is within ``threshold_m`` of any polygon's outer ring."""
        geometry_set = self.get(set_name)
        if geometry_set is None or not math.isfinite(point[1]):
            return False

        mx, my = local_scale(point[1])
        margin_lon = threshold_m / mx if mx > 0 else math.inf
        margin_lat = threshold_m / my

        for _, polygon in geometry_set.polygons():
            if not polygon.bbox_contains(point, margin_lon, margin_lat):
                continue
            if min_distance_point_to_polygon_boundary(point, polygon, threshold_m):
                return True
        return False

    def distance_to_nearest_m(self, point: Coordinate, set_name: str) -> float:
        """0 when inside the set, else metres to the nearest outer ring; inf if empty."""
        geometry_set = self.get(set_name)
        if geometry_set is None:
            return math.inf

        best = math.inf
        for _, polygon in geometry_set.polygons():
            if point_in_polygon(point, polygon, self._respect_holes):
                return 0.0
            best = min(best, distance_to_ring_m(point, polygon.outer))
        return best

    def distance_to_shoreline_m(self, point: Coordinate) -> float | None:
        """Metres to the nearest shoreline segment, or None without shoreline data."""
        if not self.has_set(SHORELINE):
            return None

        best = math.inf
        for coords in self._sets[SHORELINE].lines():
            best = min(best, distance_to_polyline_m(point, coords))
        return best
