"""Point-in-polygon and point-to-segment distance on lon/lat coordinates."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from parkguard.geometry.shapes import Polygon, as_coordinate_array
from parkguard.models import Coordinate

METERS_PER_DEGREE = 111_320.0


def local_scale(latitude: float) -> tuple[float, float]:
    """Metres per degree of (longitude, latitude) around ``latitude``.

    Equirectangular approximation, good to well under 1% over the few
    kilometres a park boundary spans.
    """
    return METERS_PER_DEGREE * math.cos(math.radians(latitude)), METERS_PER_DEGREE


def _is_finite_point(point: Coordinate) -> bool:
    return math.isfinite(point[0]) and math.isfinite(point[1])


def _ring_of(polygon: Polygon | Sequence[Coordinate] | np.ndarray) -> np.ndarray:
    if isinstance(polygon, Polygon):
        return polygon.outer
    return as_coordinate_array(polygon)


def point_in_ring(point: Coordinate, ring: np.ndarray) -> bool:
    """Even-odd ray casting against one ring.

    A horizontal ray from the point is tested against every edge (i-1, i)
    at once; an odd number of crossings means inside. Points exactly on an
    edge may land either way.
    """
    if len(ring) < 3 or not _is_finite_point(point):
        return False

    x, y = point
    xi, yi = ring[:, 0], ring[:, 1]
    xj, yj = np.roll(xi, 1), np.roll(yi, 1)

    straddles = (yi > y) != (yj > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
    crossings = straddles & (x < x_cross)

    return bool(np.count_nonzero(crossings) % 2)


def point_in_polygon(point: Coordinate,
                     polygon: Polygon | Sequence[Coordinate] | np.ndarray,
                     respect_holes: bool = False) -> bool:
    """Containment test against a polygon's outer ring.

    With ``respect_holes`` a point inside any hole ring is reported outside.
    Degenerate rings (<3 points) and non-finite points return False.
    """
    ring = _ring_of(polygon)
    if not point_in_ring(point, ring):
        return False

    if respect_holes and isinstance(polygon, Polygon):
        for hole in polygon.holes:
            if point_in_ring(point, hole):
                return False
    return True


def min_distance_point_to_segment(point: Coordinate, seg_a: Coordinate,
                                  seg_b: Coordinate,
                                  scale: tuple[float, float] = (1.0, 1.0)) -> float:
    """Squared minimum distance from ``point`` to segment [seg_a, seg_b].

    Degree² with the default scale, metres² with ``scale=local_scale(lat)``.
    The squared value is returned so callers compare against a squared
    threshold without a square root.
    """
    sx, sy = scale
    # Work relative to the point so the result is exactly 0 on the segment
    ax, ay = (seg_a[0] - point[0]) * sx, (seg_a[1] - point[1]) * sy
    bx, by = (seg_b[0] - point[0]) * sx, (seg_b[1] - point[1]) * sy

    dx, dy = bx - ax, by - ay
    seg_len2 = dx * dx + dy * dy
    if seg_len2 == 0.0:
        return ax * ax + ay * ay

    t = -(ax * dx + ay * dy) / seg_len2
    if t < 0.0:
        t = 0.0
    elif t > 1.0:
        t = 1.0

    cx = ax + t * dx
    cy = ay + t * dy
    return cx * cx + cy * cy


def min_distance_point_to_polygon_boundary(point: Coordinate,
                                           polygon: Polygon | Sequence[Coordinate] | np.ndarray,
                                           threshold_m: float) -> bool:
    """True if any outer-ring edge lies within ``threshold_m`` metres of the point."""
    ring = _ring_of(polygon)
    if len(ring) < 3 or not _is_finite_point(point):
        return False

    scale = local_scale(point[1])
    threshold2 = threshold_m * threshold_m
    n = len(ring)
    for i in range(n):
        j = (i + 1) % n
        d2 = min_distance_point_to_segment(point, ring[i], ring[j], scale)
        if d2 <= threshold2:
            return True
    return False


def segment_distances_m(point: Coordinate, coords: np.ndarray) -> np.ndarray:
    """Metre distance from the point to each segment of an open polyline."""
    if len(coords) < 2 or not _is_finite_point(point):
        return np.array([], dtype=np.float64)

    sx, sy = local_scale(point[1])
    rel = (coords - np.asarray(point, dtype=np.float64)) * np.array([sx, sy])
    a, b = rel[:-1], rel[1:]
    d = b - a

    seg_len2 = np.sum(d ** 2, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(seg_len2 > 0, -np.sum(a * d, axis=1) / seg_len2, 0.0)
    t = np.clip(t, 0.0, 1.0)

    closest = a + t[:, None] * d
    return np.sqrt(np.sum(closest ** 2, axis=1))


def distance_to_polyline_m(point: Coordinate,
                           coords: Sequence[Coordinate] | np.ndarray) -> float:
    """Minimum metre distance to any segment; ``inf`` for unusable input."""
    arr = coords if isinstance(coords, np.ndarray) else as_coordinate_array(coords)
    distances = segment_distances_m(point, arr)
    finite = distances[np.isfinite(distances)]
    if finite.size == 0:
        return math.inf
    return float(finite.min())


def distance_to_ring_m(point: Coordinate, ring: np.ndarray) -> float:
    """Minimum metre distance to a closed ring's boundary."""
    if len(ring) < 2:
        return math.inf
    closed = np.vstack([ring, ring[:1]])
    return distance_to_polyline_m(point, closed)
