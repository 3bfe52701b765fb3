"""Shared test fixtures: square boundaries around a small synthetic park."""

from __future__ import annotations

import pytest

from parkguard.config import AppConfig, BatchConfig, RuleConfig
from parkguard.geometry.boundaries import BoundaryIndex
from parkguard.geometry.shapes import Feature, GeometrySet, LineFeature, Polygon
from parkguard.models import VesselSample

# Park: 0.05° square north-east of (9.40, 41.20)
PARK_ORIGIN = (9.40, 41.20)
PARK_SIZE = 0.05

# Vegetation bed well inside the park, away from every edge
BED_ORIGIN = (9.41, 41.21)
BED_SIZE = 0.01

# Buffer strip along the park's western edge
BUFFER_RING = [(9.395, 41.195), (9.405, 41.195), (9.405, 41.255), (9.395, 41.255)]

# Shoreline running north along lon 9.44
SHORE_LINE = [(9.44, 41.20), (9.44, 41.25)]

# A point in open park water: not in the bed, buffer, or near the shore
OPEN_WATER = (9.425, 41.235)
IN_BED = (9.415, 41.215)


@pytest.fixture
def rule_config() -> RuleConfig:
    return RuleConfig(
        buffer_zone_distance_m=100.0,
        shore_proximity_warning_m=100.0,
        speed_limit_in_park=5.0,
        anchoring_speed_threshold=0.5,
        vegetation_proximity_warning_m=50.0,
    )


@pytest.fixture
def app_config(rule_config) -> AppConfig:
    return AppConfig(rules=rule_config, batch=BatchConfig(chunk_size=25))


@pytest.fixture
def boundary_index() -> BoundaryIndex:
    """Park, buffer strip and one healthy vegetation bed; no shoreline."""
    return BoundaryIndex(
        park=make_set("park", make_square(*PARK_ORIGIN, PARK_SIZE)),
        buffer_zone=make_set("buffer_zone", Polygon(outer=BUFFER_RING)),
        vegetation=make_set(
            "vegetation", make_square(*BED_ORIGIN, BED_SIZE),
            properties={"name": "Bed A", "condition": "on_matte",
                        "classification": "healthy"},
        ),
    )


@pytest.fixture
def index_with_shore(boundary_index) -> BoundaryIndex:
    shoreline = GeometrySet(name="shoreline",
                            features=(LineFeature(coords=SHORE_LINE),))
    return boundary_index.replace(shoreline=shoreline)


def make_square(lon: float, lat: float, size: float) -> Polygon:
    """Axis-aligned square polygon with its south-west corner at (lon, lat)."""
    return Polygon(outer=[
        (lon, lat),
        (lon + size, lat),
        (lon + size, lat + size),
        (lon, lat + size),
    ])


def make_set(name: str, *polygons: Polygon,
             properties: dict | None = None) -> GeometrySet:
    """One feature per polygon, all sharing ``properties``."""
    return GeometrySet(name=name, features=tuple(
        Feature(polygons=(p,), properties=properties or {}) for p in polygons
    ))


def make_sample(position: tuple[float, float] = OPEN_WATER, speed: float = 2.0,
                name: str = "Test Vessel", **kwargs) -> VesselSample:
    return VesselSample(position=position, speed=speed, name=name, **kwargs)
