"""Violation rules: independent predicates over one vessel sample.

Every rule has the signature ``(sample, index, config) -> Violation | None``
and is pure. RULES fixes the evaluation order so output is reproducible; the
order says nothing about severity.
"""

from __future__ import annotations

from typing import Callable, Optional

from parkguard.config import RuleConfig
from parkguard.geometry.boundaries import BUFFER_ZONE, PARK, VEGETATION, BoundaryIndex
from parkguard.models import Coordinate, Severity, VesselSample, Violation, ViolationType

Rule = Callable[[VesselSample, BoundaryIndex, RuleConfig], Optional[Violation]]

_CONDITION_LABELS = {
    "healthy": "healthy",
    "degraded": "degraded",
    "dead": "dead matte",
}


def is_in_buffer_zone(point: Coordinate, index: BoundaryIndex, config: RuleConfig) -> bool:
    """Inside the buffer-zone set, or near the park boundary when no such set exists."""
    if index.has_set(BUFFER_ZONE):
        return index.is_inside(point, BUFFER_ZONE)
    return index.is_near_boundary(point, PARK, config.buffer_zone_distance_m)


def check_anchoring_on_vegetation(sample: VesselSample, index: BoundaryIndex,
                                  config: RuleConfig) -> Optional[Violation]:
    """Near-zero speed over a vegetation bed is taken as anchoring."""
    if sample.speed > config.anchoring_speed_threshold:
        return None

    bed = index.classify_geometry_at(sample.position, VEGETATION)
    if bed is None:
        return None

    description = "Vessel is anchored on protected seagrass beds"
    label = _CONDITION_LABELS.get(str(bed.get("classification", "")))
    if label:
        description += f" ({label} meadow)"

    return Violation(
        type=ViolationType.ANCHORED_ON_VEGETATION,
        severity=Severity.CRITICAL,
        title="Anchoring on Seagrass",
        description=description,
        distance_m=0.0,
        actual_speed=sample.speed,
    )


def check_excessive_speed(sample: VesselSample, index: BoundaryIndex,
                          config: RuleConfig) -> Optional[Violation]:
    # Not gated on park containment
    if sample.speed <= config.speed_limit_in_park:
        return None

    return Violation(
        type=ViolationType.EXCESSIVE_SPEED,
        severity=Severity.MEDIUM,
        title="Speed Violation",
        description=(f"Travelling at {sample.speed:.1f} kn, exceeding the "
                     f"{config.speed_limit_in_park:g} kn park speed limit"),
        speed_limit=config.speed_limit_in_park,
        actual_speed=sample.speed,
    )


def check_buffer_zone(sample: VesselSample, index: BoundaryIndex,
                      config: RuleConfig) -> Optional[Violation]:
    if not is_in_buffer_zone(sample.position, index, config):
        return None

    return Violation(
        type=ViolationType.IN_BUFFER_ZONE,
        severity=Severity.MEDIUM,
        title="Inside Buffer Zone",
        description=(f"Vessel is within the {config.buffer_zone_distance_m:g} m "
                     f"buffer zone of the protected boundary"),
        distance_m=config.buffer_zone_distance_m,
    )


def check_shore_proximity(sample: VesselSample, index: BoundaryIndex,
                          config: RuleConfig) -> Optional[Violation]:
    """Only evaluated when shoreline linework is loaded."""
    distance = index.distance_to_shoreline_m(sample.position)
    if distance is None or not distance < config.shore_proximity_warning_m:
        return None

    rounded = float(round(distance))
    return Violation(
        type=ViolationType.TOO_CLOSE_TO_SHORE,
        severity=Severity.HIGH,
        title="Too Close to Shore",
        description=f"Vessel is only {rounded:.0f} m from shore",
        distance_m=rounded,
    )


RULES: tuple[tuple[str, Rule], ...] = (
    ("anchoring_on_vegetation", check_anchoring_on_vegetation),
    ("excessive_speed", check_excessive_speed),
    ("buffer_zone", check_buffer_zone),
    ("shore_proximity", check_shore_proximity),
)
