"""Shared data models for the violation engine."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

Coordinate = tuple[float, float]   # (longitude, latitude), WGS84 degrees


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class ViolationType(str, Enum):
    ANCHORED_ON_VEGETATION = "anchored_on_vegetation"
    EXCESSIVE_SPEED = "excessive_speed"
    IN_BUFFER_ZONE = "in_buffer_zone"
    TOO_CLOSE_TO_SHORE = "too_close_to_shore"


class DiagnosticKind(str, Enum):
    RULE_FAILURE = "rule_failure"
    SAMPLE_FAILURE = "sample_failure"
    MALFORMED_GEOMETRY = "malformed_geometry"
    MISSING_GEOMETRY = "missing_geometry"


@dataclass(frozen=True)
class VesselSample:
    """One vessel position as delivered by the ingestion layer."""
    position: Coordinate
    speed: float = 0.0                # knots
    course: Optional[float] = None    # degrees
    heading: Optional[float] = None   # degrees
    uuid: str = ""
    name: str = ""
    mmsi: str = ""
    imo: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        lon, lat = self.position
        object.__setattr__(self, "position", (float(lon), float(lat)))
        speed = self.speed
        if speed is None or not math.isfinite(speed) or speed < 0:
            speed = 0.0
        object.__setattr__(self, "speed", float(speed))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def longitude(self) -> float:
        return self.position[0]

    @property
    def latitude(self) -> float:
        return self.position[1]

    @property
    def vessel_id(self) -> str:
        """Best identity available for logs: uuid, then mmsi, then imo."""
        return self.uuid or self.mmsi or self.imo or self.name

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> VesselSample:
        """Build a sample from a position-feed record.

        Accepts both ``lat``/``lon`` and ``latitude``/``longitude`` keys, and a
        nested ``vessel`` mapping carrying the speed as the web feed does.
        """
        lat = data.get("lat", data.get("latitude"))
        lon = data.get("lon", data.get("longitude"))
        if lat is None or lon is None:
            raise ValueError("Vessel record has no position")

        nested = data.get("vessel") or {}
        speed = data.get("speed", nested.get("speed", 0.0))

        known = {"lat", "lon", "latitude", "longitude", "speed", "course",
                 "heading", "uuid", "name", "mmsi", "imo", "vessel"}
        return cls(
            position=(float(lon), float(lat)),
            speed=float(speed or 0.0),
            course=_optional_float(data.get("course")),
            heading=_optional_float(data.get("heading")),
            uuid=str(data.get("uuid") or ""),
            name=str(data.get("name") or nested.get("name") or ""),
            mmsi=str(data.get("mmsi") or ""),
            imo=str(data.get("imo") or ""),
            extra={k: v for k, v in data.items() if k not in known},
        )


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class Violation:
    """A single rule hit for one vessel."""
    type: ViolationType
    severity: Severity
    title: str
    description: str
    distance_m: Optional[float] = None
    speed_limit: Optional[float] = None
    actual_speed: Optional[float] = None
    created_at: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True)
class SpatialAnalysis:
    """Where the vessel sits relative to each boundary set."""
    in_park: bool = False
    in_buffer_zone: bool = False
    over_vegetation: bool = False
    vegetation_feature: Optional[Mapping[str, Any]] = None
    distance_to_vegetation_m: float = math.inf
    near_vegetation: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    sample: VesselSample
    violations: tuple[Violation, ...] = ()
    max_severity: Severity = Severity.LOW
    is_exempt: bool = False
    exemption_reason: Optional[str] = None
    primary_violation: Optional[Violation] = None
    analysis: SpatialAnalysis = field(default_factory=SpatialAnalysis)

    @property
    def has_violations(self) -> bool:
        return len(self.violations) > 0

    def has(self, violation_type: ViolationType) -> bool:
        return any(v.type == violation_type for v in self.violations)


@dataclass(frozen=True)
class BatchProgress:
    processed: int
    total: int
    percent: int              # 0-100, never above 100

    @classmethod
    def of(cls, processed: int, total: int) -> BatchProgress:
        if total <= 0:
            return cls(processed=processed, total=total, percent=100)
        percent = round(processed / total * 100)
        return cls(processed=processed, total=total, percent=min(int(percent), 100))


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal problem surfaced during a batch run."""
    kind: DiagnosticKind
    message: str
    sample_index: Optional[int] = None
    rule: Optional[str] = None
    vessel_id: Optional[str] = None
