"""Conversion of parsed GeoJSON-like feature collections into GeometrySets."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Mapping, Optional

from parkguard.config import GeometryConfig
from parkguard.errors import GeometryError
from parkguard.geometry.boundaries import SET_NAMES, VEGETATION, BoundaryIndex
from parkguard.geometry.shapes import AnyFeature, Feature, GeometrySet, LineFeature, Polygon
from parkguard.models import Diagnostic, DiagnosticKind

logger = logging.getLogger(__name__)

DiagnosticCallback = Callable[[Diagnostic], None]

_TAG_RE = re.compile(r"<[^>]+>")
_SUPPORTED_TYPES = ("Polygon", "MultiPolygon", "LineString", "MultiLineString")


def parse_vegetation_condition(description: str | None) -> dict[str, str]:
    """Derive bed condition tags from a survey placemark description.

    Surveys describe beds in Italian ("posidonia degradata", "su matte",
    "matte morta"); the result always carries ``type``, ``condition``,
    ``substrate`` and ``classification``.
    """
    result = {
        "type": "posidonia",
        "condition": "unknown",
        "substrate": "unknown",
        "classification": "standard",
    }
    if not description:
        return result

    cleaned = _TAG_RE.sub(" ", description).replace("&nbsp;", " ").lower()

    if "degradata" in cleaned:
        result["condition"] = "degraded"
        result["classification"] = "degraded"
    elif "su matte" in cleaned:
        result["condition"] = "on_matte"
        result["classification"] = "healthy"
    elif "morta" in cleaned:
        result["condition"] = "dead_matte"
        result["classification"] = "dead"

    if "sabbia" in cleaned:
        result["substrate"] = "sand"
    elif "roccia" in cleaned or "rock" in cleaned:
        result["substrate"] = "rock"
    elif "matte" in cleaned:
        result["substrate"] = "matte"

    return result


def _polygon_checked(rings: Any) -> Polygon:
    if not isinstance(rings, (list, tuple)):
        raise GeometryError("Polygon rings are not a sequence")
    polygon = Polygon.from_rings(rings)
    if polygon.is_degenerate:
        raise GeometryError(f"Ring has {len(polygon.outer)} points, need at least 3")
    if not polygon.is_finite:
        raise GeometryError("Ring contains non-finite coordinates")
    return polygon


def _line_checked(coords: Any, properties: Mapping[str, Any]) -> LineFeature:
    line = LineFeature(coords=coords, properties=properties)
    if len(line.coords) < 2:
        raise GeometryError("Line has fewer than 2 points")
    return line


def feature_from_geojson(feature: Mapping[str, Any],
                         on_invalid: Callable[[str], None] | None = None) -> list[AnyFeature]:
    """Convert one GeoJSON-like feature into zero or more engine features.

    Polygon and MultiPolygon become one Feature (invalid member polygons are
    dropped); LineString and MultiLineString become LineFeatures. Other
    geometry types are ignored.
    """
    def invalid(message: str) -> None:
        if on_invalid is not None:
            on_invalid(message)

    if not isinstance(feature, Mapping):
        invalid(f"Feature is not a mapping: {type(feature).__name__}")
        return []

    geometry = feature.get("geometry") or {}
    if not isinstance(geometry, Mapping):
        invalid(f"Geometry is not a mapping: {type(geometry).__name__}")
        return []

    raw_properties = feature.get("properties")
    properties = dict(raw_properties) if isinstance(raw_properties, Mapping) else {}
    geometry_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if geometry_type in _SUPPORTED_TYPES and not isinstance(coordinates, (list, tuple)):
        invalid(f"{geometry_type} coordinates are not a sequence")
        return []

    if geometry_type in ("Polygon", "MultiPolygon"):
        members = [coordinates] if geometry_type == "Polygon" else list(coordinates)
        polygons = []
        for rings in members:
            try:
                polygons.append(_polygon_checked(rings))
            except GeometryError as exc:
                invalid(str(exc))
        return [Feature(polygons=tuple(polygons), properties=properties)] if polygons else []

    if geometry_type in ("LineString", "MultiLineString"):
        members = [coordinates] if geometry_type == "LineString" else list(coordinates)
        lines = []
        for coords in members:
            try:
                lines.append(_line_checked(coords, properties))
            except GeometryError as exc:
                invalid(str(exc))
        return lines

    return []


def geometry_set_from_geojson(name: str, collection: Mapping[str, Any] | None,
                              strict: bool = False,
                              on_diagnostic: Optional[DiagnosticCallback] = None) -> GeometrySet:
    """Build a GeometrySet from a parsed FeatureCollection mapping.

    Malformed members are dropped with a warning (or raise GeometryError when
    ``strict``). Vegetation features without a ``condition`` property get one
    derived from their description.
    """
    raw_features: Iterable[Mapping[str, Any]] = (collection or {}).get("features") or []
    features: list[AnyFeature] = []

    for position, raw in enumerate(raw_features):
        def on_invalid(message: str, position: int = position) -> None:
            text = f"{name} feature #{position}: {message}"
            if strict:
                raise GeometryError(text)
            logger.warning("Dropping malformed geometry: %s", text)
            if on_diagnostic is not None:
                on_diagnostic(Diagnostic(kind=DiagnosticKind.MALFORMED_GEOMETRY, message=text))

        converted = feature_from_geojson(raw, on_invalid)
        if name == VEGETATION:
            converted = [_with_vegetation_tags(f) for f in converted]
        features.extend(converted)

    logger.info("Loaded geometry set '%s' with %d features", name, len(features))
    return GeometrySet(name=name, features=tuple(features))


def _with_vegetation_tags(feature: AnyFeature) -> AnyFeature:
    if not isinstance(feature, Feature) or "condition" in feature.properties:
        return feature
    tags = parse_vegetation_condition(feature.properties.get("description"))
    return Feature(polygons=feature.polygons, properties={**tags, **feature.properties})


def build_boundary_index(collections: Mapping[str, Mapping[str, Any] | None],
                         config: Optional[GeometryConfig] = None,
                         strict: bool = False,
                         on_diagnostic: Optional[DiagnosticCallback] = None) -> BoundaryIndex:
    """Convert named feature collections and wrap them in a BoundaryIndex.

    ``collections`` maps set names (park, buffer_zone, vegetation, shoreline)
    to parsed FeatureCollections. Sets that are absent or None stay unset.
    """
    config = config or GeometryConfig()
    unknown = set(collections) - set(SET_NAMES)
    if unknown:
        raise ValueError(f"Unknown geometry sets: {sorted(unknown)}")

    sets = {
        name: geometry_set_from_geojson(name, collection, strict, on_diagnostic)
        for name, collection in collections.items()
        if collection is not None
    }
    return BoundaryIndex(respect_holes=config.respect_holes, **sets)
