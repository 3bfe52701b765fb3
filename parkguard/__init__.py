"""Geofencing and violation classification for vessels in a protected marine area."""

from parkguard.config import AppConfig, load_config
from parkguard.geometry.boundaries import BoundaryIndex
from parkguard.geometry.features import build_boundary_index, geometry_set_from_geojson
from parkguard.models import (
    BatchProgress,
    ClassificationResult,
    Diagnostic,
    Severity,
    VesselSample,
    Violation,
    ViolationType,
)
from parkguard.pipeline import BatchOrchestrator, BatchRun, BatchState
from parkguard.processing.classifier import Classifier
from parkguard.processing.exemptions import ExemptionEntry, ExemptionSnapshot

__all__ = [
    "AppConfig",
    "load_config",
    "BoundaryIndex",
    "build_boundary_index",
    "geometry_set_from_geojson",
    "BatchProgress",
    "ClassificationResult",
    "Diagnostic",
    "Severity",
    "VesselSample",
    "Violation",
    "ViolationType",
    "BatchOrchestrator",
    "BatchRun",
    "BatchState",
    "Classifier",
    "ExemptionEntry",
    "ExemptionSnapshot",
]

__version__ = "0.1.0"
