"""Aggregate counters and severity grouping for result consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from parkguard.models import ClassificationResult, Severity

# Marker palette, keyed by max severity
SEVERITY_COLORS = {
    Severity.CRITICAL: "#dc2626",
    Severity.HIGH: "#ef4444",
    Severity.MEDIUM: "#f59e0b",
    Severity.LOW: "#10b981",
}
NO_VIOLATION_COLOR = "#86efac"


@dataclass
class BatchSummary:
    total: int = 0
    in_park: int = 0
    in_buffer_zone: int = 0
    over_vegetation: int = 0
    with_violations: int = 0
    critical: int = 0
    exempt: int = 0
    by_severity: dict[Severity, int] = field(
        default_factory=lambda: {s: 0 for s in Severity})


def severity_color(result: ClassificationResult) -> str:
    if not result.has_violations:
        return NO_VIOLATION_COLOR
    return SEVERITY_COLORS[result.max_severity]


def summarize(results: Iterable[ClassificationResult]) -> BatchSummary:
    """Counts for the header/panel widgets."""
    summary = BatchSummary()
    for result in results:
        summary.total += 1
        analysis = result.analysis
        if analysis.in_park:
            summary.in_park += 1
        if analysis.in_buffer_zone:
            summary.in_buffer_zone += 1
        if analysis.over_vegetation:
            summary.over_vegetation += 1
        if result.is_exempt:
            summary.exempt += 1
        if result.has_violations:
            summary.with_violations += 1
            summary.by_severity[result.max_severity] += 1
            if result.max_severity == Severity.CRITICAL:
                summary.critical += 1
    return summary


def group_by_severity(
        results: Iterable[ClassificationResult]) -> dict[Severity, list[ClassificationResult]]:
    """Vessels with violations, grouped by max severity, most severe group first."""
    ordered = sorted(Severity, key=lambda s: s.rank, reverse=True)
    groups: dict[Severity, list[ClassificationResult]] = {s: [] for s in ordered}
    for result in results:
        if result.has_violations:
            groups[result.max_severity].append(result)
    return groups
