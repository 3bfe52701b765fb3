"""Rule-based classifier: runs every violation rule and ranks the hits."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from parkguard.config import RuleConfig
from parkguard.geometry.boundaries import PARK, VEGETATION, BoundaryIndex
from parkguard.models import (
    ClassificationResult,
    Diagnostic,
    DiagnosticKind,
    Severity,
    SpatialAnalysis,
    VesselSample,
    Violation,
)
from parkguard.processing.rules import RULES, Rule, is_in_buffer_zone

logger = logging.getLogger(__name__)

DiagnosticCallback = Callable[[Diagnostic], None]


def max_severity(violations: Sequence[Violation]) -> Severity:
    """Highest severity present; LOW when there are no violations."""
    if not violations:
        return Severity.LOW
    return max((v.severity for v in violations), key=lambda s: s.rank)


def primary_violation(violations: Sequence[Violation]) -> Optional[Violation]:
    """First violation carrying the maximum severity."""
    if not violations:
        return None
    top = max_severity(violations)
    return next(v for v in violations if v.severity == top)


class Classifier:
    """Classifies one vessel sample against the boundary index."""

    def __init__(self, config: RuleConfig,
                 rules: Sequence[tuple[str, Rule]] = RULES):
        self._cfg = config
        self._rules = tuple(rules)

    @property
    def config(self) -> RuleConfig:
        return self._cfg

    @property
    def rule_names(self) -> list[str]:
        return [name for name, _ in self._rules]

    def classify(self, sample: VesselSample, index: BoundaryIndex,
                 is_exempt: bool = False,
                 exemption_reason: str | None = None,
                 on_diagnostic: DiagnosticCallback | None = None,
                 sample_index: int | None = None) -> ClassificationResult:
        """Run all rules for one sample.

        A rule that raises contributes no violation; the failure is logged
        and reported through ``on_diagnostic``. Exempt vessels keep their
        violations, the flag is informational only.
        """
        violations: list[Violation] = []

        for name, rule in self._rules:
            try:
                violation = rule(sample, index, self._cfg)
            except Exception as exc:
                self._report(on_diagnostic, Diagnostic(
                    kind=DiagnosticKind.RULE_FAILURE,
                    message=f"Rule '{name}' failed: {exc!r}",
                    sample_index=sample_index,
                    rule=name,
                    vessel_id=sample.vessel_id,
                ))
                continue
            if violation is not None:
                violations.append(violation)

        return ClassificationResult(
            sample=sample,
            violations=tuple(violations),
            max_severity=max_severity(violations),
            is_exempt=is_exempt,
            exemption_reason=exemption_reason,
            primary_violation=primary_violation(violations),
            analysis=self._analyze(sample, index, on_diagnostic, sample_index),
        )

    def _analyze(self, sample: VesselSample, index: BoundaryIndex,
                 on_diagnostic: DiagnosticCallback | None,
                 sample_index: int | None) -> SpatialAnalysis:
        """Position flags for map display and counters; degrades to defaults."""
        point = sample.position
        try:
            bed = index.classify_geometry_at(point, VEGETATION)
            distance = 0.0 if bed is not None else index.distance_to_nearest_m(point, VEGETATION)
            return SpatialAnalysis(
                in_park=index.is_inside(point, PARK),
                in_buffer_zone=is_in_buffer_zone(point, index, self._cfg),
                over_vegetation=bed is not None,
                vegetation_feature=bed,
                distance_to_vegetation_m=distance,
                near_vegetation=distance <= self._cfg.vegetation_proximity_warning_m,
            )
        except Exception as exc:
            self._report(on_diagnostic, Diagnostic(
                kind=DiagnosticKind.SAMPLE_FAILURE,
                message=f"Spatial analysis failed: {exc!r}",
                sample_index=sample_index,
                vessel_id=sample.vessel_id,
            ))
            return SpatialAnalysis()

    @staticmethod
    def _report(on_diagnostic: DiagnosticCallback | None, diagnostic: Diagnostic) -> None:
        logger.warning("%s (sample=%s, vessel=%s)", diagnostic.message,
                       diagnostic.sample_index, diagnostic.vessel_id)
        if on_diagnostic is not None:
            on_diagnostic(diagnostic)
