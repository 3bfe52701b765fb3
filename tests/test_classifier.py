"""Tests for the rule-based vessel classifier."""

from __future__ import annotations

import math

from parkguard.models import DiagnosticKind, Severity, ViolationType
from parkguard.processing.classifier import Classifier, max_severity, primary_violation
from parkguard.processing.rules import RULES, check_excessive_speed
from tests.conftest import IN_BED, OPEN_WATER, make_sample, make_set, make_square


def failing_rule(sample, index, config):
    raise RuntimeError("rule exploded")


class TestClassifier:
    def test_anchored_on_seagrass(self, boundary_index, rule_config):
        """Slow over a bed gives exactly one critical violation."""
        result = Classifier(rule_config).classify(make_sample(IN_BED, speed=0.3), boundary_index)

        assert len(result.violations) == 1
        assert result.violations[0].type == ViolationType.ANCHORED_ON_VEGETATION
        assert result.max_severity == Severity.CRITICAL
        assert result.primary_violation is result.violations[0]

    def test_speeding_in_open_water(self, boundary_index, rule_config):
        result = Classifier(rule_config).classify(make_sample(OPEN_WATER, speed=8.0), boundary_index)

        assert [v.type for v in result.violations] == [ViolationType.EXCESSIVE_SPEED]
        assert result.max_severity == Severity.MEDIUM

    def test_no_violations(self, boundary_index, rule_config):
        result = Classifier(rule_config).classify(make_sample(OPEN_WATER, speed=2.0), boundary_index)

        assert result.violations == ()
        assert not result.has_violations
        assert result.max_severity == Severity.LOW
        assert result.primary_violation is None

    def test_idempotent(self, boundary_index, rule_config):
        """Classifying the same sample twice gives equal results."""
        classifier = Classifier(rule_config)
        sample = make_sample(IN_BED, speed=0.2)
        assert classifier.classify(sample, boundary_index) == classifier.classify(sample, boundary_index)

    def test_multiple_hits_follow_rule_order(self, index_with_shore, rule_config):
        """Anchored on a bed that reaches the shore: critical and high, in rule order."""
        index = index_with_shore.replace(vegetation=make_set(
            "vegetation", make_square(9.435, 41.215, 0.01),
            properties={"condition": "degraded", "classification": "degraded"},
        ))
        result = Classifier(rule_config).classify(make_sample((9.4395, 41.22), speed=0.0), index)

        assert [v.type for v in result.violations] == [
            ViolationType.ANCHORED_ON_VEGETATION, ViolationType.TOO_CLOSE_TO_SHORE,
        ]
        assert result.max_severity == Severity.CRITICAL
        assert result.primary_violation.type == ViolationType.ANCHORED_ON_VEGETATION
        assert "degraded" in result.violations[0].description

    def test_primary_tie_break_is_rule_order(self, boundary_index, rule_config):
        """Two medium hits: the speed violation comes first and is primary."""
        sample = make_sample((9.40, 41.225), speed=8.0)
        result = Classifier(rule_config).classify(sample, boundary_index)

        assert [v.type for v in result.violations] == [
            ViolationType.EXCESSIVE_SPEED, ViolationType.IN_BUFFER_ZONE,
        ]
        assert result.primary_violation.type == ViolationType.EXCESSIVE_SPEED

    def test_failing_rule_is_isolated(self, boundary_index, rule_config):
        """A raising rule is skipped and reported; the others still run."""
        diagnostics = []
        classifier = Classifier(rule_config, rules=[
            ("broken", failing_rule),
            ("excessive_speed", check_excessive_speed),
        ])
        result = classifier.classify(make_sample(speed=9.0), boundary_index,
                                     on_diagnostic=diagnostics.append, sample_index=4)

        assert result.has(ViolationType.EXCESSIVE_SPEED)
        assert len(diagnostics) == 1
        assert diagnostics[0].kind == DiagnosticKind.RULE_FAILURE
        assert diagnostics[0].rule == "broken"
        assert diagnostics[0].sample_index == 4

    def test_exempt_vessel_keeps_violations(self, boundary_index, rule_config):
        result = Classifier(rule_config).classify(
            make_sample(IN_BED, speed=0.0), boundary_index,
            is_exempt=True, exemption_reason="research vessel",
        )
        assert result.is_exempt
        assert result.exemption_reason == "research vessel"
        assert result.max_severity == Severity.CRITICAL

    def test_rule_names(self, rule_config):
        assert Classifier(rule_config).rule_names == [name for name, _ in RULES]


class TestSpatialAnalysis:
    def test_over_vegetation(self, boundary_index, rule_config):
        analysis = Classifier(rule_config).classify(make_sample(IN_BED), boundary_index).analysis

        assert analysis.in_park
        assert analysis.over_vegetation
        assert analysis.vegetation_feature["condition"] == "on_matte"
        assert analysis.distance_to_vegetation_m == 0.0
        assert analysis.near_vegetation
        assert not analysis.in_buffer_zone

    def test_open_water(self, boundary_index, rule_config):
        analysis = Classifier(rule_config).classify(make_sample(OPEN_WATER), boundary_index).analysis

        assert analysis.in_park
        assert not analysis.over_vegetation
        assert analysis.vegetation_feature is None
        assert analysis.distance_to_vegetation_m > 50.0
        assert not analysis.near_vegetation

    def test_near_vegetation(self, boundary_index, rule_config):
        """~33 m east of the bed is flagged as near but not over."""
        analysis = Classifier(rule_config).classify(
            make_sample((9.4204, 41.215)), boundary_index).analysis
        assert not analysis.over_vegetation
        assert analysis.near_vegetation

    def test_outside_park(self, boundary_index, rule_config):
        analysis = Classifier(rule_config).classify(
            make_sample((9.60, 41.40)), boundary_index).analysis
        assert not analysis.in_park
        assert math.isfinite(analysis.distance_to_vegetation_m)


class TestSeverityHelpers:
    def test_max_severity_empty(self):
        assert max_severity([]) == Severity.LOW

    def test_primary_violation_empty(self):
        assert primary_violation([]) is None

    def test_severity_ordering(self):
        assert Severity.CRITICAL > Severity.HIGH > Severity.MEDIUM > Severity.LOW
        assert max([Severity.MEDIUM, Severity.CRITICAL, Severity.LOW]) == Severity.CRITICAL
