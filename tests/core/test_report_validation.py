"""
Test suite for compliance report validation and post-processing.

Covers enumeration normalization with its audit trail, schema validation
failures, comparison validation, status reconciliation against
recommendation priorities and the wire round-trip.

System role: Verification of the report contract
"""

import pytest

from labelcheck.core.analysis.comparison import count_blocking_issues, render_baseline
from labelcheck.core.analysis.post_processor import (
    MONITORING_RECOMMENDATION,
    add_monitoring_recommendation,
    enforce_status_consistency,
    post_process,
)
from labelcheck.core.analysis.report_validation import normalize_report_payload, validate_report
from labelcheck.core.exceptions import ResponseParseError
from labelcheck.models.report import (
    ComplianceReport,
    ComplianceStatus,
    RecommendationPriority,
    SectionStatus,
)


class TestNormalizeReportPayload:
    """Test suite for enumeration normalization."""

    def test_should_leave_canonical_values_untouched(self, report_payload) -> None:
        # Act
        payload, records = normalize_report_payload(report_payload())

        # Assert
        assert records == []
        assert payload == report_payload()

    def test_should_not_mutate_input(self, report_payload) -> None:
        data = report_payload(overall_assessment={"primary_compliance_status": "Non-Compliant", "summary": "s"})

        normalize_report_payload(data)

        assert data["overall_assessment"]["primary_compliance_status"] == "Non-Compliant"

    def test_should_record_respelled_status(self, report_payload) -> None:
        # Arrange
        data = report_payload(overall_assessment={"primary_compliance_status": "Non-Compliant", "summary": "s"})

        # Act
        payload, records = normalize_report_payload(data)

        # Assert
        assert payload["overall_assessment"]["primary_compliance_status"] == "non_compliant"
        assert len(records) == 1
        assert records[0].field == "overall_assessment.primary_compliance_status"
        assert records[0].original == "Non-Compliant"
        assert records[0].reason == "non-canonical spelling"

    def test_should_rewrite_unknown_section_status(self, report_payload) -> None:
        # Arrange
        data = report_payload()
        data["general_labeling"]["net_quantity"]["status"] = "needs_review"

        # Act
        payload, records = normalize_report_payload(data)

        # Assert
        assert payload["general_labeling"]["net_quantity"]["status"] == "potentially_non_compliant"
        assert records[0].field == "general_labeling.net_quantity.status"
        assert records[0].reason == "value outside enumeration"

    def test_should_normalize_claim_subsections_and_additional_requirements(self, report_payload) -> None:
        # Arrange
        data = report_payload(
            claims={"structure_function": {"status": "unclear"}},
            additional_requirements=[{"requirement": "Prop 65", "status": "COMPLIANT"}],
        )

        # Act
        payload, records = normalize_report_payload(data)

        # Assert
        assert payload["claims"]["structure_function"]["status"] == "potentially_non_compliant"
        assert payload["additional_requirements"][0]["status"] == "compliant"
        assert {r.field for r in records} == {
            "claims.structure_function.status",
            "additional_requirements[0].status",
        }

    def test_should_default_unknown_priority_to_medium(self, report_payload) -> None:
        data = report_payload(recommendations=[{"priority": "urgent", "recommendation": "Fix it"}])

        payload, records = normalize_report_payload(data)

        assert payload["recommendations"][0]["priority"] == "medium"
        assert records[0].field == "recommendations[0].priority"


class TestValidateReport:
    """Test suite for schema validation."""

    def test_should_build_report(self, report_payload) -> None:
        # Act
        report = validate_report(report_payload())

        # Assert
        assert report.product_name == "Oat Crunch Granola"
        assert report.allergen_labeling.status == SectionStatus.NON_COMPLIANT
        assert report.allergen_labeling.potential_allergens == ["milk"]
        assert report.recommendations[0].priority == RecommendationPriority.CRITICAL
        assert report.comparison is None

    def test_should_attach_normalizations(self, report_payload) -> None:
        data = report_payload(overall_assessment={"primary_compliance_status": "mostly fine", "summary": "s"})

        report = validate_report(data)

        assert report.overall_assessment.primary_compliance_status == ComplianceStatus.POTENTIALLY_NON_COMPLIANT
        assert report.status_normalizations[0].original == "mostly fine"

    def test_should_raise_at_validate_stage_when_required_field_missing(self, report_payload) -> None:
        # Arrange
        data = report_payload()
        del data["overall_assessment"]

        # Act / Assert
        with pytest.raises(ResponseParseError) as exc_info:
            validate_report(data)
        assert exc_info.value.details["stage"] == "validate"

    def test_should_raise_for_malformed_comparison(self, report_payload) -> None:
        data = report_payload(comparison={"issues_resolved": "all of them"})

        with pytest.raises(ResponseParseError) as exc_info:
            validate_report(data)

        assert exc_info.value.details["stage"] == "validate"

    def test_should_keep_unknown_fields(self, report_payload) -> None:
        report = validate_report(report_payload(manufacturer_notes="Batch 42"))

        assert report.model_dump()["manufacturer_notes"] == "Batch 42"

    def test_report_should_survive_wire_round_trip(self, report_payload) -> None:
        # Arrange
        report = validate_report(
            report_payload(
                overall_assessment={"primary_compliance_status": "Compliant", "summary": "s"},
                comparison={
                    "issues_resolved": ["Net quantity added"],
                    "issues_remaining": [],
                    "new_issues": [],
                    "improvement_summary": "Better",
                },
            )
        )

        # Act
        restored = validate_report(report.model_dump(mode="json"))

        # Assert
        assert restored == report
        assert ComplianceReport.model_validate_json(report.model_dump_json()) == report


class TestEnforceStatusConsistency:
    """Test suite for status reconciliation against recommendation priorities."""

    @pytest.mark.parametrize(
        ("status", "priorities", "expected"),
        [
            ("compliant", ["critical"], "non_compliant"),
            ("likely_compliant", ["low", "high"], "non_compliant"),
            ("compliant", ["medium"], "potentially_non_compliant"),
            ("non_compliant", ["medium"], "non_compliant"),
            ("potentially_non_compliant", ["low"], "likely_compliant"),
            ("compliant", ["low"], "compliant"),
        ],
    )
    def test_should_reconcile_status(self, report_payload, status, priorities, expected) -> None:
        # Arrange
        report = validate_report(
            report_payload(
                overall_assessment={"primary_compliance_status": status, "summary": "s"},
                recommendations=[{"priority": p, "recommendation": f"rec {p}"} for p in priorities],
            )
        )

        # Act
        result = enforce_status_consistency(report)

        # Assert
        assert result.overall_assessment.primary_compliance_status.value == expected
        changed = status != expected
        assert bool(result.status_normalizations) == changed

    def test_should_leave_report_without_recommendations(self, report_payload) -> None:
        report = validate_report(
            report_payload(
                overall_assessment={"primary_compliance_status": "non_compliant", "summary": "s"},
                recommendations=[],
            )
        )

        assert enforce_status_consistency(report).overall_assessment.primary_compliance_status == (
            ComplianceStatus.NON_COMPLIANT
        )


class TestMonitoringRecommendation:
    """Test suite for the standing monitoring recommendation."""

    def test_should_append_once(self, report_payload) -> None:
        # Arrange
        report = validate_report(report_payload())

        # Act
        add_monitoring_recommendation(report)
        add_monitoring_recommendation(report)

        # Assert
        monitoring = [rec for rec in report.recommendations if rec.recommendation == MONITORING_RECOMMENDATION]
        assert len(monitoring) == 1
        assert monitoring[0].priority == RecommendationPriority.LOW

    def test_post_process_should_reconcile_after_adding(self, report_payload) -> None:
        # Arrange
        report = validate_report(
            report_payload(
                overall_assessment={"primary_compliance_status": "potentially_non_compliant", "summary": "s"},
                recommendations=[],
            )
        )

        # Act
        result = post_process(report)

        # Assert
        assert [rec.priority for rec in result.recommendations] == [RecommendationPriority.LOW]
        assert result.overall_assessment.primary_compliance_status == ComplianceStatus.LIKELY_COMPLIANT
        assert result.status_normalizations[-1].original == "potentially_non_compliant"

    def test_post_process_should_keep_blocking_verdict(self, report_payload) -> None:
        report = post_process(validate_report(report_payload()))

        assert report.overall_assessment.primary_compliance_status == ComplianceStatus.NON_COMPLIANT
        assert report.recommendations[0].priority == RecommendationPriority.CRITICAL


class TestComparisonHelpers:
    """Test suite for baseline rendering and issue counting."""

    def test_render_baseline_should_list_recommendations_by_priority(self, report_payload) -> None:
        # Arrange
        report = validate_report(
            report_payload(
                recommendations=[
                    {"priority": "low", "recommendation": "Tidy font"},
                    {"priority": "critical", "recommendation": "Add Contains statement", "regulation": "FALCPA"},
                ]
            )
        )

        # Act
        rendered = render_baseline(report)

        # Assert
        assert rendered.startswith("## Latest Analysis Results")
        assert "**Overall Compliance Status:** non_compliant" in rendered
        assert "1. [CRITICAL] Add Contains statement (FALCPA)" in rendered
        assert "2. [LOW] Tidy font" in rendered
        assert "- allergen_labeling: non_compliant" in rendered
        assert "**Potential Allergens:** milk" in rendered

    def test_count_blocking_issues(self, report_payload) -> None:
        report = validate_report(report_payload())

        # one critical recommendation plus the non-compliant allergen section
        assert count_blocking_issues(report) == 2

    def test_count_blocking_issues_should_skip_claims(self, report_payload) -> None:
        report = validate_report(
            report_payload(claims={"status": "potentially_non_compliant", "details": "Unqualified claim"})
        )

        assert count_blocking_issues(report) == 2
