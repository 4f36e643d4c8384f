"""
Report post-processing.

Appends the standing monitoring recommendation, then reconciles the
overall verdict with the recommendation priorities, recording each
adjustment in the report's audit trail.

Dependencies: labelcheck.models.report
System role: Final consistency pass on validated reports
"""

import logging
from collections import Counter

from labelcheck.models.report import (
    ComplianceReport,
    ComplianceStatus,
    Recommendation,
    RecommendationPriority,
    StatusNormalization,
)

logger = logging.getLogger(__name__)

_STATUS_FIELD = "overall_assessment.primary_compliance_status"

MONITORING_RECOMMENDATION = (
    "Continue monitoring for compliance with any new regulations or labeling requirements. "
    "FDA regulations and guidance documents are updated periodically, and maintaining ongoing "
    "awareness of regulatory changes is essential for continued compliance."
)
MONITORING_REGULATION = "General FDA guidelines for product labeling"


def _expected_status(
    current: ComplianceStatus,
    priorities: Counter,
) -> tuple[ComplianceStatus, str] | None:
    blocking = priorities[RecommendationPriority.CRITICAL] + priorities[RecommendationPriority.HIGH]
    if blocking:
        if current != ComplianceStatus.NON_COMPLIANT:
            return ComplianceStatus.NON_COMPLIANT, f"{blocking} critical/high recommendations"
        return None
    if priorities[RecommendationPriority.MEDIUM]:
        if current in (ComplianceStatus.COMPLIANT, ComplianceStatus.LIKELY_COMPLIANT):
            return ComplianceStatus.POTENTIALLY_NON_COMPLIANT, "only medium recommendations"
        return None
    if priorities[RecommendationPriority.LOW]:
        if current in (ComplianceStatus.NON_COMPLIANT, ComplianceStatus.POTENTIALLY_NON_COMPLIANT):
            return ComplianceStatus.LIKELY_COMPLIANT, "only low recommendations"
    return None


def enforce_status_consistency(report: ComplianceReport) -> ComplianceReport:
    """
    Align primary_compliance_status with recommendation priorities.

    - any critical or high recommendation: non_compliant
    - only medium: compliant/likely_compliant become potentially_non_compliant
    - only low: non_compliant/potentially_non_compliant become likely_compliant

    Args:
        report: Validated report (modified in place)

    Returns:
        ComplianceReport: The same report
    """
    if not report.recommendations:
        return report

    priorities = Counter(rec.priority for rec in report.recommendations)
    current = report.overall_assessment.primary_compliance_status
    adjustment = _expected_status(current, priorities)
    if adjustment is None:
        return report

    new_status, reason = adjustment
    report.overall_assessment.primary_compliance_status = new_status
    report.status_normalizations.append(
        StatusNormalization(
            field=_STATUS_FIELD,
            original=current.value,
            normalized=new_status.value,
            reason=f"inconsistent with recommendations: {reason}",
        )
    )
    logger.info(
        f"{__name__}:enforce_status_consistency - {current.value} -> {new_status.value} ({reason})"
    )
    return report


def add_monitoring_recommendation(report: ComplianceReport) -> ComplianceReport:
    """
    Append the low-priority "continue monitoring" recommendation once.

    Args:
        report: Validated report (modified in place)

    Returns:
        ComplianceReport: The same report
    """
    if any(rec.recommendation == MONITORING_RECOMMENDATION for rec in report.recommendations):
        return report
    report.recommendations.append(
        Recommendation(
            priority=RecommendationPriority.LOW,
            recommendation=MONITORING_RECOMMENDATION,
            regulation=MONITORING_REGULATION,
        )
    )
    return report


def post_process(report: ComplianceReport) -> ComplianceReport:
    """Run every post-processing step; the status consistency pass runs last."""
    add_monitoring_recommendation(report)
    return enforce_status_consistency(report)
