"""
Result reconciliation and comparison.

The model produces the resolved/remaining/new comparison itself. This
module decides whether a baseline analysis exists, renders it for the
prompt, validates the returned comparison block and counts blocking issues
for session progress.

Dependencies: pydantic
System role: Revision semantics across analyses in a session
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from labelcheck.core.exceptions import ResponseParseError
from labelcheck.models.iteration import IterationRecord
from labelcheck.models.report import (
    NON_COMPLIANT_SECTION_STATUSES,
    ComparisonBlock,
    ComplianceReport,
    RecommendationPriority,
)

logger = logging.getLogger(__name__)

BLOCKING_PRIORITIES = frozenset({RecommendationPriority.CRITICAL, RecommendationPriority.HIGH})
UNCOUNTED_SECTIONS = frozenset({"claims"})


def find_baseline(iterations: Sequence[IterationRecord]) -> IterationRecord | None:
    """
    Return the most recent analysis iteration of a session.

    Order is (created_at, sequence); on equal timestamps the later insert wins.

    Args:
        iterations: Session history in any order

    Returns:
        IterationRecord | None: Latest image_analysis, text_check or revised_analysis
    """
    analyses = [it for it in iterations if it.is_analysis and it.report is not None]
    if not analyses:
        return None
    return max(analyses, key=lambda it: it.order_key)


def render_baseline(report: ComplianceReport) -> str:
    """
    Render a previous report for the model to compare against.

    Args:
        report: Baseline report

    Returns:
        str: Markdown summary including every section status and recommendation
    """
    overall = report.overall_assessment
    lines = [
        "## Latest Analysis Results",
        "",
        f"**Product:** {report.product_name or 'Unknown'}",
        f"**Product Type:** {report.product_type or 'Unknown'}",
        "",
        f"**Overall Compliance Status:** {overall.primary_compliance_status.value}",
        f"**Summary:** {overall.summary}",
    ]

    if overall.key_findings:
        lines += ["", "**Key Findings:**"]
        lines += [f"- {finding}" for finding in overall.key_findings]

    sections = report.iter_sections()
    if sections:
        lines += ["", "**Section Status:**"]
        for path, section in sections:
            status = section.status.value if section.status else "not_evaluated"
            lines.append(f"- {path}: {status}")

    recommendations = report.sorted_recommendations()
    if recommendations:
        lines += ["", "**Key Recommendations:**"]
        for index, rec in enumerate(recommendations, start=1):
            citation = f" ({rec.regulation})" if rec.regulation else ""
            lines.append(f"{index}. [{rec.priority.value.upper()}] {rec.recommendation}{citation}")

    allergens = report.allergen_labeling
    if allergens is not None and allergens.status is not None:
        lines += ["", f"**Allergen Status:** {allergens.status.value}"]
        if allergens.potential_allergens:
            lines.append(f"**Potential Allergens:** {', '.join(allergens.potential_allergens)}")

    return "\n".join(lines)


def validate_comparison(raw: Any) -> ComparisonBlock:
    """
    Validate a comparison block returned by the model.

    Args:
        raw: Decoded 'comparison' value

    Returns:
        ComparisonBlock: Three issue lists and a summary

    Raises:
        ResponseParseError: Block is not well-formed (stage 'validate')
    """
    try:
        return ComparisonBlock.model_validate(raw)
    except PydanticValidationError as e:
        raise ResponseParseError(
            "Comparison block is malformed",
            stage="validate",
            details={"errors": [err["msg"] for err in e.errors()[:5]]},
        ) from e


def check_comparison(report: ComplianceReport, baseline_expected: bool) -> bool:
    """
    Check comparison presence against expectation.

    A missing comparison when a baseline existed is logged, not raised.

    Args:
        report: Validated report
        baseline_expected: Whether the prompt carried a baseline

    Returns:
        bool: True when a comparison is present
    """
    if report.comparison is None and baseline_expected:
        logger.warning(
            f"{__name__}:check_comparison - Baseline existed but model returned no comparison",
            extra={"product_name": report.product_name},
        )
    return report.comparison is not None


def count_blocking_issues(report: ComplianceReport) -> int:
    """
    Count issues that block compliance.

    Critical/high recommendations plus general, ingredient, allergen and
    nutrition sections marked non_compliant or potentially_non_compliant.
    The claims section is advisory and not counted.

    Args:
        report: Compliance report

    Returns:
        int: Number of blocking issues
    """
    recommendations = sum(1 for rec in report.recommendations if rec.priority in BLOCKING_PRIORITIES)
    sections = sum(
        1
        for path, section in report.iter_sections()
        if path not in UNCOUNTED_SECTIONS and section.status in NON_COMPLIANT_SECTION_STATUSES
    )
    return recommendations + sections
