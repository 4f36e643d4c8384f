"""
Compliance report validation.

Third parsing stage: enumeration normalization followed by schema
validation. Status values outside the fixed enumerations are rewritten to
potentially_non_compliant and unknown priorities to medium. Every rewrite is
logged and recorded on the report, so normalization is never silent.

Dependencies: pydantic
System role: Schema enforcement for parsed model output
"""

import copy
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from labelcheck.core.analysis.comparison import validate_comparison
from labelcheck.core.exceptions import ResponseParseError
from labelcheck.models.report import (
    ComplianceReport,
    ComplianceStatus,
    RecommendationPriority,
    SectionStatus,
    StatusNormalization,
)

logger = logging.getLogger(__name__)

_SECTION_PATHS = (
    ("general_labeling", "statement_of_identity"),
    ("general_labeling", "net_quantity"),
    ("general_labeling", "manufacturer_address"),
    ("ingredient_labeling",),
    ("allergen_labeling",),
    ("nutrition_labeling",),
    ("claims",),
)

_OVERALL_VALUES = {status.value for status in ComplianceStatus}
_SECTION_VALUES = {status.value for status in SectionStatus}
_PRIORITY_VALUES = {priority.value for priority in RecommendationPriority}


def _canonical(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip().lower().replace("-", "_").replace(" ", "_")


class _Normalizer:
    """Collects rewrites while normalizing one payload."""

    def __init__(self) -> None:
        self.records: list[StatusNormalization] = []

    def enum_value(
        self,
        value: Any,
        allowed: set[str],
        fallback: str,
        field: str,
    ) -> str:
        if isinstance(value, str) and value in allowed:
            return value

        canonical = _canonical(value)
        if canonical in allowed:
            normalized, reason = canonical, "non-canonical spelling"
        else:
            normalized, reason = fallback, "value outside enumeration"

        self.records.append(
            StatusNormalization(field=field, original=value, normalized=normalized, reason=reason)
        )
        logger.warning(
            f"{__name__}:normalize - Rewrote {field}",
            extra={"field": field, "original": repr(value), "normalized": normalized, "reason": reason},
        )
        return normalized

    def section(self, section: Any, field: str) -> None:
        if not isinstance(section, dict) or section.get("status") is None:
            return
        section["status"] = self.enum_value(
            section["status"],
            _SECTION_VALUES,
            SectionStatus.POTENTIALLY_NON_COMPLIANT.value,
            f"{field}.status",
        )


def normalize_report_payload(data: dict[str, Any]) -> tuple[dict[str, Any], list[StatusNormalization]]:
    """
    Normalize enumeration fields of a decoded report.

    Args:
        data: Decoded JSON object (not modified)

    Returns:
        tuple: (normalized copy, list of rewrites applied)
    """
    payload = copy.deepcopy(data)
    normalizer = _Normalizer()

    overall = payload.get("overall_assessment")
    if isinstance(overall, dict) and "primary_compliance_status" in overall:
        overall["primary_compliance_status"] = normalizer.enum_value(
            overall["primary_compliance_status"],
            _OVERALL_VALUES,
            ComplianceStatus.POTENTIALLY_NON_COMPLIANT.value,
            "overall_assessment.primary_compliance_status",
        )

    for path in _SECTION_PATHS:
        node: Any = payload
        for key in path:
            node = node.get(key) if isinstance(node, dict) else None
        normalizer.section(node, ".".join(path))

    claims = payload.get("claims")
    if isinstance(claims, dict):
        for name, sub_section in claims.items():
            normalizer.section(sub_section, f"claims.{name}")

    requirements = payload.get("additional_requirements")
    if isinstance(requirements, list):
        for index, requirement in enumerate(requirements):
            normalizer.section(requirement, f"additional_requirements[{index}]")

    recommendations = payload.get("recommendations")
    if isinstance(recommendations, list):
        for index, recommendation in enumerate(recommendations):
            if isinstance(recommendation, dict) and "priority" in recommendation:
                recommendation["priority"] = normalizer.enum_value(
                    recommendation["priority"],
                    _PRIORITY_VALUES,
                    RecommendationPriority.MEDIUM.value,
                    f"recommendations[{index}].priority",
                )

    return payload, normalizer.records


def validate_report(data: dict[str, Any]) -> ComplianceReport:
    """
    Normalize and schema-validate a decoded report.

    Args:
        data: Decoded JSON object from the model

    Returns:
        ComplianceReport: Validated report carrying its normalization audit trail

    Raises:
        ResponseParseError: Required fields missing or malformed (stage 'validate')
    """
    payload, normalizations = normalize_report_payload(data)

    # Prior audit entries are kept when a stored report is revalidated
    existing = payload.pop("status_normalizations", None) or []

    comparison = payload.pop("comparison", None)
    if comparison is not None:
        payload["comparison"] = validate_comparison(comparison)

    try:
        report = ComplianceReport.model_validate(payload)
    except PydanticValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors()[:10]
        ]
        raise ResponseParseError(
            "Model response does not match the compliance report schema",
            stage="validate",
            details={"errors": errors},
        ) from e

    report.status_normalizations = [
        StatusNormalization.model_validate(entry) for entry in existing
    ] + normalizations
    return report
