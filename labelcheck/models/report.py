"""
Compliance report domain models.

Structured form of one model-produced label assessment. The same schema is
requested from the completion service, validated after parsing, persisted as
an iteration result and returned on the wire.

Dependencies: pydantic
System role: Analysis result contract
"""

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ComplianceStatus(str, enum.Enum):
    """Overall compliance verdict for a label."""

    COMPLIANT = "compliant"
    LIKELY_COMPLIANT = "likely_compliant"
    POTENTIALLY_NON_COMPLIANT = "potentially_non_compliant"
    NON_COMPLIANT = "non_compliant"


class SectionStatus(str, enum.Enum):
    """Verdict for a single labeling requirement section."""

    COMPLIANT = "compliant"
    LIKELY_COMPLIANT = "likely_compliant"
    POTENTIALLY_NON_COMPLIANT = "potentially_non_compliant"
    NON_COMPLIANT = "non_compliant"
    NOT_APPLICABLE = "not_applicable"


class RecommendationPriority(str, enum.Enum):
    """Recommendation tiers, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    RecommendationPriority.CRITICAL: 0,
    RecommendationPriority.HIGH: 1,
    RecommendationPriority.MEDIUM: 2,
    RecommendationPriority.LOW: 3,
}

NON_COMPLIANT_SECTION_STATUSES = frozenset(
    {SectionStatus.NON_COMPLIANT, SectionStatus.POTENTIALLY_NON_COMPLIANT}
)


class LabelingSection(BaseModel):
    """One labeling requirement area; extra model-provided detail is kept."""

    model_config = ConfigDict(extra="allow")

    status: SectionStatus | None = None
    details: str = ""
    regulation_citation: str | None = None


class GeneralLabeling(BaseModel):
    """Statement of identity, net quantity and manufacturer address."""

    model_config = ConfigDict(extra="allow")

    statement_of_identity: LabelingSection | None = None
    net_quantity: LabelingSection | None = None
    manufacturer_address: LabelingSection | None = None


class AllergenLabeling(LabelingSection):
    """Major food allergen declaration findings."""

    potential_allergens: list[str] = Field(default_factory=list)
    has_contains_statement: bool | None = None
    risk_level: str | None = None


class OverallAssessment(BaseModel):
    """Top-level verdict and narrative."""

    model_config = ConfigDict(extra="allow")

    primary_compliance_status: ComplianceStatus
    summary: str
    key_findings: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    confidence_level: str | None = None


class Recommendation(BaseModel):
    """A single prioritized corrective action."""

    model_config = ConfigDict(extra="allow")

    priority: RecommendationPriority
    recommendation: str
    regulation: str = ""


class ComparisonBlock(BaseModel):
    """Progress against the previous analysis in the same session."""

    issues_resolved: list[str]
    issues_remaining: list[str]
    new_issues: list[str]
    improvement_summary: str


class StatusNormalization(BaseModel):
    """Audit record of a value the system rewrote after parsing."""

    field: str = Field(description="Dotted path of the rewritten field")
    original: Any = Field(description="Value as returned by the model")
    normalized: str = Field(description="Value stored in the report")
    reason: str


class ComplianceReport(BaseModel):
    """
    Structured compliance assessment for one label.

    Unknown top-level fields returned by the model are preserved so that a
    report survives a wire round-trip without losing information.
    """

    model_config = ConfigDict(extra="allow")

    product_name: str
    product_type: str | None = None
    product_category: str | None = None

    general_labeling: GeneralLabeling | None = None
    ingredient_labeling: LabelingSection | None = None
    allergen_labeling: AllergenLabeling | None = None
    nutrition_labeling: LabelingSection | None = None
    claims: LabelingSection | None = None
    additional_requirements: list[dict[str, Any]] | None = None

    overall_assessment: OverallAssessment
    compliance_table: list[dict[str, Any]] | None = None
    recommendations: list[Recommendation] = Field(default_factory=list)

    comparison: ComparisonBlock | None = None
    status_normalizations: list[StatusNormalization] = Field(default_factory=list)

    def iter_sections(self) -> list[tuple[str, LabelingSection]]:
        """Return (path, section) pairs for every populated labeling section."""
        sections: list[tuple[str, LabelingSection]] = []
        if self.general_labeling:
            for name in ("statement_of_identity", "net_quantity", "manufacturer_address"):
                section = getattr(self.general_labeling, name)
                if section is not None:
                    sections.append((f"general_labeling.{name}", section))
        for name in ("ingredient_labeling", "allergen_labeling", "nutrition_labeling", "claims"):
            section = getattr(self, name)
            if section is not None:
                sections.append((name, section))
        return sections

    def sorted_recommendations(self) -> list[Recommendation]:
        """Recommendations ordered critical > high > medium > low, stable within a tier."""
        return sorted(self.recommendations, key=lambda rec: rec.priority.rank)
