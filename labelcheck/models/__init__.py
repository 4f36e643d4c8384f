"""
Domain models and API schemas.

Pydantic models shared by the analysis core, the store and the API layer.
"""

from labelcheck.models.iteration import IterationRecord, IterationType
from labelcheck.models.regulatory import RegulatoryDocument
from labelcheck.models.report import ComplianceReport, ComplianceStatus, RecommendationPriority
from labelcheck.models.session import SessionRecord, SessionStatus, SessionWithIterations

__all__ = [
    "ComplianceReport",
    "ComplianceStatus",
    "IterationRecord",
    "IterationType",
    "RecommendationPriority",
    "RegulatoryDocument",
    "SessionRecord",
    "SessionStatus",
    "SessionWithIterations",
]
