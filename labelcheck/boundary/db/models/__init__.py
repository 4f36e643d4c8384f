"""ORM models registered with Base.metadata."""

from labelcheck.boundary.db.models.iteration_model import AnalysisIterationModel
from labelcheck.boundary.db.models.regulatory_document_model import RegulatoryDocumentModel
from labelcheck.boundary.db.models.session_model import AnalysisSessionModel
from labelcheck.boundary.db.models.user_model import UserModel

__all__ = [
    "AnalysisIterationModel",
    "AnalysisSessionModel",
    "RegulatoryDocumentModel",
    "UserModel",
]
