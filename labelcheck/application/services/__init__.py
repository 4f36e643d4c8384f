"""
Application services.

Exports orchestrators for analysis and session operations.
"""

from labelcheck.application.services.analysis_service import AnalysisService
from labelcheck.application.services.session_service import SessionService

__all__ = ["AnalysisService", "SessionService"]
