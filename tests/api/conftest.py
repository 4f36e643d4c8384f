"""
API test fixtures.

Provides: Application with dependency overrides, TestClient, mocked services
Dependencies: fastapi, pytest
System role: HTTP layer test infrastructure
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from labelcheck.api.deps import get_access_context, get_analysis_service, get_session_service
from labelcheck.api.main import create_app
from labelcheck.application.services import AnalysisService, SessionService
from labelcheck.core.access import AccessContext


@pytest.fixture
def caller_id() -> uuid.UUID:
    """Internal id of the authenticated caller."""
    return uuid.uuid4()


@pytest.fixture
def mock_analysis_service() -> AsyncMock:
    """Provide mocked AnalysisService."""
    return AsyncMock(spec=AnalysisService)


@pytest.fixture
def mock_session_service() -> AsyncMock:
    """Provide mocked SessionService."""
    return AsyncMock(spec=SessionService)


@pytest.fixture
def app(caller_id, mock_analysis_service, mock_session_service) -> FastAPI:
    """Create application with services and caller identity overridden."""
    app = create_app()
    app.dependency_overrides[get_analysis_service] = lambda: mock_analysis_service
    app.dependency_overrides[get_session_service] = lambda: mock_session_service
    app.dependency_overrides[get_access_context] = lambda: AccessContext.owner(caller_id)
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Provide TestClient for the application (lifespan not started)."""
    return TestClient(app)
