"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory database, users, report payload factory, settings
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import copy
import uuid

import pytest

from labelcheck.configs.analysis import AnalysisSettings
from labelcheck.core.access import AccessContext


BASE_REPORT_PAYLOAD = {
    "product_name": "Oat Crunch Granola",
    "product_type": "conventional_food",
    "general_labeling": {
        "statement_of_identity": {"status": "compliant", "details": "Present on PDP"},
        "net_quantity": {"status": "compliant", "details": "Net Wt 12 oz (340 g)"},
        "manufacturer_address": {"status": "compliant", "details": "Full address listed"},
    },
    "ingredient_labeling": {"status": "compliant", "details": "Descending order by weight"},
    "allergen_labeling": {
        "status": "non_compliant",
        "details": "Milk listed in ingredients without a Contains statement",
        "potential_allergens": ["milk"],
        "has_contains_statement": False,
        "risk_level": "high",
    },
    "nutrition_labeling": {"status": "compliant", "details": "Standard format"},
    "claims": {"status": "not_applicable", "details": "No claims"},
    "overall_assessment": {
        "primary_compliance_status": "non_compliant",
        "summary": "Missing allergen declaration for milk.",
        "key_findings": ["Milk is not declared in a Contains statement"],
    },
    "recommendations": [
        {
            "priority": "critical",
            "recommendation": "Add 'Contains: Milk' statement",
            "regulation": "FALCPA Section 403(w)",
        }
    ],
}


@pytest.fixture
def report_payload():
    """
    Factory for report dicts as the model would return them.

    Returns:
        Callable: Builds a deep copy of the base payload with top-level overrides
    """

    def _make(**overrides):
        payload = copy.deepcopy(BASE_REPORT_PAYLOAD)
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def analysis_settings() -> AnalysisSettings:
    """Analysis settings with defaults."""
    return AnalysisSettings()


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup (lazy imported to avoid settings issues)
    """
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
    from sqlalchemy.pool import StaticPool
    from labelcheck.boundary.db.base import Base
    from labelcheck.boundary.db import models  # noqa: F401

    # Use SQLite in-memory database for tests
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session factory
    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Create session for test
    async with async_session() as session:
        yield session
        await session.rollback()

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def owner_user(test_async_db):
    """Persisted user that owns the sessions under test."""
    from labelcheck.boundary.db.CRUD import user_crud

    user = await user_crud.create(test_async_db, external_user_id="auth|owner", email="owner@example.com")
    await test_async_db.commit()
    return user


@pytest.fixture
async def other_user(test_async_db):
    """Persisted user with no access to owner_user's sessions."""
    from labelcheck.boundary.db.CRUD import user_crud

    user = await user_crud.create(test_async_db, external_user_id="auth|other")
    await test_async_db.commit()
    return user


@pytest.fixture
def owner_access(owner_user) -> AccessContext:
    """Owner-scoped access for owner_user."""
    return AccessContext.owner(owner_user.id)


@pytest.fixture
def session_id():
    """Generate a test session ID."""
    return uuid.uuid4()
