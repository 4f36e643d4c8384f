"""
Integration tests for the CRUD layer against in-memory SQLite.

Covers ordering guarantees the analysis flow depends on:
- Active regulatory documents in (category, title, id) order
- Per-user session listing, most recently active first
- Latest iteration by (created_at, sequence), filtered by type
- Unique (session_id, sequence)
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from labelcheck.boundary.db import models  # noqa: F401
from labelcheck.boundary.db.base import Base
from labelcheck.boundary.db.CRUD import iteration_crud, regulatory_document_crud, session_crud
from labelcheck.core.regulatory.loader import database_document_loader
from labelcheck.models.iteration import IterationType
from labelcheck.models.session import SessionStatus

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def add_document(db: AsyncSession, title: str, category: str | None, is_active: bool = True):
    return await regulatory_document_crud.create(
        db, title=title, content=f"{title} requirements", category=category, is_active=is_active
    )


async def add_iteration(db: AsyncSession, session_id, sequence: int, iteration_type: IterationType, created_at):
    return await iteration_crud.create(
        db,
        session_id=session_id,
        sequence=sequence,
        iteration_type=iteration_type,
        input_data={},
        result_data={},
        created_at=created_at,
    )


class TestRegulatoryDocumentCRUD:
    """Test suite for RegulatoryDocumentCRUD.get_active."""

    async def test_orders_by_category_then_title(self, test_async_db):
        # Arrange
        await add_document(test_async_db, "Nutrition Facts", "nutrition")
        await add_document(test_async_db, "FALCPA", "allergens")
        await add_document(test_async_db, "Allergen Guidance", "allergens")
        await test_async_db.commit()

        # Act
        rows = await regulatory_document_crud.get_active(test_async_db)

        # Assert
        assert [row.title for row in rows] == ["Allergen Guidance", "FALCPA", "Nutrition Facts"]

    async def test_skips_inactive_and_applies_limit(self, test_async_db):
        # Arrange
        await add_document(test_async_db, "Retired Rule", "allergens", is_active=False)
        await add_document(test_async_db, "FALCPA", "allergens")
        await add_document(test_async_db, "Nutrition Facts", "nutrition")
        await test_async_db.commit()

        # Act
        all_rows = await regulatory_document_crud.get_active(test_async_db)
        limited = await regulatory_document_crud.get_active(test_async_db, limit=1)

        # Assert
        assert "Retired Rule" not in [row.title for row in all_rows]
        assert [row.title for row in limited] == ["FALCPA"]

    async def test_filters_by_category(self, test_async_db):
        # Arrange
        await add_document(test_async_db, "Supplement Facts", "DIETARY_SUPPLEMENT")
        await add_document(test_async_db, "Retired Supplement Rule", "DIETARY_SUPPLEMENT", is_active=False)
        await add_document(test_async_db, "Nutrition Facts", "CONVENTIONAL_FOOD")
        await test_async_db.commit()

        # Act
        scoped = await regulatory_document_crud.get_active(test_async_db, category="DIETARY_SUPPLEMENT")
        missing = await regulatory_document_crud.get_active(test_async_db, category="ALCOHOLIC_BEVERAGE")

        # Assert
        assert [row.title for row in scoped] == ["Supplement Facts"]
        assert list(missing) == []


class TestSessionCRUD:
    """Test suite for SessionCRUD listing and touch."""

    async def test_list_for_user_most_recent_first(self, test_async_db, owner_user, other_user):
        # Arrange
        older = await session_crud.create(test_async_db, user_id=owner_user.id, status=SessionStatus.IN_PROGRESS)
        newer = await session_crud.create(test_async_db, user_id=owner_user.id, status=SessionStatus.COMPLETED)
        await session_crud.create(test_async_db, user_id=other_user.id, status=SessionStatus.IN_PROGRESS)
        await session_crud.touch(test_async_db, older.id, T0)
        await session_crud.touch(test_async_db, newer.id, T0 + timedelta(minutes=5))
        await test_async_db.commit()

        # Act
        rows = await session_crud.list_for_user(test_async_db, owner_user.id)
        completed = await session_crud.list_for_user(
            test_async_db, owner_user.id, status=SessionStatus.COMPLETED
        )

        # Assert
        assert [row.id for row in rows] == [newer.id, older.id]
        assert [row.id for row in completed] == [newer.id]


class TestIterationCRUD:
    """Test suite for IterationCRUD ordered reads."""

    @pytest.fixture
    async def session_row(self, test_async_db, owner_user):
        row = await session_crud.create(test_async_db, user_id=owner_user.id, status=SessionStatus.IN_PROGRESS)
        await test_async_db.commit()
        return row

    async def test_latest_breaks_timestamp_ties_by_sequence(self, test_async_db, session_row):
        # Arrange
        await add_iteration(test_async_db, session_row.id, 1, IterationType.IMAGE_ANALYSIS, T0)
        second = await add_iteration(test_async_db, session_row.id, 2, IterationType.TEXT_CHECK, T0)
        await test_async_db.commit()

        # Act
        latest = await iteration_crud.get_latest(test_async_db, session_row.id)

        # Assert
        assert latest.id == second.id

    async def test_latest_filtered_by_type(self, test_async_db, session_row):
        # Arrange
        analysis = await add_iteration(test_async_db, session_row.id, 1, IterationType.IMAGE_ANALYSIS, T0)
        await add_iteration(
            test_async_db, session_row.id, 2, IterationType.CHAT_QUESTION, T0 + timedelta(seconds=1)
        )
        await test_async_db.commit()

        # Act
        latest = await iteration_crud.get_latest(
            test_async_db,
            session_row.id,
            types=[IterationType.IMAGE_ANALYSIS, IterationType.REVISED_ANALYSIS, IterationType.TEXT_CHECK],
        )

        # Assert
        assert latest.id == analysis.id

    async def test_list_and_last(self, test_async_db, session_row):
        # Arrange
        await add_iteration(test_async_db, session_row.id, 1, IterationType.IMAGE_ANALYSIS, T0)
        await add_iteration(test_async_db, session_row.id, 2, IterationType.CHAT_QUESTION, T0 + timedelta(seconds=1))
        await test_async_db.commit()

        # Act
        rows = await iteration_crud.list_for_session(test_async_db, session_row.id)
        last = await iteration_crud.get_last(test_async_db, session_row.id)

        # Assert
        assert [row.sequence for row in rows] == [1, 2]
        assert last.sequence == 2

    async def test_duplicate_sequence_rejected(self, test_async_db, session_row):
        # Arrange
        await add_iteration(test_async_db, session_row.id, 1, IterationType.IMAGE_ANALYSIS, T0)
        await test_async_db.commit()

        # Act & Assert
        with pytest.raises(IntegrityError):
            await add_iteration(test_async_db, session_row.id, 1, IterationType.CHAT_QUESTION, T0)
        await test_async_db.rollback()


class TestDatabaseDocumentLoader:
    """Test suite for database_document_loader."""

    @pytest.fixture
    async def session_factory(self):
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        await engine.dispose()

    async def test_loads_active_documents(self, session_factory):
        # Arrange
        async with session_factory() as db:
            await add_document(db, "FALCPA", "allergens")
            await add_document(db, "Retired Rule", "allergens", is_active=False)
            await db.commit()
        load = database_document_loader(session_factory, limit=10)

        # Act
        documents = await load()

        # Assert
        assert [doc.title for doc in documents] == ["FALCPA"]
        assert documents[0].content == "FALCPA requirements"

    async def test_loads_one_category(self, session_factory):
        # Arrange
        async with session_factory() as db:
            await add_document(db, "Supplement Facts", "DIETARY_SUPPLEMENT")
            await add_document(db, "FALCPA", "CONVENTIONAL_FOOD")
            await db.commit()
        load = database_document_loader(session_factory)

        # Act
        documents = await load("DIETARY_SUPPLEMENT")

        # Assert
        assert [doc.title for doc in documents] == ["Supplement Facts"]


class TestCreateTables:
    """Test suite for schema creation helpers."""

    async def test_create_and_drop_all_tables(self):
        # Arrange
        from sqlalchemy import inspect

        from labelcheck.boundary.db.create_tables import create_all_tables, drop_all_tables

        engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

        # Act
        await create_all_tables(engine)
        async with engine.connect() as conn:
            created = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        await drop_all_tables(engine)
        async with engine.connect() as conn:
            remaining = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        await engine.dispose()

        # Assert
        assert {"users", "analysis_sessions", "analysis_iterations", "regulatory_documents"} <= set(created)
        assert remaining == []
