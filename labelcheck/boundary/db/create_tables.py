"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, labelcheck.configs
System role: Database schema initialization

Usage:
    python -m labelcheck.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from labelcheck.boundary.db.base import Base
from labelcheck.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from labelcheck.boundary.db.models import (  # noqa: F401
    AnalysisIterationModel,
    AnalysisSessionModel,
    RegulatoryDocumentModel,
    UserModel,
)

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables remain unchanged.

    Args:
        engine: Engine to use (defaults to the configured application engine)
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:create_all_tables - Created {len(Base.metadata.tables)} tables")


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning(f"{__name__}:drop_all_tables - All tables dropped")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_all_tables())
