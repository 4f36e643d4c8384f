"""
Database boundary.

SQLAlchemy models, connection management and CRUD operations for
users, analysis sessions, iterations and regulatory documents.
"""

from labelcheck.boundary.db.base import Base
from labelcheck.boundary.db.connection import get_async_db

__all__ = ["Base", "get_async_db"]
