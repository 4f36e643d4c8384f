"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from labelcheck.boundary.db.CRUD import session_crud, iteration_crud

    session = await session_crud.get_by_id(db, session_id)
    rows = await iteration_crud.list_for_session(db, session_id)
"""

from labelcheck.boundary.db.CRUD.base_crud import BaseCRUD
from labelcheck.boundary.db.CRUD.iteration_crud import IterationCRUD, iteration_crud
from labelcheck.boundary.db.CRUD.regulatory_document_crud import (
    RegulatoryDocumentCRUD,
    regulatory_document_crud,
)
from labelcheck.boundary.db.CRUD.session_crud import SessionCRUD, session_crud
from labelcheck.boundary.db.CRUD.user_crud import UserCRUD, user_crud

__all__ = [
    "BaseCRUD",
    "IterationCRUD",
    "iteration_crud",
    "RegulatoryDocumentCRUD",
    "regulatory_document_crud",
    "SessionCRUD",
    "session_crud",
    "UserCRUD",
    "user_crud",
]
