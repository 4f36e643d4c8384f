"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: labelcheck.configs, labelcheck.application, labelcheck.boundary
System role: DI container for service injection
"""

from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from labelcheck.application.services import AnalysisService, SessionService
from labelcheck.boundary.db import get_async_db
from labelcheck.configs import Settings, get_settings
from labelcheck.core.access import AccessContext
from labelcheck.core.exceptions import AuthenticationError


class ServiceCache:
    """Container for cached, process-wide service instances."""

    def __init__(self):
        self._completion_client = None
        self._analysis_engine = None
        self._context_assembler = None
        self._normalizer = None
        self._regulatory_cache = None
        self._context_builder = None

    @property
    def completion_client(self):
        """Get cached completion client."""
        if self._completion_client is None:
            from labelcheck.core.analysis import CompletionClient
            self._completion_client = CompletionClient.from_settings(get_settings().llm)
        return self._completion_client

    @property
    def analysis_engine(self):
        """Get cached compliance analysis engine."""
        if self._analysis_engine is None:
            from labelcheck.core.analysis import ComplianceAnalysisEngine
            self._analysis_engine = ComplianceAnalysisEngine(self.completion_client)
        return self._analysis_engine

    @property
    def context_assembler(self):
        """Get cached context assembler (holds the prefix memo)."""
        if self._context_assembler is None:
            from labelcheck.core.analysis import ContextAssembler

            settings = get_settings().analysis
            self._context_assembler = ContextAssembler(
                history_window=settings.chat_history_window,
                prefix_cache_size=settings.prefix_cache_size,
            )
        return self._context_assembler

    @property
    def normalizer(self):
        """Get cached ingestion normalizer."""
        if self._normalizer is None:
            from labelcheck.core.ingestion import IngestionNormalizer
            self._normalizer = IngestionNormalizer(get_settings().analysis)
        return self._normalizer

    @property
    def regulatory_cache(self):
        """Get cached regulatory document cache."""
        if self._regulatory_cache is None:
            from labelcheck.boundary.db.connection import get_async_session_factory
            from labelcheck.core.regulatory import RegulatoryDocumentCache, database_document_loader

            settings = get_settings().analysis
            self._regulatory_cache = RegulatoryDocumentCache(
                loader=database_document_loader(
                    get_async_session_factory(),
                    limit=settings.regulatory_document_limit,
                ),
                ttl_seconds=settings.regulatory_cache_ttl_seconds,
            )
        return self._regulatory_cache

    @property
    def context_builder(self):
        """Get cached regulatory context builder."""
        if self._context_builder is None:
            from labelcheck.core.regulatory import RegulatoryContextBuilder
            self._context_builder = RegulatoryContextBuilder(self.regulatory_cache)
        return self._context_builder

    def clear(self) -> None:
        """Clear all cached instances."""
        self._completion_client = None
        self._analysis_engine = None
        self._context_assembler = None
        self._normalizer = None
        self._regulatory_cache = None
        self._context_builder = None


# Global service cache
_service_cache = ServiceCache()

def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_session_service(db: AsyncSession = Depends(get_async_db)) -> SessionService:
    """
    Get session service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        SessionService: Session/iteration store bound to the request's session
    """
    return SessionService(db=db)


def get_analysis_service(
    session_service: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings_dependency),
) -> AnalysisService:
    """
    Get analysis service instance.

    Per-request store, process-wide normalizer, regulatory context,
    assembler and engine.

    Args:
        session_service: Injected SessionService
        settings: Injected settings

    Returns:
        AnalysisService: Analysis orchestrator
    """
    cache = get_service_cache()
    return AnalysisService(
        sessions=session_service,
        normalizer=cache.normalizer,
        context_builder=cache.context_builder,
        assembler=cache.context_assembler,
        engine=cache.analysis_engine,
        settings=settings.analysis,
    )


async def get_access_context(
    x_user_id: str | None = Header(default=None),
    session_service: SessionService = Depends(get_session_service),
) -> AccessContext:
    """
    Resolve the caller forwarded by the authentication layer.

    Args:
        x_user_id: External user id from the X-User-Id header
        session_service: Injected SessionService

    Returns:
        AccessContext: Owner-scoped access for the caller

    Raises:
        AuthenticationError: Header missing
        NotFoundError: Identity unknown
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Missing X-User-Id header")
    user_id = await session_service.lookup_user_by_external_id(x_user_id.strip())
    return AccessContext.owner(user_id)
