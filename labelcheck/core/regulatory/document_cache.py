"""
Regulatory document cache.

Process-wide, time-expiring cache in front of the regulatory document
loader. Each product category has its own entry next to the full document
set (key None). The clock is injected so expiry can be driven from tests; a
refresh swaps the entry map in a single assignment so readers never observe
a partially built document list.

Dependencies: None beyond the injected loader
System role: Read-mostly cache for regulatory context
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from labelcheck.models.regulatory import RegulatoryDocument

logger = logging.getLogger(__name__)

# Called with a category to load only that category's documents, None for all
DocumentLoader = Callable[[str | None], Awaitable[list[RegulatoryDocument]]]


@dataclass(frozen=True)
class _CacheEntry:
    documents: tuple[RegulatoryDocument, ...]
    loaded_at: float


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache state for monitoring; counts describe the full document set."""

    is_cached: bool
    document_count: int
    age_seconds: float
    ttl_seconds: float
    hits: int
    misses: int
    cached_categories: tuple[str, ...] = ()


class RegulatoryDocumentCache:
    """TTL cache of active regulatory documents, keyed by product category."""

    def __init__(
        self,
        loader: DocumentLoader,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            loader: Coroutine function returning active documents for a category (None for all)
            ttl_seconds: Age after which cached documents are reloaded
            clock: Monotonic time source in seconds
        """
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str | None, _CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def _is_valid(self, entry: _CacheEntry | None) -> bool:
        if entry is None:
            return False
        age = self._clock() - entry.loaded_at
        if age >= self._ttl:
            logger.debug(
                f"{__name__}:_is_valid - Cache expired",
                extra={"age_seconds": round(age, 1), "ttl_seconds": self._ttl},
            )
            return False
        return True

    async def get_documents(self, category: str | None = None) -> list[RegulatoryDocument]:
        """
        Return cached documents, reloading when missing or expired.

        A loader failure is logged and yields an empty list; the previous
        entry is discarded only by expiry, never by a failed reload.

        Args:
            category: Product category to scope to, or None for every document

        Returns:
            list[RegulatoryDocument]: Active documents (empty on data-layer error)
        """
        entry = self._entries.get(category)
        if self._is_valid(entry):
            self._hits += 1
            return list(entry.documents)

        self._misses += 1
        try:
            documents = await self._loader(category)
        except Exception as e:
            logger.error(
                f"{__name__}:get_documents - Failed to load regulatory documents, continuing without them",
                exc_info=True,
                extra={"category": category, "error_type": type(e).__name__, "error_msg": str(e)},
            )
            return []

        loaded = _CacheEntry(documents=tuple(documents), loaded_at=self._clock())
        self._entries = {**self._entries, category: loaded}
        logger.info(
            f"{__name__}:get_documents - Cached {len(documents)} regulatory documents",
            extra={"category": category},
        )
        return list(documents)

    def invalidate(self) -> None:
        """Drop every cached entry; the next read of each category reloads."""
        self._entries = {}
        logger.info(f"{__name__}:invalidate - Regulatory document cache invalidated")

    async def warm_up(self) -> None:
        """Load the full document set ahead of the first request."""
        self.invalidate()
        documents = await self.get_documents()
        logger.info(f"{__name__}:warm_up - Warmed with {len(documents)} documents")

    def stats(self) -> CacheStats:
        """Return current cache statistics."""
        entries = self._entries
        categories = tuple(sorted(key for key in entries if key is not None))
        entry = entries.get(None)
        if entry is None:
            return CacheStats(False, 0, 0.0, self._ttl, self._hits, self._misses, categories)
        return CacheStats(
            is_cached=True,
            document_count=len(entry.documents),
            age_seconds=self._clock() - entry.loaded_at,
            ttl_seconds=self._ttl,
            hits=self._hits,
            misses=self._misses,
            cached_categories=categories,
        )
