"""
Regulatory context module.

Caches active regulatory documents per product category and renders
them into the stable context block that opens every analysis prompt.
"""

from labelcheck.core.regulatory.categories import (
    ProductCategory,
    classify_label_text,
    select_product_category,
)
from labelcheck.core.regulatory.context_builder import RegulatoryContextBuilder, build_context
from labelcheck.core.regulatory.document_cache import CacheStats, RegulatoryDocumentCache
from labelcheck.core.regulatory.loader import database_document_loader

__all__ = [
    "CacheStats",
    "ProductCategory",
    "RegulatoryContextBuilder",
    "RegulatoryDocumentCache",
    "build_context",
    "classify_label_text",
    "database_document_loader",
    "select_product_category",
]
