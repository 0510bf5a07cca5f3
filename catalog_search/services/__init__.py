"""
Services Module - Business Logic Layer

Provides the catalog search service and the rule resolution cache.
"""

from typing import Optional

from catalog_search.services.search_service import SearchService
from catalog_search.services.cache_service import CacheService

__all__ = [
    "SearchService",
    "CacheService",
    "get_search_service",
]

_service: Optional[SearchService] = None


def get_search_service() -> SearchService:
    """Process-wide SearchService, built on first use."""
    global _service
    if _service is None:
        _service = SearchService()
    return _service
