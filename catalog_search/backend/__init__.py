"""
Backend Module - Search Engine Access Layer

Structured queries, result snapshots and per-locale Solr clients.
"""

from catalog_search.backend.base_client import AnalysisRequest, BaseBackendClient
from catalog_search.backend.connections import LocaleConnections
from catalog_search.backend.query import FilterQuery, StructuredQuery
from catalog_search.backend.result import ResultSet
from catalog_search.backend.solr_client import SolrClient

__all__ = [
    "AnalysisRequest",
    "BaseBackendClient",
    "FilterQuery",
    "LocaleConnections",
    "ResultSet",
    "SolrClient",
    "StructuredQuery",
]


def build_connections(settings=None) -> LocaleConnections:
    """Factory function to build the configured per-locale Solr clients."""
    from catalog_search.config import get_settings
    from catalog_search.backend.connections import collection_name
    settings = settings or get_settings()

    return LocaleConnections({
        locale: SolrClient(
            base_url=settings.backend.base_url,
            collection=collection_name(settings.backend.catalog_collection, locale),
            timeout_ms=settings.backend.timeout_ms,
        )
        for locale in settings.backend.locales
    })
