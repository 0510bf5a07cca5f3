"""
Tools Module - MCP Tool Implementations

Catalog browse, search and facet tools.
"""

from catalog_search.tools import browse_catalog
from catalog_search.tools import search_catalog
from catalog_search.tools import get_facet

__all__ = [
    "browse_catalog",
    "search_catalog",
    "get_facet",
]
