"""
Schemas Module - Pydantic Models

Data models for browse options, site context and search responses.
"""

from catalog_search.schemas.browse import SearchRequestOptions, SiteContext
from catalog_search.schemas.search import (
    CategoryNodeSchema,
    FacetSchema,
    FilterSchema,
    SearchResponseSchema,
)

__all__ = [
    "SearchRequestOptions",
    "SiteContext",
    "CategoryNodeSchema",
    "FacetSchema",
    "FilterSchema",
    "SearchResponseSchema",
]
