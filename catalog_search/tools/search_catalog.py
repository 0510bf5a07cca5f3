"""
MCP Tool - search_catalog

Free-text product search with rules and spell correction.
"""

from fastmcp import FastMCP
from typing import List, Optional

from catalog_search.backend.query import FilterQuery, StructuredQuery
from catalog_search.schemas import SearchResponseSchema, SiteContext
from catalog_search.services import get_search_service

router = FastMCP("search_catalog")


async def search_catalog(
    query: str,
    site_id: Optional[str] = None,
    catalog_id: Optional[str] = None,
    locale: Optional[str] = None,
    filter_queries: Optional[List[str]] = None,
    rows: int = 20,
    start: int = 0,
) -> dict:
    """
    Search the product catalog.

    Empty searches are retried with the engine's spelling suggestion; the
    corrected term is reported in the response.

    Args:
        query: Search text
        site_id: Site to search (default: configured site)
        catalog_id: Catalog to search (default: the site's catalog)
        locale: Locale key such as en_US (default: configured locale)
        filter_queries: Active filters as field:expression
        rows: Products per page (default 20)
        start: Offset of the first product

    Returns:
        Products, facets, correction metadata or a redirect URL
    """
    service = get_search_service()

    site = SiteContext(site_id=site_id, catalog_id=catalog_id) if site_id else None
    structured = StructuredQuery(query=query, rows=min(rows, 100))
    structured.set_param("start", start)

    response = await service.search(
        structured,
        site=site,
        catalog_id=catalog_id,
        locale=locale,
        filter_queries=[FilterQuery.parse(fq) for fq in filter_queries or []],
    )
    return SearchResponseSchema.from_response(response).model_dump()


router.tool()(search_catalog)
