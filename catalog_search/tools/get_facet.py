"""
MCP Tool - get_facet

Single facet over a site's catalog.
"""

from fastmcp import FastMCP
from typing import List, Optional

from catalog_search.backend.query import FilterQuery
from catalog_search.schemas import FacetSchema, SiteContext
from catalog_search.services import get_search_service

router = FastMCP("get_facet")


async def get_facet(
    field_name: str,
    limit: int = 100,
    depth_limit: int = 0,
    separator: str = ".",
    site_id: Optional[str] = None,
    catalog_id: Optional[str] = None,
    locale: Optional[str] = None,
    filter_queries: Optional[List[str]] = None,
) -> dict:
    """
    Get the value counts of one field, e.g. all categories or brands.

    Args:
        field_name: Field to facet on
        limit: Maximum values (default 100)
        depth_limit: Skip path values deeper than this (0 = unlimited)
        separator: Path separator used for depth_limit
        site_id: Site (default: configured site)
        catalog_id: Catalog (default: the site's catalog)
        locale: Locale key such as en_US (default: configured locale)
        filter_queries: Active filters as field:expression

    Returns:
        Facet with its filters, or an empty result
    """
    service = get_search_service()
    site = SiteContext(site_id=site_id, catalog_id=catalog_id) if site_id else None

    facet = await service.get_facet(
        site,
        locale,
        field_name,
        limit,
        depth_limit,
        separator,
        [FilterQuery.parse(fq) for fq in filter_queries or []],
    )
    if facet is None:
        return {"facet": None, "field": field_name}
    return {"facet": FacetSchema.model_validate(facet).model_dump(), "field": field_name}


router.tool()(get_facet)
