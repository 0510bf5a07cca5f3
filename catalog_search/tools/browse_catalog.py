"""
MCP Tool - browse_catalog

Browse a category, brand, on-sale or rule-based page.
"""

from fastmcp import FastMCP
from typing import List, Optional

from catalog_search.backend.query import FilterQuery, StructuredQuery
from catalog_search.schemas import SearchRequestOptions, SearchResponseSchema, SiteContext
from catalog_search.services import get_search_service

router = FastMCP("browse_catalog")


async def browse_catalog(
    category_id: Optional[str] = None,
    category_path: Optional[str] = None,
    brand_id: Optional[str] = None,
    on_sale: bool = False,
    rule_based_page: bool = False,
    fetch_products: bool = True,
    fetch_category_graph: bool = False,
    depth_limit: int = 0,
    max_category_results: int = 100,
    separator: str = ".",
    site_id: Optional[str] = None,
    catalog_id: Optional[str] = None,
    locale: Optional[str] = None,
    filter_queries: Optional[List[str]] = None,
    rows: int = 20,
) -> dict:
    """
    Browse catalog pages with merchandising rules applied.

    Category graphs are included when requested, or when browsing a brand
    without a category.

    Args:
        category_id: Category to browse
        category_path: Category path such as 1.bcs
        brand_id: Brand to browse
        on_sale: Only products on sale
        rule_based_page: category_id names a rule-based page
        fetch_products: False for a facet-only response
        fetch_category_graph: Include the category graph
        depth_limit: Maximum category graph depth (0 = unlimited)
        max_category_results: Maximum category path values for the graph
        separator: Category path separator
        site_id: Site to browse (default: configured site)
        catalog_id: Catalog to browse (default: the site's catalog)
        locale: Locale key such as en_US (default: configured locale)
        filter_queries: Active filters as field:expression
        rows: Products per page (default 20)

    Returns:
        Products, facets, category graph or a redirect URL
    """
    service = get_search_service()

    options = SearchRequestOptions(
        category_id=category_id,
        category_path=category_path,
        brand_id=brand_id,
        catalog_id=catalog_id,
        on_sale=on_sale,
        rule_based_page=rule_based_page,
        fetch_products=fetch_products,
        fetch_category_graph=fetch_category_graph,
        depth_limit=depth_limit,
        max_category_results=max_category_results,
        separator=separator,
    )
    site = SiteContext(site_id=site_id, catalog_id=catalog_id) if site_id else None

    response = await service.browse(
        options,
        StructuredQuery(rows=min(rows, 100)),
        site=site,
        locale=locale,
        filter_queries=[FilterQuery.parse(fq) for fq in filter_queries or []],
    )
    return SearchResponseSchema.from_response(response).model_dump()


router.tool()(browse_catalog)
