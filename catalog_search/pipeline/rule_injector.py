"""
Pipeline - Rule Filter Injector

Resolves merchandising rules for a request and merges them into the query.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from catalog_search.backend.query import FilterQuery, StructuredQuery
from catalog_search.errors import RuleResolutionError
from catalog_search.rules.base_resolver import (
    BaseRuleResolver,
    RuleContext,
    RuleResolution,
)
from catalog_search.rules.facet_metadata import FacetMetadataProvider

if TYPE_CHECKING:
    from catalog_search.services.cache_service import CacheService

logger = logging.getLogger(__name__)

CATALOG_FILTER_FIELD = "categoryPath"


class RuleFilterInjector:
    """Merges rule filters, boosts and facet parameters into a query."""

    def __init__(self, resolver: BaseRuleResolver, cache: Optional["CacheService"] = None):
        self.resolver = resolver
        self.cache = cache

    async def resolve(self, context: RuleContext) -> RuleResolution:
        """
        Resolve rules for ``context``, through the cache when configured.

        Raises:
            RuleResolutionError: when the resolver fails
        """
        key = context.cache_key()
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            resolution = await self.resolver.resolve(context)
        except RuleResolutionError as e:
            logger.error(f"Unable to load search rules for {context.catalog_id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Unable to load search rules for {context.catalog_id}: {e}")
            raise RuleResolutionError(
                f"Unable to load search rules for {context.catalog_id}"
            ) from e

        if self.cache is not None:
            self.cache.set(key, resolution)
        return resolution

    async def build_rules_filter(self, category_id: Optional[str], locale: str) -> str:
        """Filter expression for a rule-based page."""
        try:
            return await self.resolver.build_rules_filter(category_id, locale)
        except RuleResolutionError as e:
            logger.error(f"Unable to build rules filter for page {category_id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Unable to build rules filter for page {category_id}: {e}")
            raise RuleResolutionError(
                f"Unable to build rules filter for page {category_id}"
            ) from e

    async def apply(
        self,
        query: StructuredQuery,
        context: RuleContext,
        active_filters: Sequence[FilterQuery],
    ) -> RuleResolution:
        """
        Resolve rules and merge them into ``query``.

        A resolution carrying a redirect target is returned without touching
        the query; the caller short-circuits.
        """
        resolution = await self.resolve(context)
        if resolution.redirect_target:
            logger.info(f"Redirect rule matched, sending to {resolution.redirect_target}")
            return resolution

        self.apply_filter_queries(
            query, active_filters, context.catalog_id, resolution.facet_metadata
        )
        for expression in resolution.filter_expressions:
            query.add_filter_query(expression)
        for boost in resolution.boost_functions:
            query.add_param("boost", boost)
        resolution.facet_metadata.apply_params(query)
        return resolution

    def apply_filter_queries(
        self,
        query: StructuredQuery,
        active_filters: Sequence[FilterQuery],
        catalog_id: str,
        facet_metadata: Optional[FacetMetadataProvider] = None,
    ) -> None:
        """Add the catalog filter and the caller's active filters."""
        metadata = facet_metadata or FacetMetadataProvider()
        query.add_filter_query(f"{CATALOG_FILTER_FIELD}:{catalog_id}")
        for active in active_filters:
            query.add_filter_query(metadata.tag_filter(active))
