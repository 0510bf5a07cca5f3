"""
Services - Search Service

Browse, search and single-facet lookups over the catalog collection, with
merchandising rules, spell correction and category graphs.
"""

import logging
import time
from typing import Any, Dict, Optional, Sequence

from catalog_search.backend import build_connections
from catalog_search.backend.base_client import AnalysisRequest, BaseBackendClient
from catalog_search.backend.connections import LocaleConnections, locale_country
from catalog_search.backend.query import (
    MATCH_ALL,
    FilterQuery,
    StructuredQuery,
    escape_query_chars,
)
from catalog_search.config import get_settings
from catalog_search.errors import ConfigurationError
from catalog_search.pipeline.category_graph import exceeds_depth
from catalog_search.pipeline.facet_assembler import Facet, FacetAssembler, Filter
from catalog_search.pipeline.query_composer import (
    CATEGORY_PATH,
    QueryComposer,
    WireParams,
    resolve_category_path,
)
from catalog_search.pipeline.response import SearchResponse
from catalog_search.pipeline.result_fetcher import ResultFetcher
from catalog_search.pipeline.rule_injector import RuleFilterInjector
from catalog_search.rules import get_resolver
from catalog_search.rules.base_resolver import BaseRuleResolver, RuleContext
from catalog_search.rules.facet_metadata import FacetMetadataProvider
from catalog_search.schemas.browse import SearchRequestOptions, SiteContext
from catalog_search.services.cache_service import CacheService

logger = logging.getLogger(__name__)


class SearchService:
    """Catalog read path: compose, resolve rules, execute, assemble."""

    CATEGORY_FACET = "category"

    def __init__(
        self,
        settings=None,
        connections: Optional[LocaleConnections] = None,
        resolver: Optional[BaseRuleResolver] = None,
        cache: Optional[CacheService] = None,
    ):
        self.settings = settings or get_settings()
        self._connections = connections
        self._resolver = resolver
        self.cache = cache or CacheService(self.settings)
        self.composer = QueryComposer()
        self.wire = WireParams.from_settings(self.settings)
        self.fetcher = ResultFetcher(self.settings.search.minimum_match)
        self._injector = None

    @property
    def connections(self) -> LocaleConnections:
        """Lazy build per-locale backend clients."""
        if self._connections is None:
            self._connections = build_connections(self.settings)
        return self._connections

    @property
    def injector(self) -> RuleFilterInjector:
        """Lazy load the rule resolver."""
        if self._injector is None:
            resolver = self._resolver or get_resolver(self.settings)
            self._injector = RuleFilterInjector(resolver, self.cache)
        return self._injector

    async def browse(
        self,
        options: SearchRequestOptions,
        query: Optional[StructuredQuery] = None,
        site: Optional[SiteContext] = None,
        locale: Optional[str] = None,
        filter_queries: Sequence[FilterQuery] = (),
    ) -> SearchResponse:
        """
        Browse a category, brand, on-sale or rule-based page.

        Args:
            options: Browse intent; its catalog_id overrides the site's catalog
            query: Caller's query (sorting, paging, text); a new one if omitted
            site: Site context, defaults to the configured site
            locale: Locale key, defaults to the configured locale
            filter_queries: Caller's active filters, in order

        Returns:
            SearchResponse, or a redirect-only response

        Raises:
            ConfigurationError: missing site, catalog or locale connection
            RuleResolutionError: rule lookup failed
            SearchExecutionError: backend call failed
        """
        site = self._require_site(site)
        catalog_id = options.catalog_id or self._require_catalog(site)
        locale = locale or self.settings.search.default_locale
        client = self.connections.for_locale(locale)

        if not options.catalog_id:
            options = options.model_copy(update={"catalog_id": catalog_id})
        query = query if query is not None else StructuredQuery()

        rules_filter = None
        if options.rule_based_page:
            rules_filter = await self.injector.build_rules_filter(options.category_id, locale)
        self.composer.compose(options, query, locale, rules_filter)

        category_path = None
        if options.rule_based_page or options.has_category_path:
            category_path = resolve_category_path(options)

        context = RuleContext(
            query=query.query,
            category_id=options.category_id,
            category_path=category_path,
            brand_id=options.brand_id,
            active_filters=[str(fq) for fq in filter_queries],
            catalog_id=catalog_id,
            locale=locale,
            is_search=False,
            is_rule_based_page=options.rule_based_page,
            is_outlet=options.on_sale,
        )
        response = await self._do_search(client, query, context, filter_queries)

        if options.adds_category_graph and not response.is_redirect:
            response.extract_category_graph(
                CATEGORY_PATH, options.category_id, options.depth_limit, options.separator
            )
        return response

    async def search(
        self,
        query: StructuredQuery,
        site: Optional[SiteContext] = None,
        catalog_id: Optional[str] = None,
        locale: Optional[str] = None,
        filter_queries: Sequence[FilterQuery] = (),
    ) -> SearchResponse:
        """
        Free-text search with rules and spell correction.

        Args:
            query: Query with the caller's text, sorting and paging
            site: Site context, defaults to the configured site
            catalog_id: Catalog override, defaults to the site's catalog
            locale: Locale key, defaults to the configured locale
            filter_queries: Caller's active filters, in order

        Returns:
            SearchResponse, or a redirect-only response
        """
        site = self._require_site(site)
        catalog_id = catalog_id or self._require_catalog(site)
        locale = locale or self.settings.search.default_locale
        client = self.connections.for_locale(locale)

        context = RuleContext(
            query=query.query,
            active_filters=[str(fq) for fq in filter_queries],
            catalog_id=catalog_id,
            locale=locale,
            is_search=True,
        )
        return await self._do_search(client, query, context, filter_queries)

    async def get_facet(
        self,
        site: Optional[SiteContext],
        locale: Optional[str],
        field_name: str,
        limit: int,
        depth_limit: int = 0,
        separator: str = ".",
        filter_queries: Sequence[FilterQuery] = (),
    ) -> Optional[Facet]:
        """
        Fetch a single field facet over the site's catalog.

        Args:
            site: Site context, defaults to the configured site
            locale: Locale key, defaults to the configured locale
            field_name: Field to facet on
            limit: Maximum number of buckets
            depth_limit: Prune bucket paths deeper than this (0 = no limit)
            separator: Path separator for depth pruning
            filter_queries: Caller's active filters

        Returns:
            Facet, or None when the backend returned no buckets
        """
        site = self._require_site(site)
        catalog_id = self._require_catalog(site)
        locale = locale or self.settings.search.default_locale
        client = self.connections.for_locale(locale)

        query = StructuredQuery(query=MATCH_ALL, rows=0)
        query.add_facet_field(field_name)
        query.set_param("facet.limit", limit)
        query.set_param("facet.mincount", 1)
        query.add_filter_query(f"country:{locale_country(locale)}")
        query.facet_prefixes[CATEGORY_PATH] = f"{catalog_id}."
        query.add_filter_query(f"{CATEGORY_PATH}:{catalog_id}")
        for fq in filter_queries:
            query.add_filter_query(str(fq))

        result = await client.execute(query)
        raw = result.field_facet(field_name)
        if raw is None or not raw.values:
            return None

        facet = Facet(field=field_name, name=field_name[:1].upper() + field_name[1:])
        for count in raw.values:
            if exceeds_depth(count.value, depth_limit, separator):
                continue
            filter_query = f"{field_name}:{escape_query_chars(count.value)}"
            facet.filters.append(Filter(
                name=count.value,
                count=count.count,
                filter_query=filter_query,
                filter_queries=[filter_query],
            ))
        return facet

    async def ping(self, locale: Optional[str] = None) -> bool:
        return await self._client(locale).ping()

    async def commit(self, locale: Optional[str] = None) -> Dict[str, Any]:
        return await self._client(locale).commit()

    async def rollback(self, locale: Optional[str] = None) -> Dict[str, Any]:
        return await self._client(locale).rollback()

    async def delete_by_query(self, query: str, locale: Optional[str] = None) -> Dict[str, Any]:
        return await self._client(locale).delete_by_query(query)

    async def analyze(
        self, request: AnalysisRequest, locale: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._client(locale).analyze(request)

    async def close(self) -> None:
        if self._connections is not None:
            await self._connections.close()

    def _client(self, locale: Optional[str]) -> BaseBackendClient:
        return self.connections.for_locale(locale or self.settings.search.default_locale)

    def _require_site(self, site: Optional[SiteContext]) -> SiteContext:
        if site is not None:
            return site
        if self.settings.site.site_id:
            return SiteContext(
                site_id=self.settings.site.site_id,
                catalog_id=self.settings.site.catalog_id,
            )
        raise ConfigurationError("Missing site")

    def _require_catalog(self, site: SiteContext) -> str:
        if not site.catalog_id:
            raise ConfigurationError(f"Missing catalog for site {site.site_id}")
        return site.catalog_id

    async def _do_search(
        self,
        client: BaseBackendClient,
        query: StructuredQuery,
        context: RuleContext,
        filter_queries: Sequence[FilterQuery],
    ) -> SearchResponse:
        start = time.perf_counter()

        query.add_facet_field(self.CATEGORY_FACET)
        query.set_param("facet.mincount", 1)

        metadata = FacetMetadataProvider()
        rule_query_time = 0

        if query.fetches_rows or query.get_bool("group"):
            self.wire.set_group_params(query, context.locale)
            self.wire.set_field_list_params(query, context.locale, context.catalog_id)

            rule_start = time.perf_counter()
            resolution = await self.injector.apply(query, context, filter_queries)
            rule_query_time = int((time.perf_counter() - rule_start) * 1000)

            if resolution.redirect_target:
                return SearchResponse.redirect(query, resolution.redirect_target)
            metadata = resolution.facet_metadata
        else:
            self.injector.apply_filter_queries(query, filter_queries, context.catalog_id)

        outcome = await self.fetcher.fetch(client, query)
        facets = FacetAssembler(metadata, filter_queries, query).assemble(outcome.result)

        search_time = int((time.perf_counter() - start) * 1000)
        logger.debug(
            f"Search time is {search_time}, search engine time is {outcome.result.execution_time}"
        )

        correction = outcome.correction
        return SearchResponse(
            query=query,
            result=outcome.result,
            facets=facets,
            corrected_term=correction.term if correction else None,
            matches_all=correction.matches_all if correction else True,
            rule_query_time=rule_query_time,
        )
