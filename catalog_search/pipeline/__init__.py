"""
Pipeline Module - Catalog Read Path

Handles the request flow from browse intent to display-ready response:
Compose → Resolve Rules → Execute (+ spell correction) → Assemble Facets → Category Graph
"""

from catalog_search.pipeline.query_composer import QueryComposer, WireParams
from catalog_search.pipeline.rule_injector import RuleFilterInjector
from catalog_search.pipeline.spell_correction import Correction, CorrectionState, transition
from catalog_search.pipeline.result_fetcher import FetchOutcome, ResultFetcher
from catalog_search.pipeline.facet_assembler import Facet, FacetAssembler, Filter
from catalog_search.pipeline.category_graph import (
    CategoryGraphBuilder,
    CategoryGraphNode,
    build_category_graph,
)
from catalog_search.pipeline.response import SearchResponse

__all__ = [
    "QueryComposer",
    "WireParams",
    "RuleFilterInjector",
    "Correction",
    "CorrectionState",
    "transition",
    "FetchOutcome",
    "ResultFetcher",
    "Facet",
    "FacetAssembler",
    "Filter",
    "CategoryGraphBuilder",
    "CategoryGraphNode",
    "build_category_graph",
    "SearchResponse",
]
