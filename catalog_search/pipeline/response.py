"""
Pipeline - Search Response

Read-only result of a browse or search request.
"""

from typing import List, Optional
from dataclasses import dataclass, field

from catalog_search.backend.query import StructuredQuery
from catalog_search.backend.result import ResultSet
from catalog_search.pipeline.category_graph import (
    CategoryGraphNode,
    build_category_graph,
    find_category_facet,
)
from catalog_search.pipeline.facet_assembler import Facet


@dataclass
class SearchResponse:
    """Result set, derived facets and category graph for one request."""
    query: StructuredQuery
    result: Optional[ResultSet] = None
    facets: List[Facet] = field(default_factory=list)
    category_graph: List[CategoryGraphNode] = field(default_factory=list)
    corrected_term: Optional[str] = None
    matches_all: bool = True
    redirect_url: Optional[str] = None
    rule_query_time: int = 0

    @classmethod
    def redirect(cls, query: StructuredQuery, url: str) -> "SearchResponse":
        """Response carrying only a redirect target."""
        return cls(query=query, redirect_url=url)

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None

    def remove_facet(self, field_name: str) -> Optional[Facet]:
        for facet in self.facets:
            if facet.field == field_name:
                self.facets.remove(facet)
                return facet
        return None

    def extract_category_graph(
        self,
        field_name: str,
        category_id: Optional[str],
        depth_limit: int,
        separator: str,
    ) -> List[CategoryGraphNode]:
        """
        Build the category graph from the category-path facet and drop that
        facet from the flat facet list.
        """
        facet = find_category_facet(self.facets, field_name)
        if facet is None:
            self.category_graph = []
            return self.category_graph

        self.remove_facet(facet.field)
        self.category_graph = build_category_graph(
            facet.filters, category_id, depth_limit, separator
        )
        return self.category_graph
