"""
Schemas - Search Models

Pydantic models for search responses returned to tool callers.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class FilterSchema(BaseModel):
    """Selectable facet value."""
    model_config = ConfigDict(from_attributes=True)

    name: str
    count: int
    filter_query: str
    filter_queries: List[str]
    selected: bool = False


class FacetSchema(BaseModel):
    """Facet with its filters."""
    model_config = ConfigDict(from_attributes=True)

    field: str
    name: str
    metadata: Dict[str, str] = {}
    multi_select: bool = False
    mixed_sorting: bool = False
    min_buckets: int = 2
    filters: List[FilterSchema] = []


class CategoryNodeSchema(BaseModel):
    """Category graph node."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    count: int = 0
    children: List["CategoryNodeSchema"] = []


# Allow recursive model
CategoryNodeSchema.model_rebuild()


class SearchResponseSchema(BaseModel):
    """Full browse/search response."""
    model_config = ConfigDict(from_attributes=True)

    documents: List[Dict[str, Any]] = []
    total_count: int = 0
    facets: List[FacetSchema] = []
    category_graph: List[CategoryNodeSchema] = []
    corrected_term: Optional[str] = None
    matches_all: bool = True
    redirect_url: Optional[str] = None
    latency_ms: int = Field(default=0, ge=0)
    rule_query_time_ms: int = Field(default=0, ge=0)

    @classmethod
    def from_response(cls, response) -> "SearchResponseSchema":
        """Build from a pipeline SearchResponse."""
        result = response.result
        total = 0
        if result is not None:
            total = max(result.groups.values()) if result.groups else result.num_found
        return cls(
            documents=result.documents if result is not None else [],
            total_count=total,
            facets=[FacetSchema.model_validate(f) for f in response.facets],
            category_graph=[
                CategoryNodeSchema.model_validate(n) for n in response.category_graph
            ],
            corrected_term=response.corrected_term,
            matches_all=response.matches_all,
            redirect_url=response.redirect_url,
            latency_ms=result.execution_time if result is not None else 0,
            rule_query_time_ms=response.rule_query_time,
        )
