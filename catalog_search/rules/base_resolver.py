"""
Rules - Base Resolver

Abstract base class for rule resolution services.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel

from catalog_search.rules.facet_metadata import FacetMetadataProvider


class RuleContext(BaseModel):
    """Page context rules are matched against."""
    query: Optional[str] = None
    category_id: Optional[str] = None
    category_path: Optional[str] = None
    brand_id: Optional[str] = None
    active_filters: List[str] = []
    catalog_id: str
    locale: str
    is_search: bool = False
    is_rule_based_page: bool = False
    is_outlet: bool = False

    def cache_key(self) -> str:
        return f"rules:{self.model_dump_json()}"


@dataclass
class RuleResolution:
    """Outcome of rule resolution for one context."""
    filter_expressions: List[str] = field(default_factory=list)
    redirect_target: Optional[str] = None
    facet_metadata: FacetMetadataProvider = field(default_factory=FacetMetadataProvider)
    boost_functions: List[str] = field(default_factory=list)


class BaseRuleResolver(ABC):
    """Base class for rule resolver implementations."""

    @abstractmethod
    async def resolve(self, context: RuleContext) -> RuleResolution:
        """
        Resolve the rules that apply to a page context.

        Args:
            context: Category/brand/search context with active filters

        Returns:
            RuleResolution with filters, optional redirect and facet metadata
        """
        pass

    @abstractmethod
    async def build_rules_filter(self, category_id: Optional[str], locale: str) -> str:
        """
        Build the filter expression that defines a rule-based page.

        Args:
            category_id: Rule-based page id
            locale: Locale key

        Returns:
            Filter expression selecting the page's products
        """
        pass
