"""
Rules - Static Resolver

Rule resolver backed by a JSON rule set loaded at startup.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from catalog_search.errors import RuleResolutionError
from catalog_search.rules.base_resolver import (
    BaseRuleResolver,
    RuleContext,
    RuleResolution,
)
from catalog_search.rules.facet_metadata import FacetDefinition, FacetMetadataProvider

logger = logging.getLogger(__name__)


class RuleScope(BaseModel):
    """Where a rule applies. Unset fields match anything."""
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    search_only: bool = False

    def applies(self, context: RuleContext) -> bool:
        if self.search_only and not context.is_search:
            return False
        if self.category_id is not None and self.category_id != context.category_id:
            return False
        if self.brand_id is not None and self.brand_id != context.brand_id:
            return False
        return True

    @property
    def specificity(self) -> int:
        return (self.category_id is not None) * 2 + (self.brand_id is not None)


class FacetRule(RuleScope):
    facets: List[FacetDefinition] = Field(default_factory=list)


class FilterRule(RuleScope):
    expression: str


class BoostRule(RuleScope):
    boost: str


class RedirectRule(BaseModel):
    query: str
    url: str


class RulePage(BaseModel):
    id: str
    filter: str


class RuleSet(BaseModel):
    """All merchandising rules of a catalog."""
    facets: List[FacetRule] = Field(default_factory=list)
    filters: List[FilterRule] = Field(default_factory=list)
    boosts: List[BoostRule] = Field(default_factory=list)
    redirects: List[RedirectRule] = Field(default_factory=list)
    pages: List[RulePage] = Field(default_factory=list)


class StaticRuleResolver(BaseRuleResolver):
    """Matches contexts against an in-memory RuleSet."""

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules or RuleSet()

    @classmethod
    def from_file(cls, path: Path) -> "StaticRuleResolver":
        """Load a rule set from a JSON file."""
        try:
            return cls(RuleSet.model_validate_json(Path(path).read_text()))
        except (OSError, ValidationError) as e:
            logger.error(f"Unable to load rules from {path}: {e}")
            raise RuleResolutionError(f"Unable to load rules from {path}") from e

    async def resolve(self, context: RuleContext) -> RuleResolution:
        resolution = RuleResolution()

        if context.is_search and context.query:
            term = context.query.strip().lower()
            for redirect in self.rules.redirects:
                if redirect.query.strip().lower() == term:
                    resolution.redirect_target = redirect.url
                    return resolution

        resolution.filter_expressions = [
            rule.expression for rule in self.rules.filters if rule.applies(context)
        ]
        resolution.boost_functions = [
            rule.boost for rule in self.rules.boosts if rule.applies(context)
        ]

        matching = [rule for rule in self.rules.facets if rule.applies(context)]
        if matching:
            best = max(matching, key=lambda rule: rule.specificity)
            resolution.facet_metadata = FacetMetadataProvider(best.facets)

        return resolution

    async def build_rules_filter(self, category_id: Optional[str], locale: str) -> str:
        for page in self.rules.pages:
            if page.id == category_id:
                return page.filter
        raise RuleResolutionError(f"No rule-based page {category_id} for {locale}")
