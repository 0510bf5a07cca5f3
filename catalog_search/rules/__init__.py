"""
Rules Module - Rule Resolution Abstraction Layer

Merchandising rules: filter injection, redirects, boosts and facet metadata.
"""

from catalog_search.rules.base_resolver import BaseRuleResolver, RuleContext, RuleResolution
from catalog_search.rules.facet_metadata import (
    FacetDefinition,
    FacetMetadataProvider,
    RangeConfig,
)
from catalog_search.rules.static_resolver import RuleSet, StaticRuleResolver

__all__ = [
    "BaseRuleResolver",
    "FacetDefinition",
    "FacetMetadataProvider",
    "RangeConfig",
    "RuleContext",
    "RuleResolution",
    "RuleSet",
    "StaticRuleResolver",
]


def get_resolver(settings=None):
    """Factory function to get the configured rule resolver."""
    from catalog_search.config import get_settings
    settings = settings or get_settings()

    if settings.rules.rules_file is not None:
        return StaticRuleResolver.from_file(settings.rules.rules_file)
    return StaticRuleResolver()
