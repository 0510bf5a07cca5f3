"""
Catalog Search - Errors

Typed errors raised by the search read path. Lower-level transport and
data-access failures are chained as ``__cause__``.
"""


class SearchServerError(Exception):
    """Base class for all catalog search errors."""


class SearchExecutionError(SearchServerError):
    """Backend communication or protocol failure."""


class RuleResolutionError(SearchServerError):
    """Rule lookup or application failure."""


class ConfigurationError(SearchServerError):
    """Missing site, catalog or locale context."""


class AnalysisError(SearchServerError):
    """Field or document analysis failure."""
