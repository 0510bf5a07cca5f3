"""
Backend - Structured Query

Mutable engine query built per request and filter query helpers.
"""

import copy
import re
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field


MATCH_ALL = "*:*"

# Characters with special meaning in the Lucene/Solr query syntax
_SPECIAL_CHARS = set('\\+-!():^[]"{}~*?|&;/ ')
_ESCAPED_CHAR = re.compile(r"\\(.)")


def escape_query_chars(value: str) -> str:
    """Escape Solr query syntax characters in a literal value."""
    return "".join(f"\\{ch}" if ch in _SPECIAL_CHARS else ch for ch in value)


def unescape_query_chars(value: str) -> str:
    """Reverse :func:`escape_query_chars`."""
    return _ESCAPED_CHAR.sub(r"\1", value)


@dataclass(frozen=True)
class FilterQuery:
    """An active ``field:expression`` filter supplied by the caller."""
    field_name: str
    expression: str

    @classmethod
    def parse(cls, filter_query: str) -> "FilterQuery":
        """Parse ``field:expression``; local params like ``{!tag=x}`` are dropped."""
        if filter_query.startswith("{!"):
            filter_query = filter_query[filter_query.index("}") + 1:]
        field_name, sep, expression = filter_query.partition(":")
        if not sep or not field_name or not expression:
            raise ValueError(f"Invalid filter query: {filter_query!r}")
        return cls(field_name=field_name, expression=expression)

    @property
    def unescaped_expression(self) -> str:
        expression = self.expression
        if len(expression) > 1 and expression[0] == expression[-1] == '"':
            expression = expression[1:-1]
        return unescape_query_chars(expression)

    def matches(self, field_name: str, value: str) -> bool:
        """True if this filter selects ``value`` on ``field_name``."""
        if self.field_name != field_name:
            return False
        return value in (self.expression, self.unescaped_expression)

    def __str__(self) -> str:
        return f"{self.field_name}:{self.expression}"


@dataclass
class SortClause:
    """Single sort clause."""
    item: str
    order: str = "asc"

    def __str__(self) -> str:
        return f"{self.item} {self.order}"


@dataclass
class StructuredQuery:
    """
    Engine query specification.

    Created per request, mutated by the composition stages and executed by
    a backend client. Retries work on copies so the caller's query is left
    untouched.
    """
    query: Optional[str] = None
    filter_queries: List[str] = field(default_factory=list)
    facet_fields: List[str] = field(default_factory=list)
    facet_prefixes: Dict[str, str] = field(default_factory=dict)
    rows: Optional[int] = None
    sorts: List[SortClause] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)

    def add_filter_query(self, filter_query: str) -> None:
        self.filter_queries.append(filter_query)

    def add_facet_field(self, field_name: str, prefix: Optional[str] = None) -> None:
        """Add a field facet, optionally restricted to values with ``prefix``."""
        if field_name not in self.facet_fields:
            self.facet_fields.append(field_name)
        if prefix is not None:
            self.facet_prefixes[field_name] = prefix

    def get_facet_prefix(self, field_name: str) -> Optional[str]:
        return self.facet_prefixes.get(field_name)

    def add_sort(self, item: str, order: str = "asc") -> None:
        self.sorts.append(SortClause(item, order))

    def set_param(self, name: str, value: Any) -> None:
        self.params[name] = value

    def get_param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def get_bool(self, name: str) -> bool:
        value = self.params.get(name)
        if isinstance(value, str):
            return value.lower() == "true"
        return bool(value)

    def add_param(self, name: str, value: Any) -> None:
        """Append to a multi-valued parameter."""
        current = self.params.setdefault(name, [])
        if not isinstance(current, list):
            current = self.params[name] = [current]
        current.append(value)

    @property
    def alternate_query(self) -> Optional[str]:
        return self.params.get("q.alt")

    @alternate_query.setter
    def alternate_query(self, value: Optional[str]) -> None:
        if value is None:
            self.params.pop("q.alt", None)
        else:
            self.params["q.alt"] = value

    @property
    def fetches_rows(self) -> bool:
        """True unless the query is explicitly facet-only."""
        return self.rows is None or self.rows > 0

    def copy(self) -> "StructuredQuery":
        return copy.deepcopy(self)

    def to_params(self) -> List[Tuple[str, str]]:
        """Flatten into Solr request parameters."""
        params: List[Tuple[str, str]] = []
        if self.query is not None:
            params.append(("q", self.query))
        for fq in self.filter_queries:
            params.append(("fq", fq))
        if self.facet_fields:
            if "facet" not in self.params:
                params.append(("facet", "true"))
            for name in self.facet_fields:
                params.append(("facet.field", name))
        for name, prefix in self.facet_prefixes.items():
            params.append((f"f.{name}.facet.prefix", prefix))
        if self.rows is not None:
            params.append(("rows", str(self.rows)))
        if self.sorts:
            params.append(("sort", ",".join(str(s) for s in self.sorts)))
        if self.fields:
            params.append(("fl", ",".join(self.fields)))
        for name, value in self.params.items():
            values = value if isinstance(value, list) else [value]
            for item in values:
                params.append((name, _format_value(item)))
        return params


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
