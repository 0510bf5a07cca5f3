"""
Backend - Result Set

Snapshot of a backend response: groups, facet results and spelling suggestion.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field


@dataclass
class FacetCount:
    """One bucket of a field or range facet."""
    value: str
    count: int


@dataclass
class FieldFacetResult:
    """Raw field facet as returned by the backend."""
    name: str
    values: List[FacetCount] = field(default_factory=list)


@dataclass
class RangeFacetResult:
    """Raw range facet as returned by the backend."""
    name: str
    counts: List[FacetCount] = field(default_factory=list)
    start: Optional[str] = None
    end: Optional[str] = None
    gap: Optional[str] = None
    before: Optional[int] = None
    after: Optional[int] = None


@dataclass
class ResultSet:
    """Backend response snapshot."""
    groups: Dict[str, int] = field(default_factory=dict)
    field_facets: List[FieldFacetResult] = field(default_factory=list)
    range_facets: List[RangeFacetResult] = field(default_factory=list)
    query_facets: Dict[str, int] = field(default_factory=dict)
    spelling_suggestion: Optional[str] = None
    execution_time: int = 0
    num_found: int = 0
    documents: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """No group with a positive count (or no documents when ungrouped)."""
        if self.groups:
            return not any(count > 0 for count in self.groups.values())
        return self.num_found == 0

    def field_facet(self, name: str) -> Optional[FieldFacetResult]:
        for facet in self.field_facets:
            if facet.name == name:
                return facet
        return None

    @classmethod
    def from_solr(cls, data: Dict[str, Any]) -> "ResultSet":
        """
        Build a ResultSet from a Solr JSON response (``json.nl=flat``).

        Args:
            data: Decoded response body

        Returns:
            ResultSet
        """
        result = cls(
            execution_time=int(data.get("responseHeader", {}).get("QTime", 0)),
        )

        for group_field, command in (data.get("grouped") or {}).items():
            result.groups[group_field] = int(
                command.get("ngroups", command.get("matches", 0))
            )
            for group in command.get("groups", []):
                result.documents.extend(group.get("doclist", {}).get("docs", []))

        response = data.get("response")
        if response:
            result.num_found = int(response.get("numFound", 0))
            result.documents.extend(response.get("docs", []))

        facet_counts = data.get("facet_counts") or {}
        for name, flat in (facet_counts.get("facet_fields") or {}).items():
            result.field_facets.append(
                FieldFacetResult(name=name, values=_pairs(flat))
            )

        for name, info in (facet_counts.get("facet_ranges") or {}).items():
            result.range_facets.append(RangeFacetResult(
                name=name,
                counts=_pairs(info.get("counts", [])),
                start=_as_str(info.get("start")),
                end=_as_str(info.get("end")),
                gap=_as_str(info.get("gap")),
                before=info.get("before"),
                after=info.get("after"),
            ))

        facet_queries = facet_counts.get("facet_queries") or {}
        if isinstance(facet_queries, list):
            facet_queries = {pair.value: pair.count for pair in _pairs(facet_queries)}
        for key, count in facet_queries.items():
            result.query_facets[key] = int(count)

        result.spelling_suggestion = _collation(data.get("spellcheck"))
        return result


def _pairs(flat: List[Any]) -> List[FacetCount]:
    """Convert ``[v1, c1, v2, c2, ...]`` into FacetCount objects."""
    return [
        FacetCount(value=str(flat[i]), count=int(flat[i + 1]))
        for i in range(0, len(flat) - 1, 2)
    ]


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _collation(spellcheck: Optional[Dict[str, Any]]) -> Optional[str]:
    """Extract the collated suggestion, plain or extended format."""
    if not spellcheck:
        return None
    collations = spellcheck.get("collations") or []
    for i in range(0, len(collations) - 1, 2):
        if collations[i] != "collation":
            continue
        value = collations[i + 1]
        if isinstance(value, dict):
            value = value.get("collationQuery")
        if value and str(value).strip():
            return str(value)
    return None
