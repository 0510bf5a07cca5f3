"""
Rules - Facet Metadata

Facet definitions from the catalog/rule store and the provider that answers
display-name, UI, blacklist and range questions for the facet assembler.
"""

from typing import Dict, Iterable, List, Literal, Optional, Sequence, Set

from pydantic import BaseModel, Field

from catalog_search.backend.query import FilterQuery, StructuredQuery


class RangeConfig(BaseModel):
    """Range bucket configuration for a range facet."""
    start: int = 0
    end: int
    gap: int = Field(gt=0)
    hardened: bool = False


class FacetDefinition(BaseModel):
    """Per-field facet definition."""
    field: str
    name: Optional[str] = None
    type: Literal["field", "range", "query"] = "field"
    ui_type: Optional[str] = None
    multi_select: bool = False
    mixed_sorting: bool = False
    min_buckets: int = 2
    limit: Optional[int] = None
    min_count: int = 1
    sort: Optional[Literal["count", "index"]] = None
    blacklist: Set[str] = Field(default_factory=set)
    range: Optional[RangeConfig] = None
    queries: List[str] = Field(default_factory=list)


class FacetMetadataProvider:
    """Looks up facet metadata for the facets a rule context declares."""

    def __init__(self, definitions: Sequence[FacetDefinition] = ()):
        self._definitions: Dict[str, FacetDefinition] = {}
        for definition in definitions:
            self._definitions.setdefault(definition.field, definition)

    def facet_field_names(self) -> List[str]:
        """Declared facet fields in display order."""
        return list(self._definitions)

    def get_facet_name(self, field_name: str) -> str:
        definition = self._definitions.get(field_name)
        if definition is not None and definition.name:
            return definition.name
        return field_name[:1].upper() + field_name[1:]

    def get_ui_type(self, field_name: str) -> Optional[str]:
        definition = self._definitions.get(field_name)
        return definition.ui_type if definition else None

    def is_multi_select(self, field_name: str) -> bool:
        definition = self._definitions.get(field_name)
        return bool(definition and definition.multi_select)

    def is_mixed_sorting(self, field_name: str) -> bool:
        definition = self._definitions.get(field_name)
        return bool(definition and definition.mixed_sorting)

    def get_min_buckets(self, field_name: str) -> int:
        definition = self._definitions.get(field_name)
        return definition.min_buckets if definition else 2

    def get_blacklist(self, field_name: str) -> Set[str]:
        definition = self._definitions.get(field_name)
        return set(definition.blacklist) if definition else set()

    def get_range_config(self, field_name: str) -> Optional[RangeConfig]:
        definition = self._definitions.get(field_name)
        return definition.range if definition else None

    def get_count_path(
        self,
        field_name: str,
        filter_query: str,
        active_filters: Iterable[FilterQuery],
    ) -> List[str]:
        """
        Filter queries needed to apply ``filter_query`` on top of the active ones.

        Single-select facets replace any active value of the same field;
        multi-select facets keep them.
        """
        multi_select = self.is_multi_select(field_name)
        path = []
        for active in active_filters:
            expression = str(active)
            if expression == filter_query:
                continue
            if active.field_name == field_name and not multi_select:
                continue
            path.append(expression)
        path.append(filter_query)
        return path

    def tag_filter(self, active: FilterQuery) -> str:
        """Filter expression, tagged for exclusion when its facet is multi-select."""
        if self.is_multi_select(active.field_name):
            return f"{{!tag={active.field_name}}}{active}"
        return str(active)

    def apply_params(self, query: StructuredQuery) -> None:
        """Install facet parameters for every declared facet."""
        if not self._definitions:
            return
        query.set_param("facet", True)

        for definition in self._definitions.values():
            name = definition.field
            exclude = f"{{!ex={name}}}" if definition.multi_select else ""

            if definition.type == "field":
                if exclude:
                    query.add_param("facet.field", f"{exclude}{name}")
                else:
                    query.add_facet_field(name)
                if definition.limit is not None:
                    query.set_param(f"f.{name}.facet.limit", definition.limit)
                query.set_param(f"f.{name}.facet.mincount", definition.min_count)
                if definition.sort:
                    query.set_param(f"f.{name}.facet.sort", definition.sort)
            elif definition.type == "range" and definition.range is not None:
                config = definition.range
                query.add_param("facet.range", f"{exclude}{name}")
                query.set_param(f"f.{name}.facet.range.start", config.start)
                query.set_param(f"f.{name}.facet.range.end", config.end)
                query.set_param(f"f.{name}.facet.range.gap", config.gap)
                query.set_param(f"f.{name}.facet.range.hardend", config.hardened)
                query.set_param(f"f.{name}.facet.range.other", ["before", "after"])
            elif definition.type == "query":
                for expression in definition.queries:
                    query.add_param("facet.query", f"{exclude}{name}:{expression}")
