"""
Pipeline - Facet Assembler

Converts raw field, range and query facet results into display-ready facets
with blacklists, selection state and range bucket names applied.
"""

import logging
import math
import re
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from catalog_search.backend.query import (
    FilterQuery,
    StructuredQuery,
    escape_query_chars,
    unescape_query_chars,
)
from catalog_search.backend.result import RangeFacetResult, ResultSet
from catalog_search.rules.facet_metadata import FacetMetadataProvider, RangeConfig

logger = logging.getLogger(__name__)

CATEGORY_FACETS = ("category", "categoryPath")

RANGE_NAMES = {
    "before": "Under {end}",
    "range": "{start} - {end}",
    "after": "{start} and above",
}

_RANGE_EXPRESSION = re.compile(r"^\[\s*(\S+)\s+TO\s+(\S+)\s*\]$")


@dataclass
class Filter:
    """One selectable value or range of a facet."""
    name: str
    count: int
    filter_query: str
    filter_queries: List[str]
    selected: bool = False


@dataclass
class Facet:
    """Display-ready facet."""
    field: str
    name: str
    metadata: Dict[str, str] = field(default_factory=dict)
    multi_select: bool = False
    mixed_sorting: bool = False
    min_buckets: int = 2
    filters: List[Filter] = field(default_factory=list)


def truncate_decimals(value: str) -> str:
    """
    Drop the decimal part of a numeric boundary (``119.95`` -> ``119``).

    Raises:
        ValueError: if ``value`` is neither a finite number nor ``*``
    """
    value = value.strip()
    if value == "*":
        return value
    if not math.isfinite(float(value)):
        raise ValueError(f"Non-finite range boundary: {value!r}")
    index = value.find(".")
    return value[:index] if index != -1 else value


def range_name(start: str, end: str) -> str:
    if start == "*":
        return RANGE_NAMES["before"].format(start=start, end=end)
    if end == "*":
        return RANGE_NAMES["after"].format(start=start, end=end)
    return RANGE_NAMES["range"].format(start=start, end=end)


def split_query_facet(key: str) -> Optional[Tuple[str, str]]:
    """Split ``{!ex=f}field:expression`` into ``(field, expression)``."""
    parts = [part for part in key.split(":") if part]
    if len(parts) != 2:
        return None
    field_name, expression = parts
    index = field_name.find("}")
    if index != -1:
        field_name = field_name[index + 1:]
    return field_name, expression


class FacetAssembler:
    """Builds the ordered facet list for a search response."""

    def __init__(
        self,
        metadata: FacetMetadataProvider,
        active_filters: Sequence[FilterQuery] = (),
        query: Optional[StructuredQuery] = None,
    ):
        self.metadata = metadata
        self.active_filters = list(active_filters)
        self.query = query

    def assemble(self, result: ResultSet) -> List[Facet]:
        """
        Merge field, range and query facets and order them.

        Category facets come first, then the facets declared by the facet
        metadata, in declaration order.
        """
        facets: Dict[str, Facet] = {}
        self._add_field_facets(result, facets)
        self._add_range_facets(result, facets)
        self._add_query_facets(result, facets)

        ordered: List[Facet] = []
        for field_name in CATEGORY_FACETS:
            if field_name in facets:
                ordered.append(facets.pop(field_name))
        for field_name in self.metadata.facet_field_names():
            if field_name in facets:
                ordered.append(facets.pop(field_name))

        if facets:
            logger.debug(f"Dropping undeclared facets: {list(facets)}")
        return ordered

    def _new_facet(self, field_name: str) -> Facet:
        metadata = {}
        ui_type = self.metadata.get_ui_type(field_name)
        if ui_type and ui_type.strip():
            metadata["uiWidgetType"] = ui_type
        return Facet(
            field=field_name,
            name=self.metadata.get_facet_name(field_name),
            metadata=metadata,
            multi_select=self.metadata.is_multi_select(field_name),
            mixed_sorting=self.metadata.is_mixed_sorting(field_name),
            min_buckets=self.metadata.get_min_buckets(field_name),
        )

    def _is_selected(self, field_name: str, *values: str) -> bool:
        return any(
            active.matches(field_name, value)
            for active in self.active_filters
            for value in values
        )

    def _count_name(self, field_name: str, value: str) -> str:
        """Bucket display name; the facet prefix is stripped except on category paths."""
        prefix = self.query.get_facet_prefix(field_name) if self.query else None
        if prefix and field_name not in CATEGORY_FACETS and value.startswith(prefix):
            return value[len(prefix):]
        return value

    def _add_field_facets(self, result: ResultSet, facets: Dict[str, Facet]) -> None:
        for raw in result.field_facets:
            if not raw.values:
                continue

            facet = self._new_facet(raw.name)
            blacklist = self.metadata.get_blacklist(raw.name)

            for count in raw.values:
                name = self._count_name(raw.name, count.value)
                if name in blacklist:
                    continue
                filter_query = f"{raw.name}:{escape_query_chars(count.value)}"
                facet.filters.append(Filter(
                    name=name,
                    count=count.count,
                    filter_query=filter_query,
                    filter_queries=self.metadata.get_count_path(
                        raw.name, filter_query, self.active_filters
                    ),
                    selected=self._is_selected(raw.name, count.value, name),
                ))
            facets[raw.name] = facet

    def _range_config(self, raw: RangeFacetResult) -> Optional[RangeConfig]:
        config = self.metadata.get_range_config(raw.name)
        if config is not None:
            return config
        try:
            return RangeConfig(
                start=int(float(raw.start)),
                end=int(float(raw.end)),
                gap=int(float(raw.gap)),
            )
        except (TypeError, ValueError):
            logger.error(f"Missing range configuration for {raw.name}")
            return None

    def _add_range_facets(self, result: ResultSet, facets: Dict[str, Facet]) -> None:
        for raw in result.range_facets:
            if not raw.counts and not raw.before and not raw.after:
                continue
            config = self._range_config(raw)
            if config is None:
                continue

            facet = self._new_facet(raw.name)
            filters = facet.filters

            if raw.before:
                before = self._range_filter(raw.name, "*", str(config.start), raw.before)
                if before is not None:
                    filters.append(before)

            prev = None
            for count in raw.counts:
                if prev is not None:
                    bucket = self._range_filter(raw.name, prev.value, count.value, prev.count)
                    if bucket is not None:
                        filters.append(bucket)
                prev = count

            if prev is not None:
                last = self._last_bucket(raw.name, prev.value, prev.count, config)
                if last is not None:
                    filters.append(last)

            if raw.after:
                after = self._range_filter(raw.name, str(config.end), "*", raw.after)
                if after is not None:
                    filters.append(after)

            facets[raw.name] = facet

    def _last_bucket(
        self, field_name: str, lower: str, count: int, config: RangeConfig
    ) -> Optional[Filter]:
        if config.hardened:
            upper = str(config.end)
        else:
            try:
                upper = str(math.floor(float(lower)) + config.gap)
            except (ValueError, OverflowError):
                logger.error(f"Invalid range boundary {lower!r} for fieldName: {field_name}")
                return None
        return self._range_filter(field_name, lower, upper, count)

    def _range_filter(
        self, field_name: str, start: str, end: str, count: int
    ) -> Optional[Filter]:
        try:
            start = truncate_decimals(start)
            end = truncate_decimals(end)
        except ValueError:
            logger.error(f"Invalid range expression for fieldName: {field_name} [{start} TO {end}]")
            return None

        expression = f"[{start} TO {end}]"
        filter_query = f"{field_name}:{expression}"
        return Filter(
            name=range_name(start, end),
            count=count,
            filter_query=filter_query,
            filter_queries=self.metadata.get_count_path(
                field_name, filter_query, self.active_filters
            ),
            selected=self._is_selected(field_name, expression),
        )

    def _add_query_facets(self, result: ResultSet, facets: Dict[str, Facet]) -> None:
        grouped: Dict[str, Facet] = {}

        for key, count in result.query_facets.items():
            if count == 0:
                continue
            parts = split_query_facet(key)
            if parts is None:
                continue
            field_name, expression = parts

            facet = grouped.get(field_name)
            if facet is None:
                facet = grouped[field_name] = self._new_facet(field_name)

            match = _RANGE_EXPRESSION.match(expression)
            if match:
                try:
                    name = range_name(
                        truncate_decimals(match.group(1)),
                        truncate_decimals(match.group(2)),
                    )
                except ValueError:
                    logger.error(f"Invalid range expression for fieldName: {field_name} and expression: {expression}")
                    continue
            else:
                name = expression

            filter_query = f"{field_name}:{expression}"
            facet.filters.append(Filter(
                name=unescape_query_chars(name),
                count=count,
                filter_query=filter_query,
                filter_queries=self.metadata.get_count_path(
                    field_name, filter_query, self.active_filters
                ),
                selected=self._is_selected(field_name, expression),
            ))

        facets.update(grouped)
