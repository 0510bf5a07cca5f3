"""
Pipeline - Category Graph

Rebuilds the category tree from the flat category-path facet.
"""

import logging
from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass, field

from catalog_search.pipeline.facet_assembler import Facet, Filter

logger = logging.getLogger(__name__)


@dataclass
class CategoryGraphNode:
    """A category in the graph. ``id`` is the full path up to this node."""
    id: str
    name: str
    count: int = 0
    children: List["CategoryGraphNode"] = field(default_factory=list)
    parent: Optional["CategoryGraphNode"] = field(default=None, repr=False, compare=False)
    _index: Dict[str, "CategoryGraphNode"] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def child(self, node_id: str, name: str) -> "CategoryGraphNode":
        """Existing child with ``node_id``, or a new one appended after its siblings."""
        node = self._index.get(node_id)
        if node is None:
            node = CategoryGraphNode(id=node_id, name=name, parent=self)
            self._index[node_id] = node
            self.children.append(node)
        return node


def exceeds_depth(path: str, depth_limit: int, separator: str) -> bool:
    """True when depth filtering is on and ``path`` is deeper than the limit."""
    if depth_limit <= 0 or not separator or not separator.strip():
        return False
    return path.count(separator) > depth_limit


class CategoryGraphBuilder:
    """Inserts category paths into a tree rooted at an anonymous node."""

    def __init__(self, separator: str = "."):
        self.separator = separator
        self.root = CategoryGraphNode(id="", name="")

    def add_path(self, category_filter: Filter) -> CategoryGraphNode:
        """Insert a filter whose name is a full category path; returns its node."""
        segments = category_filter.name.split(self.separator)
        node = self.root
        for depth, segment in enumerate(segments):
            node_id = self.separator.join(segments[:depth + 1])
            node = node.child(node_id, segment)
        node.count += category_filter.count
        return node

    @property
    def top_level(self) -> List[CategoryGraphNode]:
        return self.root.children

    def search(
        self, category_id: str, node: Optional[CategoryGraphNode] = None
    ) -> Optional[CategoryGraphNode]:
        """Depth-first search for the node with ``category_id``."""
        node = node or self.root
        if node.id == category_id:
            return node
        for child in node.children:
            found = self.search(category_id, child)
            if found is not None:
                return found
        return None


def build_category_graph(
    filters: Iterable[Filter],
    category_id: Optional[str] = None,
    depth_limit: int = 0,
    separator: str = ".",
) -> List[CategoryGraphNode]:
    """
    Build the category graph to display from category-path filters.

    Args:
        filters: Category-path facet filters, names are full paths
        category_id: Category being browsed; None returns the top level
        depth_limit: Paths with more separators than this are pruned (0 = no limit)
        separator: Path separator

    Returns:
        Top-level nodes, or the children of ``category_id`` (empty for leaves)
    """
    builder = CategoryGraphBuilder(separator or ".")

    for category_filter in filters:
        if exceeds_depth(category_filter.name, depth_limit, separator):
            continue
        logger.debug(f"Generating CategoryGraph for path: {category_filter.name}")
        builder.add_path(category_filter)

    if not category_id or not category_id.strip():
        return builder.top_level

    node = builder.search(category_id)
    if node is None:
        logger.debug(f"The CategoryGraph is empty for category: {category_id}. This is expected for leaf categories")
        return []
    return node.children


def find_category_facet(facets: Iterable[Facet], field_name: str) -> Optional[Facet]:
    for facet in facets:
        if facet.field.lower() == field_name.lower():
            return facet
    return None
