"""
Pipeline - Query Composer

Turns browse options into a structured engine query.
"""

from typing import List, Optional

from catalog_search.backend.connections import locale_country
from catalog_search.backend.query import MATCH_ALL, StructuredQuery
from catalog_search.schemas.browse import SearchRequestOptions

CATEGORY_PATH = "categoryPath"
BRAND_ID = "brandId"


def resolve_category_path(options: SearchRequestOptions) -> str:
    """Explicit category path, or the catalog root ``<catalogId>.``."""
    if options.has_category_path:
        return options.category_path
    return f"{options.catalog_id}."


class QueryComposer:
    """Builds category, brand, on-sale and rule-based browse queries."""

    def compose(
        self,
        options: SearchRequestOptions,
        query: StructuredQuery,
        locale: str,
        rules_filter: Optional[str] = None,
    ) -> StructuredQuery:
        """
        Apply browse options to ``query``.

        Args:
            options: Browse intent
            query: Query to mutate
            locale: Locale key, its country selects the on-sale field
            rules_filter: Page filter for rule-based pages

        Returns:
            The same query, partially built
        """
        category_path = resolve_category_path(options)

        if options.rule_based_page:
            if rules_filter:
                query.add_filter_query(rules_filter)
            query.query = MATCH_ALL
            return query

        if options.adds_category_graph:
            query.add_facet_field(CATEGORY_PATH, prefix=category_path)
            query.set_param(f"f.{CATEGORY_PATH}.facet.limit", options.max_category_results)

        if not options.fetch_products:
            query.rows = 0

        clauses: List[str] = []

        if options.has_category_id:
            clauses.append(f"{CATEGORY_PATH}:{category_path}")
            query.query = ""

        if options.has_brand_id:
            clauses.append(f"{BRAND_ID}:{options.brand_id}")
            query.query = ""

        if options.on_sale:
            clauses.append(f"onsale{locale_country(locale)}:true")

        if clauses:
            query.alternate_query = "(" + " AND ".join(clauses) + ")"

        return query


class WireParams:
    """Grouping, tie-break sort and returned field list sent with every product query."""

    GROUP_FIELD = "productId"
    GROUP_LIMIT = 50

    def __init__(
        self,
        collection: str,
        group_sorting_enabled: bool = True,
        evaluation_collection: str = "catalogEvaluation",
    ):
        self.collection = collection
        self.group_sorting_enabled = group_sorting_enabled
        self.evaluation_collection = evaluation_collection

    @classmethod
    def from_settings(cls, settings) -> "WireParams":
        return cls(
            collection=settings.backend.catalog_collection,
            group_sorting_enabled=settings.search.group_sorting_enabled,
            evaluation_collection=settings.search.evaluation_collection,
        )

    @property
    def is_evaluation(self) -> bool:
        return self.collection.strip().lower() == self.evaluation_collection.lower()

    def set_group_params(self, query: StructuredQuery, locale: str) -> None:
        query.set_param("group", True)
        query.set_param("group.ngroups", True)
        query.set_param("group.limit", self.GROUP_LIMIT)
        query.set_param("group.field", self.GROUP_FIELD)
        query.set_param("group.facet", False)

        if not self.group_sorting_enabled:
            return

        sort_by_score = not query.sorts or any(
            clause.item == "score" for clause in query.sorts
        )
        if sort_by_score:
            # break ties with custom sort field
            query.set_param(
                "group.sort",
                f"isCloseout asc, salePrice{locale_country(locale)} asc, sort asc, score desc",
            )

    def set_field_list_params(self, query: StructuredQuery, locale: str, catalog_id: str) -> None:
        country = locale_country(locale)
        list_price = f"listPrice{country}"
        sale_price = f"salePrice{country}"
        discount_percent = f"discountPercent{country}"
        common = [
            "id", "productId", "title", "brand", "isToos", list_price, sale_price,
            discount_percent, f"url{country}", "reviewAverage", "reviews",
            "isPastSeason", f"freeGift{catalog_id}", "image",
        ]

        if self.is_evaluation:
            query.fields = common + ["score"]
        elif not query.fields:
            query.fields = common + ["isCloseout"]

        query.set_param("groupcollapse", True)
        query.set_param(
            "groupcollapse.fl",
            f"{list_price},{sale_price},{discount_percent},color,colorFamily",
        )
