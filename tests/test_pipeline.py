"""
Unit Tests for Pipeline Module
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from catalog_search.backend.query import FilterQuery, StructuredQuery
from catalog_search.backend.result import (
    FacetCount,
    FieldFacetResult,
    RangeFacetResult,
    ResultSet,
)
from catalog_search.pipeline.category_graph import build_category_graph
from catalog_search.pipeline.facet_assembler import FacetAssembler, Filter, truncate_decimals
from catalog_search.pipeline.query_composer import QueryComposer, WireParams
from catalog_search.pipeline.response import SearchResponse
from catalog_search.pipeline.result_fetcher import ResultFetcher
from catalog_search.pipeline.spell_correction import (
    CorrectionState,
    retry_query,
    transition,
)
from catalog_search.rules.facet_metadata import (
    FacetDefinition,
    FacetMetadataProvider,
    RangeConfig,
)
from catalog_search.schemas.browse import SearchRequestOptions


def _counts(*pairs):
    return [FacetCount(value=value, count=count) for value, count in pairs]


def _path_filters(*paths):
    return [Filter(name=p, count=1, filter_query=f"categoryPath:{p}", filter_queries=[]) for p in paths]


class TestQueryComposer:
    """Tests for QueryComposer."""

    def test_category_browse(self):
        options = SearchRequestOptions(category_id="1.bcs", category_path="1.bcs", catalog_id="1")

        query = QueryComposer().compose(options, StructuredQuery(), "en_US")

        assert query.query == ""
        assert query.alternate_query == "(categoryPath:1.bcs)"
        assert query.rows is None

    def test_category_without_path_uses_catalog_root(self):
        """Without an explicit path the catalog root is browsed."""
        options = SearchRequestOptions(category_id="1.bcs", catalog_id="1")

        query = QueryComposer().compose(options, StructuredQuery(), "en_US")

        assert query.alternate_query == "(categoryPath:1.)"

    def test_brand_category_on_sale(self):
        options = SearchRequestOptions(
            category_id="1.bcs",
            category_path="1.bcs",
            brand_id="42",
            on_sale=True,
            catalog_id="1",
        )

        query = QueryComposer().compose(options, StructuredQuery(), "en_US")

        assert query.alternate_query == "(categoryPath:1.bcs AND brandId:42 AND onsaleUS:true)"

    def test_brand_browse_adds_category_graph_facet(self):
        options = SearchRequestOptions(brand_id="42", catalog_id="1")

        query = QueryComposer().compose(options, StructuredQuery(), "en_US")

        assert "categoryPath" in query.facet_fields
        assert query.get_facet_prefix("categoryPath") == "1."
        assert query.get_param("f.categoryPath.facet.limit") == 100

    def test_rule_based_page(self):
        options = SearchRequestOptions(category_id="summer", rule_based_page=True, catalog_id="1")

        query = QueryComposer().compose(options, StructuredQuery(), "en_US", "season:summer")

        assert query.query == "*:*"
        assert query.filter_queries == ["season:summer"]
        assert query.alternate_query is None

    def test_facet_only(self):
        options = SearchRequestOptions(category_id="1.bcs", fetch_products=False, catalog_id="1")

        query = QueryComposer().compose(options, StructuredQuery(), "en_US")

        assert query.rows == 0
        assert not query.fetches_rows


class TestWireParams:
    """Tests for grouping and field list parameters."""

    def test_group_sort_tie_break(self):
        query = StructuredQuery()

        WireParams("catalogPreview").set_group_params(query, "en_US")

        assert query.get_param("group") is True
        assert query.get_param("group.field") == "productId"
        assert query.get_param("group.limit") == 50
        assert query.get_param("group.sort") == "isCloseout asc, salePriceUS asc, sort asc, score desc"

    def test_no_tie_break_for_explicit_sort(self):
        query = StructuredQuery()
        query.add_sort("salePriceUS", "desc")

        WireParams("catalogPreview").set_group_params(query, "en_US")

        assert query.get_param("group.sort") is None

    def test_group_sorting_disabled(self):
        query = StructuredQuery()

        WireParams("catalogPreview", group_sorting_enabled=False).set_group_params(query, "en_US")

        assert query.get_param("group") is True
        assert query.get_param("group.sort") is None

    def test_evaluation_field_list(self):
        query = StructuredQuery(fields=["id"])

        WireParams("catalogEvaluation").set_field_list_params(query, "en_US", "1")

        assert query.fields[-1] == "score"
        assert "salePriceUS" in query.fields
        assert "freeGift1" in query.fields

    def test_caller_field_list_kept(self):
        query = StructuredQuery(fields=["id"])

        WireParams("catalogPreview").set_field_list_params(query, "en_US", "1")

        assert query.fields == ["id"]
        assert query.get_param("groupcollapse") is True
        assert query.get_param("groupcollapse.fl").startswith("listPriceUS,salePriceUS")


class TestSpellCorrection:
    """Tests for the spell-correction state machine."""

    def test_results_finish(self):
        assert transition(CorrectionState.INITIAL, False, "jacket", None) is CorrectionState.DONE

    def test_suggestion_retries_match_all(self):
        state = transition(CorrectionState.INITIAL, True, "jakcet", "jacket")

        assert state is CorrectionState.RETRY_MATCH_ALL

    def test_no_suggestion_retries_match_any(self):
        state = transition(CorrectionState.INITIAL, True, "red jacket", None)

        assert state is CorrectionState.RETRY_MATCH_ANY

    def test_blank_query_never_retries(self):
        assert transition(CorrectionState.INITIAL, True, "  ", "jacket") is CorrectionState.DONE

    def test_bounded(self):
        state = transition(CorrectionState.RETRY_MATCH_ALL, True, "jakcet", "jacket")
        assert state is CorrectionState.RETRY_MATCH_ANY

        state = transition(state, True, "jakcet", "jacket")
        assert state is CorrectionState.DONE

    def test_retry_query_is_a_copy(self):
        query = StructuredQuery(query="jakcet")

        attempt = retry_query(query, CorrectionState.RETRY_MATCH_ANY, "jacket", "2<-1")

        assert attempt.query == "jacket"
        assert attempt.get_param("q.op") == "OR"
        assert attempt.get_param("mm") == "2<-1"
        assert query.query == "jakcet"
        assert query.params == {}


class TestResultFetcher:
    """Tests for ResultFetcher."""

    EMPTY = ResultSet(groups={"productId": 0}, spelling_suggestion="jacket")
    FOUND = ResultSet(groups={"productId": 4})

    def _client(self, *results):
        client = MagicMock()
        client.execute = AsyncMock(side_effect=list(results))
        return client

    @pytest.mark.asyncio
    async def test_no_retry_on_results(self):
        client = self._client(self.FOUND)

        outcome = await ResultFetcher("2<-1").fetch(client, StructuredQuery(query="jacket"))

        assert outcome.result is self.FOUND
        assert outcome.correction is None
        assert client.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_match_all_retry(self):
        client = self._client(self.EMPTY, self.FOUND)
        query = StructuredQuery(query="jakcet")

        outcome = await ResultFetcher("2<-1").fetch(client, query)

        retried = client.execute.await_args_list[1].args[0]
        assert retried.query == "jacket"
        assert retried.get_param("q.op") is None
        assert outcome.correction.term == "jacket"
        assert outcome.correction.matches_all is True
        assert query.query == "jakcet"

    @pytest.mark.asyncio
    async def test_match_any_retry(self):
        client = self._client(self.EMPTY, ResultSet(groups={"productId": 0}), self.FOUND)

        outcome = await ResultFetcher("2<-1").fetch(client, StructuredQuery(query="jakcet"))

        retried = client.execute.await_args_list[2].args[0]
        assert retried.get_param("q.op") == "OR"
        assert retried.get_param("mm") == "2<-1"
        assert outcome.correction.term == "jacket"
        assert outcome.correction.matches_all is False
        assert outcome.executions == 3

    @pytest.mark.asyncio
    async def test_at_most_two_retries(self):
        empty = ResultSet(groups={"productId": 0})
        client = self._client(self.EMPTY, empty, empty)

        outcome = await ResultFetcher("2<-1").fetch(client, StructuredQuery(query="jakcet"))

        assert client.execute.await_count == 3
        assert outcome.correction is None
        assert outcome.result is self.EMPTY

    @pytest.mark.asyncio
    async def test_facet_only_not_retried(self):
        client = self._client(self.EMPTY)

        outcome = await ResultFetcher("2<-1").fetch(client, StructuredQuery(query="jakcet", rows=0))

        assert client.execute.await_count == 1
        assert outcome.correction is None

    @pytest.mark.asyncio
    async def test_match_any_retry_without_suggestion(self):
        """No suggestion: the OR retry reuses the caller's text."""
        client = self._client(ResultSet(groups={"productId": 0}), self.FOUND)
        query = StructuredQuery(query="red wool jacket")

        outcome = await ResultFetcher("2<-1").fetch(client, query)

        retried = client.execute.await_args_list[1].args[0]
        assert client.execute.await_count == 2
        assert retried.query == "red wool jacket"
        assert retried.get_param("q.op") == "OR"
        assert retried.get_param("mm") == "2<-1"
        assert outcome.result is self.FOUND
        assert outcome.correction.term == "red wool jacket"
        assert outcome.correction.matches_all is False
        assert query.get_param("q.op") is None


class TestFacetAssembler:
    """Tests for FacetAssembler."""

    def test_blacklist_and_escaping(self):
        metadata = FacetMetadataProvider([FacetDefinition(field="brand", blacklist={"Acme"})])
        result = ResultSet(field_facets=[
            FieldFacetResult("brand", _counts(("Acme", 3), ("The North Face", 5))),
        ])

        facets = FacetAssembler(metadata).assemble(result)

        assert [f.name for f in facets[0].filters] == ["The North Face"]
        assert facets[0].filters[0].filter_query == r"brand:The\ North\ Face"

    def test_all_blacklisted_still_emitted(self):
        """A facet whose values are all blacklisted is kept with no filters."""
        metadata = FacetMetadataProvider([FacetDefinition(field="brand", blacklist={"Acme"})])
        result = ResultSet(field_facets=[FieldFacetResult("brand", _counts(("Acme", 3)))])

        facets = FacetAssembler(metadata).assemble(result)

        assert len(facets) == 1
        assert facets[0].filters == []

    def test_empty_facet_omitted(self):
        metadata = FacetMetadataProvider([FacetDefinition(field="size")])
        result = ResultSet(field_facets=[FieldFacetResult("size", [])])

        assert FacetAssembler(metadata).assemble(result) == []

    def test_selection_and_filter_queries(self):
        metadata = FacetMetadataProvider([FacetDefinition(field="brand", multi_select=True)])
        active = [FilterQuery("brand", "Patagonia")]
        result = ResultSet(field_facets=[
            FieldFacetResult("brand", _counts(("Patagonia", 2), ("Arcteryx", 1))),
        ])

        facet = FacetAssembler(metadata, active).assemble(result)[0]

        assert facet.multi_select
        assert [f.selected for f in facet.filters] == [True, False]
        assert facet.filters[1].filter_queries == ["brand:Patagonia", "brand:Arcteryx"]

    def test_ordering(self):
        metadata = FacetMetadataProvider([
            FacetDefinition(field="color"),
            FacetDefinition(field="brand"),
        ])
        result = ResultSet(field_facets=[
            FieldFacetResult("brand", _counts(("Patagonia", 2))),
            FieldFacetResult("material", _counts(("wool", 2))),
            FieldFacetResult("color", _counts(("red", 2))),
            FieldFacetResult("category", _counts(("Jackets", 2))),
        ])

        facets = FacetAssembler(metadata).assemble(result)

        assert [f.field for f in facets] == ["category", "color", "brand"]

    def test_category_path_keeps_prefix(self):
        """Facet prefixes are stripped from names except on category paths."""
        query = StructuredQuery()
        query.add_facet_field("categoryPath", prefix="1.")
        query.add_facet_field("brand", prefix="b_")
        metadata = FacetMetadataProvider([FacetDefinition(field="brand")])
        result = ResultSet(field_facets=[
            FieldFacetResult("categoryPath", _counts(("1.bcs", 2))),
            FieldFacetResult("brand", _counts(("b_Patagonia", 2))),
        ])

        facets = FacetAssembler(metadata, query=query).assemble(result)

        assert facets[0].filters[0].name == "1.bcs"
        assert facets[1].filters[0].name == "Patagonia"

    def test_range_buckets(self):
        metadata = FacetMetadataProvider([FacetDefinition(
            field="salePriceUS",
            type="range",
            range=RangeConfig(start=10, end=200, gap=50),
        )])
        result = ResultSet(range_facets=[RangeFacetResult(
            name="salePriceUS",
            counts=_counts(("10.0", 4), ("60.0", 3), ("119.95", 2)),
            before=1,
            after=2,
        )])

        facet = FacetAssembler(metadata).assemble(result)[0]

        assert [f.name for f in facet.filters] == [
            "Under 10",
            "10 - 60",
            "60 - 119",
            "119 - 169",
            "200 and above",
        ]
        assert facet.filters[1].filter_query == "salePriceUS:[10 TO 60]"
        assert facet.filters[1].count == 4

    def test_hardened_range_ends_at_config_end(self):
        metadata = FacetMetadataProvider([FacetDefinition(
            field="salePriceUS",
            type="range",
            range=RangeConfig(start=0, end=150, gap=50, hardened=True),
        )])
        result = ResultSet(range_facets=[RangeFacetResult(
            name="salePriceUS", counts=_counts(("119.95", 2)),
        )])

        facet = FacetAssembler(metadata).assemble(result)[0]

        assert [f.name for f in facet.filters] == ["119 - 150"]

    def test_malformed_range_bound_skipped(self):
        metadata = FacetMetadataProvider([FacetDefinition(
            field="salePriceUS",
            type="range",
            range=RangeConfig(start=0, end=200, gap=50),
        )])
        result = ResultSet(range_facets=[RangeFacetResult(
            name="salePriceUS", counts=_counts(("abc", 1), ("50", 2)),
        )])

        facet = FacetAssembler(metadata).assemble(result)[0]

        assert [f.name for f in facet.filters] == ["50 - 100"]

    def test_infinite_range_bound_skipped(self):
        metadata = FacetMetadataProvider([FacetDefinition(
            field="salePriceUS",
            type="range",
            range=RangeConfig(start=0, end=200, gap=50),
        )])
        result = ResultSet(range_facets=[RangeFacetResult(
            name="salePriceUS", counts=_counts(("0", 1), ("50", 2), ("inf", 1)),
        )])

        facet = FacetAssembler(metadata).assemble(result)[0]

        assert [f.name for f in facet.filters] == ["0 - 50"]

    def test_query_facets(self):
        metadata = FacetMetadataProvider([
            FacetDefinition(field="rating", type="query"),
            FacetDefinition(field="color", type="query"),
        ])
        result = ResultSet(query_facets={
            "{!ex=rating}rating:[4 TO *]": 10,
            "rating:[3 TO *]": 0,
            r"color:navy\ blue": 2,
        })

        facets = FacetAssembler(metadata).assemble(result)

        assert [f.field for f in facets] == ["rating", "color"]
        assert [f.name for f in facets[0].filters] == ["4 and above"]
        assert facets[0].filters[0].filter_query == "rating:[4 TO *]"
        assert facets[1].filters[0].name == "navy blue"

    def test_truncate_decimals(self):
        assert truncate_decimals("119.95") == "119"
        assert truncate_decimals("*") == "*"
        with pytest.raises(ValueError):
            truncate_decimals("abc")
        with pytest.raises(ValueError):
            truncate_decimals("inf")


class TestCategoryGraph:
    """Tests for category graph building."""

    def test_depth_limit(self):
        """Paths with more separators than the limit are pruned."""
        graph = build_category_graph(
            _path_filters("1", "1.bcs", "1.bcs.men", "1.bcs.men.jackets"),
            depth_limit=2,
        )

        assert [n.id for n in graph] == ["1"]
        bcs = graph[0].children[0]
        assert bcs.name == "bcs"
        assert [n.id for n in bcs.children] == ["1.bcs.men"]
        assert bcs.children[0].children == []

    def test_lookup_returns_children_in_order(self):
        graph = build_category_graph(
            _path_filters("1.bcs", "1.bcs.women", "1.bcs.men"),
            category_id="1.bcs",
        )

        assert [n.name for n in graph] == ["women", "men"]
        assert graph[0].parent.id == "1.bcs"

    def test_leaf_category(self):
        graph = build_category_graph(
            _path_filters("1.bcs", "1.bcs.men"),
            category_id="1.bcs.men",
        )

        assert graph == []

    def test_unknown_category(self):
        assert build_category_graph(_path_filters("1.bcs"), category_id="2.x") == []

    def test_counts(self):
        filters = [
            Filter(name="1.bcs", count=7, filter_query="categoryPath:1.bcs", filter_queries=[]),
            Filter(name="1.bcs.men", count=3, filter_query="categoryPath:1.bcs.men", filter_queries=[]),
        ]

        graph = build_category_graph(filters, category_id="1")

        assert graph[0].count == 7
        assert graph[0].children[0].count == 3


class TestSearchResponse:
    """Tests for SearchResponse."""

    def test_extract_category_graph_removes_facet(self):
        metadata = FacetMetadataProvider()
        result = ResultSet(field_facets=[
            FieldFacetResult("category", _counts(("Jackets", 2))),
            FieldFacetResult("categoryPath", _counts(("1.bcs", 2), ("1.bcs.men", 1))),
        ])
        response = SearchResponse(
            query=StructuredQuery(),
            result=result,
            facets=FacetAssembler(metadata).assemble(result),
        )

        graph = response.extract_category_graph("categoryPath", "1.bcs", 0, ".")

        assert [f.field for f in response.facets] == ["category"]
        assert [n.id for n in graph] == ["1.bcs.men"]
        assert response.category_graph is graph

    def test_redirect(self):
        response = SearchResponse.redirect(StructuredQuery(), "/gift-cards")

        assert response.is_redirect
        assert response.facets == []
