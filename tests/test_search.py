"""End-to-end tests for query evaluation over an in-memory catalog."""

import pytest

from product_search.filters import PriceOp, Refinement, SortIntent, SortKey
from product_search.fuzzy import FuzzyMatcher
from product_search.models import ProductRecord
from product_search.search import evaluate, fuzzy_query, interpret_query


def _ids(page):
    return [record.id for record in page.items]


def test_price_comparator_query(widgets):
    page = evaluate(widgets, "price:<=60")

    assert _ids(page) == ["2"]
    assert page.total_results == 1
    assert page.has_more is False


def test_id_query(widgets):
    assert _ids(evaluate(widgets, "id:1")) == ["1"]


def test_keyword_with_price_range(widgets):
    page = evaluate(widgets, "widget price:40-120")

    assert _ids(page) == ["2", "1"]
    assert page.total_results == 2


def test_second_page_of_one(widgets):
    page = evaluate(widgets, "widget", page=2, page_size=1)

    assert _ids(page) == ["1"]
    assert page.current_page == 2
    assert page.page_size == 1
    assert page.has_more is False


def test_same_query_twice_gives_same_page(store):
    assert evaluate(store, "widget price:<200") == evaluate(store, "widget price:<200")


def test_empty_query_returns_whole_catalog(store):
    page = evaluate(store, "   ")

    assert _ids(page) == ["3", "2", "1", "21", "10"]
    assert page.total_results == len(store)


def test_duplicate_ids_are_returned_once():
    catalog = [
        ProductRecord(id="7", name="Desk Lamp", price=20),
        ProductRecord(id="7", name="Desk Lamp (copy)", price=20),
    ]

    page = evaluate(catalog, "lamp")

    assert _ids(page) == ["7"]
    assert page.items[0].name == "Desk Lamp"


def test_id_queries_rank_exact_before_substring(store):
    """Exact id first, then substring ids by price with unpriced last."""

    assert _ids(evaluate(store, "id:1")) == ["1", "21", "10"]


def test_price_range_never_matches_unpriced(store):
    assert "10" not in _ids(evaluate(store, "price:0-1000"))


def test_heuristic_price_phrase_filters(widgets):
    page = evaluate(widgets, "widget under 60")

    assert _ids(page) == ["2"]
    assert page.parsed.filter.price.op is PriceOp.LE
    assert page.parsed.filter.keyword_terms == ("widget",)


def test_lexical_price_wins_over_heuristic_phrase(widgets):
    page = evaluate(widgets, "widget price:>60 under 200")

    assert page.parsed.filter.price.op is PriceOp.GT
    # The heuristic phrase is not adopted, so its words stay required.
    assert page.total_results == 0


def test_price_sort_intent_reorders(widgets):
    assert _ids(evaluate(widgets, "most expensive widget")) == ["1", "2"]
    assert _ids(evaluate(widgets, "cheapest widget")) == ["2", "1"]


def test_sort_intent_can_be_disabled(widgets):
    page = evaluate(widgets, "most expensive widget", apply_sort_intent=False)

    assert _ids(page) == ["2", "1"]
    assert page.parsed.filter.sort_directive is SortIntent.PRICE_HIGH


def test_explicit_sort_overrides_relevance(store):
    assert _ids(evaluate(store, "widget", sort_key=SortKey.NAME)) == ["10", "3", "1", "2"]
    assert _ids(evaluate(store, "most expensive widget", sort_key="price_asc")) == ["3", "2", "1", "10"]


def test_unknown_sort_key_keeps_default_order(store):
    assert _ids(evaluate(store, "widget", sort_key="bogus")) == ["10", "2", "1", "3"]


def test_brand_and_category_are_reported_not_enforced(store):
    page = evaluate(store, "sony tv under $700")

    assert _ids(page) == ["21"]
    parsed = page.parsed
    assert parsed.filter.brand == "sony"
    assert parsed.filter.category == "tv"
    assert parsed.filter.keyword_terms == ("sony", "tv")
    assert parsed.filter.sort_directive is SortIntent.PRICE_LOW


def test_facets_cover_all_results_not_just_the_page(store):
    page = evaluate(store, "", page=1, page_size=1)

    assert len(page.items) == 1
    assert page.facets.brands == ("Sony",)
    assert (page.facets.min_price, page.facets.max_price) == (30, 598)


class _StubMatcher:
    def __init__(self, records):
        self.records = records
        self.queries = []

    def __call__(self, query, catalog):
        self.queries.append(query)
        return [(record, 0.5) for record in self.records if record in catalog]


@pytest.fixture
def with_gizmo(widgets):
    return widgets + [ProductRecord(id="3", name="Gizmo", price=30)]


def test_fuzzy_candidates_follow_exact_matches(with_gizmo):
    matcher = _StubMatcher(list(reversed(with_gizmo)))

    page = evaluate(with_gizmo, "widget", matcher=matcher)

    assert _ids(page) == ["2", "1", "3"]
    assert matcher.queries == ["widget"]


def test_fuzzy_candidates_respect_price_filter(with_gizmo):
    matcher = _StubMatcher(with_gizmo)

    assert _ids(evaluate(with_gizmo, "widget price:<=60", matcher=matcher)) == ["2", "3"]


def test_id_queries_skip_fuzzy(with_gizmo):
    matcher = _StubMatcher(with_gizmo)

    assert _ids(evaluate(with_gizmo, "id:2 widget", matcher=matcher)) == ["2"]
    assert matcher.queries == []


def test_failing_matcher_degrades_to_exact_results(widgets, caplog):
    def broken(query, catalog):
        raise RuntimeError("index offline")

    page = evaluate(widgets, "widget", matcher=broken)

    assert _ids(page) == ["2", "1"]
    assert "Fuzzy matcher failed" in caplog.text


def test_real_matcher_recovers_from_typos(widgets):
    assert _ids(evaluate(widgets, "widgt")) == []
    assert _ids(evaluate(widgets, "widgt", matcher=FuzzyMatcher())) == ["1", "2"]


def test_fuzzy_query_uses_heuristic_keywords():
    parsed = interpret_query("looking for the best wireless charger price:<40")

    assert fuzzy_query(parsed) == "wireless charger"
    assert parsed.filter.keyword_terms == ("wireless", "charger")


@pytest.fixture
def tv_aisle():
    return [
        ProductRecord(id="1", name="Widget A", price=100),
        ProductRecord(id="21", name="Sony Bravia TV", description="4K television", price=598, brand="Sony", category="TV"),
    ]


@pytest.mark.parametrize(
    "query",
    ["sony tv best rated", "newest sony tv", "popular sony tv", "cheap tv under $700", "the best sony tv"],
)
def test_natural_phrases_find_products(tv_aisle, query):
    """Sort phrases and stopwords never become required words."""

    page = evaluate(tv_aisle, query, matcher=FuzzyMatcher())

    assert _ids(page) == ["21"]


def test_sort_phrases_are_lifted_from_terms():
    parsed = interpret_query("sony tv best rated")

    assert parsed.filter.keyword_terms == ("sony", "tv")
    assert parsed.filter.sort_directive is SortIntent.RATING


def test_sort_word_inside_a_brand_stays_required():
    parsed = interpret_query("hot wheels cars")

    assert parsed.filter.brand == "hot wheels"
    assert parsed.filter.keyword_terms == ("hot", "wheels", "cars")


def test_fuzzy_falls_back_to_brand_and_category(tv_aisle):
    matcher = _StubMatcher([])

    evaluate(tv_aisle, "sony tv best rated", matcher=matcher)
    evaluate(tv_aisle, "cheap tv under $700", matcher=matcher)

    assert matcher.queries == ["sony tv", "tv"]


def test_refinement_narrows_before_matching(store):
    page = evaluate(store, "", refinement=Refinement(brand="SONY"))

    assert _ids(page) == ["21"]
    assert page.facets.brands == ("Sony",)


def test_refinement_category_and_price_bounds(store):
    assert _ids(evaluate(store, "widget", refinement=Refinement(min_price=40, max_price=100))) == ["2", "1"]
    assert _ids(evaluate(store, "", refinement=Refinement(max_price=30))) == ["3"]
    assert _ids(evaluate(store, "", refinement=Refinement(category="tv"))) == ["21"]
    assert _ids(evaluate(store, "", refinement=Refinement(category="toys"))) == []


def test_refinement_binds_fuzzy_candidates(with_gizmo):
    matcher = _StubMatcher(with_gizmo)

    page = evaluate(with_gizmo, "widget", matcher=matcher, refinement=Refinement(max_price=60))

    assert _ids(page) == ["2", "3"]


def test_empty_refinement_keeps_catalog(store):
    assert _ids(evaluate(store, "", refinement=Refinement())) == _ids(evaluate(store, ""))
