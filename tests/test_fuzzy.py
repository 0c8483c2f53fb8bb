"""Tests for the rapidfuzz/metaphone candidate source."""

from product_search.fuzzy import FuzzyMatcher
from product_search.models import ProductRecord


def test_empty_query_or_catalog_gives_nothing(widgets):
    matcher = FuzzyMatcher()

    assert matcher("", widgets) == []
    assert matcher("   ?! ", widgets) == []
    assert matcher("widget", []) == []


def test_typo_still_finds_close_names(widgets):
    candidates = FuzzyMatcher()("widgt", widgets)

    assert [record.id for record, _ in candidates] == ["1", "2"]


def test_unrelated_query_is_rejected(store):
    assert FuzzyMatcher()("zzzz", store) == []


def test_phonetic_spelling_variant(store):
    ids = [record.id for record, _ in FuzzyMatcher()("sonie", store)]

    assert "21" in ids


def test_zero_threshold_accepts_only_perfect_matches(widgets):
    candidates = FuzzyMatcher(threshold=0.0)("widget a", widgets)

    assert [(record.id, score) for record, score in candidates] == [("1", 1.0)]


def test_scores_are_sorted_and_bounded(store):
    candidates = FuzzyMatcher(threshold=1.0)("blue widget", store)
    scores = [score for _, score in candidates]

    assert len(candidates) == len(store)
    assert scores == sorted(scores, reverse=True)
    assert all(0.0 <= score <= 1.0 for score in scores)
    assert candidates[0][0].id == "10"


def test_equal_scores_keep_catalog_order():
    catalog = [ProductRecord(id="x", name="Lamp"), ProductRecord(id="y", name="Lamp")]

    first = FuzzyMatcher()("lamp", catalog)
    second = FuzzyMatcher()("lamp", catalog)

    assert [record.id for record, _ in first] == ["x", "y"]
    assert first == second
