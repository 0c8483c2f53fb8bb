"""Query evaluation pipeline: parse, match, merge, sort and paginate.

The two parsers are layered. The strict ``id:``/``price:`` grammar runs first
on the raw text; the heuristic parser then reads whatever the grammar left
over. The exact-match filter takes the id and price from the grammar (falling
back to a heuristic price phrase such as "under $300"), and the heuristic
keywords drive the optional fuzzy candidate source.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .filters import ParsedQuery, Refinement, SearchPage, SortIntent, SortKey, StructuredFilter
from .fuzzy import CandidateMatcher
from .intent import extract_keywords, parse_intent, remove_phrases
from .lexical import parse_filters
from .models import ProductRecord
from .ranking import coerce_sort_key, merge_results, paginate, sort_results, summarize_facets
from .rules import STOPWORDS
from .scoring import passes_hard_filters, rank_products

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

PRICE_SORT_INTENTS: Dict[SortIntent, SortKey] = {
    SortIntent.PRICE_LOW: SortKey.PRICE_ASC,
    SortIntent.PRICE_HIGH: SortKey.PRICE_DESC,
}


def _part_of_token(phrase: str, *values: Optional[str]) -> bool:
    # "hot" in "hot wheels" names the brand, not a sort order.
    return any(value and phrase in value for value in values)


def interpret_query(query_text: str) -> ParsedQuery:
    """Combine the lexical and heuristic parses into one :class:`ParsedQuery`.

    An adopted heuristic price phrase and any recognized sort phrase ("best
    rated", "cheapest") are taken out of the exact keyword terms, and so are
    stopwords. Every other leftover word, brand and category text included,
    must still match.
    """

    lexical = parse_filters(query_text)
    intent = parse_intent(lexical.residual_search_term)
    hint = intent.filter

    price = lexical.filter.price
    lifted: List[Optional[str]] = []
    if price is None and hint.price is not None:
        price = hint.price
        lifted.append(intent.price_phrase)
    if intent.sort_phrase and not _part_of_token(intent.sort_phrase, hint.brand, hint.category):
        lifted.append(intent.sort_phrase)

    terms = lexical.filter.keyword_terms
    if lifted:
        terms = tuple(remove_phrases(lexical.residual_search_term, lifted).split())
    terms = tuple(term for term in terms if term not in STOPWORDS)

    return replace(
        intent,
        filter=StructuredFilter(
            id_match=lexical.filter.id_match,
            price=price,
            keyword_terms=terms,
            brand=hint.brand,
            category=hint.category,
            sort_directive=hint.sort_directive,
        ),
    )


def fuzzy_query(parsed: ParsedQuery) -> str:
    """Text handed to the fuzzy source: heuristic keywords, else brand and category."""

    keywords = extract_keywords(parsed.residual_search_term)
    if not keywords:
        keywords = [value for value in (parsed.filter.brand, parsed.filter.category) if value]
    return " ".join(keywords)


def _fuzzy_candidates(
    matcher: Optional[CandidateMatcher],
    parsed: ParsedQuery,
    catalog: tuple[ProductRecord, ...],
) -> List[ProductRecord]:
    # Id lookups are exact by nature; approximate hits would only dilute them.
    if matcher is None or parsed.filter.id_match is not None:
        return []
    query = fuzzy_query(parsed)
    if not query:
        return []
    try:
        candidates = matcher(query, catalog) or []
    except Exception:
        logger.warning("Fuzzy matcher failed for q=%r; using exact matches only", query, exc_info=True)
        return []
    return [record for record, _ in candidates if passes_hard_filters(record, parsed.filter)]


def evaluate(
    catalog: Iterable[ProductRecord],
    query_text: str,
    sort_key: SortKey | str | None = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    matcher: Optional[CandidateMatcher] = None,
    apply_sort_intent: bool = True,
    refinement: Optional[Refinement] = None,
) -> SearchPage:
    """Run one query against a catalog snapshot and return the requested page.

    Exact matches come first in relevance order, followed by any fuzzy
    candidates not already present. An explicit ``sort_key`` replaces that
    order entirely. Without one, a "cheapest"/"most expensive" style intent
    in the query picks the matching price ordering when ``apply_sort_intent``
    is set. No fuzzy source is consulted unless ``matcher`` is given.

    ``refinement`` narrows the catalog before anything is matched, so it
    binds exact and fuzzy results alike and the facets describe what is left.
    """

    snapshot = tuple(catalog)
    if refinement is not None and not refinement.is_empty():
        snapshot = tuple(record for record in snapshot if refinement.matches(record))
    parsed = interpret_query(query_text)

    exact = rank_products(snapshot, parsed.filter)
    fuzzy = _fuzzy_candidates(matcher, parsed, snapshot)
    merged = merge_results(exact, fuzzy)

    key = coerce_sort_key(sort_key)
    if key is None and apply_sort_intent:
        key = PRICE_SORT_INTENTS.get(parsed.filter.sort_directive)
    ordered = sort_results(merged, key)

    result = paginate(ordered, page, page_size)
    logger.debug(
        "evaluate q=%r exact=%s fuzzy=%s total=%s sort=%s page=%s",
        query_text,
        len(exact),
        len(fuzzy),
        len(ordered),
        key.value if key else None,
        result.current_page,
    )
    return replace(result, parsed=parsed, facets=summarize_facets(ordered))
