"""Heuristic intent detection for natural shopping phrases.

``"sony tv between 200 and 300 best rated"`` yields a 200-300 price range, brand
``sony``, category ``tv``, the ``rating`` sort intent, and whatever words are
left over as fuzzy-search keywords. Detection is driven entirely by the ordered
tables in :mod:`product_search.rules`.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .filters import ParsedQuery, PriceOp, PricePredicate, SortIntent, StructuredFilter, format_number
from .rules import (
    BASE_CONFIDENCE,
    BRAND_CONFIDENCE,
    BRAND_RULES,
    CATEGORY_CONFIDENCE,
    CATEGORY_RULES,
    FILLER_PATTERN,
    MAX_CONFIDENCE,
    MAX_KEYWORDS,
    MIN_KEYWORD_LENGTH,
    PRICE_CONFIDENCE,
    PRICE_RULES,
    SORT_CONFIDENCE,
    SORT_RULES,
    STOPWORDS,
    TokenRule,
)

logger = logging.getLogger(__name__)


def _collapse(text: str) -> str:
    return " ".join(text.split())


def extract_price(query: str) -> Tuple[Optional[PricePredicate], Optional[str]]:
    """Return the price predicate of the first matching price phrase and the phrase itself.

    Only the first matching rule counts. A zero bound ("under 0", "0-0") is
    not a price signal and yields nothing.
    """

    for rule in PRICE_RULES:
        match = rule.pattern.search(query)
        if not match:
            continue
        if rule.bound == "range":
            low, high = (float(value) for value in match.groups())
            if not (low or high):
                return None, None
            return PricePredicate.between(low, high), match.group(0)
        value = float(match.group(1))
        if not value:
            return None, None
        op = PriceOp.LE if rule.bound == "max" else PriceOp.GE
        return PricePredicate.comparator(op, value), match.group(0)
    return None, None


def _first_token(query: str, rules: Sequence[TokenRule]) -> Tuple[Optional[str], Optional[TokenRule]]:
    for rule in rules:
        match = rule.pattern.search(query)
        if match:
            return _collapse(match.group(0)), rule
    return None, None


def extract_sort(query: str) -> Tuple[Optional[SortIntent], Optional[str]]:
    for rule in SORT_RULES:
        match = rule.pattern.search(query)
        if match:
            return rule.intent, match.group(0)
    return None, None


def extract_keywords(text: str) -> List[str]:
    words = [
        word
        for word in text.split()
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOPWORDS
    ]
    return words[:MAX_KEYWORDS]


def _strip_phrases(
    query: str,
    brand_rule: Optional[TokenRule],
    category_rule: Optional[TokenRule],
) -> str:
    cleaned = query
    for price_rule in PRICE_RULES:
        cleaned = price_rule.pattern.sub(" ", cleaned)
    for rule in (brand_rule, category_rule):
        if rule is not None:
            cleaned = rule.pattern.sub(" ", cleaned)
    for sort_rule in SORT_RULES:
        cleaned = sort_rule.pattern.sub(" ", cleaned)
    cleaned = FILLER_PATTERN.sub(" ", cleaned)
    return _collapse(cleaned)


def parse_intent(query: str) -> ParsedQuery:
    """Infer price bounds, brand, category and sort intent from free text.

    Confidence grows with every detected signal but is clamped to
    ``MAX_CONFIDENCE`` before it is returned, so callers always see 1.0.
    Downstream checks for a confidence above 1.0 therefore never pass.
    """

    normalized = _collapse((query or "").lower())
    if not normalized:
        return ParsedQuery(filter=StructuredFilter(), confidence=BASE_CONFIDENCE)

    confidence = BASE_CONFIDENCE

    price, price_phrase = extract_price(normalized)
    if price is not None:
        confidence += PRICE_CONFIDENCE

    brand, brand_rule = _first_token(normalized, BRAND_RULES)
    if brand:
        confidence += BRAND_CONFIDENCE

    category, category_rule = _first_token(normalized, CATEGORY_RULES)
    if category:
        confidence += CATEGORY_CONFIDENCE

    sort_intent, sort_phrase = extract_sort(normalized)
    if sort_intent is not None:
        confidence += SORT_CONFIDENCE

    residual = _strip_phrases(normalized, brand_rule, category_rule)
    keywords = extract_keywords(residual)

    parsed = ParsedQuery(
        filter=StructuredFilter(
            price=price,
            keyword_terms=tuple(keywords),
            brand=brand,
            category=category,
            sort_directive=sort_intent,
        ),
        residual_search_term=residual,
        confidence=min(confidence, MAX_CONFIDENCE),
        price_phrase=price_phrase,
        sort_phrase=sort_phrase,
    )
    logger.debug(
        "parse_intent q=%r price=%s brand=%r category=%r sort=%s residual=%r keywords=%s",
        query,
        price.describe() if price else None,
        brand,
        category,
        sort_intent.value if sort_intent else None,
        residual,
        keywords,
    )
    return parsed


def format_query(parsed: ParsedQuery) -> str:
    """Render a parsed query back into its canonical ``key:value`` form."""

    flt = parsed.filter
    parts = [parsed.residual_search_term]
    if flt.brand:
        parts.append(f"brand:{flt.brand}")
    if flt.category:
        parts.append(f"category:{flt.category}")
    price = flt.price
    if price is not None:
        if price.op is PriceOp.RANGE:
            parts.append(f"price:{format_number(price.minimum)}-{format_number(price.maximum)}")
        elif price.op is PriceOp.GE:
            parts.append(f"price:>{format_number(price.value)}")
        elif price.op is PriceOp.LE:
            parts.append(f"price:<{format_number(price.value)}")
        else:
            parts.append(price.describe())
    if flt.sort_directive is not None:
        parts.append(f"sort:{flt.sort_directive.value}")
    return " ".join(part for part in parts if part)


def remove_phrases(text: str, phrases: Sequence[Optional[str]]) -> str:
    """Remove the first occurrence of each phrase from ``text``."""

    for phrase in phrases:
        if phrase:
            text = text.replace(phrase, " ", 1)
    return _collapse(text)
