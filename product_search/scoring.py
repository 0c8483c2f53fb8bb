"""Hard filtering and additive term scoring over an in-memory catalog."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from .filters import ScoredCandidate, StructuredFilter
from .models import ProductRecord

logger = logging.getLogger(__name__)

ID_EXACT_BONUS = 1000
ID_PARTIAL_BONUS = 500
NAME_HIT_WEIGHT = 5
DESCRIPTION_HIT_WEIGHT = 3


def _id_score(record: ProductRecord, id_match: str) -> Optional[int]:
    if record.id == id_match:
        return ID_EXACT_BONUS
    if id_match in record.id:
        return ID_PARTIAL_BONUS
    return None


def passes_hard_filters(record: ProductRecord, flt: StructuredFilter) -> bool:
    """Check only the id and price predicates, ignoring keyword terms."""

    if not record.id:
        return False
    if flt.id_match is not None and _id_score(record, flt.id_match) is None:
        return False
    if flt.price is not None and not flt.price.matches(record.price):
        return False
    return True


def match_score(record: ProductRecord, flt: StructuredFilter) -> Optional[int]:
    """Score ``record`` against ``flt``; ``None`` means the record is excluded.

    Predicates are applied in order (id, price, keyword terms) and all of
    them must hold. A keyword found in both name and description earns both
    weights.
    """

    if not record.id:
        return None

    score = 0
    if flt.id_match is not None:
        id_bonus = _id_score(record, flt.id_match)
        if id_bonus is None:
            return None
        score += id_bonus

    if flt.price is not None and not flt.price.matches(record.price):
        return None

    if flt.keyword_terms:
        name = (record.name or "").lower()
        description = (record.description or "").lower()
        for term in flt.keyword_terms:
            in_name = term in name
            in_description = term in description
            if not in_name and not in_description:
                return None
            if in_name:
                score += NAME_HIT_WEIGHT
            if in_description:
                score += DESCRIPTION_HIT_WEIGHT
    return score


def score_products(catalog: Iterable[ProductRecord], flt: StructuredFilter) -> List[ScoredCandidate]:
    scored: List[ScoredCandidate] = []
    for record in catalog:
        score = match_score(record, flt)
        if score is not None:
            scored.append(ScoredCandidate(record=record, score=score))
    return scored


def default_order_key(candidate: ScoredCandidate) -> Tuple[int, bool, float, str]:
    # score desc, priced before unpriced, price asc, name asc
    price = candidate.record.price
    return (-candidate.score, price is None, price if price is not None else 0.0, candidate.record.name)


def rank_products(catalog: Iterable[ProductRecord], flt: StructuredFilter) -> List[ProductRecord]:
    """Return the records surviving ``flt`` in default relevance order."""

    scored = sorted(score_products(catalog, flt), key=default_order_key)
    logger.debug("rank_products matched=%s filter=%s", len(scored), flt)
    return [candidate.record for candidate in scored]
