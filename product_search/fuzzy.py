"""Approximate candidate source used when exact term matching comes up short.

The pipeline only relies on the :class:`CandidateMatcher` call contract, so
any callable with that shape can be injected. :class:`FuzzyMatcher` is the
default: it compares the query against each product's ``name`` and
``description`` with ``rapidfuzz`` and falls back to double metaphone keys for
misspellings that edit distance alone scores too low.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence, Tuple

from rapidfuzz import fuzz

from .models import ProductRecord
from .phonetics import normalize_text, token_codes

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.4

FuzzyCandidate = Tuple[ProductRecord, float]


class CandidateMatcher(Protocol):
    def __call__(self, query: str, catalog: Sequence[ProductRecord]) -> List[FuzzyCandidate]: ...


def _phonetic_overlap(query_codes: List[List[str]], haystack_codes: set[str]) -> float:
    if not query_codes:
        return 0.0
    hits = sum(1 for codes in query_codes if any(code in haystack_codes for code in codes))
    return hits / len(query_codes)


@dataclass(frozen=True)
class FuzzyMatcher:
    """Rank catalog records by similarity to ``query``.

    ``threshold`` follows the usual fuzzy-search convention: ``0.0`` only
    accepts perfect matches and ``1.0`` accepts everything. A record is a
    candidate when ``1 - similarity <= threshold``. Results are sorted by
    similarity, highest first; equal similarities keep catalog order.
    """

    threshold: float = DEFAULT_THRESHOLD

    def similarity(self, normalized_query: str, query_codes: List[List[str]], record: ProductRecord) -> float:
        haystack = normalize_text(f"{record.name} {record.description}")
        if not haystack:
            return 0.0
        text_score = fuzz.WRatio(normalized_query, haystack) / 100.0
        haystack_codes = {code for codes in token_codes(haystack) for code in codes}
        return max(text_score, _phonetic_overlap(query_codes, haystack_codes))

    def __call__(self, query: str, catalog: Sequence[ProductRecord]) -> List[FuzzyCandidate]:
        normalized_query = normalize_text(query)
        if not normalized_query or not catalog:
            return []
        query_codes = token_codes(normalized_query)

        ranked: List[Tuple[float, int, ProductRecord]] = []
        for position, record in enumerate(catalog):
            score = self.similarity(normalized_query, query_codes, record)
            if 1.0 - score <= self.threshold:
                ranked.append((score, position, record))
        ranked.sort(key=lambda item: (-item[0], item[1]))
        logger.debug(
            "fuzzy q=%r threshold=%s candidates=%s/%s",
            normalized_query,
            self.threshold,
            len(ranked),
            len(catalog),
        )
        return [(record, score) for score, _, record in ranked]
