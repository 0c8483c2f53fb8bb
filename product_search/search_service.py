"""Catalog-backed search service with response caching and timing logs."""
from __future__ import annotations

import logging
import threading
from functools import lru_cache
from time import perf_counter
from typing import Any, Dict, Optional, Sequence, Tuple

from .cache import CacheBackend, get_cache, hash_query
from .catalog import load_catalog
from .config import settings
from .filters import Refinement, SearchPage, SortKey
from .fuzzy import CandidateMatcher, FuzzyMatcher
from .intent import format_query
from .models import FacetsResult, ParsedQueryResult, PriceRange, ProductRecord, SearchResponse
from .ranking import coerce_sort_key
from .search import evaluate, fuzzy_query

logger = logging.getLogger(__name__)


def build_response(query: str, page: SearchPage, took_ms: float) -> SearchResponse:
    parsed = page.parsed
    flt = parsed.filter
    facets = page.facets
    price_range = None
    if facets.min_price is not None and facets.max_price is not None:
        price_range = PriceRange(min=facets.min_price, max=facets.max_price)
    return SearchResponse(
        query=query,
        items=list(page.items),
        totalResults=page.total_results,
        currentPage=page.current_page,
        pageSize=page.page_size,
        hasMore=page.has_more,
        parsed=ParsedQueryResult(
            searchTerm=parsed.residual_search_term,
            idMatch=flt.id_match,
            price=flt.price.describe() if flt.price else None,
            keywords=list(flt.keyword_terms),
            brand=flt.brand,
            category=flt.category,
            sortBy=flt.sort_directive.value if flt.sort_directive else None,
            confidence=parsed.confidence,
            formatted=format_query(parsed),
        ),
        facets=FacetsResult(
            brands=list(facets.brands),
            categories=list(facets.categories),
            priceRange=price_range,
        ),
        took_ms=took_ms,
    )


class SearchService:
    """Holds the current catalog snapshot and answers queries against it.

    The catalog and its version number live in one tuple that is swapped in a
    single assignment, so a search always pairs a catalog with its own version
    and never caches old results under a new cache key.
    """

    def __init__(
        self,
        catalog: Sequence[ProductRecord] = (),
        cache: Optional[CacheBackend] = None,
        matcher: Optional[CandidateMatcher] = None,
        cache_ttl: int = settings.cache_ttl_seconds,
    ) -> None:
        self._snapshot: Tuple[Tuple[ProductRecord, ...], int] = (tuple(catalog), 0)
        self._lock = threading.Lock()
        self.cache = cache
        self.matcher = matcher
        self.cache_ttl = cache_ttl

    @property
    def catalog(self) -> Tuple[ProductRecord, ...]:
        return self._snapshot[0]

    @property
    def version(self) -> int:
        return self._snapshot[1]

    def replace_catalog(self, catalog: Sequence[ProductRecord]) -> int:
        records = tuple(catalog)
        with self._lock:
            version = self._snapshot[1] + 1
            self._snapshot = (records, version)
        if self.cache is not None:
            self.cache.clear()
        logger.info("Catalog replaced: %s products (version %s)", len(records), version)
        return len(records)

    def reload(self, path: str | None = None) -> int:
        catalog = load_catalog(path or settings.catalog_path, settings.catalog_source_url)
        return self.replace_catalog(catalog)

    def search(
        self,
        query: str,
        sort: SortKey | str | None = None,
        page: int = 1,
        page_size: int | None = None,
        brand: str | None = None,
        category: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> Dict[str, Any]:
        query = query or ""
        sort_key = coerce_sort_key(sort)
        size = min(page_size or settings.page_size, settings.max_page_size)
        refinement = Refinement(brand=brand, category=category, min_price=min_price, max_price=max_price)
        catalog, version = self._snapshot
        cache_key = hash_query(
            version,
            query,
            sort_key.value if sort_key else "",
            page,
            size,
            refinement.brand or "",
            refinement.category or "",
            refinement.min_price,
            refinement.max_price,
        )

        cache_start = perf_counter()
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                total_ms = (perf_counter() - cache_start) * 1000
                logger.info(
                    "timing: total=%.2fms cache_hit=1 q=%r total_results=%s",
                    total_ms,
                    query,
                    cached.get("totalResults"),
                )
                return cached

        t0 = perf_counter()
        result = evaluate(
            catalog,
            query,
            sort_key=sort_key,
            page=page,
            page_size=size,
            matcher=self.matcher,
            apply_sort_intent=settings.apply_sort_intent,
            refinement=refinement,
        )
        t1 = perf_counter()
        response = build_response(query, result, (t1 - t0) * 1000).model_dump(mode="json")
        t2 = perf_counter()

        logger.info(
            "timing: total=%.2fms evaluate=%.2fms serialize=%.2fms q=%r fuzzy=%r results=%s page=%s",
            (t2 - t0) * 1000,
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
            query,
            fuzzy_query(result.parsed),
            result.total_results,
            result.current_page,
        )
        if self.cache is not None:
            self.cache.set(cache_key, response, self.cache_ttl)
            logger.debug("cache_store q=%r ttl=%s", query, self.cache_ttl)
        return response


@lru_cache(maxsize=1)
def get_service() -> SearchService:
    cache: Optional[CacheBackend] = get_cache() if settings.cache_enabled else None
    return SearchService(cache=cache, matcher=FuzzyMatcher(threshold=settings.fuzzy_threshold))
