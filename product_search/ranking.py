"""Merging, explicit sorting, pagination and facet summaries of ranked results."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .filters import Facets, SearchPage, SortKey
from .models import ProductRecord

logger = logging.getLogger(__name__)


def merge_results(*sources: Iterable[ProductRecord]) -> List[ProductRecord]:
    """Concatenate ``sources`` in order, keeping the first record seen per id."""

    seen: set[str] = set()
    merged: List[ProductRecord] = []
    for source in sources:
        for record in source:
            if record.id in seen:
                continue
            seen.add(record.id)
            merged.append(record)
    return merged


def coerce_sort_key(value: SortKey | str | None) -> Optional[SortKey]:
    if value is None or isinstance(value, SortKey):
        return value
    try:
        return SortKey(str(value).strip().lower())
    except ValueError:
        logger.warning("Ignoring unknown sort key %r", value)
        return None


def _price_ascending(record: ProductRecord) -> tuple:
    return (record.price is None, record.price if record.price is not None else 0.0)


def _price_descending(record: ProductRecord) -> tuple:
    return (record.price is None, -record.price if record.price is not None else 0.0)


SORT_KEYS: Dict[SortKey, Callable[[ProductRecord], object]] = {
    SortKey.NAME: lambda record: record.name,
    SortKey.ID: lambda record: record.id,
    SortKey.PRICE_ASC: _price_ascending,
    SortKey.PRICE_DESC: _price_descending,
}


def sort_results(records: Iterable[ProductRecord], sort_key: SortKey | str | None) -> List[ProductRecord]:
    """Reorder by an explicit key, or keep the given order when there is none.

    The sort is stable and single-key: records that tie on the key stay in
    the order they arrived in. Unpriced records go last for both price keys.
    """

    key = coerce_sort_key(sort_key)
    if key is None:
        return list(records)
    return sorted(records, key=SORT_KEYS[key])


def paginate(records: Sequence[ProductRecord], page: int, page_size: int) -> SearchPage:
    """Slice out one 1-based page; ``has_more`` is true only if items remain after it."""

    page = max(int(page), 1)
    page_size = max(int(page_size), 1)
    start = (page - 1) * page_size
    end = start + page_size
    return SearchPage(
        items=tuple(records[start:end]),
        total_results=len(records),
        current_page=page,
        page_size=page_size,
        has_more=len(records) > end,
    )


def summarize_facets(records: Iterable[ProductRecord]) -> Facets:
    brands: set[str] = set()
    categories: set[str] = set()
    prices: List[float] = []
    for record in records:
        if record.brand:
            brands.add(record.brand)
        if record.category:
            categories.add(record.category)
        if record.price is not None:
            prices.append(record.price)
    return Facets(
        brands=tuple(sorted(brands)),
        categories=tuple(sorted(categories)),
        min_price=min(prices) if prices else None,
        max_price=max(prices) if prices else None,
    )
