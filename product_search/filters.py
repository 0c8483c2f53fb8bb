"""Structured filter, parsed query and result page types shared by the pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .models import ProductRecord


class SortKey(str, Enum):
    """Explicit, caller-chosen orderings that override relevance ranking."""

    NAME = "name"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    ID = "id"


class SortIntent(str, Enum):
    """Sort preference inferred from natural phrasing ("cheapest", "best rated")."""

    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    NEWEST = "newest"
    RELEVANCE = "relevance"


class PriceOp(str, Enum):
    EQ = "="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    RANGE = "range"


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@dataclass(frozen=True)
class PricePredicate:
    """Either a single comparator (``op`` + ``value``) or an inclusive range."""

    op: PriceOp
    value: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @classmethod
    def comparator(cls, op: str | PriceOp, value: float) -> "PricePredicate":
        return cls(op=PriceOp(op), value=value)

    @classmethod
    def between(cls, low: float, high: float) -> "PricePredicate":
        if low > high:
            low, high = high, low
        return cls(op=PriceOp.RANGE, minimum=low, maximum=high)

    def matches(self, price: Optional[float]) -> bool:
        if price is None:
            return False
        if self.op is PriceOp.RANGE:
            return self.minimum <= price <= self.maximum
        if self.op is PriceOp.LT:
            return price < self.value
        if self.op is PriceOp.GT:
            return price > self.value
        if self.op is PriceOp.LE:
            return price <= self.value
        if self.op is PriceOp.GE:
            return price >= self.value
        return price == self.value

    def describe(self) -> str:
        if self.op is PriceOp.RANGE:
            return f"price:{format_number(self.minimum)}-{format_number(self.maximum)}"
        return f"price:{self.op.value}{format_number(self.value)}"


@dataclass(frozen=True)
class StructuredFilter:
    id_match: Optional[str] = None
    price: Optional[PricePredicate] = None
    keyword_terms: Tuple[str, ...] = ()
    brand: Optional[str] = None
    category: Optional[str] = None
    sort_directive: Optional[SortIntent] = None


@dataclass(frozen=True)
class ParsedQuery:
    filter: StructuredFilter
    residual_search_term: str = ""
    confidence: float = 1.0
    # Price/sort phrases the heuristic parser recognized, as typed.
    price_phrase: Optional[str] = None
    sort_phrase: Optional[str] = None


@dataclass(frozen=True)
class ScoredCandidate:
    record: ProductRecord
    score: int


@dataclass(frozen=True)
class Facets:
    brands: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    min_price: Optional[float] = None
    max_price: Optional[float] = None


@dataclass(frozen=True)
class SearchPage:
    items: Tuple[ProductRecord, ...]
    total_results: int
    current_page: int
    page_size: int
    has_more: bool
    parsed: ParsedQuery = field(default_factory=lambda: ParsedQuery(StructuredFilter()))
    facets: Facets = field(default_factory=Facets)


@dataclass(frozen=True)
class Refinement:
    """Caller-chosen facet filters (brand, category, price bounds).

    Unlike the brand and category read out of the query text, these are hard
    filters: brand and category compare case-insensitively against the
    record's own values, and either price bound excludes unpriced records.
    """

    brand: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    def is_empty(self) -> bool:
        return not (self.brand or self.category) and self.min_price is None and self.max_price is None

    def matches(self, record: ProductRecord) -> bool:
        if self.brand and (record.brand or "").casefold() != self.brand.strip().casefold():
            return False
        if self.category and (record.category or "").casefold() != self.category.strip().casefold():
            return False
        if self.min_price is None and self.max_price is None:
            return True
        if record.price is None:
            return False
        if self.min_price is not None and record.price < self.min_price:
            return False
        return self.max_price is None or record.price <= self.max_price
