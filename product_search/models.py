"""Pydantic models for catalog records and request/response payloads."""
from __future__ import annotations

import math
import re
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# "$1,299.99" style price text after thousands separators are dropped.
_PRICE_TEXT_RE = re.compile(r"^\$?\s*(\d+(?:\.\d+)?)$")


def parse_price(value: Any) -> float | None:
    """Coerce raw catalog price data into a float, or ``None`` when it is not a price.

    Non-numeric text never becomes ``0``; a missing price has to stay missing
    so price predicates exclude the record instead of matching it.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        match = _PRICE_TEXT_RE.match(value.replace(",", "").strip())
        if match:
            return float(match.group(1))
    return None


class ProductRecord(BaseModel):
    """A single catalog entry as supplied by the catalog provider."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "itemId", "externalId"))
    name: str = Field("", validation_alias=AliasChoices("name", "title"))
    description: str = ""
    price: Optional[float] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    url: Optional[str] = Field(None, validation_alias=AliasChoices("url", "productUrl"))
    image: Optional[str] = Field(None, validation_alias=AliasChoices("image", "imageUrl"))

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError("id must be a string or an integer")
        text = str(value).strip()
        if not text:
            raise ValueError("id must not be empty")
        return text

    @field_validator("name", "description", mode="before")
    @classmethod
    def _default_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float | None:
        return parse_price(value)

    @field_validator("brand", "category", "url", "image", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class ParsedQueryResult(BaseModel):
    searchTerm: str
    idMatch: str | None = None
    price: str | None = None
    keywords: List[str] = Field(default_factory=list)
    brand: str | None = None
    category: str | None = None
    sortBy: str | None = None
    confidence: float
    formatted: str


class PriceRange(BaseModel):
    min: float
    max: float


class FacetsResult(BaseModel):
    brands: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    priceRange: PriceRange | None = None


class SearchResponse(BaseModel):
    query: str
    items: List[ProductRecord]
    totalResults: int
    currentPage: int
    pageSize: int
    hasMore: bool
    parsed: ParsedQueryResult
    facets: FacetsResult
    took_ms: float
