"""Ordered phrase tables used by the heuristic intent parser.

Every table is scanned top to bottom and the first matching rule wins, so
order matters: more specific phrases have to come before the general ones
they overlap with. Tables are tuples of pre-compiled patterns built once at
import time and never mutated.
"""
from __future__ import annotations

import re
from typing import NamedTuple, Tuple

from .filters import SortIntent

_AMOUNT = r"\$?(\d+(?:\.\d{1,2})?)"


class PriceRule(NamedTuple):
    pattern: re.Pattern[str]
    # "max", "min" or "range"
    bound: str


class TokenRule(NamedTuple):
    pattern: re.Pattern[str]


class SortRule(NamedTuple):
    pattern: re.Pattern[str]
    intent: SortIntent


def _price(regex: str, bound: str) -> PriceRule:
    return PriceRule(re.compile(regex, re.IGNORECASE), bound)


def _tokens(*regexes: str) -> Tuple[TokenRule, ...]:
    return tuple(TokenRule(re.compile(rf"\b{regex}\b", re.IGNORECASE)) for regex in regexes)


PRICE_RULES: Tuple[PriceRule, ...] = (
    _price(rf"\bunder\s+{_AMOUNT}", "max"),
    _price(rf"\bless\s+than\s+{_AMOUNT}", "max"),
    _price(rf"\bbelow\s+{_AMOUNT}", "max"),
    _price(rf"{_AMOUNT}\s+or\s+less\b", "max"),
    _price(rf"{_AMOUNT}\s+and\s+under\b", "max"),
    _price(rf"\bover\s+{_AMOUNT}", "min"),
    _price(rf"\bmore\s+than\s+{_AMOUNT}", "min"),
    _price(rf"\babove\s+{_AMOUNT}", "min"),
    _price(rf"{_AMOUNT}\s+or\s+more\b", "min"),
    _price(rf"{_AMOUNT}\s+and\s+up\b", "min"),
    _price(rf"\bbetween\s+{_AMOUNT}\s+and\s+{_AMOUNT}", "range"),
    _price(rf"{_AMOUNT}\s*-\s*{_AMOUNT}", "range"),
    _price(rf"{_AMOUNT}\s+to\s+{_AMOUNT}", "range"),
)

BRAND_RULES: Tuple[TokenRule, ...] = _tokens(
    "sony", "samsung", "apple", "microsoft", "google", "nike", "adidas",
    "puma", r"under\s+armour", "dell", "hp", "lenovo", "asus", "lg",
    "panasonic", "sharp", "toshiba", "canon", "nikon", "fujifilm",
    "dyson", "whirlpool", "ge", "maytag", "kitchenaid",
    "lego", "hasbro", "mattel", "barbie", r"hot\s+wheels", "nerf",
)

CATEGORY_RULES: Tuple[TokenRule, ...] = _tokens(
    "electronics", "tv", "television", "phone", "smartphone", "laptop",
    "computer", "tablet", "camera", "headphones", "speakers", "audio",
    "gaming", "games", r"video\s+games", "consoles?", "playstation",
    "xbox", "nintendo", "clothing", "shoes", "apparel", "fashion",
    "home", "furniture", "kitchen", "appliances", "gardening", "tools",
    "sports", "fitness", "outdoor", "toys", "books", "beauty", "health",
    "food", "groceries", "pet", "automotive", "office", "school",
)

SORT_RULES: Tuple[SortRule, ...] = (
    SortRule(re.compile(r"\bcheapest\b|\blowest\s+price\b|\bunder\s+\$", re.IGNORECASE), SortIntent.PRICE_LOW),
    SortRule(re.compile(r"\bmost\s+expensive\b|\bhighest\s+price\b|\bover\s+\$", re.IGNORECASE), SortIntent.PRICE_HIGH),
    SortRule(re.compile(r"\b(?:best|top|highest)\s+rated\b", re.IGNORECASE), SortIntent.RATING),
    SortRule(re.compile(r"\b(?:newest|latest|recent)\b", re.IGNORECASE), SortIntent.NEWEST),
    SortRule(re.compile(r"\b(?:popular|trending|hot)\b", re.IGNORECASE), SortIntent.RELEVANCE),
)

FILLER_PATTERN = re.compile(r"\b(?:for|in|with|looking|want|need)\b", re.IGNORECASE)

STOPWORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "up", "about", "into", "through", "during",
        "before", "after", "above", "below", "between", "among", "i", "want",
        "need", "looking", "search", "find", "show", "get", "buy", "cheap",
        "best", "good", "great", "nice", "new", "used", "like",
    }
)

MAX_KEYWORDS = 5
MIN_KEYWORD_LENGTH = 3

BASE_CONFIDENCE = 1.0
MAX_CONFIDENCE = 1.0
PRICE_CONFIDENCE = 0.2
BRAND_CONFIDENCE = 0.3
CATEGORY_CONFIDENCE = 0.3
SORT_CONFIDENCE = 0.1
