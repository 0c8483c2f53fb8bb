"""Strict ``id:``/``price:`` filter grammar parsed out of the raw query text.

Recognized forms, each honoured only for its first occurrence:

* ``id:<token>``: exact product id, token is ``[A-Za-z0-9-]+``.
* ``price:<op>?<num>(-<num>)?``: comparator (default ``=``) or inclusive range.
* ``<num>-<num>``: bare range, only when no ``price:`` form matched.
* ``<op><num>``: bare comparator, only when neither form above matched.

Numbers take an optional leading ``$`` and at most two decimals. Text that does
not fit the grammar is left alone and ends up in the keyword terms.
"""
from __future__ import annotations

import logging
import re

from .filters import ParsedQuery, PricePredicate, StructuredFilter

logger = logging.getLogger(__name__)

# A number that is not glued to surrounding letters/digits ("x100" and "12.345"
# are not prices).
_NUM = r"(?<![\w.])(\d+(?:\.\d{1,2})?)(?!\w|\.\d)"
_OP = r"(<=|>=|<|>|=)"

ID_PATTERN = re.compile(r"(?:^|\s)id:\s*([A-Za-z0-9-]+)", re.IGNORECASE)
PRICE_PATTERN = re.compile(
    rf"price:\s*{_OP}?\s*\$?{_NUM}\s*(?:-\s*\$?{_NUM})?", re.IGNORECASE
)
RANGE_PATTERN = re.compile(rf"\$?\s*{_NUM}\s*-\s*\$?\s*{_NUM}")
COMPARATOR_PATTERN = re.compile(rf"{_OP}\s*\$?\s*{_NUM}")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _remove_first(text: str, match: re.Match[str] | None) -> str:
    if match is None:
        return text
    return text.replace(match.group(0), " ", 1)


def parse_filters(query: str) -> ParsedQuery:
    """Split ``query`` into a :class:`StructuredFilter` and its leftover text.

    The returned ``residual_search_term`` is the lowercased, whitespace
    normalized text left after the recognized expressions were cut out; its
    tokens are the filter's ``keyword_terms``.
    """

    text = (query or "").strip()
    if not text:
        return ParsedQuery(filter=StructuredFilter())

    id_match = ID_PATTERN.search(text)
    id_value = id_match.group(1) if id_match else None
    # Drop the id before looking for prices so "id:ab-12-34" is never a range.
    remainder = _remove_first(text, id_match)

    direct = PRICE_PATTERN.search(remainder)
    bare_range = RANGE_PATTERN.search(remainder)
    bare_comparator = COMPARATOR_PATTERN.search(remainder)

    price: PricePredicate | None = None
    if direct:
        op, low, high = direct.groups()
        if high is not None:
            price = PricePredicate.between(float(low), float(high))
        else:
            price = PricePredicate.comparator(op or "=", float(low))
    elif bare_range:
        low, high = bare_range.groups()
        price = PricePredicate.between(float(low), float(high))
    elif bare_comparator:
        op, value = bare_comparator.groups()
        price = PricePredicate.comparator(op, float(value))

    residual = remainder
    for match in (direct, bare_range, bare_comparator):
        residual = _remove_first(residual, match)
    residual = _collapse(residual).lower()

    parsed = ParsedQuery(
        filter=StructuredFilter(
            id_match=id_value,
            price=price,
            keyword_terms=tuple(residual.split()),
        ),
        residual_search_term=residual,
    )
    logger.debug(
        "parse_filters q=%r id=%r price=%s terms=%s",
        query,
        id_value,
        price.describe() if price else None,
        parsed.filter.keyword_terms,
    )
    return parsed
