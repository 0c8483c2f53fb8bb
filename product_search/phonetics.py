"""Text normalization and phonetic keys for typo-tolerant matching.

Two helpers feed the fuzzy candidate source:

    1) :func:`normalize_text` lowercases, transliterates to ASCII with
       ``unidecode`` (so ``"Café"`` and ``"cafe"`` compare equal), strips
       punctuation and collapses whitespace.
    2) :func:`token_codes` runs double metaphone per token of the normalized
       text so that misspellings such as ``"sonie"`` still share a key with
       ``"sony"``.
"""
from __future__ import annotations

import re
from typing import List

from metaphone import doublemetaphone
from unidecode import unidecode

# After transliteration we keep only Latin letters/digits/spaces.
_ASCII_ALNUM_SPACE_RE = re.compile(r"[^0-9a-z ]+")


def normalize_text(text: str | None) -> str:
    if not text:
        return ""
    transliterated = unidecode(text).lower()
    cleaned = _ASCII_ALNUM_SPACE_RE.sub(" ", transliterated)
    return " ".join(cleaned.split())


def _metaphone_keys(token: str) -> List[str]:
    keys: List[str] = []
    for code in doublemetaphone(token):
        if code and code not in keys:
            keys.append(code)
    return keys


def token_codes(normalized_text: str) -> List[List[str]]:
    """Per-token metaphone codes of **already normalized** text.

    Tokens without a phonetic key (digits-only, such as ``"55"``) are kept as
    their own key so model numbers still line up.
    """

    return [_metaphone_keys(token) or [token] for token in normalized_text.split()]
