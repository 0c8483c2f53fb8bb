"""Regression tests for normalization and phonetic helpers."""

from product_search.phonetics import normalize_text, token_codes


def test_normalize_text_folds_accents_and_punctuation():
    """Accents are transliterated and punctuation collapses to single spaces."""

    assert normalize_text("Café  Crème!") == "cafe creme"
    assert normalize_text("HP 15.6\" Laptop") == "hp 15 6 laptop"
    assert normalize_text(None) == ""


def test_token_codes_align_spelling_variants():
    """Different spellings of the same sound share a metaphone key."""

    (smith,), (smyth,) = [token_codes(word) for word in ("smith", "smyth")]
    assert set(smith) & set(smyth)


def test_token_codes_keep_digits_and_empty_input():
    assert token_codes("") == []
    assert token_codes("55 tv")[0] == ["55"]
    assert len(token_codes("sony bravia tv")) == 3
