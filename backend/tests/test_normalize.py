"""
Unit tests for utils/normalize.py

Covers key normalization for the lookup endpoint and sentence
tokenization for seeding:
- Non-letter stripping and lowercasing
- De-duplication in first-seen order
- Clear ValidationError messages
"""

import pytest

from utils.normalize import (
    ValidationError,
    normalize_key,
    tokenize_sentence,
)


class TestTokenizeSentence:
    """Tests for tokenize_sentence()"""

    def test_strips_punctuation_and_lowercases(self):
        assert tokenize_sentence("Hello, World!") == ["hello", "world"]

    def test_dedupes_in_first_seen_order(self):
        assert tokenize_sentence("The cat, the DOG and the cat") == ["the", "cat", "dog", "and"]

    def test_digits_and_accents_removed(self):
        assert tokenize_sentence("abc123 café") == ["abc", "caf"]

    def test_collapses_whitespace(self):
        assert tokenize_sentence("  one \t two\nthree ") == ["one", "two", "three"]

    def test_none_and_empty(self):
        assert tokenize_sentence(None) == []
        assert tokenize_sentence("") == []
        assert tokenize_sentence("123 !!!") == []


class TestNormalizeKey:
    """Tests for normalize_key()"""

    def test_simple_word(self):
        assert normalize_key("Apple") == "apple"

    def test_strips_non_letters(self):
        assert normalize_key("don't") == "dont"

    def test_empty_raises(self):
        with pytest.raises(ValidationError) as exc:
            normalize_key("42")
        assert exc.value.field == "word"
        assert exc.value.received_value == "42"

    def test_multiple_words_raise(self):
        with pytest.raises(ValidationError) as exc:
            normalize_key("ice cream")
        assert "single word" in str(exc.value)

    def test_custom_field(self):
        with pytest.raises(ValidationError) as exc:
            normalize_key(None, field="key")
        assert exc.value.field == "key"

