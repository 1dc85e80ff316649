"""
Input Normalization Utilities
=============================

Single source of truth for turning external input into lookup keys.
Keys are lowercase ASCII letters only; anything else is stripped.

Usage:
    from utils.normalize import normalize_key, tokenize_sentence, ValidationError

    @words_bp.route("/word/<word>")
    def get_word(word):
        try:
            key = normalize_key(word)
        except ValidationError as e:
            return make_error_response("INVALID_PARAMS", str(e), field=e.field)
"""

import re
from typing import List, Optional

_NON_KEY_CHARS = re.compile(r"[^a-zA-Z ]")


class ValidationError(ValueError):
    """Raised when input cannot be normalized to expected type."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def tokenize_sentence(sentence: Optional[str]) -> List[str]:
    """
    Split free text into normalized, de-duplicated keys.

    Strips every character outside [a-zA-Z ], lowercases, splits on
    whitespace and keeps the first occurrence of each word.

    Example:
        >>> tokenize_sentence("The cat, the DOG!")
        ['the', 'cat', 'dog']
    """
    if not sentence:
        return []
    cleaned = _NON_KEY_CHARS.sub("", sentence).lower()
    return list(dict.fromkeys(cleaned.split()))


def normalize_key(value: Optional[str], *, field: str = "word") -> str:
    """
    Normalize a single lookup word.

    Raises:
        ValidationError: If nothing is left after normalization, or the
            input holds more than one word
    """
    keys = tokenize_sentence(value)
    if not keys:
        raise ValidationError(
            f"Expected a word made of letters, got: {value!r}",
            field=field,
            received_value=value
        )
    if len(keys) > 1:
        raise ValidationError(
            f"Expected a single word, got {len(keys)}: {value!r}",
            field=field,
            received_value=value
        )
    return keys[0]

