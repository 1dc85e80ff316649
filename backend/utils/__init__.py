"""
Utility modules for the backend.
"""
from .normalize import (
    ValidationError,
    normalize_key,
    tokenize_sentence,
)

__all__ = [
    'ValidationError',
    'normalize_key',
    'tokenize_sentence',
]
