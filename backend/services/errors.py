"""
Word lookup error taxonomy.

Cache misses and store misses are NOT errors: WordCache.get() and
WordStore.find() return None for them and they never leave the resolver.

Everything here carries a stable `code` used by the HTTP error envelope.
"""
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from models.word import WordRecord


class WordLookupError(Exception):
    """Base exception for word resolution errors."""
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class StoreError(WordLookupError):
    """Durable store connectivity, query or insert failure."""
    code = "STORE_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        record: Optional["WordRecord"] = None,
    ):
        super().__init__(message, key=key)
        # Set when a fetched record could not be persisted
        self.record = record


class FetchError(WordLookupError):
    """External source unavailable or unparsable."""
    code = "SOURCE_UNAVAILABLE"


class WordNotFoundInSource(FetchError):
    """The source answered but has no entry for the key."""
    code = "WORD_NOT_FOUND"


class RecordContractError(FetchError):
    """A fetcher returned a record that breaks the record invariants."""
    code = "INVALID_SOURCE_RECORD"


class ResolutionCancelled(WordLookupError):
    """The caller cancelled the resolution or its deadline passed."""
    code = "RESOLUTION_TIMEOUT"


class BatchPartialFailure(WordLookupError):
    """At least one key of a batch failed to resolve."""
    code = "SEED_FAILED"

    def __init__(self, report, first_error: Exception):
        failed = report.failed_keys
        super().__init__(
            f"{len(failed)} of {report.total} keys failed "
            f"(first: {first_error})"
        )
        self.report = report
        self.first_error = first_error

    @property
    def errors(self) -> Dict[str, Exception]:
        return self.report.errors


def error_code(error: Exception) -> str:
    return getattr(error, "code", "INTERNAL_ERROR")
