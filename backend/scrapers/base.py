"""
Base Fetcher - Abstract template for all word sources.

Provides common functionality:
- HTTP session with polite headers
- Rate limiting integration
- Retry with exponential backoff on transport errors and 429/5xx
- Per-attempt timeouts bounded by the caller's cancel token

The resolver never retries: any retry policy lives here.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from models.word import WordRecord
from services.cancellation import CancelToken, ensure_token
from services.errors import FetchError

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 3
INITIAL_BACKOFF_SECONDS = 1.0
BACKOFF_MULTIPLIER = 2.0

RETRYABLE_STATUS = {429, 500, 502, 503, 504}

DEFAULT_HEADERS = {
    "User-Agent": "NotemeWords/1.0 (dictionary lookup)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,vi;q=0.8",
}


class BaseFetcher(ABC):
    """
    Abstract base class for all word sources.

    Subclasses must implement:
    - fetch(): produce a WordRecord for a key, or raise FetchError

    Subclasses should set class attributes:
    - SOURCE_NAME: Unique source identifier
    - SOURCE_DOMAIN: Host being queried (rate limit key)
    """

    # Override in subclass
    SOURCE_NAME: str = "base"
    SOURCE_DOMAIN: str = ""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        rate_limiter=None,
        timeout: float = 30,
        max_retries: int = MAX_RETRIES,
        initial_backoff: float = INITIAL_BACKOFF_SECONDS,
    ):
        """
        Args:
            session: requests session (a new one with default headers if None)
            rate_limiter: Optional FetchRateLimiter instance
            timeout: Per-attempt HTTP timeout in seconds
            max_retries: Attempts before giving up
            initial_backoff: First backoff sleep, doubled each attempt
        """
        if session is None:
            session = requests.Session()
            session.headers.update(DEFAULT_HEADERS)
        self.session = session
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.initial_backoff = initial_backoff

    @abstractmethod
    def fetch(self, key: str, cancel: Optional[CancelToken] = None) -> WordRecord:
        """
        Produce a record for a normalized key.

        Raises:
            FetchError: Source unavailable or unparsable
            WordNotFoundInSource: Source has no entry for the key
            ResolutionCancelled: Token cancelled before or between attempts
        """

    def request(
        self,
        method: str,
        url: str,
        key: str,
        cancel: Optional[CancelToken] = None,
        route_group: str = "default",
        **kwargs,
    ) -> requests.Response:
        """
        Send an HTTP request with rate limiting and retries.

        Returns:
            Successful (2xx) response

        Raises:
            FetchError: Non-retryable status, or retries exhausted
        """
        token = ensure_token(cancel)
        last_error: Optional[str] = None

        for attempt in range(self.max_retries):
            token.raise_if_cancelled(key)

            if self.rate_limiter:
                try:
                    self.rate_limiter.wait(self.SOURCE_DOMAIN, route_group, cancel=token)
                except FetchError as e:
                    # No request slot freed up in time
                    if e.key is None:
                        e.key = key
                    raise

            try:
                response = self.session.request(
                    method, url, timeout=token.bound_timeout(self.timeout), **kwargs
                )
            except requests.exceptions.RequestException as e:
                last_error = str(e)
            else:
                if response.status_code < 400:
                    return response
                if response.status_code not in RETRYABLE_STATUS:
                    raise FetchError(
                        f"HTTP error: {response.status_code} {response.reason or ''}".strip(),
                        key=key,
                    )
                last_error = f"HTTP error: {response.status_code}"

            backoff = self.initial_backoff * (BACKOFF_MULTIPLIER ** attempt)
            logger.warning(
                "word_fetch_retry source=%s key=%s attempt=%d/%d err=%s",
                self.SOURCE_NAME, key, attempt + 1, self.max_retries, last_error,
            )
            if attempt < self.max_retries - 1:
                token.wait(token.bound_timeout(backoff))

        token.raise_if_cancelled(key)
        raise FetchError(
            f"{self.SOURCE_NAME} failed after {self.max_retries} attempts: {last_error}",
            key=key,
        )
