"""
Word Source Package

Pluggable fetchers consulted by the resolver on a full cache/store miss:
- LabanDictionaryFetcher: dictionary page fetch + HTML extraction
- GoogleTranslateFetcher: machine translation call
- Config-driven outbound rate limiting
"""

from .base import BaseFetcher
from .laban import LABAN_FIND_URL, LabanDictionaryFetcher
from .translate import GoogleTranslateFetcher, TranslateOptions

__all__ = [
    "BaseFetcher",
    "LabanDictionaryFetcher",
    "GoogleTranslateFetcher",
    "TranslateOptions",
    "build_fetcher",
]


def build_fetcher(config, rate_limiter=None) -> BaseFetcher:
    """Select the source fetcher from config (SOURCE_FETCHER)."""
    name = (getattr(config, "SOURCE_FETCHER", "laban") or "laban").lower()
    timeout = getattr(config, "FETCH_TIMEOUT_SECONDS", 30)

    if name == "laban":
        return LabanDictionaryFetcher(
            url_template=getattr(config, "LABAN_URL", None) or LABAN_FIND_URL,
            rate_limiter=rate_limiter,
            timeout=timeout,
        )
    if name == "translate":
        options = TranslateOptions(
            source_lang=getattr(config, "TRANSLATE_FROM", "auto"),
            target_lang=getattr(config, "TRANSLATE_TO", "vi"),
            host=getattr(config, "TRANSLATE_HOST", "translate.google.com"),
        )
        return GoogleTranslateFetcher(options=options, rate_limiter=rate_limiter, timeout=timeout)
    raise ValueError(f"Unknown SOURCE_FETCHER: {name}")
