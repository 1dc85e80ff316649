"""
Google Translate Fetcher

Uses the public translate_a/single endpoint to translate a word (or free
text). A translated word becomes a record with a single "translation" group.

Request:
    POST https://{host}/translate_a/single?client=at&dt=t&dt=rm&dj=1
    Content-Type: application/x-www-form-urlencoded;charset=utf-8
    body: sl={from}&tl={to}&q={text}

Response:
    {"sentences": [{"trans": "..."}, ...]}  -> joined in order
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from models.word import WordBuilder, WordRecord
from scrapers.base import BaseFetcher
from services.cancellation import CancelToken
from services.errors import FetchError, WordNotFoundInSource

logger = logging.getLogger(__name__)

TRANSLATION_GROUP = "translation"


@dataclass
class TranslateOptions:
    source_lang: str = "auto"
    target_lang: str = "vi"
    host: str = "translate.google.com"
    headers: Dict[str, str] = field(default_factory=lambda: {
        "Content-Type": "application/x-www-form-urlencoded;charset=utf-8",
    })

    def build_url(self) -> str:
        return f"https://{self.host}/translate_a/single?client=at&dt=t&dt=rm&dj=1"

    def build_body(self, text: str) -> Dict[str, str]:
        return {"sl": self.source_lang, "tl": self.target_lang, "q": text}


class GoogleTranslateFetcher(BaseFetcher):
    SOURCE_NAME = "translate"
    SOURCE_DOMAIN = "translate.google.com"

    def __init__(self, options: Optional[TranslateOptions] = None, **kwargs):
        super().__init__(**kwargs)
        self.options = options or TranslateOptions()
        self.SOURCE_DOMAIN = self.options.host

    def translate(self, text: str, cancel: Optional[CancelToken] = None) -> str:
        """
        Translate free text, joining every returned sentence.

        Raises:
            FetchError: HTTP failure or unexpected response shape
        """
        response = self.request(
            "POST",
            self.options.build_url(),
            text,
            cancel=cancel,
            route_group="single",
            data=self.options.build_body(text),
            headers=self.options.headers,
        )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"invalid translate response: {e}", key=text) from e

        sentences = payload.get("sentences") if isinstance(payload, dict) else None
        if not isinstance(sentences, list):
            raise FetchError("translate response has no sentences", key=text)

        parts = []
        for sentence in sentences:
            if not isinstance(sentence, dict):
                continue
            trans = sentence.get("trans")
            if trans is None:
                continue
            if not isinstance(trans, str):
                raise FetchError(
                    f"translate sentence has non-text trans: {type(trans).__name__}", key=text
                )
            parts.append(trans)
        return "".join(parts)

    def fetch(self, key: str, cancel: Optional[CancelToken] = None) -> WordRecord:
        translated = self.translate(key, cancel=cancel).strip()
        if not translated:
            raise WordNotFoundInSource(f"no translation for {key!r}", key=key)

        builder = WordBuilder(key=key)
        builder.add_group(TRANSLATION_GROUP)
        builder.add_entry(translated)
        logger.info("translate_fetched key=%s target=%s", key, self.options.target_lang)
        return builder.build()


def to_sentence(text: str, fetcher: Optional[GoogleTranslateFetcher] = None) -> str:
    """Translate free text with default options."""
    fetcher = fetcher or GoogleTranslateFetcher()
    return fetcher.translate(text)
