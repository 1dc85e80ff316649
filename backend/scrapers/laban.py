"""
Laban Dictionary Fetcher

Looks words up on dict.laban.vn (English -> Vietnamese) and extracts the
definition blocks of the result page.

Page structure used:
- .slide_content: one block per dictionary tab (hidden tabs skipped)
- div.bg-grey.bold.font-large.m-top20: part-of-speech header (group)
- div.green.bold.margin25.m-top15: definition under the current header
"""
import logging
from typing import Optional
from urllib.parse import quote

from bs4 import BeautifulSoup

from models.word import WordBuilder, WordRecord
from scrapers.base import BaseFetcher
from services.cancellation import CancelToken
from services.errors import FetchError, WordNotFoundInSource

logger = logging.getLogger(__name__)

LABAN_FIND_URL = "https://dict.laban.vn/find?type=1&query={query}"

GROUP_CLASS = "bg-grey bold font-large m-top20"
ENTRY_CLASS = "green bold margin25 m-top15"


def _class_string(tag) -> str:
    return " ".join(tag.get("class") or [])


def parse_definitions(key: str, html: str) -> WordBuilder:
    """
    Extract groups and entries from a Laban result page.

    Only exact class matches count, mirroring the page markup; entries
    found before the first header are dropped by the builder.
    """
    soup = BeautifulSoup(html, "html.parser")
    builder = WordBuilder(key=key)

    for block in soup.select(".slide_content"):
        if "hidden" in (block.get("class") or []):
            continue
        for div in block.find_all("div"):
            css = _class_string(div)
            if css == GROUP_CLASS:
                builder.add_group(div.get_text())
            elif css == ENTRY_CLASS:
                builder.add_entry(div.get_text())

    if builder.dropped:
        logger.debug("laban_entries_without_group key=%s dropped=%d", key, builder.dropped)
    return builder


class LabanDictionaryFetcher(BaseFetcher):
    SOURCE_NAME = "laban"
    SOURCE_DOMAIN = "dict.laban.vn"

    def __init__(self, url_template: str = LABAN_FIND_URL, **kwargs):
        super().__init__(**kwargs)
        self.url_template = url_template

    def fetch(self, key: str, cancel: Optional[CancelToken] = None) -> WordRecord:
        url = self.url_template.format(query=quote(key))
        response = self.request("GET", url, key, cancel=cancel, route_group="find")

        try:
            builder = parse_definitions(key, response.text)
        except Exception as e:
            raise FetchError(f"unparsable page for {key!r}: {e}", key=key) from e

        if not len(builder):
            raise WordNotFoundInSource(f"no definitions for {key!r} on {self.SOURCE_DOMAIN}", key=key)

        logger.info("laban_fetched key=%s groups=%d", key, len(builder))
        return builder.build()
