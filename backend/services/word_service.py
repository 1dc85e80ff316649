"""
Word Service - builds the process-wide resolver stack from config.

The cache, store and fetcher handles are created once and injected into the
resolver and batch orchestrator; nothing below reads global state.

Usage:
    from config import Config
    from services.word_service import build_word_service

    service = build_word_service(Config)
    record = service.lookup("apple")
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from models.word import WordRecord
from scrapers import build_fetcher
from scrapers.rate_limiter import FetchRateLimiter
from services.batch import BatchOrchestrator, BatchReport
from services.cancellation import CancelToken
from services.resolver import WordResolver
from services.word_cache import build_cache
from services.word_store import SqlWordStore

logger = logging.getLogger(__name__)


@dataclass
class WordService:
    resolver: WordResolver
    orchestrator: BatchOrchestrator
    store: Optional[SqlWordStore] = None
    resolve_timeout: Optional[float] = None

    def token(self, timeout: Optional[float] = None) -> CancelToken:
        return CancelToken.with_timeout(timeout if timeout is not None else self.resolve_timeout)

    def lookup(self, key: str, timeout: Optional[float] = None) -> WordRecord:
        return self.resolver.resolve(key, cancel=self.token(timeout))

    def seed(self, keys: Iterable[str], timeout: Optional[float] = None) -> BatchReport:
        return self.orchestrator.resolve_all(keys, cancel=self.token(timeout))

    def close(self) -> None:
        self.resolver.close()


def build_word_service(config, engine=None, kind: str = "web") -> WordService:
    """
    Wire cache, store and fetcher from config.

    Args:
        config: Config class or object
        engine: SQLAlchemy engine (defaults to db.engine.get_engine(kind))
        kind: Engine kind when engine is not given
    """
    if engine is None:
        from db.engine import get_engine
        engine = get_engine(kind)

    store = SqlWordStore(engine)
    store.create_schema()

    rate_limiter = FetchRateLimiter(
        config_path=getattr(config, "FETCH_RATE_LIMITS", None),
        redis_url=getattr(config, "REDIS_URL", None),
    )
    resolver = WordResolver(
        cache=build_cache(config),
        store=store,
        fetcher=build_fetcher(config, rate_limiter=rate_limiter),
        writeback_workers=getattr(config, "WRITEBACK_WORKERS", 4),
    )
    orchestrator = BatchOrchestrator(
        resolver, max_workers=getattr(config, "BATCH_MAX_WORKERS", None)
    )

    logger.info(
        "word_service_ready cache=%s fetcher=%s batch_max_workers=%s",
        getattr(config, "CACHE_BACKEND", "memory"),
        getattr(config, "SOURCE_FETCHER", "laban"),
        orchestrator.max_workers,
    )
    return WordService(
        resolver=resolver,
        orchestrator=orchestrator,
        store=store,
        resolve_timeout=getattr(config, "RESOLVE_TIMEOUT_SECONDS", None),
    )
