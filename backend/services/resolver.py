"""
Word Resolver - tiered resolve-or-fetch for a single key.

Resolution order (strictly sequential per key):

    CACHE_LOOKUP -> DURABLE_LOOKUP -> FETCH -> WRITE_BACK -> DONE

- Cache hit: returned as-is, nothing else is touched.
- Store hit: returned, and copied into the cache in the background.
- Full miss: the fetcher builds a fresh record, which is inserted into the
  store synchronously (so the next request does not fetch again) and copied
  into the cache in the background.

Background cache writes are fire-and-forget: their failures are logged and
reported to the optional on_writeback hook, never to the caller.
wait_for_writebacks() lets tests and shutdown code wait for them.

Usage:
    resolver = WordResolver(cache, store, fetcher)
    record = resolver.resolve("apple", cancel=CancelToken.with_timeout(10))
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Set

from models.word import WordRecord
from services.cancellation import CancelToken, ensure_token
from services.errors import RecordContractError, StoreError

logger = logging.getLogger(__name__)

# Called once per background cache write: (key, succeeded)
WriteBackHook = Callable[[str, bool], None]


class WordResolver:
    def __init__(
        self,
        cache,
        store,
        fetcher,
        writeback_workers: int = 4,
        on_writeback: Optional[WriteBackHook] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            cache: WordCache tier
            store: Durable tier (find/insert)
            fetcher: Source fetcher (fetch)
            writeback_workers: Threads for background cache writes
            on_writeback: Optional hook observing each background cache write
            clock: Epoch-seconds clock used to stamp fetched records
        """
        self.cache = cache
        self.store = store
        self.fetcher = fetcher
        self.on_writeback = on_writeback
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, writeback_workers),
            thread_name_prefix="cache-writeback",
        )
        self._pending: Set[Future] = set()
        # Signalled after each write-back has fully finished (hook included)
        self._pending_cond = threading.Condition()

    def resolve(self, key: str, cancel: Optional[CancelToken] = None) -> WordRecord:
        """
        Resolve a normalized key to a word record.

        Raises:
            StoreError: Durable tier failed (lookup or insert)
            FetchError: Source failed, has no entry, or broke the record contract
            ResolutionCancelled: Token cancelled before the resolution finished
        """
        token = ensure_token(cancel)
        start = time.perf_counter()

        # CACHE_LOOKUP
        record = self.cache.get(key, cancel=token)
        if record is not None:
            self._log_hit("cache", key, start)
            return record

        # DURABLE_LOOKUP (errors other than "absent" are fatal)
        record = self.store.find(key, cancel=token)
        if record is not None:
            self._log_hit("store", key, start)
            self._schedule_cache_write(key, record)
            return record

        # FETCH
        token.raise_if_cancelled(key)
        logger.info("word_resolve_fetch key=%s", key)
        fetched = self.fetcher.fetch(key, cancel=token)
        record = self._validate(key, fetched)

        # A fetch that outlived its caller must not be persisted
        token.raise_if_cancelled(key)

        # WRITE_BACK
        try:
            self.store.insert(record, cancel=token)
        except StoreError as e:
            if e.record is None:
                e.record = record
            logger.error("word_resolve_persist_failed key=%s err=%s", key, e)
            raise
        self._schedule_cache_write(key, record)

        self._log_hit("source", key, start)
        return record

    def _validate(self, key: str, fetched: WordRecord) -> WordRecord:
        if fetched.key != key:
            raise RecordContractError(
                f"fetcher returned record for {fetched.key!r}, expected {key!r}", key=key
            )
        if not fetched.is_complete():
            raise RecordContractError(
                f"fetcher returned {len(fetched.groups)} groups but "
                f"{len(fetched.entries)} entry lists",
                key=key,
            )
        return fetched.stamped(int(self._clock()))

    def _log_hit(self, tier: str, key: str, start: float) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("word_resolve_hit tier=%s key=%s elapsed_ms=%.1f", tier, key, elapsed_ms)

    # =========================================================================
    # Background cache write-back
    # =========================================================================

    def _schedule_cache_write(self, key: str, record: WordRecord) -> None:
        try:
            future = self._executor.submit(self.cache.put, key, record)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning("word_cache_writeback_skipped key=%s err=%s", key, e)
            return

        with self._pending_cond:
            self._pending.add(future)
        future.add_done_callback(lambda f: self._on_cache_write_done(key, f))

    def _on_cache_write_done(self, key: str, future: Future) -> None:
        ok = False
        try:
            ok = bool(future.result())
        except Exception as e:
            logger.error("word_cache_writeback_error key=%s err=%s", key, e)

        if not ok:
            logger.warning("word_cache_writeback_failed key=%s", key)

        if self.on_writeback is not None:
            try:
                self.on_writeback(key, ok)
            except Exception as e:
                logger.error("word_cache_writeback_hook_error key=%s err=%s", key, e)

        with self._pending_cond:
            self._pending.discard(future)
            self._pending_cond.notify_all()

    def pending_writebacks(self) -> int:
        with self._pending_cond:
            return len(self._pending)

    def wait_for_writebacks(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every scheduled cache write has completed and its
        on_writeback hook has run.

        Returns:
            True if all writes finished within timeout
        """
        with self._pending_cond:
            return self._pending_cond.wait_for(lambda: not self._pending, timeout=timeout)

    def close(self) -> None:
        """Drain background writes and stop the executor."""
        self._executor.shutdown(wait=True)
