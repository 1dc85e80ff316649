"""
Word Cache Tier - fast key/value store of serialized word records.

The cache is an optimization, never a source of truth:
- get() returns None on a miss, on a backend read error, and on bytes that
  fail to decode (corruption degrades to a miss instead of propagating)
- put() is best effort and reports failure by returning False

Engines:
- MemoryWordCache: in-process TTL cache (default, single process)
- RedisWordCache: shared Redis cache (multi-process deployments)

Keys are the raw normalized word; values are WordRecord.to_bytes().
"""
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from models.word import WordRecord
from services.cancellation import CancelToken, ensure_token

logger = logging.getLogger(__name__)


class WordCache(ABC):
    """Cache tier contract."""

    @abstractmethod
    def get_bytes(self, key: str) -> Optional[bytes]:
        """Raw read. May raise on backend errors."""

    @abstractmethod
    def set_bytes(self, key: str, value: bytes) -> None:
        """Raw write. May raise on backend errors."""

    def get(self, key: str, cancel: Optional[CancelToken] = None) -> Optional[WordRecord]:
        ensure_token(cancel).raise_if_cancelled(key)

        try:
            raw = self.get_bytes(key)
        except Exception as e:
            logger.warning("word_cache_read_failed key=%s err=%s", key, e)
            return None

        if raw is None:
            return None

        try:
            return WordRecord.from_bytes(raw)
        except (OverflowError, RecursionError, ValueError) as e:
            logger.warning("word_cache_corrupt key=%s err=%s", key, e)
            return None

    def put(self, key: str, record: WordRecord, cancel: Optional[CancelToken] = None) -> bool:
        if cancel is not None and cancel.cancelled:
            return False

        try:
            self.set_bytes(key, record.to_bytes())
            return True
        except Exception as e:
            logger.error("word_cache_write_failed key=%s err=%s", key, e)
            return False


class MemoryWordCache(WordCache):
    """Thread-safe TTL cache with max size limit."""

    def __init__(self, maxsize: int = 10000, ttl: Optional[int] = None, clock=time.time):
        self._cache: Dict[str, Any] = {}
        self._maxsize = maxsize
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()

    def get_bytes(self, key: str) -> Optional[bytes]:
        with self._lock:
            if key not in self._cache:
                return None
            value, timestamp = self._cache[key]
            if self._ttl is not None and self._clock() - timestamp >= self._ttl:
                del self._cache[key]
                return None
            return value

    def set_bytes(self, key: str, value: bytes) -> None:
        with self._lock:
            # Evict oldest entry if at capacity
            if key not in self._cache and len(self._cache) >= self._maxsize:
                oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][1])
                del self._cache[oldest_key]
            self._cache[key] = (value, self._clock())

    def __contains__(self, key: str) -> bool:
        return self.get_bytes(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            'backend': 'memory',
            'size': len(self._cache),
            'maxsize': self._maxsize,
            'ttl': self._ttl,
        }


class RedisWordCache(WordCache):
    """Redis-backed cache. The client is created lazily from the URL."""

    def __init__(
        self,
        url: Optional[str] = None,
        ttl: Optional[int] = None,
        prefix: str = "",
        client=None,
    ):
        self.url = url
        self.ttl = ttl
        self.prefix = prefix
        self._client = client

    @property
    def client(self):
        if self._client is None:
            import redis
            self._client = redis.from_url(self.url)
            logger.info("word_cache_redis_connected url=%s", _redact(self.url))
        return self._client

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get_bytes(self, key: str) -> Optional[bytes]:
        return self.client.get(self._make_key(key))

    def set_bytes(self, key: str, value: bytes) -> None:
        if self.ttl:
            self.client.setex(self._make_key(key), self.ttl, value)
        else:
            self.client.set(self._make_key(key), value)

    def stats(self) -> Dict[str, Any]:
        return {'backend': 'redis', 'prefix': self.prefix, 'ttl': self.ttl}


def _redact(url: Optional[str]) -> str:
    if not url or "@" not in url:
        return url or ""
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"


def build_cache(config) -> WordCache:
    """Select the cache engine from config (CACHE_BACKEND)."""
    backend = (getattr(config, "CACHE_BACKEND", "memory") or "memory").lower()
    ttl = getattr(config, "CACHE_TTL_SECONDS", None)

    if backend == "redis":
        url = getattr(config, "REDIS_URL", None)
        if not url:
            raise ValueError("CACHE_BACKEND=redis requires REDIS_URL")
        return RedisWordCache(
            url=url,
            ttl=ttl,
            prefix=getattr(config, "CACHE_KEY_PREFIX", ""),
        )
    if backend == "memory":
        return MemoryWordCache(
            maxsize=getattr(config, "CACHE_MAX_SIZE", 10000),
            ttl=ttl,
        )
    raise ValueError(f"Unknown CACHE_BACKEND: {backend}")
