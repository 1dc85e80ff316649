"""
Fetcher Rate Limiter - Domain-keyed outbound throttling for word sources.

Keeps fetchers polite towards dictionary/translation hosts during large
seed batches. Uses Redis when REDIS_URL is set (shared across workers),
in-memory sliding window otherwise.

Key format: fetch:{domain}:{route_group}
"""
import logging
import os
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from services.cancellation import CancelToken
from services.errors import FetchError

logger = logging.getLogger(__name__)

REDIS_URL = os.environ.get("REDIS_URL")

DEFAULT_LIMITS = {
    "requests_per_minute": 60,
    "requests_per_hour": 1000,
}

# Give up waiting for a slot after this many sleeps
MAX_WAIT_ATTEMPTS = 60


class RateLimitTimeout(FetchError):
    """Raised when no request slot frees up in time."""


class FetchRateLimiter:
    """Sliding-window rate limiter with domain/route granularity."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        redis_url: Optional[str] = REDIS_URL,
        clock=time.time,
    ):
        """
        Args:
            config_path: YAML config path. Defaults to scrapers/rate_limits.yaml
            redis_url: Redis URL; None keeps counters in memory
            clock: Epoch-seconds clock (injectable for tests)
        """
        self.config_path = config_path or str(Path(__file__).parent / "rate_limits.yaml")
        self.redis_url = redis_url
        self._clock = clock
        self._config: Optional[Dict[str, Any]] = None
        self._redis = None
        self._memory_store: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    @property
    def config(self) -> Dict[str, Any]:
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def _load_config(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, "r") as f:
                config = yaml.safe_load(f) or {}
                logger.info(f"Loaded fetch rate limits from {self.config_path}")
                return config
        except FileNotFoundError:
            logger.warning(
                f"Rate limit config not found at {self.config_path}, using defaults"
            )
            return {"defaults": dict(DEFAULT_LIMITS), "domains": {}}

    @property
    def redis(self):
        """Get Redis client (lazy init)."""
        if self._redis is None and self.redis_url:
            try:
                import redis
                self._redis = redis.from_url(self.redis_url)
                self._redis.ping()
                logger.info("Fetch rate limiter using Redis")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}")
                self._redis = False  # Sentinel to prevent retries
        return self._redis if self._redis else None

    def get_limits(self, domain: str, route_group: str = "default") -> Dict[str, int]:
        """Defaults, overridden by domain config, overridden by route config."""
        defaults = self.config.get("defaults", {})
        domain_config = self.config.get("domains", {}).get(domain, {})
        route_config = domain_config.get("routes", {}).get(route_group, {})

        limits = {}
        for key, fallback in DEFAULT_LIMITS.items():
            raw = route_config.get(
                key, domain_config.get(key, defaults.get(key, fallback))
            )
            try:
                value = int(raw)
            except (TypeError, ValueError):
                value = 0
            if value < 1:
                logger.warning(
                    f"Invalid {key}={raw!r} for {domain}:{route_group}, using {fallback}"
                )
                value = fallback
            limits[key] = value
        return limits

    def _make_key(self, domain: str, route_group: str = "default") -> str:
        return f"fetch:{domain}:{route_group}"

    def wait(
        self,
        domain: str,
        route_group: str = "default",
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """
        Block until a request slot is free, then record the request.

        Sleeps are interruptible through the cancel token.

        Raises:
            ResolutionCancelled: If the token is cancelled while waiting
            RateLimitTimeout: If no slot frees up after MAX_WAIT_ATTEMPTS
        """
        limits = self.get_limits(domain, route_group)
        key = self._make_key(domain, route_group)

        for _ in range(MAX_WAIT_ATTEMPTS):
            if cancel is not None:
                cancel.raise_if_cancelled()

            if self._try_acquire(key, limits):
                return

            wait_time = 60 / limits["requests_per_minute"]
            logger.debug(f"Rate limited for {domain}, waiting {wait_time:.1f}s")
            self._sleep(wait_time, cancel)

        raise RateLimitTimeout(f"Rate limit wait timeout for {domain}")

    def _sleep(self, seconds: float, cancel: Optional[CancelToken]) -> None:
        if cancel is None:
            time.sleep(seconds)
            return
        cancel.wait(cancel.bound_timeout(seconds))
        cancel.raise_if_cancelled()

    def _try_acquire(self, key: str, limits: Dict[str, int]) -> bool:
        if self.redis:
            return self._try_acquire_redis(key, limits)
        return self._try_acquire_memory(key, limits)

    def _try_acquire_redis(self, key: str, limits: Dict[str, int]) -> bool:
        minute_key = f"{key}:minute"
        hour_key = f"{key}:hour"
        now = self._clock()

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(minute_key, 0, now - 60)
        pipe.zremrangebyscore(hour_key, 0, now - 3600)
        pipe.zcard(minute_key)
        pipe.zcard(hour_key)
        results = pipe.execute()

        if results[2] >= limits["requests_per_minute"] or results[3] >= limits["requests_per_hour"]:
            return False

        pipe = self.redis.pipeline()
        pipe.zadd(minute_key, {str(now): now})
        pipe.zadd(hour_key, {str(now): now})
        pipe.expire(minute_key, 120)
        pipe.expire(hour_key, 7200)
        pipe.execute()
        return True

    def _try_acquire_memory(self, key: str, limits: Dict[str, int]) -> bool:
        now = self._clock()
        with self._lock:
            recent = [t for t in self._memory_store[key] if now - t < 3600]
            self._memory_store[key] = recent
            minute_count = sum(1 for t in recent if now - t < 60)

            if minute_count >= limits["requests_per_minute"] or len(recent) >= limits["requests_per_hour"]:
                return False

            recent.append(now)
            return True
