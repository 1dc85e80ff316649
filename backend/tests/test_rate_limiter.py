"""
Tests for the outbound fetch rate limiter.

Uses the in-memory sliding window with an injected clock; Redis is only
exercised through a MagicMock pipeline.
"""
from unittest.mock import MagicMock, patch

import pytest

from scrapers.rate_limiter import FetchRateLimiter, RateLimitTimeout
from services.cancellation import CancelToken
from services.errors import FetchError, ResolutionCancelled


def _recorded(limiter, domain, route_group="default"):
    return len(limiter._memory_store[limiter._make_key(domain, route_group)])


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def limits_file(tmp_path):
    path = tmp_path / "limits.yaml"
    path.write_text(
        "defaults:\n"
        "  requests_per_minute: 10\n"
        "  requests_per_hour: 100\n"
        "domains:\n"
        "  example.com:\n"
        "    requests_per_minute: 2\n"
        "    routes:\n"
        "      search:\n"
        "        requests_per_hour: 3\n"
    )
    return str(path)


class TestGetLimits:
    def test_bundled_config_loads(self):
        limiter = FetchRateLimiter(redis_url=None)

        assert limiter.get_limits("dict.laban.vn", "find")["requests_per_minute"] == 30
        assert limiter.get_limits("translate.google.com", "single")["requests_per_minute"] == 20

    def test_route_overrides_domain_overrides_defaults(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None)

        assert limiter.get_limits("other.org") == {"requests_per_minute": 10, "requests_per_hour": 100}
        assert limiter.get_limits("example.com") == {"requests_per_minute": 2, "requests_per_hour": 100}
        assert limiter.get_limits("example.com", "search") == {"requests_per_minute": 2, "requests_per_hour": 3}

    def test_missing_config_uses_defaults(self, tmp_path):
        limiter = FetchRateLimiter(config_path=str(tmp_path / "nope.yaml"), redis_url=None)

        assert limiter.get_limits("anything") == {"requests_per_minute": 60, "requests_per_hour": 1000}

    def test_non_positive_limits_fall_back_to_defaults(self, tmp_path):
        path = tmp_path / "limits.yaml"
        path.write_text(
            "domains:\n"
            "  example.com:\n"
            "    requests_per_minute: 0\n"
            "    requests_per_hour: -5\n"
        )
        limiter = FetchRateLimiter(config_path=str(path), redis_url=None, clock=FakeClock())

        assert limiter.get_limits("example.com") == {"requests_per_minute": 60, "requests_per_hour": 1000}
        limiter.wait("example.com")


class TestMemoryWindow:
    def test_minute_window_slides(self, limits_file):
        clock = FakeClock()
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None, clock=clock)
        limits = limiter.get_limits("example.com")
        key = limiter._make_key("example.com")

        assert limiter._try_acquire(key, limits)
        assert limiter._try_acquire(key, limits)
        assert not limiter._try_acquire(key, limits)

        clock.now += 60
        assert limiter._try_acquire(key, limits)

    def test_hour_window(self, limits_file):
        clock = FakeClock()
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None, clock=clock)
        limits = limiter.get_limits("example.com", "search")
        key = limiter._make_key("example.com", "search")

        for _ in range(3):
            assert limiter._try_acquire(key, limits)
            clock.now += 61
        assert not limiter._try_acquire(key, limits)

    def test_wait_records_each_request(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None, clock=FakeClock())

        limiter.wait("example.com")
        limiter.wait("example.com")

        assert _recorded(limiter, "example.com") == 2
        assert not limiter._try_acquire(
            limiter._make_key("example.com"), limiter.get_limits("example.com")
        )


class TestWait:
    def test_cancelled_token_raises_before_acquiring(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None)
        token = CancelToken()
        token.cancel()

        with pytest.raises(ResolutionCancelled):
            limiter.wait("example.com", cancel=token)

        assert _recorded(limiter, "example.com") == 0

    def test_cancel_interrupts_throttled_wait(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None, clock=FakeClock())
        limiter.wait("example.com")
        limiter.wait("example.com")

        token = CancelToken()
        with patch.object(token, "wait", side_effect=lambda timeout: token.cancel()):
            with pytest.raises(ResolutionCancelled):
                limiter.wait("example.com", cancel=token)

    def test_gives_up_after_max_attempts(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None, clock=FakeClock())
        limiter.wait("example.com")
        limiter.wait("example.com")

        with patch("scrapers.rate_limiter.time.sleep") as sleep:
            with pytest.raises(RateLimitTimeout):
                limiter.wait("example.com")

        assert sleep.call_count == 60

    def test_timeout_is_a_fetch_error(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url=None, clock=FakeClock())
        limiter.wait("example.com")
        limiter.wait("example.com")

        with patch.object(limiter, "_sleep"):
            with pytest.raises(FetchError) as exc:
                limiter.wait("example.com")

        assert isinstance(exc.value, RateLimitTimeout)
        assert exc.value.code == "SOURCE_UNAVAILABLE"


class TestRedisBackend:
    def test_acquire_records_request(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url="redis://localhost:6379/0", clock=FakeClock())
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = [[0, 0, 1, 5], [1, 1, True, True]]
        limiter._redis = client

        limiter.wait("example.com")

        assert client.pipeline.call_count == 2

    def test_full_window_is_rejected(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url="redis://localhost:6379/0", clock=FakeClock())
        client = MagicMock()
        client.pipeline.return_value.execute.return_value = [0, 0, 2, 2]
        limiter._redis = client

        assert not limiter._try_acquire("fetch:example.com:default", limiter.get_limits("example.com"))

    def test_unreachable_redis_falls_back_to_memory(self, limits_file):
        limiter = FetchRateLimiter(config_path=limits_file, redis_url="redis://localhost:6379/0", clock=FakeClock())

        with patch("redis.from_url", side_effect=ConnectionError("refused")):
            limiter.wait("example.com")

        assert limiter.redis is None
        assert _recorded(limiter, "example.com") == 1
