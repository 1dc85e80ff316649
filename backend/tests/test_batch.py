"""
Tests for the batch orchestrator.
"""
import threading

import pytest

from services.batch import BatchOrchestrator, BatchReport
from services.cancellation import CancelToken
from services.errors import BatchPartialFailure, FetchError
from services.resolver import WordResolver
from word_doubles import FakeFetcher, make_record


@pytest.fixture
def make_resolver(cache, store):
    resolvers = []

    def _make(fetcher):
        resolver = WordResolver(cache, store, fetcher)
        resolvers.append(resolver)
        return resolver

    yield _make
    for resolver in resolvers:
        resolver.close()


class TestResolveAll:
    def test_all_keys_resolved(self, make_resolver, store):
        orchestrator = BatchOrchestrator(make_resolver(FakeFetcher()))

        report = orchestrator.resolve_all(["cat", "dog"])

        assert report.ok
        assert set(report.results) == {"cat", "dog"}
        assert sorted(store.insert_calls) == ["cat", "dog"]

    def test_one_failing_key_fails_the_batch(self, make_resolver, store):
        orchestrator = BatchOrchestrator(make_resolver(FakeFetcher(failing={"zzz"})))

        with pytest.raises(BatchPartialFailure) as exc:
            orchestrator.resolve_all({"cat", "dog", "zzz"})

        report = exc.value.report
        assert report.failed_keys == ["zzz"]
        assert set(report.results) == {"cat", "dog"}
        assert isinstance(exc.value.first_error, FetchError)
        # The other keys were still resolved and persisted
        assert sorted(store.insert_calls) == ["cat", "dog"]

    def test_failure_report_lists_error_codes(self, make_resolver):
        orchestrator = BatchOrchestrator(
            make_resolver(FakeFetcher(failing={"zzz"}, missing={"qwx"}))
        )

        with pytest.raises(BatchPartialFailure) as exc:
            orchestrator.resolve_all(["cat", "zzz", "qwx"])

        summary = exc.value.report.to_dict()
        assert summary["total"] == 3
        assert summary["resolved"] == ["cat"]
        assert summary["failed"] == {"qwx": "WORD_NOT_FOUND", "zzz": "SOURCE_UNAVAILABLE"}

    def test_empty_batch_succeeds(self, make_resolver):
        orchestrator = BatchOrchestrator(make_resolver(FakeFetcher()))

        report = orchestrator.resolve_all([])

        assert isinstance(report, BatchReport)
        assert report.ok
        assert report.total == 0

    def test_duplicate_keys_resolved_once(self, make_resolver):
        fetcher = FakeFetcher()
        orchestrator = BatchOrchestrator(make_resolver(fetcher))

        report = orchestrator.resolve_all(["cat", "cat", "dog"])

        assert report.total == 2
        assert sorted(fetcher.calls) == ["cat", "dog"]

    def test_cached_keys_skip_the_source(self, make_resolver, cache):
        cache.put("cat", make_record("cat"))
        fetcher = FakeFetcher()
        orchestrator = BatchOrchestrator(make_resolver(fetcher))

        orchestrator.resolve_all(["cat", "dog"])

        assert fetcher.calls == ["dog"]


class TestConcurrency:
    def test_unbounded_batch_runs_keys_in_parallel(self, make_resolver):
        keys = ["a", "b", "c", "d"]
        barrier = threading.Barrier(len(keys), timeout=5)

        def wait_for_all(key, cancel):
            # Only passes if every key is in flight at the same time
            barrier.wait()

        orchestrator = BatchOrchestrator(make_resolver(FakeFetcher(on_fetch=wait_for_all)))

        report = orchestrator.resolve_all(keys)

        assert report.ok

    def test_concurrency_cap_is_respected(self, make_resolver):
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def track(key, cancel):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            threading.Event().wait(0.02)
            with lock:
                state["active"] -= 1

        orchestrator = BatchOrchestrator(make_resolver(FakeFetcher(on_fetch=track)), max_workers=2)

        report = orchestrator.resolve_all([f"w{i}" for i in range(8)])

        assert report.total == 8
        assert state["peak"] <= 2

    def test_invalid_cap_rejected(self, make_resolver):
        with pytest.raises(ValueError):
            BatchOrchestrator(make_resolver(FakeFetcher()), max_workers=0)

    def test_cancelled_batch_fails_every_key(self, make_resolver, store):
        token = CancelToken()
        token.cancel()
        orchestrator = BatchOrchestrator(make_resolver(FakeFetcher()))

        with pytest.raises(BatchPartialFailure) as exc:
            orchestrator.resolve_all(["cat", "dog"], cancel=token)

        assert exc.value.report.failed_keys == ["cat", "dog"]
        assert store.insert_calls == []
