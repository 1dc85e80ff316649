"""
Batch Orchestrator - resolve many keys concurrently.

Each key gets its own task on a thread pool. By default the pool is sized to
the batch (unbounded per batch); pass max_workers to cap outbound fetch
pressure. All tasks are awaited; if any failed, BatchPartialFailure is raised
with the per-key report so callers can retry selectively.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models.word import WordRecord
from services.cancellation import CancelToken, ensure_token
from services.errors import BatchPartialFailure

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Per-key outcome of a batch."""
    results: Dict[str, WordRecord] = field(default_factory=dict)
    errors: Dict[str, Exception] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results) + len(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def failed_keys(self) -> List[str]:
        return sorted(self.errors)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "resolved": sorted(self.results),
            "failed": {
                key: getattr(err, "code", "INTERNAL_ERROR")
                for key, err in sorted(self.errors.items())
            },
            "duration_seconds": round(self.duration_seconds, 3),
        }


class BatchOrchestrator:
    def __init__(self, resolver, max_workers: Optional[int] = None):
        """
        Args:
            resolver: WordResolver used for every key
            max_workers: Concurrency cap; None means one worker per key
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.resolver = resolver
        self.max_workers = max_workers

    def resolve_all(
        self,
        keys: Iterable[str],
        cancel: Optional[CancelToken] = None,
    ) -> BatchReport:
        """
        Resolve every key, waiting for all of them.

        Args:
            keys: Normalized, de-duplicated keys
            cancel: Token shared by every resolution of the batch

        Returns:
            BatchReport with every key resolved

        Raises:
            BatchPartialFailure: If one or more keys failed
        """
        token = ensure_token(cancel)
        unique = list(dict.fromkeys(keys))
        report = BatchReport()
        if not unique:
            return report

        workers = len(unique) if self.max_workers is None else min(self.max_workers, len(unique))
        start = time.perf_counter()
        first_error: Optional[Exception] = None

        logger.info("word_batch_start keys=%d workers=%d", len(unique), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="word-batch") as pool:
            futures = {
                pool.submit(self.resolver.resolve, key, token): key
                for key in unique
            }
            for future in as_completed(futures):
                key = futures[future]
                try:
                    report.results[key] = future.result()
                except Exception as e:
                    report.errors[key] = e
                    if first_error is None:
                        first_error = e
                    logger.warning("word_batch_key_failed key=%s err=%s", key, e)

        report.duration_seconds = time.perf_counter() - start
        logger.info(
            "word_batch_done resolved=%d failed=%d elapsed_s=%.2f",
            len(report.results), len(report.errors), report.duration_seconds,
        )

        if first_error is not None:
            raise BatchPartialFailure(report, first_error)
        return report
