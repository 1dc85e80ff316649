"""
Cancellation tokens threaded through every tier call.

A token is cancelled explicitly (cancel()) or implicitly when its deadline
passes. Tiers call raise_if_cancelled() before doing I/O and use remaining()
to bound network timeouts.

Usage:
    token = CancelToken.with_timeout(10)
    record = resolver.resolve("apple", cancel=token)
"""
import threading
import time
from typing import Optional

from services.errors import ResolutionCancelled


class CancelToken:
    def __init__(self, deadline: Optional[float] = None, clock=time.monotonic):
        self._event = threading.Event()
        self._deadline = deadline
        self._clock = clock
        self.reason: Optional[str] = None

    @classmethod
    def with_timeout(cls, seconds: Optional[float], clock=time.monotonic) -> "CancelToken":
        if seconds is None:
            return cls(clock=clock)
        return cls(deadline=clock() + seconds, clock=clock)

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and self._clock() >= self._deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def bound_timeout(self, timeout: float) -> float:
        """Clamp a network timeout so it never outlives the token."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return max(0.001, min(timeout, remaining))

    def raise_if_cancelled(self, key: Optional[str] = None) -> None:
        if self.cancelled:
            raise ResolutionCancelled(
                f"resolution cancelled: {self.reason}", key=key
            )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout; True if cancelled."""
        return self._event.wait(timeout)

    def __repr__(self):
        return f"<CancelToken cancelled={self.cancelled} remaining={self.remaining()}>"


def ensure_token(cancel: Optional[CancelToken]) -> CancelToken:
    """Never-cancelled token for callers that pass None."""
    return cancel if cancel is not None else CancelToken()
