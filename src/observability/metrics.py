import threading
import time
from typing import Any


class RetryMetrics:
    """Counts attempt outcomes over a rolling time window.

    ``record_success`` takes the success callback arguments, so an instance's
    method can be passed as ``success=`` directly.
    """

    def __init__(self, window_seconds: float = 300):
        self._window_seconds = window_seconds
        self._successes: list[float] = []  # timestamps
        self._failures: list[float] = []
        self._abandoned: list[float] = []
        self._lock = threading.Lock()

    def record_success(self, request: Any = None, response: Any = None, attempt: int | None = None) -> None:
        self._record(self._successes)

    def record_failure(self) -> None:
        self._record(self._failures)

    def record_abandoned(self) -> None:
        self._record(self._abandoned)

    def _record(self, data: list[float]) -> None:
        with self._lock:
            now = time.monotonic()
            self._prune(data, now)
            data.append(now)

    def _prune(self, data: list[float], now: float) -> list[float]:
        """Drop entries older than the window, in place. Caller holds the lock."""
        cutoff = now - self._window_seconds
        data[:] = [t for t in data if t >= cutoff]
        return data

    def failure_rate(self) -> float:
        """Share of attempts in the window that failed (0.0 to 1.0)."""
        with self._lock:
            now = time.monotonic()
            successes = self._prune(self._successes, now)
            failures = self._prune(self._failures, now)
            total = len(successes) + len(failures)
            if total == 0:
                return 0.0
            return len(failures) / total

    def success_count_in_window(self) -> int:
        with self._lock:
            return len(self._prune(self._successes, time.monotonic()))

    def failure_count_in_window(self) -> int:
        with self._lock:
            return len(self._prune(self._failures, time.monotonic()))

    def abandoned_count_in_window(self) -> int:
        with self._lock:
            return len(self._prune(self._abandoned, time.monotonic()))

    def reset(self) -> None:
        with self._lock:
            self._successes.clear()
            self._failures.clear()
            self._abandoned.clear()
