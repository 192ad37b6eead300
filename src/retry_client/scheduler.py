"""Strategies for running a failed request again later.

Retries held by ``ThreadScheduler`` live only in memory: they are lost if the
process exits before they run. Supply a different ``Scheduler`` (for example
one that writes to a durable queue and later calls ``client.attempt``) when
that matters.
"""

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from src.retry_client.client import RetryClient

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    def schedule(
        self,
        client: "RetryClient",
        request: Any,
        attempt: int,
        delay: float,
        error: Exception,
    ) -> None:
        """Arrange for ``client.attempt(request, attempt + 1)`` after ``delay`` seconds.

        Must return without waiting for the retry.
        """
        ...

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no scheduled retry is outstanding."""
        ...


class ThreadScheduler:
    """Runs every retry on its own daemon thread.

    Threads are cheap but not free: a long outage with many queued requests
    means one sleeping thread per pending retry.
    """

    def __init__(self):
        self._outstanding = 0
        self._cond = threading.Condition()

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._outstanding

    def schedule(
        self,
        client: "RetryClient",
        request: Any,
        attempt: int,
        delay: float,
        error: Exception,
    ) -> None:
        self._add(1)
        thread = threading.Thread(
            target=self._run,
            args=(client, request, attempt + 1, max(delay, 0.0)),
            name=f"retry-attempt-{attempt + 1}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError:
            self._add(-1)
            logger.error("Could not start retry thread for attempt %d", attempt + 1)
            raise

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait for outstanding retries to finish. Returns False on timeout.

        Retries scheduled while waiting are waited for too.
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    def _run(self, client: "RetryClient", request: Any, attempt: int, delay: float) -> None:
        try:
            if delay > 0:
                time.sleep(delay)
            client.attempt(request, attempt)
        finally:
            self._add(-1)

    def _add(self, n: int) -> None:
        with self._cond:
            self._outstanding += n
            if self._outstanding == 0:
                self._cond.notify_all()
