import logging
from typing import Any

from src.models.outcome import RetryDecision
from src.observability.metrics import RetryMetrics
from src.retry_client.errors import StatusError

logger = logging.getLogger(__name__)


class BackoffPolicy:
    """Retry policy with a fixed delay schedule and a retry limit.

    Instances are callables with the signature the client expects, so they
    can be passed straight in as ``retry=``.
    """

    DEFAULT_SCHEDULE = [1, 5, 30, 120]  # 1s, 5s, 30s, 2m

    # Statuses below 500 that are worth another try
    RETRY_CODES = {408, 425, 429}

    def __init__(
        self,
        schedule: list[float] | None = None,
        max_retries: int | None = None,
        metrics: RetryMetrics | None = None,
    ):
        self.schedule = schedule or self.DEFAULT_SCHEDULE
        self.max_retries = max_retries if max_retries is not None else len(self.schedule)
        self.metrics = metrics

    def should_retry(self, error: Exception) -> bool:
        """Decide from the failure alone whether another try could help.

        Returns True for:
        - transport errors (connection refused, timeout, ...)
        - 5xx server errors and the statuses in RETRY_CODES
        Returns False for any other status.
        """
        if not isinstance(error, StatusError):
            return True
        if error.status in self.RETRY_CODES:
            return True
        return error.status >= 500

    def next_delay(self, attempt: int) -> float:
        """Get the delay in seconds before retrying after ``attempt`` (0-indexed)."""
        if attempt >= len(self.schedule):
            return float(self.schedule[-1])
        return float(self.schedule[attempt])

    def has_attempts_remaining(self, attempt: int) -> bool:
        return attempt < self.max_retries

    def __call__(self, request: Any, error: Exception, attempt: int) -> RetryDecision:
        if self.metrics is not None:
            self.metrics.record_failure()

        if self.should_retry(error) and self.has_attempts_remaining(attempt):
            return RetryDecision(self.next_delay(attempt), True)

        logger.warning(
            "Giving up on %s %s after %d attempt(s): %s",
            getattr(request, "method", ""),
            getattr(request, "url", request),
            attempt + 1,
            error,
        )
        if self.metrics is not None:
            self.metrics.record_abandoned()
        return RetryDecision(0.0, False)
