import logging
from dataclasses import dataclass
from typing import Any, Callable

from src.models.outcome import RetryDecision
from src.retry_client.classifier import classify
from src.retry_client.errors import ConfigurationError
from src.retry_client.scheduler import Scheduler, ThreadScheduler
from src.retry_client.transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

# (request, error, attempt) -> (delay seconds, keep retrying)
RetryPolicy = Callable[[Any, Exception, int], tuple[float, bool]]

# (request, response, attempt) -> None
SuccessCallback = Callable[[Any, Any, int], None]


@dataclass(frozen=True)
class ClientConfig:
    """Collaborators shared by every attempt of every request sent through a client.

    Attributes:
        retry: Decides after each failure whether to try again, and after how
            long. Required.
        success: Called once a request gets a 2xx response. The response is
            closed after it returns, so it does not need to close it. Never
            called if the request runs out of retries.
        scheduler: Runs retries later. Defaults to a new ThreadScheduler.
        transport: Performs the HTTP exchange. Defaults to a
            RequestsTransport with a 10 second timeout.
    """

    retry: RetryPolicy | None
    success: SuccessCallback | None = None
    scheduler: Scheduler | None = None
    transport: Transport | None = None

    def __post_init__(self):
        if self.retry is None:
            raise ConfigurationError("a retry policy is required")
        if self.scheduler is None:
            object.__setattr__(self, "scheduler", ThreadScheduler())
        if self.transport is None:
            object.__setattr__(self, "transport", RequestsTransport())


class RetryClient:
    """Sends requests and hands failed ones to the scheduler for another try."""

    def __init__(
        self,
        retry: RetryPolicy | None,
        success: SuccessCallback | None = None,
        scheduler: Scheduler | None = None,
        transport: Transport | None = None,
    ):
        self.config = ClientConfig(
            retry=retry,
            success=success,
            scheduler=scheduler,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ClientConfig) -> "RetryClient":
        return cls(
            retry=config.retry,
            success=config.success,
            scheduler=config.scheduler,
            transport=config.transport,
        )

    @property
    def scheduler(self) -> Scheduler:
        return self.config.scheduler

    def do(self, request: Any) -> None:
        """Send ``request``. The first attempt runs here; retries run later.

        Failures are never raised to the caller.
        """
        self.attempt(request, 0)

    def attempt(self, request: Any, attempt: int) -> None:
        """Run attempt number ``attempt`` of ``request``.

        Schedulers call this to run a retry.
        """
        config = self.config
        logger.debug("Attempt %d: %s", attempt, _describe(request))

        outcome = classify(lambda: config.transport.send(request))

        if outcome.ok:
            response = outcome.response
            try:
                if config.success is not None:
                    config.success(request, response, attempt)
            finally:
                response.close()
            logger.debug("Attempt %d succeeded: %s", attempt, _describe(request))
            return

        delay, retry = RetryDecision(*config.retry(request, outcome.error, attempt))
        if not retry:
            logger.debug(
                "Attempt %d failed (%s), not retrying: %s",
                attempt, outcome.error, _describe(request),
            )
            return

        delay = max(float(delay), 0.0)
        logger.debug(
            "Attempt %d failed (%s), retrying in %.3fs: %s",
            attempt, outcome.error, delay, _describe(request),
        )
        config.scheduler.schedule(self, request, attempt, delay, outcome.error)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every retry scheduled so far has finished."""
        return self.config.scheduler.wait_idle(timeout)


def _describe(request: Any) -> str:
    method = getattr(request, "method", None)
    url = getattr(request, "url", None)
    if method is None and url is None:
        return repr(request)
    return f"{method} {url}"
