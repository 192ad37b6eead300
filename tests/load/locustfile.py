# Locust load test for retry throughput.
#
# How to run:
#   locust -f tests/load/locustfile.py --headless -u 50 -r 10 --run-time 30s
#
# The test starts a ScriptedEndpointServer on port 8080 via on_test_start /
# on_test_stop events. Every path fails once with 503 and then succeeds, so
# every logical request needs exactly one background retry.

import logging
import threading
import time
import uuid

from locust import User, between, events, task

from src.receiver.server import ScriptedEndpointServer
from src.retry_client.client import RetryClient
from src.retry_client.policy import BackoffPolicy
from src.utils.factories import RequestFactory, request_id

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared state: tracking sent vs succeeded for loss assertions
# ---------------------------------------------------------------------------
_stats_lock = threading.Lock()
_sent_count: int = 0
_started: dict[str, float] = {}

_server: ScriptedEndpointServer | None = None
_client: RetryClient | None = None


def _on_success(request, response, attempt) -> None:
    with _stats_lock:
        started = _started.pop(request_id(request), None)
    if started is None:
        return
    events.request.fire(
        request_type="RETRY",
        name=f"success after {attempt} retr{'y' if attempt == 1 else 'ies'}",
        response_time=(time.monotonic() - started) * 1000,
        response_length=0,
        exception=None,
        context={},
    )


# ---------------------------------------------------------------------------
# Locust lifecycle events
# ---------------------------------------------------------------------------
@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Start the flaky endpoint and a shared client before the load test begins."""
    global _server, _client, _sent_count

    with _stats_lock:
        _sent_count = 0
        _started.clear()

    _server = ScriptedEndpointServer(host="127.0.0.1", port=8080)
    _server.fail_first_per_path(1, code=503)
    _server.start()
    _client = RetryClient(
        retry=BackoffPolicy(schedule=[0.05], max_retries=3),
        success=_on_success,
    )
    logger.info("ScriptedEndpointServer started on port 8080")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Drain outstanding retries, stop the endpoint and report stats."""
    global _server, _client

    drained = _client.wait_idle(timeout=30) if _client is not None else True
    if not drained:
        environment.process_exit_code = 1
        logger.error("ASSERTION FAILED: retries still outstanding after 30s")

    if _server is not None:
        _server.stop()
        _server = None
        logger.info("ScriptedEndpointServer stopped")
    _client = None

    with _stats_lock:
        total_sent = _sent_count
        lost = len(_started)

    logger.info("Load test summary: sent=%d, never_succeeded=%d", total_sent, lost)

    if lost:
        environment.process_exit_code = 1
        logger.error(
            "ASSERTION FAILED: %d of %d requests never succeeded",
            lost,
            total_sent,
        )


# ---------------------------------------------------------------------------
# Locust user
# ---------------------------------------------------------------------------
class RetryingUser(User):
    """Sends requests through the shared RetryClient, each to a fresh path."""

    wait_time = between(0.01, 0.05)

    @task
    def send_with_retry(self) -> None:
        global _sent_count

        request = RequestFactory.create(_server.url_for(f"/load/{uuid.uuid4().hex}"))
        with _stats_lock:
            _sent_count += 1
            _started[request_id(request)] = time.monotonic()

        _client.do(request)
