import threading

import pytest

from src.observability.metrics import RetryMetrics
from src.receiver.server import ScriptedEndpointServer
from src.retry_client.policy import BackoffPolicy
from src.retry_client.scheduler import ThreadScheduler
from src.utils.factories import RequestFactory


class FakeResponse:
    """Stands in for a requests.Response: a status, a text body and close()."""

    def __init__(self, status_code: int = 200, text: str = "ok", read_error: Exception | None = None):
        self.status_code = status_code
        self._text = text
        self._read_error = read_error
        self.closed = False

    @property
    def text(self) -> str:
        if self.closed:
            raise RuntimeError("body read after close")
        if self._read_error is not None:
            raise self._read_error
        return self._text

    def close(self) -> None:
        self.closed = True


class FakeTransport:
    """Replays a script of responses and exceptions; the last entry repeats."""

    def __init__(self, *script):
        self._script = list(script) or [FakeResponse()]
        self._lock = threading.Lock()
        self.sent: list = []
        self.responses: list = []

    def send(self, request):
        with self._lock:
            index = min(len(self.sent), len(self._script) - 1)
            self.sent.append(request)
            item = self._script[index]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            item = FakeResponse(item)
        else:
            # Fresh copy so a repeated entry is not already closed
            item = FakeResponse(item.status_code, item._text, item._read_error)
        with self._lock:
            self.responses.append(item)
        return item


class CallRecorder:
    """Thread-safe record of success callbacks and retry policy calls."""

    def __init__(self):
        self._lock = threading.Lock()
        self.successes: list[tuple] = []
        self.failures: list[tuple] = []

    def success(self, request, response, attempt):
        with self._lock:
            self.successes.append((request, response, attempt))

    def policy(self, delay: float = 0.0, max_attempt: int = 3):
        """Retry policy whose last attempt is number `max_attempt`.

        It continues while the failed attempt is below `max_attempt`.
        """

        def retry(request, error, attempt):
            with self._lock:
                self.failures.append((request, error, attempt))
            return delay, attempt < max_attempt

        return retry

    @property
    def success_attempts(self) -> list[int]:
        with self._lock:
            return [a for _, _, a in self.successes]

    @property
    def failure_attempts(self) -> list[int]:
        with self._lock:
            return [a for _, _, a in self.failures]


@pytest.fixture
def recorder():
    return CallRecorder()


@pytest.fixture
def scheduler():
    sched = ThreadScheduler()
    yield sched
    sched.wait_idle(timeout=10)


@pytest.fixture
def metrics():
    return RetryMetrics(window_seconds=300)


@pytest.fixture
def backoff_policy():
    return BackoffPolicy()


@pytest.fixture
def endpoint():
    server = ScriptedEndpointServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def request_factory():
    return RequestFactory


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_transport():
    return FakeTransport
