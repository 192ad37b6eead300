from http.cookiejar import DefaultCookiePolicy
from typing import Any, Protocol

import requests
from requests.adapters import HTTPAdapter

DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_POOL_SIZE = 100


class Transport(Protocol):
    """Anything that can perform one request/response exchange.

    ``send`` returns a response exposing ``status_code``, a readable body and
    ``close()``, or raises on a transport-level failure.
    """

    def send(self, request: Any) -> Any:
        ...


def stateless_session(pool_size: int = DEFAULT_POOL_SIZE) -> requests.Session:
    """A session that never stores cookies, so requests cannot leak into each other."""
    session = requests.Session()
    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class RequestsTransport:
    """Default transport backed by a ``requests.Session``.

    Responses are streamed so the body is still unread (and open) when it is
    handed to the success callback.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.session = session or stateless_session()
        self.timeout_seconds = timeout_seconds

    def send(self, request: requests.PreparedRequest | requests.Request) -> requests.Response:
        prepared = request
        if isinstance(request, requests.Request):
            # Prepare a fresh copy per attempt; the caller's object is left as is.
            prepared = self.session.prepare_request(request)
        return self.session.send(prepared, stream=True, timeout=self.timeout_seconds)

    def close(self) -> None:
        self.session.close()
