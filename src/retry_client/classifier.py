import logging
from typing import Any, Callable

import requests

from src.models.outcome import Outcome
from src.retry_client.errors import StatusError

logger = logging.getLogger(__name__)

BODY_PREFIX_LIMIT = 300


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code <= 299


def read_body_prefix(response: Any, limit: int = BODY_PREFIX_LIMIT) -> str:
    """Read the whole body and return its first ``limit`` characters.

    A failing read gives an empty string instead of an error.
    """
    try:
        text = response.text
    except (requests.RequestException, OSError) as e:
        logger.debug("Could not read response body: %s", e)
        return ""
    return (text or "")[:limit]


def classify(send: Callable[[], Any]) -> Outcome:
    """Run one transport call and decide whether it succeeded.

    Transport exceptions are returned as-is inside the failure. Non-2xx
    responses are drained, closed and turned into a ``StatusError``. A 2xx
    response is returned open; closing it is up to the caller.
    """
    try:
        response = send()
    except Exception as e:
        return Outcome.failure(e)

    if is_success_status(response.status_code):
        return Outcome.success(response)

    try:
        body = read_body_prefix(response)
    finally:
        response.close()
    return Outcome.failure(StatusError(response.status_code, body))
