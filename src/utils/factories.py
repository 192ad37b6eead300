import json
import uuid

import requests


class RequestFactory:
    """Factory for building prepared requests with sensible defaults."""

    @staticmethod
    def create(url: str, method: str = "GET", **overrides) -> requests.PreparedRequest:
        headers = {"X-Request-ID": f"req_{uuid.uuid4().hex[:16]}"}
        headers.update(overrides.pop("headers", {}))

        payload = overrides.pop("json", None)
        if payload is not None:
            overrides["data"] = json.dumps(payload, default=str)
            headers.setdefault("Content-Type", "application/json")

        return requests.Request(method, url, headers=headers, **overrides).prepare()

    @staticmethod
    def create_post(url: str, payload: dict | None = None, **overrides) -> requests.PreparedRequest:
        return RequestFactory.create(url, "POST", json=payload or {}, **overrides)

    @staticmethod
    def create_unprepared(url: str, method: str = "GET", **overrides) -> requests.Request:
        headers = {"X-Request-ID": f"req_{uuid.uuid4().hex[:16]}"}
        headers.update(overrides.pop("headers", {}))
        return requests.Request(method, url, headers=headers, **overrides)


def request_id(request: requests.PreparedRequest | requests.Request) -> str:
    return request.headers.get("X-Request-ID", "")
