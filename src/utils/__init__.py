from .factories import RequestFactory, request_id

__all__ = ["RequestFactory", "request_id"]
