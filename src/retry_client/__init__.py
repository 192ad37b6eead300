from .client import ClientConfig, RetryClient
from .errors import ConfigurationError, StatusError
from .policy import BackoffPolicy
from .scheduler import Scheduler, ThreadScheduler
from .transport import RequestsTransport, Transport

__all__ = [
    "ClientConfig",
    "RetryClient",
    "ConfigurationError",
    "StatusError",
    "BackoffPolicy",
    "Scheduler",
    "ThreadScheduler",
    "RequestsTransport",
    "Transport",
]
