from dataclasses import dataclass
from typing import Any, NamedTuple


class RetryDecision(NamedTuple):
    delay: float  # seconds
    retry: bool


@dataclass(frozen=True)
class Outcome:
    """Result of one attempt: either a response or the reason it failed."""

    response: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, response: Any) -> "Outcome":
        return cls(response=response)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome":
        return cls(error=error)
