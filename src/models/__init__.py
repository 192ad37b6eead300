from .outcome import Outcome, RetryDecision

__all__ = ["Outcome", "RetryDecision"]
