class StatusError(Exception):
    """The transport returned a response, but not a 2xx one."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body  # first BODY_PREFIX_LIMIT characters of the body
        super().__init__(f"status {status}: {body}")


class ConfigurationError(Exception):
    """Raised when a client is built without a usable configuration."""
