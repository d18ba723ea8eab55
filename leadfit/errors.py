"""
Exception types for the lead resolution pipeline.

Only ConfigurationError is fatal. A directory search that finds nothing or a
vetoed candidate is reported through return values, not exceptions.
"""


class ConfigurationError(ValueError):
    """Raised when a required credential or setting is missing or rejected."""
    pass


class TransientFailure(Exception):
    """A timeout, network error, 429 or 5xx response worth retrying."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


class CircuitOpenError(Exception):
    """Raised instead of calling a provider whose circuit breaker is open. Not fatal."""
    pass
