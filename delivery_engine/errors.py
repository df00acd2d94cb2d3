"""
Errors raised by the delivery engine.

Per-item failures inside a queue pass are caught and recorded on the work
item; everything else propagates to the caller.
"""

MAX_ERROR_LENGTH = 500


class DeliveryError(Exception):
    """Base class for all delivery engine errors."""


class ConfigurationError(DeliveryError):
    """Consumer key/secret (or another required setting) is missing or invalid."""


class NotFoundError(DeliveryError):
    """A tweet or credential record referenced by a work item does not exist."""


class NotConnectedError(DeliveryError):
    """The tweet's owner has no stored Twitter credentials."""


class UpstreamError(DeliveryError):
    """Twitter API returned a non-2xx status, a malformed body, or timed out."""

    def __init__(self, message, status_code=None, body=""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SerializationError(UpstreamError):
    """A 2xx response whose body does not match the expected schema."""


def describe(error: Exception) -> str:
    """Short failure description suitable for the error_message column."""
    return f"{type(error).__name__}: {error}"[:MAX_ERROR_LENGTH]
