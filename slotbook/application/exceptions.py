from __future__ import annotations


class SchedulingError(RuntimeError):
    """Base class for errors raised by the booking core."""
    pass


class ValidationError(SchedulingError):
    """Raised when request fields are missing or malformed. Not retryable as-is."""

    def __init__(self, message: str, fields: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = dict(fields or {})


class NotFound(SchedulingError):
    """Raised when an event id does not exist."""
    pass


class StoreUnavailable(SchedulingError):
    """Raised when the event store fails (I/O errors, unreadable data). Safe to retry with backoff."""
    pass


class BookingTimeout(StoreUnavailable):
    """Raised when a provider's calendar stays locked past the configured timeout."""
    pass
