"""Business-rule rejections raised by the booking services.

All of these are deterministic: retrying the same request yields the same
answer. The API layer renders them into the error envelope using
``status_code``; ``details`` carries ids and current/expected state.
"""

from typing import Any


class BookingError(Exception):
    """Base class for rejections the caller can act on."""

    status_code: int = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = {key: value for key, value in details.items() if value is not None}

    def __str__(self) -> str:
        return self.message


class ValidationError(BookingError):
    """Malformed or missing input, detected before touching persistence."""

    status_code = 400


class InvalidRangeError(ValidationError):
    pass


class NotFoundError(BookingError):
    status_code = 404


class ForbiddenError(BookingError):
    status_code = 403


class InvalidStateError(BookingError):
    """Wrong current status or a time-window violation."""

    status_code = 400


class NotStartedError(InvalidStateError):
    pass


class WindowExpiredError(InvalidStateError):
    pass


class ConflictError(BookingError):
    """Lost an optimistic-concurrency race or the slot is already taken."""

    status_code = 409


class OverlapError(ConflictError):
    pass


class LinkedError(ConflictError):
    pass


class ConfigurationError(BookingError):
    """A collaborator is missing required configuration (not a per-request fault)."""

    status_code = 503
