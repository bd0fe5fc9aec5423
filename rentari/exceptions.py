"""
Custom exception classes for the Rentari backend.

Every error carries the HTTP status it should be reported with, so the
central error handler can render ``{"error": true, "message": ...}``
without knowing where the error was raised.
"""


class RentariError(Exception):
    """Base class: an error with a message and an HTTP status."""

    status = 500
    default_message = "Error: unexpected failure"

    def __init__(self, message: str | None = None, status: int | None = None) -> None:
        self.message = message or self.default_message
        if status is not None:
            self.status = status
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(RentariError):
    """Raised when a request carries malformed or disallowed fields."""

    status = 400
    default_message = "Error: invalid request data"


class UnauthorizedError(RentariError):
    """Raised for missing, invalid or expired tokens and bad credentials."""

    status = 403
    default_message = "Error: unauthorized request"


class NotFoundError(RentariError):
    """Raised when a vehicle, account or ledger cannot be found."""

    status = 404
    default_message = "Error: resource not found"


class ConflictError(RentariError):
    """Raised on duplicate registrations and competing holds."""

    status = 409
    default_message = "Error: resource already exists"


class InternalError(RentariError):
    """Raised when a storage step fails unexpectedly."""

    status = 500


def wrap_error(exc: Exception, message: str) -> RentariError:
    """Keep an error that already carries a status, otherwise wrap it as a 500."""
    if isinstance(exc, RentariError):
        return exc
    return InternalError(f"{message}: {exc}")
