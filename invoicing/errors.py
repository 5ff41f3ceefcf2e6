"""
Application error hierarchy.

Every error carries a machine-readable ``code`` and the HTTP status the API
renders it with. Google API failures use the parallel
:class:`~invoicing.services.error_classifier.GoogleServiceError` hierarchy.
"""

from typing import Any, Optional


class InvoicingError(Exception):
    """Base class for application errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code


class ValidationFailedError(InvoicingError):
    """Input failed validation."""

    code = "VALIDATION_ERROR"
    status_code = 400


class UnauthenticatedError(InvoicingError):
    """No usable credentials on the request."""

    code = "UNAUTHORIZED"
    status_code = 401


class NotFoundError(InvoicingError):
    """A referenced record does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, key: str):
        super().__init__(f"{entity} not found: {key}", details={"entity": entity, "id": key})
        self.entity = entity
        self.key = key


class InvalidStateError(InvoicingError):
    """The operation conflicts with the record's current state."""

    code = "INVALID_STATE"
    status_code = 409


class StorageDisabledError(InvalidStateError):
    code = "STORAGE_DISABLED"
