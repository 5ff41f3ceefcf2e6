"""
Error classification for Google API calls.

Raw failures (``HttpError``, auth refresh failures, socket errors) are mapped
to an :class:`ErrorKind` and wrapped in a typed :class:`GoogleServiceError`
so callers can decide on retries and HTTP status codes without inspecting
transport details.
"""

import logging
import socket
from enum import Enum
from typing import Optional

import requests.exceptions
from google.auth import exceptions as auth_exceptions
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Classification of external-call failures."""

    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    QUOTA = "quota"
    NETWORK = "network"
    SERVER = "server"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.QUOTA, ErrorKind.NETWORK, ErrorKind.SERVER})

_QUOTA_MARKERS = ("quota", "rate limit", "ratelimitexceeded", "userratelimitexceeded")


class GoogleServiceError(Exception):
    """Base class for classified Google Sheets/Drive failures."""

    kind = ErrorKind.UNKNOWN
    code = "GOOGLE_SERVICE_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        if status_code is not None:
            self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class AuthenticationError(GoogleServiceError):
    kind = ErrorKind.AUTHENTICATION
    code = "AUTHENTICATION_FAILED"
    status_code = 401


class PermissionDeniedError(GoogleServiceError):
    kind = ErrorKind.PERMISSION
    code = "PERMISSION_DENIED"
    status_code = 403


class ResourceNotFoundError(GoogleServiceError):
    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"
    status_code = 404


class QuotaExceededError(GoogleServiceError):
    kind = ErrorKind.QUOTA
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429


class NetworkError(GoogleServiceError):
    kind = ErrorKind.NETWORK
    code = "NETWORK_ERROR"
    status_code = 503


class ServerError(GoogleServiceError):
    kind = ErrorKind.SERVER
    code = "GOOGLE_SERVER_ERROR"
    status_code = 500


class RemoteValidationError(GoogleServiceError):
    kind = ErrorKind.VALIDATION
    code = "VALIDATION_ERROR"
    status_code = 400


_ERROR_CLASSES = {
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.PERMISSION: PermissionDeniedError,
    ErrorKind.NOT_FOUND: ResourceNotFoundError,
    ErrorKind.QUOTA: QuotaExceededError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.VALIDATION: RemoteValidationError,
    ErrorKind.UNKNOWN: GoogleServiceError,
}


def _http_error_message(error: HttpError) -> str:
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)
    return str(error)


class ErrorClassifier:
    """
    Classifies exceptions into :class:`ErrorKind` values.

    Features:
    - HTTP status code classification (403 split into quota vs permission)
    - Auth refresh and transport error detection
    - Wrapping into typed GoogleServiceError subclasses
    """

    def _kind_for(self, exception: Exception) -> ErrorKind:
        if isinstance(exception, GoogleServiceError):
            return exception.kind

        if isinstance(exception, HttpError):
            status_code = exception.resp.status
            message = _http_error_message(exception).lower()

            if status_code == 401:
                return ErrorKind.AUTHENTICATION
            if status_code == 403:
                if any(marker in message for marker in _QUOTA_MARKERS):
                    return ErrorKind.QUOTA
                return ErrorKind.PERMISSION
            if status_code == 404:
                return ErrorKind.NOT_FOUND
            if status_code == 429:
                return ErrorKind.QUOTA
            if 500 <= status_code < 600:
                return ErrorKind.SERVER
            if 400 <= status_code < 500:
                return ErrorKind.VALIDATION

        if isinstance(exception, auth_exceptions.RefreshError):
            return ErrorKind.AUTHENTICATION

        if isinstance(
            exception,
            (
                auth_exceptions.TransportError,
                socket.timeout,
                ConnectionError,
                requests.exceptions.ConnectionError,
                requests.exceptions.Timeout,
            ),
        ):
            return ErrorKind.NETWORK

        return ErrorKind.UNKNOWN

    def classify(self, exception: Exception) -> ErrorKind:
        """
        Classify an exception.

        Args:
            exception: The exception to classify

        Returns:
            The matching ErrorKind (UNKNOWN when nothing matches)
        """
        return self._kind_for(exception)

    def is_retryable(self, exception: Exception) -> bool:
        """Whether the exception is a quota, network or server failure."""
        return self.classify(exception) in RETRYABLE_KINDS

    def to_service_error(
        self, exception: Exception, operation: Optional[str] = None
    ) -> GoogleServiceError:
        """
        Wrap an exception in the GoogleServiceError subclass for its kind.

        Already-classified errors are returned unchanged.
        """
        if isinstance(exception, GoogleServiceError):
            return exception

        kind = self.classify(exception)
        error_class = _ERROR_CLASSES[kind]

        if isinstance(exception, HttpError):
            detail = _http_error_message(exception)
        else:
            detail = str(exception) or type(exception).__name__

        prefix = f"{kind.value.replace('_', ' ').capitalize()} error"
        if operation:
            prefix += f" during {operation}"

        error = error_class(f"{prefix}: {detail}", operation=operation)
        error.__cause__ = exception
        return error
