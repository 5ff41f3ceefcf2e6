"""Per-request log fields, secret redaction and call tracing."""

import contextvars
import functools
import logging
import uuid
from typing import Any, Callable, Dict, Optional

# A ContextVar follows a request across the event loop and the threadpool
# that runs sync endpoints.
_fields: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "invoicing_log_fields", default={}
)

REDACTED = "***REDACTED***"

# Substrings of argument or field names whose values never reach a log line
SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "token",
        "api_key",
        "secret",
        "private_key",
        "credentials",
        "authorization",
    }
)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _fields.get().get("correlation_id")


def get_log_context() -> Dict[str, Any]:
    """Snapshot of the fields currently attached to log records."""
    return dict(_fields.get())


class LogContext:
    """
    Bind structured fields to every log record emitted inside the block.

    Nested blocks add to the outer fields and restore them on exit.

    Example:
        with LogContext(correlation_id=request_id, invoice_id=invoice.id):
            storage.archive_invoice(invoice.id)
    """

    def __init__(self, **fields):
        self.fields = fields
        self._token: Optional[contextvars.Token] = None

    def __enter__(self):
        self._token = _fields.set({**_fields.get(), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _fields.reset(self._token)
            self._token = None


class ContextFilter(logging.Filter):
    """Copies the bound LogContext fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.__dict__.update(_fields.get())
        return True


def _is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_FIELDS)


def sanitize_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy of ``data`` with sensitive values replaced by a marker.

    Nested dictionaries are sanitized too. ``None`` values stay ``None`` so
    a missing secret is still distinguishable from a set one.
    """
    if not isinstance(data, dict):
        return data

    def clean(key: str, value: Any) -> Any:
        if _is_sensitive(key):
            return None if value is None else REDACTED
        if isinstance(value, dict):
            return sanitize_sensitive_data(value)
        return value

    return {key: clean(key, value) for key, value in data.items()}


def _describe_call(args: tuple, kwargs: Dict[str, Any]) -> str:
    shown = [repr(arg) for arg in args]
    shown.extend(f"{key}={value!r}" for key, value in sanitize_sensitive_data(kwargs).items())
    return ", ".join(shown)


def log_function_call(
    func: Optional[Callable] = None, *, include_args: bool = False, level: str = "DEBUG"
) -> Callable:
    """
    Trace entry, exit and failures of the decorated function.

    Works bare (``@log_function_call``) or configured
    (``@log_function_call(include_args=True, level="INFO")``). Keyword
    arguments are redacted with :func:`sanitize_sensitive_data`.
    """
    log_level = logging.getLevelName(level.upper())

    def decorate(target: Callable) -> Callable:
        logger = logging.getLogger(target.__module__)
        name = target.__name__

        @functools.wraps(target)
        def traced(*args, **kwargs):
            if include_args:
                logger.log(log_level, f"Entering {name} with args: {_describe_call(args, kwargs)}")
            else:
                logger.log(log_level, f"Entering {name}")
            try:
                result = target(*args, **kwargs)
            except Exception as e:
                logger.error(f"Exception in {name}: {type(e).__name__}: {e}", exc_info=True)
                raise
            logger.log(log_level, f"Exiting {name}")
            return result

        return traced

    return decorate if func is None else decorate(func)
