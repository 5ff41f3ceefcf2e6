"""
Retry handler with exponential backoff for Google Sheets/Drive calls.
"""

import logging
import random
import threading
import time
from typing import Any, Callable, Optional

from invoicing.services.error_classifier import (
    ErrorClassifier,
    ErrorKind,
    GoogleServiceError,
)

logger = logging.getLogger(__name__)


class RetryHandler:
    """
    Runs a callable, retrying transient Google API failures.

    Features:
    - Exponential backoff capped at ``max_delay``
    - Random jitter on quota (rate limit) errors only
    - Terminal errors (auth, permission, not found, validation) raised at once
    - Failures re-raised as typed GoogleServiceError subclasses
    - Statistics tracking for health reporting
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 8.0,
        backoff_multiplier: float = 2,
        classifier: Optional[ErrorClassifier] = None,
    ):
        """Delays are in seconds; ``max_retries`` counts retries after the first attempt."""
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_multiplier = backoff_multiplier
        self.classifier = classifier or ErrorClassifier()

        self._total_calls = 0
        self._total_retries = 0
        self._total_failures = 0

        self._lock = threading.Lock()

    def calculate_delay(self, attempt: int, kind: ErrorKind = ErrorKind.UNKNOWN) -> float:
        """
        Delay before retry number ``attempt`` (1-based).

        Args:
            attempt: Retry number, starting at 1
            kind: Classification of the failure being retried

        Returns:
            Delay in seconds
        """
        delay = self.base_delay * (self.backoff_multiplier ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if kind == ErrorKind.QUOTA:
            delay = delay * (1 + random.random())

        return delay

    def execute_with_retry(
        self, func: Callable, *args, operation: Optional[str] = None, **kwargs
    ) -> Any:
        """
        Call ``func(*args, **kwargs)`` until it succeeds or fails terminally.

        ``operation`` names the call in log lines and error messages.

        Raises:
            GoogleServiceError: The classified error of the last attempt
        """
        with self._lock:
            self._total_calls += 1

        func_name = operation or getattr(func, "__name__", repr(func))

        attempt = 0
        while True:
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                error = self.classifier.to_service_error(e, operation=func_name)

                if not error.retryable:
                    logger.debug(
                        f"Not retrying {func_name}: {error.kind.value} error is terminal"
                    )
                    with self._lock:
                        self._total_retries += attempt
                        self._total_failures += 1
                    raise error

                if attempt >= self.max_retries:
                    logger.warning(
                        f"Max retries ({self.max_retries}) exceeded for {func_name}: "
                        f"{error.message}"
                    )
                    with self._lock:
                        self._total_retries += attempt
                        self._total_failures += 1
                    raise error

                attempt += 1
                delay = self.calculate_delay(attempt, error.kind)
                logger.info(
                    f"Retrying {func_name} in {delay:.2f}s "
                    f"(retry {attempt}/{self.max_retries}, {error.kind.value})"
                )
                time.sleep(delay)
                continue

            if attempt > 0:
                logger.info(f"{func_name} succeeded after {attempt} retries")
                with self._lock:
                    self._total_retries += attempt
            return result

    def get_retry_statistics(self) -> dict:
        """Call, retry and failure counters since creation or the last reset."""
        with self._lock:
            return {
                "total_calls": self._total_calls,
                "total_retries": self._total_retries,
                "total_failures": self._total_failures,
                "max_retries": self.max_retries,
            }

    def reset_statistics(self):
        with self._lock:
            self._total_calls = 0
            self._total_retries = 0
            self._total_failures = 0


def create_retry_handler(config=None) -> RetryHandler:
    """Build a RetryHandler from the application configuration."""
    if config is None:
        from invoicing.config import get_config

        config = get_config()

    return RetryHandler(
        max_retries=config.max_retries,
        base_delay=config.retry_base_delay,
        max_delay=config.retry_max_delay,
    )


__all__ = ["RetryHandler", "GoogleServiceError", "create_retry_handler"]
