"""
Google API and domain services for the invoicing system.

The Google API layer provides:
- User OAuth, service account or ADC authentication
- Exponential backoff with quota jitter
- Typed error classification
- A shared TTL read cache for spreadsheet ranges
"""

from .error_classifier import ErrorClassifier, ErrorKind, GoogleServiceError
from .google_drive_service import GoogleDriveService
from .google_sheets_service import GoogleSheetsService
from .retry_handler import RetryHandler
from .sheets_cache_service import SheetsCacheService

__all__ = [
    "ErrorClassifier",
    "ErrorKind",
    "GoogleServiceError",
    "RetryHandler",
    "GoogleSheetsService",
    "GoogleDriveService",
    "SheetsCacheService",
]
