"""
Credential resolution shared by the Sheets and Drive services.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import google.auth
from google.auth.credentials import Credentials as BaseCredentials
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as UserCredentials

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

CredentialsSource = Union[BaseCredentials, Dict[str, Any], None]


def credentials_from_access_token(access_token: str) -> UserCredentials:
    """Wrap a Google OAuth access token issued to the caller."""
    return UserCredentials(token=access_token)


def resolve_credentials(
    source: CredentialsSource,
    scopes: Optional[List[str]] = None,
    subject: Optional[str] = None,
) -> Tuple[BaseCredentials, str]:
    """
    Turn a credentials source into google-auth credentials.

    Args:
        source: Ready credentials, a service account info dict, or None for
            Application Default Credentials
        scopes: OAuth scopes requested for service account / ADC credentials
        subject: Optional user to impersonate with a service account

    Returns:
        Tuple of (credentials, description) where description names the
        credential type for log lines
    """
    scopes = scopes or DEFAULT_SCOPES

    if isinstance(source, BaseCredentials):
        return source, type(source).__name__

    if isinstance(source, dict):
        credentials = service_account.Credentials.from_service_account_info(
            source, scopes=scopes
        )
        if subject:
            credentials = credentials.with_subject(subject)
        project = source.get("project_id", "unknown")
        return credentials, f"service account for project {project}"

    credentials, project = google.auth.default(scopes=scopes)
    return credentials, f"ADC for project {project}"
