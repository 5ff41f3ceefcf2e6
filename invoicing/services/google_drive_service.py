"""
Google Drive service for archiving invoice PDFs.
"""

import io
import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from invoicing.services.credentials import CredentialsSource, resolve_credentials
from invoicing.services.error_classifier import (
    ErrorKind,
    GoogleServiceError,
    ResourceNotFoundError,
)
from invoicing.services.retry_handler import RetryHandler

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
PDF_MIME_TYPE = "application/pdf"
DEFAULT_FOLDER_NAME = "Invoices"

_INVALID_COMPONENT_CHARS = re.compile(r'[<>:"/\\|?*&()]')
_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*]')


class FolderExistsError(GoogleServiceError):
    """A folder with the requested name already exists."""

    kind = ErrorKind.VALIDATION
    code = "FOLDER_ALREADY_EXISTS"
    status_code = 409


def sanitize_filename_component(component: str, max_length: int = 50) -> str:
    """
    Make one part of a file name safe for Drive and local file systems.

    Removes reserved characters and periods, turns whitespace into dashes,
    collapses repeated dashes and truncates to ``max_length``.
    """
    cleaned = _INVALID_COMPONENT_CHARS.sub("", component)
    cleaned = cleaned.replace(".", "")
    cleaned = re.sub(r"\s+", "-", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned).strip("-")
    return cleaned[:max_length].rstrip("-")


def sanitize_filename(file_name: str) -> str:
    """Replace reserved characters with dashes and cap the length at 255."""
    cleaned = _INVALID_NAME_CHARS.sub("-", file_name)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:255]


def generate_invoice_filename(
    invoice_number: str,
    client_name: str,
    issue_date: date,
    recurrence_info: Optional[str] = None,
) -> str:
    """
    Build the archive file name of an invoice PDF.

    Format: ``Invoice-{number}-{client}-{YYYY-MM-DD}.pdf``, with
    ``-Recurring-{info}`` before the extension for recurring invoices.
    """
    name = (
        f"Invoice-{sanitize_filename_component(invoice_number)}"
        f"-{sanitize_filename_component(client_name)}"
        f"-{issue_date.isoformat()}"
    )
    if recurrence_info:
        name += f"-Recurring-{sanitize_filename_component(recurrence_info)}"
    return f"{name}.pdf"


def timestamped_filename(file_name: str, now: Optional[datetime] = None) -> str:
    """Insert an ISO timestamp (``:`` and ``.`` as dashes) before the extension."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    base, dot, extension = file_name.rpartition(".")
    if not dot:
        return f"{file_name}-{stamp}"
    return f"{base}-{stamp}.{extension}"


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveService:
    """
    Google Drive v3 client with retry handling.

    Features:
    - User OAuth credentials, service account info or ADC
    - Automatic retry with exponential backoff
    - Invoice folder resolution (configured id, else find-or-create by name)
    - PDF upload with file name conflict handling
    - Folder listing and creation
    """

    def __init__(
        self,
        credentials: CredentialsSource = None,
        retry_handler: Optional[RetryHandler] = None,
        scopes: Optional[List[str]] = None,
    ):
        self.retry_handler = retry_handler or RetryHandler()
        self.scopes = scopes
        self._service = self._create_service(credentials)

    def _create_service(self, credentials_source: CredentialsSource):
        try:
            credentials, description = resolve_credentials(
                credentials_source, self.scopes
            )
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            logger.info(f"Google Drive service initialized with {description}")
            return service

        except Exception as e:
            logger.error(f"Failed to initialize Google Drive service: {e}")
            raise

    def _execute(self, operation: str, func):
        try:
            return self.retry_handler.execute_with_retry(func, operation=operation)
        except GoogleServiceError as e:
            logger.error(f"Drive {operation} failed: {e.message}")
            raise

    def get_file_metadata(self, file_id: str) -> Dict[str, Any]:
        """Get id, name, mime type and parents of a file or folder."""

        def _get_operation():
            return (
                self._service.files()
                .get(fileId=file_id, fields="id, name, mimeType, parents, webViewLink")
                .execute()
            )

        return self._execute("get file metadata", _get_operation)

    def find_files(self, query: str, fields: str = "files(id, name)") -> List[Dict[str, Any]]:
        """Run a Drive ``files.list`` query and return the matching files."""

        def _list_operation():
            return (
                self._service.files()
                .list(q=query, fields=fields, spaces="drive")
                .execute()
            )

        return self._execute("list files", _list_operation).get("files", [])

    def find_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Optional[str]:
        """Return the id of a non-trashed folder with this name, if any."""
        query = (
            f"name='{_quote(folder_name)}' and mimeType='{FOLDER_MIME_TYPE}' "
            "and trashed=false"
        )
        if parent_id:
            query += f" and '{_quote(parent_id)}' in parents"
        files = self.find_files(query)
        return files[0]["id"] if files else None

    def ensure_invoice_folder(
        self, folder_id: Optional[str] = None, folder_name: str = DEFAULT_FOLDER_NAME
    ) -> str:
        """
        Resolve the folder invoices are archived to.

        A configured ``folder_id`` is verified first; if it no longer exists
        the folder named ``folder_name`` is found or created instead.
        """
        if folder_id:
            try:
                self.get_file_metadata(folder_id)
                return folder_id
            except ResourceNotFoundError:
                logger.warning(
                    f"Configured Drive folder {folder_id} not found, "
                    f"falling back to '{folder_name}'"
                )

        existing = self.find_folder(folder_name)
        if existing:
            return existing

        folder = self._create_folder(folder_name)
        logger.info(f"Created invoice folder '{folder_name}' ({folder['id']})")
        return folder["id"]

    def _create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"name": folder_name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            body["parents"] = [parent_id]

        def _create_operation():
            return (
                self._service.files()
                .create(body=body, fields="id, name, parents, createdTime, modifiedTime")
                .execute()
            )

        return self._execute("create folder", _create_operation)

    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a folder, refusing duplicates.

        Raises:
            FolderExistsError: A folder with this name already exists
        """
        if self.find_folder(folder_name, parent_id):
            raise FolderExistsError(
                f'A folder named "{folder_name}" already exists',
                operation="create folder",
            )
        return _folder_summary(self._create_folder(folder_name, parent_id))

    def list_folders(self) -> List[Dict[str, Any]]:
        """List all folders visible to the caller, ordered by name."""

        def _list_operation():
            return (
                self._service.files()
                .list(
                    q=f"mimeType='{FOLDER_MIME_TYPE}' and trashed=false",
                    fields="files(id, name, parents, createdTime, modifiedTime)",
                    orderBy="name",
                    pageSize=200,
                )
                .execute()
            )

        files = self._execute("list folders", _list_operation).get("files", [])
        return [_folder_summary(f) for f in files]

    def resolve_filename_conflict(self, folder_id: str, file_name: str) -> str:
        """Return ``file_name``, timestamped if the folder already holds it."""
        query = (
            f"name='{_quote(file_name)}' and '{_quote(folder_id)}' in parents "
            "and trashed=false"
        )
        try:
            existing = self.find_files(query)
        except GoogleServiceError as e:
            logger.warning(f"Could not check for file name conflicts: {e.message}")
            return file_name

        if not existing:
            return file_name
        return timestamped_filename(file_name)

    def upload_pdf(self, content: bytes, file_name: str, folder_id: str) -> Dict[str, Any]:
        """
        Upload PDF bytes into a folder, avoiding name conflicts.

        Returns:
            Dictionary with ``id``, ``name`` and ``webViewLink`` of the file
        """
        final_name = self.resolve_filename_conflict(folder_id, sanitize_filename(file_name))

        def _upload_operation():
            media = MediaIoBaseUpload(
                io.BytesIO(content), mimetype=PDF_MIME_TYPE, resumable=False
            )
            return (
                self._service.files()
                .create(
                    body={
                        "name": final_name,
                        "parents": [folder_id],
                        "mimeType": PDF_MIME_TYPE,
                    },
                    media_body=media,
                    fields="id, name, webViewLink",
                )
                .execute()
            )

        result = self._execute("upload invoice PDF", _upload_operation)
        logger.info(f"Uploaded {final_name} to Drive folder {folder_id}")
        return result


def _folder_summary(folder: Dict[str, Any]) -> Dict[str, Any]:
    parents = folder.get("parents") or []
    return {
        "id": folder.get("id"),
        "name": folder.get("name"),
        "parent_id": parents[0] if parents else None,
        "created_time": folder.get("createdTime"),
        "modified_time": folder.get("modifiedTime"),
    }
