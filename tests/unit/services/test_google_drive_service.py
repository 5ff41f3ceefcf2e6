"""
Unit tests for GoogleDriveService and the archive file name helpers.
"""

from datetime import date, datetime, timezone
from unittest.mock import Mock, patch

import pytest
from google.oauth2.credentials import Credentials

from invoicing.services.error_classifier import ResourceNotFoundError
from invoicing.services.google_drive_service import (
    FolderExistsError,
    GoogleDriveService,
    generate_invoice_filename,
    sanitize_filename,
    sanitize_filename_component,
    timestamped_filename,
)
from invoicing.services.retry_handler import RetryHandler


class TestFilenames:
    def test_sanitize_component(self):
        assert sanitize_filename_component("Acme & Sons (U.K.)") == "Acme-Sons-UK"
        assert sanitize_filename_component("a/b:c") == "abc"
        assert len(sanitize_filename_component("x" * 80)) == 50

    def test_sanitize_filename(self):
        assert sanitize_filename('bad:name?.pdf') == "bad-name-.pdf"

    def test_generate_invoice_filename(self):
        name = generate_invoice_filename("INV-0001", "Acme Corp", date(2024, 1, 10))

        assert name == "Invoice-INV-0001-Acme-Corp-2024-01-10.pdf"

    def test_generate_recurring_filename(self):
        name = generate_invoice_filename(
            "INV-0002", "Acme", date(2024, 2, 1), recurrence_info="monthly-1"
        )

        assert name == "Invoice-INV-0002-Acme-2024-02-01-Recurring-monthly-1.pdf"

    def test_timestamped_filename(self):
        now = datetime(2024, 3, 5, 14, 30, 15, 123456, tzinfo=timezone.utc)

        assert (
            timestamped_filename("Invoice.pdf", now)
            == "Invoice-2024-03-05T14-30-15-123Z.pdf"
        )


@pytest.fixture
def mock_build():
    with patch("invoicing.services.google_drive_service.build") as build:
        build.return_value = Mock()
        yield build


@pytest.fixture
def drive(mock_build):
    return GoogleDriveService(Credentials(token="user-token"), RetryHandler(max_retries=0))


def files_api(mock_build):
    return mock_build.return_value.files.return_value


class TestGoogleDriveService:
    def test_configured_folder_is_verified(self, drive, mock_build):
        files_api(mock_build).get.return_value.execute.return_value = {"id": "folder-1"}

        assert drive.ensure_invoice_folder("folder-1") == "folder-1"
        files_api(mock_build).create.assert_not_called()

    def test_missing_configured_folder_falls_back_to_name(self, drive):
        with patch.object(
            drive, "get_file_metadata", side_effect=ResourceNotFoundError("gone")
        ), patch.object(drive, "find_folder", return_value="by-name"):
            assert drive.ensure_invoice_folder("folder-1", "Invoices") == "by-name"

    def test_creates_folder_when_none_exists(self, drive, mock_build):
        files_api(mock_build).list.return_value.execute.return_value = {"files": []}
        files_api(mock_build).create.return_value.execute.return_value = {"id": "new-folder"}

        assert drive.ensure_invoice_folder(None, "Invoices") == "new-folder"
        body = files_api(mock_build).create.call_args.kwargs["body"]
        assert body == {"name": "Invoices", "mimeType": "application/vnd.google-apps.folder"}

    def test_create_folder_rejects_duplicates(self, drive):
        with patch.object(drive, "find_folder", return_value="existing"):
            with pytest.raises(FolderExistsError) as exc_info:
                drive.create_folder("Invoices")

        assert exc_info.value.status_code == 409

    def test_create_folder_returns_summary(self, drive, mock_build):
        files_api(mock_build).list.return_value.execute.return_value = {"files": []}
        files_api(mock_build).create.return_value.execute.return_value = {
            "id": "f1",
            "name": "2024",
            "parents": ["root-folder"],
            "createdTime": "2024-01-01T00:00:00Z",
        }

        folder = drive.create_folder("2024", parent_id="root-folder")

        assert folder["id"] == "f1"
        assert folder["parent_id"] == "root-folder"

    def test_upload_uses_unique_name(self, drive, mock_build):
        files_api(mock_build).list.return_value.execute.return_value = {"files": []}
        files_api(mock_build).create.return_value.execute.return_value = {
            "id": "file-1",
            "name": "Invoice.pdf",
            "webViewLink": "https://drive.google.com/file/d/file-1/view",
        }

        result = drive.upload_pdf(b"%PDF-1.4", "Invoice.pdf", "folder-1")

        assert result["id"] == "file-1"
        body = files_api(mock_build).create.call_args.kwargs["body"]
        assert body["name"] == "Invoice.pdf"
        assert body["parents"] == ["folder-1"]

    def test_upload_timestamps_conflicting_name(self, drive, mock_build):
        files_api(mock_build).list.return_value.execute.return_value = {
            "files": [{"id": "old", "name": "Invoice.pdf"}]
        }
        files_api(mock_build).create.return_value.execute.return_value = {"id": "file-2"}

        drive.upload_pdf(b"%PDF-1.4", "Invoice.pdf", "folder-1")

        name = files_api(mock_build).create.call_args.kwargs["body"]["name"]
        assert name.startswith("Invoice-") and name.endswith("Z.pdf")
