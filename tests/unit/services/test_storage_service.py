"""
Unit tests for archiving invoice PDFs to Google Drive.
"""

from unittest.mock import Mock

import pytest

from invoicing.errors import InvalidStateError, StorageDisabledError
from invoicing.models import ActivityType, StorageState
from invoicing.services.client_service import ClientService
from invoicing.services.error_classifier import PermissionDeniedError, QuotaExceededError
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.storage_service import StorageService


@pytest.fixture
def factory(drive):
    return Mock(return_value=drive)


@pytest.fixture
def service(workbook, activity, factory):
    return StorageService(workbook, activity, factory)


@pytest.fixture
def invoice(workbook, activity, client_create, make_invoice_create):
    client = ClientService(workbook, activity).create_client(client_create)
    return InvoiceService(workbook, activity).create_invoice(make_invoice_create(client.id))


def test_archive_uploads_pdf(service, workbook, drive, invoice):
    status = service.archive_invoice(invoice.id)

    assert status.status == StorageState.STORED
    assert status.drive_file_id == "file-1"
    assert status.web_view_link.endswith("/view")
    assert workbook.storage_statuses.get(invoice.id).status == StorageState.STORED

    content, file_name, folder_id = drive.upload_pdf.call_args[0]
    assert content.startswith(b"%PDF")
    assert file_name == "Invoice-INV-0001-Acme-Corp-2024-01-10.pdf"
    assert folder_id == "folder-1"
    drive.ensure_invoice_folder.assert_called_once_with(None, "Invoices")

    types = [log.type for log in workbook.activity_logs.list_all()]
    assert ActivityType.DRIVE_UPLOAD_SUCCESS in types


def test_drive_client_is_built_lazily(service, factory):
    service.storage_status()

    factory.assert_not_called()


def test_disabled_storage(service, workbook, factory, invoice):
    workbook.write_settings({"drive_enabled": False})

    status = service.archive_invoice(invoice.id)

    assert status.status == StorageState.DISABLED
    factory.assert_not_called()


@pytest.mark.parametrize(
    "error,retryable",
    [
        (QuotaExceededError("Rate limit exceeded"), True),
        (PermissionDeniedError("Insufficient permissions"), False),
    ],
)
def test_failure_is_recorded_not_raised(service, workbook, drive, invoice, error, retryable):
    drive.upload_pdf.side_effect = error

    status = service.archive_invoice(invoice.id)

    assert status.status == StorageState.FAILED
    assert status.retryable is retryable
    assert status.error_message == error.message
    assert workbook.storage_statuses.get(invoice.id).status == StorageState.FAILED


def test_unexpected_error_is_classified(service, drive, invoice):
    drive.ensure_invoice_folder.side_effect = ConnectionError("connection reset")

    status = service.archive_invoice(invoice.id)

    assert status.status == StorageState.FAILED
    assert status.retryable is True


class TestRetryUpload:
    def test_increments_retry_count(self, service, drive, invoice):
        drive.upload_pdf.side_effect = [QuotaExceededError("Rate limit exceeded"), drive.upload_pdf.return_value]
        service.archive_invoice(invoice.id)

        status = service.retry_upload(invoice.id)

        assert status.status == StorageState.STORED
        assert status.retry_count == 1

    def test_already_stored(self, service, invoice):
        service.archive_invoice(invoice.id)

        with pytest.raises(InvalidStateError):
            service.retry_upload(invoice.id)

    def test_disabled(self, service, workbook, invoice):
        workbook.write_settings({"drive_enabled": False})

        with pytest.raises(StorageDisabledError):
            service.retry_upload(invoice.id)

    def test_bulk_retry_reports_each_invoice(self, service, invoice):
        result = service.bulk_retry([invoice.id, "missing"])

        assert result["summary"] == {"total": 2, "succeeded": 1, "failed": 1}
        assert result["results"][0]["success"] is True
        assert result["results"][1]["error"]["code"] == "NOT_FOUND"


def test_storage_status_filters_ids(service, invoice):
    service.archive_invoice(invoice.id)

    assert [s.invoice_id for s in service.storage_status([invoice.id, "other"])] == [invoice.id]
    assert service.storage_status(["other"]) == []
