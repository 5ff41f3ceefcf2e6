"""
Archiving of invoice PDFs to Google Drive.

Every invoice has at most one storage status row. Archiving never raises:
failures are recorded on the status with whether a retry may succeed, so
that invoice creation is never failed by Drive.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from invoicing.errors import InvalidStateError, InvoicingError, StorageDisabledError
from invoicing.models import (
    ActivityType,
    EntityType,
    Invoice,
    InvoiceStorageStatus,
    StorageState,
)
from invoicing.models.base import utc_now
from invoicing.services.activity_logger import ActivityLogger
from invoicing.services.error_classifier import ErrorClassifier, GoogleServiceError
from invoicing.services.google_drive_service import (
    GoogleDriveService,
    generate_invoice_filename,
)
from invoicing.sheets import Workbook
from invoicing.writers.pdf_generator import InvoicePDFGenerator

logger = logging.getLogger(__name__)


class StorageService:
    """
    Drive archive of invoice PDFs.

    ``drive`` is created lazily through ``drive_factory`` so that requests
    which never touch Drive do not build a Drive client.
    """

    def __init__(
        self,
        workbook: Workbook,
        activity: ActivityLogger,
        drive_factory: Callable[[], GoogleDriveService],
        classifier: Optional[ErrorClassifier] = None,
    ):
        self.workbook = workbook
        self.activity = activity
        self._drive_factory = drive_factory
        self._drive: Optional[GoogleDriveService] = None
        self.classifier = classifier or ErrorClassifier()

    @property
    def drive(self) -> GoogleDriveService:
        if self._drive is None:
            self._drive = self._drive_factory()
        return self._drive

    def render_pdf(self, invoice: Invoice) -> bytes:
        client = self.workbook.clients.require(invoice.client_id)
        company = self.workbook.get_company_settings()
        return InvoicePDFGenerator(invoice, client, company).generate()

    def file_name_for(self, invoice: Invoice) -> str:
        client = self.workbook.clients.get(invoice.client_id)
        recurrence = (
            invoice.recurring_schedule.describe()
            if invoice.is_recurring and invoice.recurring_schedule
            else None
        )
        return generate_invoice_filename(
            invoice.invoice_number,
            client.name if client else "Unknown-Client",
            invoice.issue_date,
            recurrence,
        )

    def get_status(self, invoice_id: str) -> Optional[InvoiceStorageStatus]:
        return self.workbook.storage_statuses.get(invoice_id)

    def storage_status(self, invoice_ids: Optional[List[str]] = None) -> List[InvoiceStorageStatus]:
        """Statuses of the given invoices (all when omitted); unknown ids are skipped."""
        if invoice_ids is None:
            return self.workbook.storage_statuses.list_all()
        wanted = set(invoice_ids)
        return self.workbook.storage_statuses.filter(lambda s: s.invoice_id in wanted)

    def archive_invoice(self, invoice_id: str, retry_count: int = 0) -> InvoiceStorageStatus:
        """
        Render an invoice's PDF and upload it to the configured folder.

        Returns:
            The resulting storage status (stored, failed or disabled)
        """
        app_settings = self.workbook.get_app_settings()
        if not app_settings.drive_enabled:
            status = InvoiceStorageStatus(
                invoice_id=invoice_id,
                status=StorageState.DISABLED,
                last_attempt=utc_now(),
                retry_count=retry_count,
            )
            return self._save_status(status)

        pending = InvoiceStorageStatus(
            invoice_id=invoice_id,
            status=StorageState.PENDING,
            last_attempt=utc_now(),
            retry_count=retry_count,
        )
        self._save_status(pending)

        invoice: Optional[Invoice] = None
        try:
            invoice = self.workbook.invoices.require(invoice_id)
            content = self.render_pdf(invoice)
            folder_id = self.drive.ensure_invoice_folder(
                app_settings.drive_folder_id, app_settings.drive_folder_name
            )
            uploaded = self.drive.upload_pdf(content, self.file_name_for(invoice), folder_id)
        except GoogleServiceError as e:
            return self._record_failure(pending, invoice, e.message, e.retryable)
        except InvoicingError as e:
            return self._record_failure(pending, invoice, e.message, False)
        except Exception as e:
            # Rendering and client construction errors land here
            service_error = self.classifier.to_service_error(e, operation="archive invoice")
            return self._record_failure(
                pending, invoice, service_error.message, service_error.retryable
            )

        stored = pending.model_copy(
            update={
                "status": StorageState.STORED,
                "drive_file_id": uploaded.get("id"),
                "file_name": uploaded.get("name"),
                "web_view_link": uploaded.get("webViewLink"),
                "uploaded_at": utc_now(),
                "error_message": None,
                "retryable": False,
            }
        )
        self._save_status(stored)
        logger.info(f"Archived invoice {invoice.invoice_number} as {stored.file_name}")
        self.activity.log(
            ActivityType.DRIVE_UPLOAD_SUCCESS,
            EntityType.INVOICE,
            invoice.id,
            f"Invoice {invoice.invoice_number} archived to Google Drive",
            entity_name=invoice.invoice_number,
            new_value=stored.file_name,
        )
        return stored

    def _record_failure(
        self,
        pending: InvoiceStorageStatus,
        invoice: Optional[Invoice],
        message: str,
        retryable: bool,
    ) -> InvoiceStorageStatus:
        failed = pending.model_copy(
            update={
                "status": StorageState.FAILED,
                "error_message": message,
                "retryable": retryable,
            }
        )
        logger.warning(
            f"Archiving invoice {pending.invoice_id} failed "
            f"({'retryable' if retryable else 'permanent'}): {message}"
        )
        self._save_status(failed)
        self.activity.log(
            ActivityType.DRIVE_UPLOAD_FAILED,
            EntityType.INVOICE,
            pending.invoice_id,
            f"Google Drive upload failed: {message}",
            entity_name=invoice.invoice_number if invoice else None,
        )
        return failed

    def _save_status(self, status: InvoiceStorageStatus) -> InvoiceStorageStatus:
        try:
            return self.workbook.storage_statuses.upsert(status)
        except (GoogleServiceError, InvoicingError) as e:
            logger.warning(f"Could not record storage status of {status.invoice_id}: {e}")
            return status

    def retry_upload(self, invoice_id: str) -> InvoiceStorageStatus:
        """
        Archive an invoice again.

        Raises:
            NotFoundError: If the invoice does not exist
            StorageDisabledError: If Drive archiving is turned off
            InvalidStateError: If the invoice is already stored
        """
        invoice = self.workbook.invoices.require(invoice_id)
        if not self.workbook.get_app_settings().drive_enabled:
            raise StorageDisabledError("Google Drive storage is disabled")

        current = self.get_status(invoice_id)
        if current and current.status == StorageState.STORED:
            raise InvalidStateError(
                f"Invoice {invoice.invoice_number} is already stored in Google Drive",
                details={"drive_file_id": current.drive_file_id},
            )

        retry_count = (current.retry_count if current else 0) + 1
        self.activity.log(
            ActivityType.DRIVE_RETRY,
            EntityType.INVOICE,
            invoice_id,
            f"Retrying Google Drive upload of invoice {invoice.invoice_number} "
            f"(attempt {retry_count})",
            entity_name=invoice.invoice_number,
        )
        return self.archive_invoice(invoice_id, retry_count=retry_count)

    def bulk_retry(self, invoice_ids: List[str]) -> Dict[str, Any]:
        """Retry several uploads sequentially, one result per invoice."""
        results: List[Dict[str, Any]] = []
        for invoice_id in invoice_ids:
            try:
                status = self.retry_upload(invoice_id)
                results.append(
                    {
                        "invoice_id": invoice_id,
                        "success": status.status == StorageState.STORED,
                        "status": status,
                    }
                )
            except InvoicingError as e:
                results.append(
                    {
                        "invoice_id": invoice_id,
                        "success": False,
                        "error": {"code": e.code, "message": e.message},
                    }
                )

        succeeded = sum(1 for r in results if r["success"])
        return {
            "results": results,
            "summary": {
                "total": len(results),
                "succeeded": succeeded,
                "failed": len(results) - succeeded,
            },
        }

    def list_folders(self) -> List[Dict[str, Any]]:
        return self.drive.list_folders()

    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        folder = self.drive.create_folder(folder_name, parent_id)
        logger.info(f"Created Drive folder '{folder_name}' ({folder['id']})")
        return folder
