"""
Invoice lifecycle: creation with computed totals and numbering, updates,
status changes, sending, deletion and payment reconciliation.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from invoicing.calculators import (
    calculate_line_items,
    calculate_totals,
    next_invoice_number,
    status_after_payments,
    summarize_payments,
)
from invoicing.errors import InvalidStateError, ValidationFailedError
from invoicing.models import (
    ActivityType,
    EntityType,
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    InvoiceUpdate,
    RecurringSchedule,
    RecurringScheduleInput,
)
from invoicing.models.base import utc_now
from invoicing.services.activity_logger import ActivityLogger
from invoicing.sheets import Workbook
from invoicing.utils.pagination import sort_records

logger = logging.getLogger(__name__)

_STATUS_ACTIVITY = {
    InvoiceStatus.SENT: ActivityType.INVOICE_SENT,
    InvoiceStatus.PAID: ActivityType.INVOICE_PAID,
    InvoiceStatus.CANCELLED: ActivityType.INVOICE_CANCELLED,
}

INVOICE_SORT_KEYS: Dict[str, Callable[[Invoice], Any]] = {
    "issue_date": lambda inv: inv.issue_date,
    "due_date": lambda inv: inv.due_date,
    "total": lambda inv: inv.total,
    "balance": lambda inv: inv.balance,
    "invoice_number": lambda inv: inv.invoice_number,
    "status": lambda inv: inv.status.value,
    "created_at": lambda inv: inv.created_at,
}


def build_schedule(schedule: RecurringScheduleInput) -> RecurringSchedule:
    """A new schedule starts generating on its start date."""
    return RecurringSchedule(
        frequency=schedule.frequency,
        interval=schedule.interval,
        start_date=schedule.start_date,
        end_date=schedule.end_date,
        next_invoice_date=schedule.start_date,
        is_active=True,
    )


class InvoiceService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.workbook = workbook
        self.activity = activity

    def list_invoices(
        self,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> List[Invoice]:
        """
        Filter invoices.

        Args:
            status: Only invoices with this status
            client_id: Only invoices of this client
            date_from: Issue date on or after
            date_to: Issue date on or before
            search: Case-insensitive match on number, notes or client name
            sort_by: One of INVOICE_SORT_KEYS (default: newest issue date first)
            sort_order: asc or desc
        """
        needle = search.strip().lower() if search else None
        client_names: Dict[str, str] = {}
        if needle:
            client_names = {c.id: c.name for c in self.workbook.clients.list_all()}

        def matches(invoice: Invoice) -> bool:
            if status and invoice.status != status:
                return False
            if client_id and invoice.client_id != client_id:
                return False
            if date_from and invoice.issue_date < date_from:
                return False
            if date_to and invoice.issue_date > date_to:
                return False
            if needle:
                haystack = " ".join(
                    [
                        invoice.invoice_number,
                        invoice.notes or "",
                        client_names.get(invoice.client_id, ""),
                    ]
                ).lower()
                if needle not in haystack:
                    return False
            return True

        invoices = self.workbook.invoices.filter(matches)
        if not sort_by:
            return sorted(invoices, key=lambda inv: inv.issue_date, reverse=True)
        return sort_records(invoices, sort_by, sort_order, INVOICE_SORT_KEYS)

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self.workbook.invoices.require(invoice_id)

    def _next_number(self) -> str:
        prefix = self.workbook.get_company_settings().invoice_prefix
        numbers = [inv.invoice_number for inv in self.workbook.invoices.list_all()]
        return next_invoice_number(prefix, numbers)

    def create_invoice(self, data: InvoiceCreate, parent_invoice_id: Optional[str] = None) -> Invoice:
        """
        Create an invoice with computed line amounts, totals and number.

        Raises:
            NotFoundError: If the client (or template) does not exist
        """
        self.workbook.clients.require(data.client_id)
        if data.template_id:
            self.workbook.templates.require(data.template_id)

        line_items = calculate_line_items(data.line_items)
        totals = calculate_totals(line_items, data.tax_rate)

        invoice = Invoice(
            invoice_number=self._next_number(),
            client_id=data.client_id,
            template_id=data.template_id,
            status=data.status,
            issue_date=data.issue_date,
            due_date=data.due_date,
            line_items=line_items,
            subtotal=totals.subtotal,
            tax_rate=data.tax_rate,
            tax_amount=totals.tax_amount,
            total=totals.total,
            balance=totals.total,
            notes=data.notes,
            is_recurring=data.is_recurring,
            recurring_schedule=build_schedule(data.recurring_schedule)
            if data.is_recurring and data.recurring_schedule
            else None,
            parent_invoice_id=parent_invoice_id,
            sent_date=utc_now() if data.status == InvoiceStatus.SENT else None,
        )
        self.workbook.invoices.insert(invoice)
        logger.info(f"Created invoice {invoice.invoice_number} ({invoice.id})")

        self.activity.log(
            ActivityType.INVOICE_CREATED,
            EntityType.INVOICE,
            invoice.id,
            f"Invoice {invoice.invoice_number} created",
            entity_name=invoice.invoice_number,
            amount=invoice.total,
        )
        return invoice

    def update_invoice(self, invoice_id: str, data: InvoiceUpdate) -> Invoice:
        """
        Apply a partial update.

        A status-only body changes just the status. Otherwise line items and
        tax rate changes recompute totals, and the balance and status are
        re-derived from the amount already paid.
        """
        if data.is_status_only():
            return self.update_status(invoice_id, data.status)

        invoice = self.workbook.invoices.require(invoice_id)
        previous_status = invoice.status
        changes = data.model_dump(exclude_unset=True)

        if "client_id" in changes:
            self.workbook.clients.require(data.client_id)

        fields: Dict[str, Any] = invoice.model_dump()
        for name in ("client_id", "template_id", "issue_date", "due_date", "notes", "is_recurring"):
            if name in changes:
                fields[name] = changes[name]
        if data.status is not None:
            fields["status"] = data.status

        if fields["due_date"] < fields["issue_date"]:
            raise ValidationFailedError("Due date must be on or after issue date")

        line_items = invoice.line_items
        if data.line_items is not None:
            line_items = calculate_line_items(data.line_items)
        tax_rate = data.tax_rate if data.tax_rate is not None else invoice.tax_rate
        totals = calculate_totals(line_items, tax_rate)

        schedule = invoice.recurring_schedule
        if data.recurring_schedule is not None:
            schedule = build_schedule(data.recurring_schedule)
        if not fields["is_recurring"]:
            schedule = None
        elif schedule is None:
            raise ValidationFailedError("Recurring schedule is required for recurring invoices")

        fields.update(
            line_items=[item.model_dump() for item in line_items],
            tax_rate=tax_rate,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total=totals.total,
            balance=totals.total - invoice.paid_amount,
            status=status_after_payments(fields["status"], totals.total, invoice.paid_amount),
            recurring_schedule=schedule.model_dump() if schedule else None,
            updated_at=utc_now(),
        )
        if fields["status"] == InvoiceStatus.SENT and not invoice.sent_date:
            fields["sent_date"] = utc_now()

        updated = Invoice.model_validate(fields)
        self.workbook.invoices.update(updated)

        self.activity.log(
            ActivityType.INVOICE_UPDATED,
            EntityType.INVOICE,
            updated.id,
            f"Invoice {updated.invoice_number} updated",
            entity_name=updated.invoice_number,
            amount=updated.total,
            previous_value=previous_status.value if previous_status != updated.status else None,
            new_value=updated.status.value if previous_status != updated.status else None,
        )
        return updated

    def update_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        invoice = self.workbook.invoices.require(invoice_id)
        previous = invoice.status
        if previous == status:
            return invoice

        changes: Dict[str, Any] = {"status": status, "updated_at": utc_now()}
        if status == InvoiceStatus.SENT and not invoice.sent_date:
            changes["sent_date"] = utc_now()
        updated = invoice.model_copy(update=changes)
        self.workbook.invoices.update(updated)

        self.activity.log(
            _STATUS_ACTIVITY.get(status, ActivityType.INVOICE_UPDATED),
            EntityType.INVOICE,
            invoice.id,
            f"Invoice {invoice.invoice_number} status changed from "
            f"{previous.value} to {status.value}",
            entity_name=invoice.invoice_number,
            amount=invoice.total,
            previous_value=previous.value,
            new_value=status.value,
        )
        return updated

    def send_invoice(self, invoice_id: str) -> Invoice:
        """
        Mark an invoice as sent and stamp the sent date.

        Raises:
            InvalidStateError: If the invoice is paid or cancelled
        """
        invoice = self.workbook.invoices.require(invoice_id)
        if invoice.status in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
            raise InvalidStateError(
                f"Cannot send a {invoice.status.value} invoice",
                details={"status": invoice.status.value},
            )

        updated = invoice.model_copy(
            update={
                "status": InvoiceStatus.SENT,
                "sent_date": utc_now(),
                "updated_at": utc_now(),
            }
        )
        self.workbook.invoices.update(updated)
        self.activity.log(
            ActivityType.INVOICE_SENT,
            EntityType.INVOICE,
            invoice.id,
            f"Invoice {invoice.invoice_number} sent",
            entity_name=invoice.invoice_number,
            amount=invoice.total,
            previous_value=invoice.status.value,
            new_value=InvoiceStatus.SENT.value,
        )
        return updated

    def delete_invoice(self, invoice_id: str) -> Dict[str, Any]:
        """Delete an invoice with its payments and storage status."""
        invoice = self.workbook.invoices.require(invoice_id)

        payments_deleted = self.workbook.payments.delete_where(
            lambda p: p.invoice_id == invoice_id
        )
        self.workbook.storage_statuses.delete(invoice_id)
        self.workbook.invoices.delete(invoice_id)
        logger.info(
            f"Deleted invoice {invoice.invoice_number} and {payments_deleted} payments"
        )

        self.activity.log(
            ActivityType.INVOICE_DELETED,
            EntityType.INVOICE,
            invoice_id,
            f"Invoice {invoice.invoice_number} deleted",
            entity_name=invoice.invoice_number,
            amount=invoice.total,
        )
        return {"id": invoice_id, "payments_deleted": payments_deleted}

    def reconcile_payments(self, invoice_id: str) -> Invoice:
        """
        Recompute paid amount, balance and status from the Payments tab.

        Called after every payment mutation.
        """
        invoice = self.workbook.invoices.require(invoice_id)
        amounts = [
            p.amount
            for p in self.workbook.payments.filter(lambda p: p.invoice_id == invoice_id)
        ]
        summary = summarize_payments(invoice.status, invoice.total, amounts)

        if (
            summary.paid_amount == invoice.paid_amount
            and summary.balance == invoice.balance
            and summary.status == invoice.status
        ):
            return invoice

        updated = invoice.model_copy(
            update={
                "paid_amount": summary.paid_amount,
                "balance": summary.balance,
                "status": summary.status,
                "updated_at": utc_now(),
            }
        )
        self.workbook.invoices.update(updated)

        if summary.status != invoice.status:
            logger.info(
                f"Invoice {invoice.invoice_number} moved from {invoice.status.value} "
                f"to {summary.status.value} after payment change"
            )
            self.activity.log(
                _STATUS_ACTIVITY.get(summary.status, ActivityType.INVOICE_UPDATED),
                EntityType.INVOICE,
                invoice.id,
                f"Invoice {invoice.invoice_number} is now {summary.status.value}",
                entity_name=invoice.invoice_number,
                amount=summary.paid_amount,
                previous_value=invoice.status.value,
                new_value=summary.status.value,
            )
        return updated

    def mark_overdue(self, today: Optional[date] = None) -> List[Invoice]:
        """Move sent invoices with an open balance past their due date to overdue."""
        today = today or date.today()
        updated: List[Invoice] = []
        for invoice in self.workbook.invoices.filter(
            lambda inv: inv.status == InvoiceStatus.SENT
            and inv.due_date < today
            and inv.balance > 0
        ):
            updated.append(self.update_status(invoice.id, InvoiceStatus.OVERDUE))
        if updated:
            logger.info(f"Marked {len(updated)} invoices overdue")
        return updated

