"""
Recurring billing: find schedules that are due and generate invoices from them.

Generation is sequential. Each generated invoice is a draft copy of its
parent issued on the schedule date; the parent's schedule then advances
and is deactivated once it moves past its end date.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from invoicing.calculators import next_occurrence_after
from invoicing.calculators.invoice_calculator import due_date_for, schedule_is_due
from invoicing.errors import InvalidStateError, InvoicingError
from invoicing.models import (
    ActivityType,
    EntityType,
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    LineItemInput,
)
from invoicing.models.base import utc_now
from invoicing.services.activity_logger import ActivityLogger
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.services.invoice_service import InvoiceService
from invoicing.sheets import Workbook
from invoicing.utils.logging_utils import log_function_call

logger = logging.getLogger(__name__)


def _require_before_end(invoice: Invoice) -> None:
    schedule = invoice.recurring_schedule
    if schedule.end_date is not None and schedule.next_invoice_date > schedule.end_date:
        raise InvalidStateError(
            f"Recurring schedule of invoice {invoice.invoice_number} ended on "
            f"{schedule.end_date.isoformat()}",
            details={"next_invoice_date": schedule.next_invoice_date.isoformat()},
        )


class RecurringService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.workbook = workbook
        self.activity = activity
        self.invoices = InvoiceService(workbook, activity)

    def list_recurring(self, active_only: bool = False) -> List[Invoice]:
        def matches(invoice: Invoice) -> bool:
            if not invoice.is_recurring or invoice.recurring_schedule is None:
                return False
            return invoice.recurring_schedule.is_active or not active_only

        return sorted(
            self.workbook.invoices.filter(matches),
            key=lambda inv: inv.recurring_schedule.next_invoice_date,
        )

    def list_due(self, today: Optional[date] = None) -> List[Invoice]:
        """Active recurring invoices whose next date is today or earlier."""
        today = today or date.today()
        return [
            invoice
            for invoice in self.list_recurring(active_only=True)
            if invoice.status != InvoiceStatus.CANCELLED
            and schedule_is_due(
                invoice.recurring_schedule.next_invoice_date,
                invoice.recurring_schedule.end_date,
                today,
            )
        ]

    def generate_from(self, parent: Invoice) -> Invoice:
        """
        Generate the next invoice of ``parent`` and advance its schedule.

        Raises:
            InvalidStateError: If ``parent`` has no active schedule or the
                schedule is past its end date
        """
        schedule = parent.recurring_schedule
        if not parent.is_recurring or schedule is None:
            raise InvalidStateError(f"Invoice {parent.invoice_number} is not recurring")
        if not schedule.is_active:
            raise InvalidStateError(
                f"Recurring schedule of invoice {parent.invoice_number} is inactive"
            )
        _require_before_end(parent)

        issue_date = schedule.next_invoice_date
        data = InvoiceCreate(
            client_id=parent.client_id,
            template_id=parent.template_id,
            status=InvoiceStatus.DRAFT,
            issue_date=issue_date,
            due_date=due_date_for(issue_date, parent.issue_date, parent.due_date),
            line_items=[
                LineItemInput(description=item.description, quantity=item.quantity, rate=item.rate)
                for item in parent.line_items
            ],
            tax_rate=parent.tax_rate,
            notes=parent.notes,
        )
        generated = self.invoices.create_invoice(data, parent_invoice_id=parent.id)

        next_date = next_occurrence_after(
            schedule.start_date, schedule.frequency, schedule.interval, issue_date
        )
        still_active = schedule.end_date is None or next_date <= schedule.end_date
        advanced = schedule.model_copy(
            update={"next_invoice_date": next_date, "is_active": still_active}
        )
        self.workbook.invoices.update(
            parent.model_copy(update={"recurring_schedule": advanced, "updated_at": utc_now()})
        )

        logger.info(
            f"Generated {generated.invoice_number} from recurring {parent.invoice_number}; "
            f"next on {next_date.isoformat()}" + ("" if still_active else " (schedule ended)")
        )
        self.activity.log(
            ActivityType.INVOICE_CREATED,
            EntityType.INVOICE,
            generated.id,
            f"Recurring invoice {generated.invoice_number} generated from "
            f"{parent.invoice_number}",
            entity_name=generated.invoice_number,
            amount=generated.total,
        )
        return generated

    def generate_one(self, invoice_id: str) -> Invoice:
        return self.generate_from(self.workbook.invoices.require(invoice_id))

    @log_function_call(level="INFO")
    def generate_due(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Generate one invoice for every due schedule.

        Failures are collected per parent invoice; remaining schedules are
        still processed.

        Returns:
            Dictionary with ``generated`` invoices, ``errors`` and ``processed``
        """
        due = self.list_due(today)
        generated: List[Invoice] = []
        errors: List[Dict[str, str]] = []
        for parent in due:
            try:
                generated.append(self.generate_from(parent))
            except (GoogleServiceError, InvoicingError) as e:
                logger.error(f"Recurring generation for {parent.invoice_number} failed: {e}")
                errors.append({"invoice_id": parent.id, "error": str(e)})

        logger.info(
            f"Recurring run processed {len(due)} schedules: "
            f"{len(generated)} generated, {len(errors)} failed"
        )
        return {"processed": len(due), "generated": generated, "errors": errors}

    def set_active(self, invoice_id: str, is_active: bool) -> Invoice:
        """Pause or resume a recurring schedule; an ended schedule cannot resume."""
        invoice = self.workbook.invoices.require(invoice_id)
        schedule = invoice.recurring_schedule
        if not invoice.is_recurring or schedule is None:
            raise InvalidStateError(f"Invoice {invoice.invoice_number} is not recurring")
        if schedule.is_active == is_active:
            return invoice
        if is_active:
            _require_before_end(invoice)

        updated = invoice.model_copy(
            update={
                "recurring_schedule": schedule.model_copy(update={"is_active": is_active}),
                "updated_at": utc_now(),
            }
        )
        self.workbook.invoices.update(updated)
        state = "resumed" if is_active else "paused"
        self.activity.log(
            ActivityType.INVOICE_UPDATED,
            EntityType.INVOICE,
            invoice.id,
            f"Recurring schedule of invoice {invoice.invoice_number} {state}",
            entity_name=invoice.invoice_number,
            previous_value=str(schedule.is_active).lower(),
            new_value=str(is_active).lower(),
        )
        return updated
