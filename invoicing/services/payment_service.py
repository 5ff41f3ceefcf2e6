"""Payment operations. Every mutation reconciles the invoice's balance."""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from invoicing.errors import InvalidStateError
from invoicing.models import (
    ActivityType,
    EntityType,
    InvoiceStatus,
    Payment,
    PaymentCreate,
    PaymentMethod,
    PaymentUpdate,
)
from invoicing.models.base import merge_update
from invoicing.services.activity_logger import ActivityLogger
from invoicing.services.invoice_service import InvoiceService
from invoicing.sheets import Workbook
from invoicing.utils.pagination import sort_records

logger = logging.getLogger(__name__)

PAYMENT_SORT_KEYS: Dict[str, Callable[[Payment], Any]] = {
    "payment_date": lambda p: p.payment_date,
    "amount": lambda p: p.amount,
    "payment_method": lambda p: p.payment_method.value,
    "created_at": lambda p: p.created_at,
}


class PaymentService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.workbook = workbook
        self.activity = activity
        self.invoices = InvoiceService(workbook, activity)

    def list_payments(
        self,
        invoice_id: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort_by: Optional[str] = "payment_date",
        sort_order: str = "desc",
    ) -> List[Payment]:
        def matches(payment: Payment) -> bool:
            if invoice_id and payment.invoice_id != invoice_id:
                return False
            if payment_method and payment.payment_method != payment_method:
                return False
            if date_from and payment.payment_date < date_from:
                return False
            if date_to and payment.payment_date > date_to:
                return False
            return True

        payments = self.workbook.payments.filter(matches)
        return sort_records(payments, sort_by, sort_order, PAYMENT_SORT_KEYS)

    def get_payment(self, payment_id: str) -> Payment:
        return self.workbook.payments.require(payment_id)

    def create_payment(self, data: PaymentCreate) -> Payment:
        """
        Record a payment and reconcile its invoice.

        Raises:
            NotFoundError: If the invoice does not exist
            InvalidStateError: If the invoice is cancelled
        """
        invoice = self.workbook.invoices.require(data.invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED:
            raise InvalidStateError(
                f"Cannot record a payment on cancelled invoice {invoice.invoice_number}"
            )

        payment = Payment(**data.model_dump())
        self.workbook.payments.insert(payment)
        logger.info(
            f"Recorded payment {payment.id} of {payment.amount} on {invoice.invoice_number}"
        )
        self.activity.log(
            ActivityType.PAYMENT_RECEIVED,
            EntityType.PAYMENT,
            payment.id,
            f"Payment of {payment.amount} received for invoice {invoice.invoice_number}",
            entity_name=invoice.invoice_number,
            amount=payment.amount,
        )
        self.invoices.reconcile_payments(invoice.id)
        return payment

    def update_payment(self, payment_id: str, data: PaymentUpdate) -> Payment:
        existing = self.workbook.payments.require(payment_id)
        updated = merge_update(existing, data)
        self.workbook.payments.update(updated)
        self.activity.log(
            ActivityType.PAYMENT_UPDATED,
            EntityType.PAYMENT,
            payment_id,
            f"Payment {payment_id} updated",
            amount=updated.amount,
            previous_value=existing.amount if existing.amount != updated.amount else None,
            new_value=updated.amount if existing.amount != updated.amount else None,
        )
        self.invoices.reconcile_payments(updated.invoice_id)
        return updated

    def delete_payment(self, payment_id: str) -> Dict[str, Any]:
        payment = self.workbook.payments.require(payment_id)
        self.workbook.payments.delete(payment_id)
        self.activity.log(
            ActivityType.PAYMENT_DELETED,
            EntityType.PAYMENT,
            payment_id,
            f"Payment of {payment.amount} deleted",
            amount=payment.amount,
        )
        invoice = self.invoices.reconcile_payments(payment.invoice_id)
        return {"id": payment_id, "invoice": invoice}
