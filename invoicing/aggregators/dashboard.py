"""Dashboard metrics aggregated from clients, invoices and payments."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from invoicing.models import Client, Invoice, InvoiceStatus, Payment
from invoicing.models.base import BaseDataModel, Money

logger = logging.getLogger(__name__)

RECENT_PER_KIND = 5
RECENT_LIMIT = 10


class ActivityItem(BaseDataModel):
    id: str
    type: str
    description: str
    timestamp: datetime
    related_id: str


class DashboardMetrics(BaseDataModel):
    """Headline numbers of the dashboard.

    Attributes:
        total_revenue: Sum of payments received in the window
        outstanding_amount: Open balance of unpaid, uncancelled invoices
        paid_amount: Total of paid invoices
        overdue_amount: Open balance of invoices past their due date
        active_clients: Clients with at least one invoice in the window
    """

    total_revenue: Money = Decimal("0")
    outstanding_amount: Money = Decimal("0")
    paid_amount: Money = Decimal("0")
    overdue_amount: Money = Decimal("0")
    total_clients: int = 0
    active_clients: int = 0
    total_invoices: int = 0
    paid_invoices: int = 0
    overdue_invoices: int = 0
    recent_activity: List[ActivityItem] = Field(default_factory=list)


def _in_window(value: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and value < date_from:
        return False
    if date_to and value > date_to:
        return False
    return True


def build_dashboard_metrics(
    clients: List[Client],
    invoices: List[Invoice],
    payments: List[Payment],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    today: Optional[date] = None,
) -> DashboardMetrics:
    """
    Compute dashboard metrics.

    Invoices are windowed by issue date and payments by payment date. An
    invoice counts as overdue when it is neither paid nor cancelled and its
    due date has passed.
    """
    today = today or date.today()
    window_invoices = [i for i in invoices if _in_window(i.issue_date, date_from, date_to)]
    window_payments = [p for p in payments if _in_window(p.payment_date, date_from, date_to)]

    open_invoices = [i for i in window_invoices if i.is_open()]
    paid_invoices = [i for i in window_invoices if i.status == InvoiceStatus.PAID]
    overdue_invoices = [i for i in open_invoices if i.due_date < today]
    invoiced_clients = {i.client_id for i in window_invoices}

    client_names = {c.id: c.name for c in clients}
    invoice_clients = {i.id: i.client_id for i in invoices}

    activity: List[ActivityItem] = []
    for invoice in sorted(window_invoices, key=lambda i: i.created_at, reverse=True)[:RECENT_PER_KIND]:
        activity.append(
            ActivityItem(
                id=f"invoice-{invoice.id}",
                type="invoice_created",
                description=(
                    f"Invoice {invoice.invoice_number} created for "
                    f"{client_names.get(invoice.client_id, 'Unknown Client')}"
                ),
                timestamp=invoice.created_at,
                related_id=invoice.id,
            )
        )
    for payment in sorted(window_payments, key=lambda p: p.created_at, reverse=True)[:RECENT_PER_KIND]:
        client_id = invoice_clients.get(payment.invoice_id)
        activity.append(
            ActivityItem(
                id=f"payment-{payment.id}",
                type="payment_received",
                description=(
                    f"Payment of {payment.amount:.2f} received from "
                    f"{client_names.get(client_id, 'Unknown Client')}"
                ),
                timestamp=payment.created_at,
                related_id=payment.invoice_id,
            )
        )
    activity.sort(key=lambda a: a.timestamp, reverse=True)

    metrics = DashboardMetrics(
        total_revenue=sum((p.amount for p in window_payments), Decimal("0")),
        outstanding_amount=sum((i.balance for i in open_invoices), Decimal("0")),
        paid_amount=sum((i.total for i in paid_invoices), Decimal("0")),
        overdue_amount=sum((i.balance for i in overdue_invoices), Decimal("0")),
        total_clients=len(clients),
        active_clients=sum(1 for c in clients if c.id in invoiced_clients),
        total_invoices=len(window_invoices),
        paid_invoices=len(paid_invoices),
        overdue_invoices=len(overdue_invoices),
        recent_activity=activity[:RECENT_LIMIT],
    )
    logger.debug(
        f"Dashboard metrics over {len(window_invoices)} invoices and "
        f"{len(window_payments)} payments"
    )
    return metrics
