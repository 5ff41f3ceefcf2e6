"""
Unit tests for dashboard metrics.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from invoicing.aggregators import build_dashboard_metrics
from invoicing.models import Address, Client, Invoice, InvoiceStatus, Payment, PaymentMethod

ADDRESS = Address(street="1 Main St", city="Springfield", state="IL", zip_code="62701", country="USA")
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def invoice(number: int, client_id: str, status: InvoiceStatus, total: str, balance: str, due: date) -> Invoice:
    return Invoice(
        id=f"i{number}",
        invoice_number=f"INV-000{number}",
        client_id=client_id,
        status=status,
        issue_date=date(2024, 1, number),
        due_date=due,
        total=Decimal(total),
        balance=Decimal(balance),
        paid_amount=Decimal(total) - Decimal(balance),
        created_at=BASE_TIME + timedelta(hours=number),
    )


def build(**kwargs):
    clients = [
        Client(id="c1", name="Acme", email="a@example.com", address=ADDRESS),
        Client(id="c2", name="Globex", email="g@example.com", address=ADDRESS),
        Client(id="c3", name="Initech", email="i@example.com", address=ADDRESS),
    ]
    invoices = [
        invoice(1, "c1", InvoiceStatus.PAID, "100", "0", date(2024, 1, 31)),
        invoice(2, "c1", InvoiceStatus.SENT, "200", "150", date(2024, 1, 15)),
        invoice(3, "c2", InvoiceStatus.SENT, "300", "300", date(2024, 3, 1)),
        invoice(4, "c2", InvoiceStatus.CANCELLED, "999", "999", date(2024, 1, 10)),
    ]
    payments = [
        Payment(
            invoice_id="i1",
            amount=Decimal("100"),
            payment_date=date(2024, 1, 20),
            payment_method=PaymentMethod.CASH,
            created_at=BASE_TIME + timedelta(days=1),
        ),
        Payment(
            invoice_id="i2",
            amount=Decimal("50"),
            payment_date=date(2024, 2, 5),
            payment_method=PaymentMethod.CHECK,
            created_at=BASE_TIME + timedelta(days=2),
        ),
    ]
    return build_dashboard_metrics(clients, invoices, payments, today=date(2024, 2, 10), **kwargs)


def test_headline_numbers():
    metrics = build()

    assert metrics.total_revenue == Decimal("150")
    assert metrics.outstanding_amount == Decimal("450")
    assert metrics.paid_amount == Decimal("100")
    assert metrics.overdue_amount == Decimal("150")
    assert metrics.overdue_invoices == 1
    assert metrics.total_clients == 3
    assert metrics.active_clients == 2
    assert metrics.total_invoices == 4


def test_recent_activity_is_newest_first():
    metrics = build()

    assert metrics.recent_activity[0].id.startswith("payment-")
    assert metrics.recent_activity[0].description == "Payment of 50.00 received from Acme"
    timestamps = [item.timestamp for item in metrics.recent_activity]
    assert timestamps == sorted(timestamps, reverse=True)


def test_single_date_bound():
    metrics = build(date_from=date(2024, 1, 2))

    assert metrics.total_invoices == 3
    assert metrics.total_revenue == Decimal("150")
    assert metrics.paid_amount == Decimal("0")


def test_money_serializes_as_numbers():
    assert build().model_dump(mode="json")["outstanding_amount"] == 450.0
