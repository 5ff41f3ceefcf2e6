"""
Unit tests for recurring invoice generation.
"""

from datetime import date
from decimal import Decimal

import pytest

from invoicing.errors import InvalidStateError
from invoicing.models import InvoiceStatus, RecurringFrequency, RecurringScheduleInput
from invoicing.services.client_service import ClientService
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.recurring_service import RecurringService


@pytest.fixture
def client(workbook, activity, client_create):
    return ClientService(workbook, activity).create_client(client_create)


@pytest.fixture
def service(workbook, activity):
    return RecurringService(workbook, activity)


@pytest.fixture
def make_recurring(workbook, activity, client, make_invoice_create):
    def _make(start: date, end=None, frequency=RecurringFrequency.MONTHLY):
        return InvoiceService(workbook, activity).create_invoice(
            make_invoice_create(
                client.id,
                status=InvoiceStatus.SENT,
                is_recurring=True,
                recurring_schedule=RecurringScheduleInput(frequency=frequency, start_date=start, end_date=end),
            )
        )

    return _make


def test_list_due(service, make_recurring):
    due = make_recurring(date(2024, 2, 10))
    make_recurring(date(2024, 5, 1))

    assert [i.id for i in service.list_due(today=date(2024, 3, 1))] == [due.id]


def test_generate_from_copies_parent_and_advances(service, workbook, make_recurring):
    parent = make_recurring(date(2024, 1, 31))

    generated = service.generate_one(parent.id)

    assert generated.parent_invoice_id == parent.id
    assert generated.status == InvoiceStatus.DRAFT
    assert generated.issue_date == date(2024, 1, 31)
    # Parent's 30 day payment window is kept
    assert generated.due_date == date(2024, 3, 1)
    assert generated.total == Decimal("1155.00")
    assert generated.invoice_number == "INV-0002"
    assert not generated.is_recurring

    schedule = workbook.invoices.get(parent.id).recurring_schedule
    assert schedule.next_invoice_date == date(2024, 2, 29)
    assert schedule.is_active


def test_schedule_deactivates_after_end_date(service, workbook, make_recurring):
    parent = make_recurring(date(2024, 1, 1), end=date(2024, 1, 20), frequency=RecurringFrequency.WEEKLY)

    service.generate_one(parent.id)
    service.generate_one(parent.id)
    service.generate_one(parent.id)

    schedule = workbook.invoices.get(parent.id).recurring_schedule
    assert schedule.next_invoice_date == date(2024, 1, 22)
    assert not schedule.is_active
    with pytest.raises(InvalidStateError):
        service.generate_one(parent.id)


def test_month_end_schedule_does_not_drift(service, workbook, make_recurring):
    parent = make_recurring(date(2024, 1, 31))

    issued = [service.generate_one(parent.id).issue_date for _ in range(3)]

    assert issued == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
    assert workbook.invoices.get(parent.id).recurring_schedule.next_invoice_date == date(2024, 4, 30)


def test_generation_refused_past_end_date(service, workbook, make_recurring):
    parent = make_recurring(date(2024, 1, 1), end=date(2024, 1, 20))
    schedule = parent.recurring_schedule.model_copy(update={"next_invoice_date": date(2024, 2, 1)})
    workbook.invoices.update(parent.model_copy(update={"recurring_schedule": schedule}))

    with pytest.raises(InvalidStateError, match="ended on 2024-01-20"):
        service.generate_one(parent.id)

    assert [i.id for i in workbook.invoices.list_all()] == [parent.id]


def test_generate_due_collects_errors(service, workbook, make_recurring, monkeypatch):
    ok = make_recurring(date(2024, 1, 1))
    broken = make_recurring(date(2024, 1, 1))

    original = RecurringService.generate_from

    def flaky(self, parent):
        if parent.id == broken.id:
            raise InvalidStateError("boom")
        return original(self, parent)

    monkeypatch.setattr(RecurringService, "generate_from", flaky)

    result = service.generate_due(today=date(2024, 1, 1))

    assert result["processed"] == 2
    assert [i.parent_invoice_id for i in result["generated"]] == [ok.id]
    assert result["errors"] == [{"invoice_id": broken.id, "error": "boom"}]


def test_non_recurring_invoice(service, workbook, activity, client, make_invoice_create):
    invoice = InvoiceService(workbook, activity).create_invoice(make_invoice_create(client.id))

    with pytest.raises(InvalidStateError):
        service.generate_one(invoice.id)


def test_pause_and_resume(service, make_recurring):
    parent = make_recurring(date(2024, 1, 1))

    paused = service.set_active(parent.id, False)
    assert not paused.recurring_schedule.is_active
    assert service.list_due(today=date(2024, 2, 1)) == []

    resumed = service.set_active(parent.id, True)
    assert resumed.recurring_schedule.is_active


def test_ended_schedule_cannot_resume(service, workbook, make_recurring):
    parent = make_recurring(date(2024, 1, 1), end=date(2024, 1, 10), frequency=RecurringFrequency.WEEKLY)
    service.generate_one(parent.id)
    service.generate_one(parent.id)
    assert not workbook.invoices.get(parent.id).recurring_schedule.is_active

    with pytest.raises(InvalidStateError):
        service.set_active(parent.id, True)

    assert not workbook.invoices.get(parent.id).recurring_schedule.is_active
