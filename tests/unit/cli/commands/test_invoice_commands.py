"""Unit tests for list-invoices and run-recurring."""

from datetime import date

import pytest
from click.testing import CliRunner

from invoicing.cli.commands.list import list_invoices
from invoicing.cli.commands.recurring import run_recurring
from invoicing.models import InvoiceStatus, RecurringFrequency, RecurringScheduleInput
from invoicing.services.client_service import ClientService
from invoicing.services.invoice_service import InvoiceService


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def obj(request_context, test_config):
    return {"context": request_context, "config": test_config}


@pytest.fixture
def client(workbook, activity, client_create):
    return ClientService(workbook, activity).create_client(client_create)


@pytest.fixture
def invoice(workbook, activity, client, make_invoice_create):
    return InvoiceService(workbook, activity).create_invoice(make_invoice_create(client.id))


@pytest.fixture
def recurring(workbook, activity, client, make_invoice_create):
    return InvoiceService(workbook, activity).create_invoice(
        make_invoice_create(
            client.id,
            status=InvoiceStatus.SENT,
            is_recurring=True,
            recurring_schedule=RecurringScheduleInput(
                frequency=RecurringFrequency.MONTHLY, start_date=date(2024, 2, 10)
            ),
        )
    )


class TestListInvoices:
    def test_lists_invoices_with_client_names(self, runner, obj, invoice):
        result = runner.invoke(list_invoices, [], obj=obj)

        assert result.exit_code == 0
        assert "INV-0001" in result.output
        assert "Acme Corp" in result.output
        assert "1155.00" in result.output
        assert "Showing 1 of 1 invoice(s)" in result.output

    def test_status_filter(self, runner, obj, invoice):
        result = runner.invoke(list_invoices, ["--status", "paid"], obj=obj)

        assert result.exit_code == 0
        assert "No invoices found" in result.output

    def test_rejects_unknown_status(self, runner, obj):
        result = runner.invoke(list_invoices, ["--status", "archived"], obj=obj)

        assert result.exit_code == 2

    def test_limit(self, runner, obj, workbook, activity, client, make_invoice_create):
        service = InvoiceService(workbook, activity)
        service.create_invoice(make_invoice_create(client.id))
        service.create_invoice(make_invoice_create(client.id))

        result = runner.invoke(list_invoices, ["--limit", "1"], obj=obj)

        assert result.exit_code == 0
        assert "Showing 1 of 2 invoice(s)" in result.output


class TestRunRecurring:
    def test_dry_run_lists_due_schedules(self, runner, obj, workbook, recurring):
        result = runner.invoke(run_recurring, ["--date", "2024-03-01", "--dry-run"], obj=obj)

        assert result.exit_code == 0
        assert "INV-0001" in result.output
        assert "monthly-1" in result.output
        assert "1 schedule(s) due" in result.output
        assert len(workbook.invoices.list_all()) == 1

    def test_nothing_due(self, runner, obj, recurring):
        result = runner.invoke(run_recurring, ["--date", "2024-01-01", "--dry-run"], obj=obj)

        assert result.exit_code == 0
        assert "No recurring invoices are due" in result.output

    def test_generates_due_invoices(self, runner, obj, workbook, recurring):
        result = runner.invoke(run_recurring, ["--date", "2024-03-01"], obj=obj)

        assert result.exit_code == 0
        assert "INV-0002" in result.output
        assert "Processed 1 schedule(s): 1 generated, 0 failed" in result.output
        generated = [i for i in workbook.invoices.list_all() if i.parent_invoice_id == recurring.id]
        assert len(generated) == 1
        assert generated[0].status == InvoiceStatus.DRAFT

    def test_invalid_date(self, runner, obj):
        result = runner.invoke(run_recurring, ["--date", "03/01/2024"], obj=obj)

        assert result.exit_code == 2
