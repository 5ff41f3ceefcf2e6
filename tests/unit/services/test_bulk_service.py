"""
Unit tests for bulk operations.
"""

import pytest
from pydantic import TypeAdapter

from invoicing.models import InvoiceStatus
from invoicing.models.bulk import BulkRequest
from invoicing.services.bulk_service import BulkService
from invoicing.services.client_service import ClientService
from invoicing.services.invoice_service import InvoiceService

parse = TypeAdapter(BulkRequest).validate_python


@pytest.fixture
def service(workbook, activity):
    return BulkService(workbook, activity)


@pytest.fixture
def client(workbook, activity, client_create):
    return ClientService(workbook, activity).create_client(client_create)


def test_bulk_create_validates_each_item(service, workbook):
    address = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "USA"}

    result = service.execute(
        parse(
            {
                "operation": "create",
                "type": "clients",
                "items": [
                    {"name": "Globex", "email": "ap@globex.example", "address": address},
                    {"name": "Broken", "email": "not-an-email", "address": address},
                ],
            }
        )
    )

    assert result["summary"] == {"total": 2, "successful": 1, "failed": 1}
    assert result["results"]["failed"][0]["index"] == 1
    assert "email" in result["results"]["failed"][0]["error"]
    assert [c.name for c in workbook.clients.list_all()] == ["Globex"]


def test_bulk_delete_reports_missing_ids(service, workbook, client):
    result = service.execute(parse({"operation": "delete", "type": "clients", "ids": [client.id, "missing"]}))

    assert result["results"]["successful"] == [client.id]
    assert result["results"]["failed"] == [{"id": "missing", "error": "Client not found: missing"}]
    assert workbook.clients.list_all() == []


def test_bulk_update_status(service, workbook, activity, client, make_invoice_create):
    invoices = InvoiceService(workbook, activity)
    ids = [invoices.create_invoice(make_invoice_create(client.id)).id for _ in range(3)]

    result = service.execute(parse({"operation": "update_status", "ids": ids, "status": "sent"}))

    assert result["summary"]["successful"] == 3
    assert result["status"] == "sent"
    assert {i.status for i in workbook.invoices.list_all()} == {InvoiceStatus.SENT}


def test_bulk_update_partial_data(service, workbook, client):
    result = service.execute(
        parse(
            {
                "operation": "update",
                "type": "clients",
                "updates": [
                    {"id": client.id, "data": {"phone": "+1 555 0199"}},
                    {"id": client.id, "data": {"unknown_field": 1}},
                ],
            }
        )
    )

    assert result["summary"] == {"total": 2, "successful": 1, "failed": 1}
    assert result["results"]["successful"] == [client.id]
    failure = result["results"]["failed"][0]
    assert (failure["index"], failure["id"]) == (1, client.id)
    assert "unknown_field" in failure["error"]
    assert workbook.clients.get(client.id).phone == "+1 555 0199"
