"""
Unit tests for bulk request parsing.
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from invoicing.models import InvoiceStatus
from invoicing.models.bulk import BulkCreate, BulkDelete, BulkEntityType, BulkRequest, BulkUpdateStatus

adapter = TypeAdapter(BulkRequest)


def test_operation_selects_variant():
    request = adapter.validate_python({"operation": "delete", "type": "clients", "ids": ["a", "b"]})

    assert isinstance(request, BulkDelete)
    assert request.type == BulkEntityType.CLIENTS


def test_update_status_defaults_to_invoices():
    request = adapter.validate_python({"operation": "update_status", "ids": ["a"], "status": "sent"})

    assert isinstance(request, BulkUpdateStatus)
    assert request.type == BulkEntityType.INVOICES
    assert request.status == InvoiceStatus.SENT


def test_create_items_stay_loose():
    request = adapter.validate_python({"operation": "create", "type": "templates", "items": [{"name": 1}]})

    assert isinstance(request, BulkCreate)
    assert request.items == [{"name": 1}]


@pytest.mark.parametrize(
    "payload",
    [
        {"operation": "archive", "type": "clients", "ids": ["a"]},
        {"operation": "delete", "type": "clients", "ids": []},
        {"operation": "delete", "type": "projects", "ids": ["a"]},
        {"operation": "update_status", "type": "clients", "ids": ["a"], "status": "sent"},
    ],
)
def test_invalid_requests(payload):
    with pytest.raises(ValidationError):
        adapter.validate_python(payload)
