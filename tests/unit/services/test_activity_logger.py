"""
Unit tests for the activity log.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

from invoicing.models import ActivityType, EntityType
from invoicing.services.activity_logger import ActivityLogger, RequestInfo
from invoicing.services.error_classifier import QuotaExceededError


def test_log_records_request_info(workbook):
    logger = ActivityLogger(workbook, RequestInfo(user_email="ops@example.com", ip_address="10.0.0.1"))

    record = logger.log(
        ActivityType.PAYMENT_RECEIVED,
        EntityType.PAYMENT,
        "p1",
        "Payment of 10 received",
        amount=Decimal("10"),
        previous_value=Decimal("0"),
        new_value=Decimal("10"),
    )

    stored = workbook.activity_logs.list_all()[0]
    assert stored.id == record.id
    assert stored.user_email == "ops@example.com"
    assert stored.ip_address == "10.0.0.1"
    assert stored.new_value == "10"


def test_storage_failure_does_not_raise():
    workbook = Mock()
    workbook.activity_logs.insert.side_effect = QuotaExceededError("Rate limit exceeded")

    result = ActivityLogger(workbook).log(ActivityType.CLIENT_ADDED, EntityType.CLIENT, "c1", "New client")

    assert result is None


class TestListLogs:
    def test_newest_first_with_filters(self, workbook, activity):
        activity.log(ActivityType.CLIENT_ADDED, EntityType.CLIENT, "c1", "New client added: Acme")
        activity.log(ActivityType.INVOICE_CREATED, EntityType.INVOICE, "i1", "Invoice INV-0001 created")
        activity.log(ActivityType.INVOICE_SENT, EntityType.INVOICE, "i1", "Invoice INV-0001 sent")

        logs, meta = activity.list_logs(entity_type=EntityType.INVOICE)

        assert meta["total"] == 2
        assert logs[0].timestamp >= logs[1].timestamp
        assert {log.type for log in logs} == {ActivityType.INVOICE_CREATED, ActivityType.INVOICE_SENT}

    def test_search_and_pagination(self, activity):
        for n in range(5):
            activity.log(ActivityType.CLIENT_ADDED, EntityType.CLIENT, f"c{n}", f"New client added: Client {n}")

        logs, meta = activity.list_logs(search="client", page=2, limit=2)

        assert len(logs) == 2
        assert meta == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}

    def test_naive_date_bounds_are_utc(self, activity):
        activity.log(ActivityType.CLIENT_ADDED, EntityType.CLIENT, "c1", "New client")
        later = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)

        logs, _ = activity.list_logs(date_from=later)

        assert logs == []
