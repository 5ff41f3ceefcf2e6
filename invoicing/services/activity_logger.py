"""
Audit trail of mutations, stored in the ActivityLogs tab.

Writing a log record never fails the operation being logged: storage
errors are reported as warnings and swallowed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from invoicing.errors import InvoicingError
from invoicing.models import ActivityLog, ActivityType, EntityType
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.sheets import Workbook
from invoicing.utils.pagination import paginate

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class RequestInfo:
    """Who made the request, attached to each activity record."""

    user_email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ActivityLogger:
    def __init__(self, workbook: Workbook, request_info: Optional[RequestInfo] = None):
        self.workbook = workbook
        self.request_info = request_info or RequestInfo()

    def log(
        self,
        activity_type: ActivityType,
        entity_type: EntityType,
        entity_id: str,
        description: str,
        entity_name: Optional[str] = None,
        amount: Optional[Decimal] = None,
        previous_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
    ) -> Optional[ActivityLog]:
        """
        Append an activity record.

        Returns:
            The stored record, or None if it could not be written
        """
        record = ActivityLog(
            type=activity_type,
            description=description,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            amount=amount,
            previous_value=None if previous_value is None else str(previous_value),
            new_value=None if new_value is None else str(new_value),
            user_email=self.request_info.user_email,
            ip_address=self.request_info.ip_address,
            user_agent=self.request_info.user_agent,
        )
        try:
            return self.workbook.activity_logs.insert(record)
        except (GoogleServiceError, InvoicingError) as e:
            logger.warning(
                f"Failed to record activity {activity_type.value} for "
                f"{entity_type.value} {entity_id}: {e}"
            )
            return None

    def list_logs(
        self,
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[str] = None,
        activity_type: Optional[ActivityType] = None,
        user_email: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[ActivityLog], Dict[str, Any]]:
        """Filter activity records, newest first, and return one page."""
        needle = search.lower() if search else None
        date_from = _as_utc(date_from)
        date_to = _as_utc(date_to)

        def matches(log: ActivityLog) -> bool:
            if entity_type and log.entity_type != entity_type:
                return False
            if entity_id and log.entity_id != entity_id:
                return False
            if activity_type and log.type != activity_type:
                return False
            if user_email and log.user_email != user_email:
                return False
            if date_from and log.timestamp < date_from:
                return False
            if date_to and log.timestamp > date_to:
                return False
            if needle:
                haystack = f"{log.description} {log.entity_name or ''}".lower()
                if needle not in haystack:
                    return False
            return True

        logs = sorted(
            self.workbook.activity_logs.filter(matches),
            key=lambda log: log.timestamp,
            reverse=True,
        )
        return paginate(logs, page, limit)
