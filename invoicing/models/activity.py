"""Activity log model: an append-only audit record of every mutation."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from invoicing.models.base import BaseDataModel, Money, new_id, utc_now


class EntityType(str, Enum):
    CLIENT = "client"
    INVOICE = "invoice"
    PAYMENT = "payment"
    TEMPLATE = "template"
    PROJECT = "project"
    TASK = "task"
    TIME_ENTRY = "time_entry"
    SETTINGS = "settings"


class ActivityType(str, Enum):
    CLIENT_ADDED = "client_added"
    CLIENT_UPDATED = "client_updated"
    CLIENT_DELETED = "client_deleted"
    INVOICE_CREATED = "invoice_created"
    INVOICE_UPDATED = "invoice_updated"
    INVOICE_SENT = "invoice_sent"
    INVOICE_PAID = "invoice_paid"
    INVOICE_CANCELLED = "invoice_cancelled"
    INVOICE_DELETED = "invoice_deleted"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_UPDATED = "payment_updated"
    PAYMENT_DELETED = "payment_deleted"
    TEMPLATE_CREATED = "template_created"
    TEMPLATE_UPDATED = "template_updated"
    TEMPLATE_DELETED = "template_deleted"
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_COMPLETED = "project_completed"
    PROJECT_DELETED = "project_deleted"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_COMPLETED = "task_completed"
    TASK_DELETED = "task_deleted"
    TIME_ENTRY_CREATED = "time_entry_created"
    TIME_ENTRY_UPDATED = "time_entry_updated"
    TIME_ENTRY_DELETED = "time_entry_deleted"
    SETTINGS_UPDATED = "settings_updated"
    DRIVE_UPLOAD_SUCCESS = "google_drive_upload_success"
    DRIVE_UPLOAD_FAILED = "google_drive_upload_failed"
    DRIVE_RETRY = "google_drive_retry"


class ActivityLog(BaseDataModel):
    """One audit record.

    ``previous_value`` and ``new_value`` hold short human-readable values
    (for example a status before and after a change).
    """

    id: str = Field(default_factory=new_id)
    type: ActivityType
    description: str
    entity_type: EntityType
    entity_id: str
    entity_name: Optional[str] = None
    user_email: Optional[str] = None
    amount: Optional[Money] = None
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
