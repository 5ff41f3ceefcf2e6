"""Data models for the invoicing service."""

from invoicing.models.activity import ActivityLog, ActivityType, EntityType
from invoicing.models.base import BaseDataModel, round_money
from invoicing.models.client import Address, Client, ClientCreate, ClientUpdate
from invoicing.models.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    InvoiceUpdate,
    LineItem,
    LineItemInput,
    RecurringFrequency,
    RecurringSchedule,
    RecurringScheduleInput,
)
from invoicing.models.payment import Payment, PaymentCreate, PaymentMethod, PaymentUpdate
from invoicing.models.project import (
    Project,
    ProjectCreate,
    ProjectStats,
    ProjectStatus,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from invoicing.models.settings import (
    AppSettings,
    AppSettingsUpdate,
    CompanySettings,
    CompanySettingsUpdate,
)
from invoicing.models.storage import InvoiceStorageStatus, StorageState
from invoicing.models.template import Template, TemplateCreate, TemplateUpdate

__all__ = [
    "ActivityLog",
    "ActivityType",
    "Address",
    "AppSettings",
    "AppSettingsUpdate",
    "BaseDataModel",
    "Client",
    "ClientCreate",
    "ClientUpdate",
    "CompanySettings",
    "CompanySettingsUpdate",
    "EntityType",
    "Invoice",
    "InvoiceCreate",
    "InvoiceStatus",
    "InvoiceStorageStatus",
    "InvoiceUpdate",
    "LineItem",
    "LineItemInput",
    "Payment",
    "PaymentCreate",
    "PaymentMethod",
    "PaymentUpdate",
    "Project",
    "ProjectCreate",
    "ProjectStats",
    "ProjectStatus",
    "ProjectUpdate",
    "RecurringFrequency",
    "RecurringSchedule",
    "RecurringScheduleInput",
    "StorageState",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "Template",
    "TemplateCreate",
    "TemplateUpdate",
    "TimeEntry",
    "TimeEntryCreate",
    "TimeEntryUpdate",
    "round_money",
]
