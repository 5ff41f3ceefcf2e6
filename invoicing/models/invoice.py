"""Invoice data models.

This module defines invoices, their line items and the recurring schedule
that drives automatic invoice generation. Derived amounts (line amount,
subtotal, tax, total, paid amount, balance) are filled in by the invoice
calculator, never trusted from request bodies.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from invoicing.models.base import (
    BaseDataModel,
    Money,
    new_id,
    require_text,
    strip_or_none,
    utc_now,
)


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class LineItemInput(BaseDataModel):
    """A line item as entered in a form or template (no id, no amount)."""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: Money = Field(..., ge=Decimal("0.01"), le=999999)
    rate: Money = Field(..., ge=0, le=999999)

    @field_validator("description")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        return require_text(v, info.field_name)


class LineItem(BaseDataModel):
    """A stored line item; ``amount`` is quantity times rate."""

    id: str = Field(default_factory=new_id)
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Money = Field(..., gt=0)
    rate: Money = Field(..., ge=0)
    amount: Money = Field(default=Decimal("0"), ge=0)


class RecurringScheduleInput(BaseDataModel):
    frequency: RecurringFrequency
    interval: int = Field(default=1, ge=1, le=12)
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_date_range(self) -> "RecurringScheduleInput":
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class RecurringSchedule(RecurringScheduleInput):
    """Schedule of a recurring invoice.

    ``next_invoice_date`` is the issue date of the next generated invoice;
    the schedule is deactivated once that date passes ``end_date``.
    """

    next_invoice_date: date
    is_active: bool = True

    def describe(self) -> str:
        """Short label such as ``monthly-1`` used in archive file names."""
        return f"{self.frequency.value}-{self.interval}"


class InvoiceCreate(BaseDataModel):
    """Request body for creating an invoice.

    Raises (on validation):
        ValueError: If a recurring invoice lacks a schedule, or the due date
            precedes the issue date
    """

    client_id: str = Field(..., min_length=1)
    template_id: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: date
    due_date: date
    line_items: List[LineItemInput] = Field(..., min_length=1)
    tax_rate: Money = Field(default=Decimal("0"), ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_recurring: bool = False
    recurring_schedule: Optional[RecurringScheduleInput] = None

    @field_validator("notes")
    @classmethod
    def blank_notes_is_none(cls, v: Optional[str]) -> Optional[str]:
        return strip_or_none(v)

    @model_validator(mode="after")
    def validate_invoice(self) -> "InvoiceCreate":
        if self.is_recurring and self.recurring_schedule is None:
            raise ValueError("Recurring schedule is required for recurring invoices")
        if self.due_date < self.issue_date:
            raise ValueError("Due date must be on or after issue date")
        return self


_REQUIRED_ON_INVOICE = (
    "client_id",
    "status",
    "issue_date",
    "due_date",
    "line_items",
    "tax_rate",
    "is_recurring",
)


class InvoiceUpdate(BaseDataModel):
    """Partial update of an invoice.

    A body carrying only ``status`` is a status-only update and leaves
    amounts untouched.
    """

    client_id: Optional[str] = Field(default=None, min_length=1)
    template_id: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    line_items: Optional[List[LineItemInput]] = Field(default=None, min_length=1)
    tax_rate: Optional[Money] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_recurring: Optional[bool] = None
    recurring_schedule: Optional[RecurringScheduleInput] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        # Omitting a field keeps it; null would blank a field every invoice needs
        nulled = sorted(
            name
            for name in _REQUIRED_ON_INVOICE
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    def is_status_only(self) -> bool:
        return self.model_fields_set == {"status"} and self.status is not None


class Invoice(BaseDataModel):
    """A stored invoice record."""

    id: str = Field(default_factory=new_id)
    invoice_number: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    template_id: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: date
    due_date: date
    line_items: List[LineItem] = Field(default_factory=list)
    subtotal: Money = Decimal("0")
    tax_rate: Money = Field(default=Decimal("0"), ge=0, le=100)
    tax_amount: Money = Decimal("0")
    total: Money = Decimal("0")
    paid_amount: Money = Decimal("0")
    balance: Money = Decimal("0")
    notes: Optional[str] = None
    is_recurring: bool = False
    recurring_schedule: Optional[RecurringSchedule] = None
    parent_invoice_id: Optional[str] = None
    sent_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def is_open(self) -> bool:
        """Whether the invoice still expects payment."""
        return self.status not in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)

    def is_overdue(self, today: date) -> bool:
        return self.is_open() and self.due_date < today
