"""Payment data models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from invoicing.models.base import BaseDataModel, Money, new_id, strip_or_none, utc_now


class PaymentMethod(str, Enum):
    CASH = "cash"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    OTHER = "other"


class PaymentCreate(BaseDataModel):
    """Request body for recording a payment against an invoice."""

    invoice_id: str = Field(..., min_length=1)
    amount: Money = Field(..., ge=Decimal("0.01"), le=999999)
    payment_date: date
    payment_method: PaymentMethod
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("notes")
    @classmethod
    def blank_notes_is_none(cls, v: Optional[str]) -> Optional[str]:
        return strip_or_none(v)


class PaymentUpdate(BaseDataModel):
    amount: Optional[Money] = Field(default=None, ge=Decimal("0.01"), le=999999)
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class Payment(BaseDataModel):
    """A stored payment record."""

    id: str = Field(default_factory=new_id)
    invoice_id: str = Field(..., min_length=1)
    amount: Money = Field(..., gt=0)
    payment_date: date
    payment_method: PaymentMethod
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
