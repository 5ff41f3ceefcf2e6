"""Invoice template models.

Templates hold reusable line items, a tax rate and notes. Applying a
template produces invoice form data for a client.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from invoicing.models.base import BaseDataModel, Money, new_id, strip_or_none, utc_now
from invoicing.models.invoice import LineItemInput


class TemplateCreate(BaseDataModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    line_items: List[LineItemInput] = Field(..., min_length=1)
    tax_rate: Money = Field(default=Decimal("0"), ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_active: bool = True

    @field_validator("description", "notes")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return strip_or_none(v)


class TemplateUpdate(BaseDataModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    line_items: Optional[List[LineItemInput]] = Field(default=None, min_length=1)
    tax_rate: Optional[Money] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_active: Optional[bool] = None


class Template(TemplateCreate):
    """A stored template; line items carry no ids."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
