"""Client data models.

A client is a billed customer with a postal address. Invoices, and through
them payments, reference clients by id.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from invoicing.models.base import BaseDataModel, new_id, strip_or_none, utc_now


class Address(BaseDataModel):
    """Postal address of a client or of the company."""

    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)

    @field_validator("street", "city", "state", "zip_code", "country", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v

    def one_line(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}, {self.country}"


class ClientCreate(BaseDataModel):
    """Request body for creating a client.

    Example:
        >>> ClientCreate(
        ...     name="Acme Corp",
        ...     email="billing@acme.test",
        ...     address=Address(street="1 Main St", city="Springfield",
        ...                     state="IL", zip_code="62701", country="USA"),
        ... ).name
        'Acme Corp'
    """

    name: str = Field(..., min_length=1, max_length=100, description="Client name")
    email: EmailStr = Field(..., description="Billing email address")
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Address

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        if not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        return strip_or_none(v)


class ClientUpdate(BaseDataModel):
    """Partial update of a client; omitted fields keep their value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[Address] = None


class Client(ClientCreate):
    """A stored client record."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
