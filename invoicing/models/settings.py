"""Company and application settings stored in the Settings tab."""

from decimal import Decimal
from typing import Optional

from pydantic import EmailStr, Field

from invoicing.models.base import BaseDataModel, Money
from invoicing.models.client import Address


class CompanySettings(BaseDataModel):
    """Issuer details printed on invoices and defaults for new invoices.

    Attributes:
        payment_terms: Days between issue date and due date for new invoices
        invoice_prefix: Prefix of generated invoice numbers (``INV-0001``)
    """

    name: str = Field(default="", max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[Address] = None
    tax_rate: Money = Field(default=Decimal("0"), ge=0, le=100)
    payment_terms: int = Field(default=30, ge=1, le=365)
    currency: str = Field(default="USD", min_length=1, max_length=10)
    date_format: str = Field(default="YYYY-MM-DD", min_length=1)
    time_zone: str = Field(default="UTC", min_length=1)
    invoice_prefix: str = Field(default="INV", min_length=1, max_length=10)


class CompanySettingsUpdate(BaseDataModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[Address] = None
    tax_rate: Optional[Money] = Field(default=None, ge=0, le=100)
    payment_terms: Optional[int] = Field(default=None, ge=1, le=365)
    currency: Optional[str] = Field(default=None, min_length=1, max_length=10)
    date_format: Optional[str] = Field(default=None, min_length=1)
    time_zone: Optional[str] = Field(default=None, min_length=1)
    invoice_prefix: Optional[str] = Field(default=None, min_length=1, max_length=10)


class AppSettings(BaseDataModel):
    """Google Drive archiving settings."""

    drive_enabled: bool = True
    drive_folder_id: Optional[str] = None
    drive_folder_name: str = Field(default="Invoices", min_length=1, max_length=100)


class AppSettingsUpdate(BaseDataModel):
    drive_enabled: Optional[bool] = None
    drive_folder_id: Optional[str] = None
    drive_folder_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
