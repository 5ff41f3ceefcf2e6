"""Per-invoice Drive archive status."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from invoicing.models.base import BaseDataModel


class StorageState(str, Enum):
    PENDING = "pending"
    STORED = "stored"
    FAILED = "failed"
    DISABLED = "disabled"


class InvoiceStorageStatus(BaseDataModel):
    """Whether an invoice's PDF was archived to Drive.

    ``retryable`` records whether the last failure was transient, so the UI
    can offer a retry button only when it may succeed.
    """

    invoice_id: str = Field(..., min_length=1)
    status: StorageState = StorageState.PENDING
    drive_file_id: Optional[str] = None
    file_name: Optional[str] = None
    web_view_link: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    last_attempt: Optional[datetime] = None
    retry_count: int = Field(default=0, ge=0)
    error_message: Optional[str] = None
    retryable: bool = False
