"""Request bodies of bulk operations.

The ``operation`` field selects the variant. Item payloads stay loosely
typed here and are validated one by one, so one malformed item fails only
itself.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import Field

from invoicing.models.base import BaseDataModel
from invoicing.models.invoice import InvoiceStatus


class BulkEntityType(str, Enum):
    CLIENTS = "clients"
    INVOICES = "invoices"
    PAYMENTS = "payments"
    TEMPLATES = "templates"


class BulkDelete(BaseDataModel):
    operation: Literal["delete"]
    type: BulkEntityType
    ids: List[str] = Field(..., min_length=1)


class BulkUpdateStatus(BaseDataModel):
    operation: Literal["update_status"]
    type: Literal[BulkEntityType.INVOICES] = BulkEntityType.INVOICES
    ids: List[str] = Field(..., min_length=1)
    status: InvoiceStatus


class BulkUpdateItem(BaseDataModel):
    id: str = Field(..., min_length=1)
    data: Dict[str, Any]


class BulkUpdate(BaseDataModel):
    operation: Literal["update"]
    type: BulkEntityType
    updates: List[BulkUpdateItem] = Field(..., min_length=1)


class BulkCreate(BaseDataModel):
    operation: Literal["create"]
    type: BulkEntityType
    items: List[Dict[str, Any]] = Field(..., min_length=1)


BulkRequest = Annotated[
    Union[BulkDelete, BulkUpdateStatus, BulkUpdate, BulkCreate],
    Field(discriminator="operation"),
]
