"""
Tab layout of the invoicing spreadsheet and row <-> model conversion.

Each entity lives in its own tab with a header row. Nested values (line
items, recurring schedules, tags) are stored as JSON in a single cell;
client and company addresses are flattened into address columns.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import ValidationError

from invoicing.models import (
    ActivityLog,
    Client,
    Invoice,
    InvoiceStorageStatus,
    Payment,
    Project,
    Task,
    Template,
    TimeEntry,
)
from invoicing.models.base import BaseDataModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseDataModel)

ADDRESS_FIELDS = ["street", "city", "state", "zip_code", "country"]


def column_letter(index: int) -> str:
    """1-based column index to A1 letters (1 -> A, 27 -> AA)."""
    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def _flatten_address(data: Dict[str, Any]) -> Dict[str, Any]:
    address = data.pop("address", None) or {}
    for name in ADDRESS_FIELDS:
        data[name] = address.get(name)
    return data


def _nest_address(data: Dict[str, Any]) -> Dict[str, Any]:
    parts = {name: data.pop(name, None) for name in ADDRESS_FIELDS}
    if any(value not in (None, "") for value in parts.values()):
        data["address"] = parts
    return data


@dataclass
class TabSchema(Generic[ModelT]):
    """
    Describes one entity tab.

    Attributes:
        name: Tab title
        model: Pydantic model stored in the tab
        headers: Column headers, in order; the first is the key column
        json_columns: Columns holding JSON-encoded values
        flatten: Hook applied to the dumped model before writing
        unflatten: Hook applied to the row dict before validation
    """

    name: str
    model: Type[ModelT]
    headers: List[str]
    json_columns: List[str] = field(default_factory=list)
    flatten: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None
    unflatten: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None

    @property
    def key_column(self) -> str:
        return self.headers[0]

    @property
    def last_column(self) -> str:
        return column_letter(len(self.headers))

    @property
    def full_range(self) -> str:
        return f"{self.name}!A:{self.last_column}"

    def header_range(self) -> str:
        return f"{self.name}!A1:{self.last_column}1"

    def row_range(self, row_number: int) -> str:
        """A1 range of one 1-based sheet row."""
        return f"{self.name}!A{row_number}:{self.last_column}{row_number}"

    def to_row(self, record: ModelT, headers: Optional[List[str]] = None) -> List[Any]:
        """Serialize a model into cell values ordered by ``headers``.

        ``headers`` defaults to the schema headers; pass the header row read
        from the sheet to follow a tab whose columns were reordered.
        """
        data = record.model_dump(mode="json")
        if self.flatten:
            data = self.flatten(data)

        row = []
        for header in headers or self.headers:
            value = data.get(header)
            if value is None:
                row.append("")
            elif header in self.json_columns:
                row.append(json.dumps(value))
            else:
                row.append(value)
        return row

    def from_row(self, headers: List[str], row: List[Any]) -> ModelT:
        """
        Build a model from a sheet row.

        Blank cells are omitted so model defaults apply.

        Raises:
            ValidationError: If the row does not describe a valid record
            ValueError: If a JSON cell cannot be decoded
        """
        data: Dict[str, Any] = {}
        for header, value in zip(headers, row):
            if header not in self.headers or value is None or value == "":
                continue
            if header in self.json_columns and isinstance(value, str):
                value = json.loads(value)
            data[header] = value

        if self.unflatten:
            data = self.unflatten(data)
        return self.model.model_validate(data)

    def parse_rows(self, values: List[List[Any]]) -> List[ModelT]:
        """Parse a values grid (header row first), skipping malformed rows."""
        if not values:
            return []

        headers = [str(h).strip() for h in values[0]]
        records = []
        for offset, row in enumerate(values[1:], start=2):
            if not any(cell not in (None, "") for cell in row):
                continue
            try:
                records.append(self.from_row(headers, row))
            except (ValidationError, ValueError) as e:
                logger.warning(f"Skipping malformed row {offset} in {self.name}: {e}")
        return records


CLIENTS = TabSchema(
    name="Clients",
    model=Client,
    headers=["id", "name", "email", "phone", *ADDRESS_FIELDS, "created_at", "updated_at"],
    flatten=_flatten_address,
    unflatten=_nest_address,
)

INVOICES = TabSchema(
    name="Invoices",
    model=Invoice,
    headers=[
        "id",
        "invoice_number",
        "client_id",
        "template_id",
        "status",
        "issue_date",
        "due_date",
        "line_items",
        "subtotal",
        "tax_rate",
        "tax_amount",
        "total",
        "paid_amount",
        "balance",
        "notes",
        "is_recurring",
        "recurring_schedule",
        "parent_invoice_id",
        "sent_date",
        "created_at",
        "updated_at",
    ],
    json_columns=["line_items", "recurring_schedule"],
)

PAYMENTS = TabSchema(
    name="Payments",
    model=Payment,
    headers=[
        "id",
        "invoice_id",
        "amount",
        "payment_date",
        "payment_method",
        "notes",
        "created_at",
    ],
)

TEMPLATES = TabSchema(
    name="Templates",
    model=Template,
    headers=[
        "id",
        "name",
        "description",
        "line_items",
        "tax_rate",
        "notes",
        "is_active",
        "created_at",
        "updated_at",
    ],
    json_columns=["line_items"],
)

PROJECTS = TabSchema(
    name="Projects",
    model=Project,
    headers=[
        "id",
        "name",
        "description",
        "client_id",
        "status",
        "start_date",
        "end_date",
        "budget",
        "hourly_rate",
        "is_active",
        "created_at",
        "updated_at",
    ],
)

TASKS = TabSchema(
    name="Tasks",
    model=Task,
    headers=[
        "id",
        "project_id",
        "title",
        "description",
        "status",
        "priority",
        "assigned_to",
        "due_date",
        "estimated_hours",
        "tags",
        "created_at",
        "updated_at",
    ],
    json_columns=["tags"],
)

TIME_ENTRIES = TabSchema(
    name="TimeEntries",
    model=TimeEntry,
    headers=[
        "id",
        "task_id",
        "project_id",
        "description",
        "start_time",
        "end_time",
        "duration",
        "is_billable",
        "hourly_rate",
        "created_at",
    ],
)

ACTIVITY_LOGS = TabSchema(
    name="ActivityLogs",
    model=ActivityLog,
    headers=[
        "id",
        "type",
        "description",
        "entity_type",
        "entity_id",
        "entity_name",
        "user_email",
        "amount",
        "previous_value",
        "new_value",
        "ip_address",
        "user_agent",
        "timestamp",
    ],
)

STORAGE_STATUS = TabSchema(
    name="InvoiceStorage",
    model=InvoiceStorageStatus,
    headers=[
        "invoice_id",
        "status",
        "drive_file_id",
        "file_name",
        "web_view_link",
        "uploaded_at",
        "last_attempt",
        "retry_count",
        "error_message",
        "retryable",
    ],
)

SETTINGS_TAB = "Settings"
SETTINGS_HEADERS = ["key", "value"]

ENTITY_TABS: List[TabSchema] = [
    CLIENTS,
    INVOICES,
    PAYMENTS,
    TEMPLATES,
    PROJECTS,
    TASKS,
    TIME_ENTRIES,
    ACTIVITY_LOGS,
    STORAGE_STATUS,
]

# Tab title -> header row, including the key/value Settings tab
REQUIRED_TABS: Dict[str, List[str]] = {
    **{tab.name: tab.headers for tab in ENTITY_TABS},
    SETTINGS_TAB: SETTINGS_HEADERS,
}

DEFAULT_SETTINGS: Dict[str, Any] = {
    "company_name": "",
    "company_email": "",
    "tax_rate": 0,
    "payment_terms": 30,
    "currency": "USD",
    "date_format": "YYYY-MM-DD",
    "time_zone": "UTC",
    "invoice_prefix": "INV",
    "drive_enabled": True,
    "drive_folder_name": "Invoices",
}
