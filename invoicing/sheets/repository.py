"""
Row-level access to spreadsheet tabs.

:class:`SheetStore` binds a Sheets client to one spreadsheet and routes reads
through the shared read cache; every write invalidates the spreadsheet's
cached ranges. :class:`SheetRepository` provides CRUD over one entity tab.
"""

import logging
from typing import Any, Callable, Dict, Generic, List, Optional

from invoicing.errors import NotFoundError
from invoicing.services.sheets_cache_service import SheetsCacheService
from invoicing.sheets.schema import ModelT, TabSchema, column_letter

logger = logging.getLogger(__name__)


class SheetStore:
    """
    One spreadsheet seen through one caller's credentials.

    Args:
        sheets_service: GoogleSheetsService (or a compatible fake)
        spreadsheet_id: Target spreadsheet
        cache: Optional read cache shared across requests
        principal: Cache partition for the caller's credentials
    """

    def __init__(
        self,
        sheets_service,
        spreadsheet_id: str,
        cache: Optional[SheetsCacheService] = None,
        principal: str = "default",
    ):
        self.sheets = sheets_service
        self.spreadsheet_id = spreadsheet_id
        self.cache = cache
        self.principal = principal
        self._sheet_ids: Optional[Dict[str, int]] = None

    def read_values(self, range_name: str) -> List[List[Any]]:
        def _load():
            return self.sheets.read_values(self.spreadsheet_id, range_name)

        if self.cache is None:
            return _load()
        return self.cache.get_or_load(
            self.principal, self.spreadsheet_id, range_name, _load
        )

    def invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate_spreadsheet(self.spreadsheet_id)

    def append_rows(self, range_name: str, rows: List[List[Any]]) -> None:
        try:
            self.sheets.append_rows(self.spreadsheet_id, range_name, rows)
        finally:
            self.invalidate()

    def update_values(self, range_name: str, rows: List[List[Any]]) -> None:
        try:
            self.sheets.update_values(self.spreadsheet_id, range_name, rows)
        finally:
            self.invalidate()

    def sheet_ids(self, refresh: bool = False) -> Dict[str, int]:
        """Tab title -> numeric sheet id, fetched once per store."""
        if self._sheet_ids is None or refresh:
            self._sheet_ids = self.sheets.get_sheet_ids(self.spreadsheet_id)
        return self._sheet_ids

    def delete_row(self, tab_name: str, row_number: int) -> None:
        """Delete one 1-based sheet row from a tab."""
        sheet_id = self.sheet_ids().get(tab_name)
        if sheet_id is None:
            sheet_id = self.sheet_ids(refresh=True).get(tab_name)
        if sheet_id is None:
            raise NotFoundError("Sheet", tab_name)

        try:
            self.sheets.delete_rows(
                self.spreadsheet_id, sheet_id, row_number - 1, row_number
            )
        finally:
            self.invalidate()

    def create_tab(self, tab_name: str, headers: List[str]) -> None:
        try:
            self.sheets.create_sheet(
                self.spreadsheet_id, tab_name, column_count=max(26, len(headers))
            )
            self.sheets.update_values(
                self.spreadsheet_id,
                f"{tab_name}!A1:{column_letter(len(headers))}1",
                [headers],
            )
        finally:
            self._sheet_ids = None
            self.invalidate()


class SheetRepository(Generic[ModelT]):
    """
    CRUD over one entity tab, keyed by the schema's first column.

    Rows are located by scanning the key column of the (cached) tab values,
    so ids must be unique within a tab.
    """

    def __init__(self, store: SheetStore, schema: TabSchema):
        self.store = store
        self.schema = schema

    def _values(self) -> List[List[Any]]:
        return self.store.read_values(self.schema.full_range)

    def _headers(self, values: List[List[Any]]) -> List[str]:
        if values and values[0]:
            return [str(h).strip() for h in values[0]]
        return list(self.schema.headers)

    def _find_row(self, key: str):
        """Return (1-based row number, header row) of a key, or (None, headers)."""
        values = self._values()
        headers = self._headers(values)
        try:
            key_index = headers.index(self.schema.key_column)
        except ValueError:
            return None, headers

        for offset, row in enumerate(values[1:], start=2):
            if len(row) > key_index and str(row[key_index]) == key:
                return offset, headers
        return None, headers

    def list_all(self) -> List[ModelT]:
        return self.schema.parse_rows(self._values())

    def filter(self, predicate: Callable[[ModelT], bool]) -> List[ModelT]:
        return [record for record in self.list_all() if predicate(record)]

    def get(self, key: str) -> Optional[ModelT]:
        for record in self.list_all():
            if str(getattr(record, self.schema.key_column)) == key:
                return record
        return None

    def require(self, key: str) -> ModelT:
        """Like :meth:`get` but raises NotFoundError for unknown keys."""
        record = self.get(key)
        if record is None:
            raise NotFoundError(self.schema.model.__name__, key)
        return record

    def insert(self, record: ModelT) -> ModelT:
        headers = self._headers(self._values())
        self.store.append_rows(self.schema.full_range, [self.schema.to_row(record, headers)])
        logger.debug(
            f"Inserted {self.schema.name} row {getattr(record, self.schema.key_column)}"
        )
        return record

    def update(self, record: ModelT) -> ModelT:
        key = str(getattr(record, self.schema.key_column))
        row_number, headers = self._find_row(key)
        if row_number is None:
            raise NotFoundError(self.schema.model.__name__, key)

        row = self.schema.to_row(record, headers)
        range_name = (
            f"{self.schema.name}!A{row_number}:{column_letter(len(row))}{row_number}"
        )
        self.store.update_values(range_name, [row])
        return record

    def upsert(self, record: ModelT) -> ModelT:
        key = str(getattr(record, self.schema.key_column))
        row_number, _ = self._find_row(key)
        if row_number is None:
            return self.insert(record)
        return self.update(record)

    def delete(self, key: str) -> bool:
        """Delete the row of ``key``; returns False if it does not exist."""
        row_number, _ = self._find_row(key)
        if row_number is None:
            return False
        self.store.delete_row(self.schema.name, row_number)
        logger.debug(f"Deleted {self.schema.name} row {key}")
        return True

    def delete_where(self, predicate: Callable[[ModelT], bool]) -> int:
        """Delete every matching record one row at a time; returns the count."""
        keys = [
            str(getattr(record, self.schema.key_column))
            for record in self.list_all()
            if predicate(record)
        ]
        deleted = 0
        for key in keys:
            if self.delete(key):
                deleted += 1
        return deleted
