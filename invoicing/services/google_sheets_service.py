"""
Google Sheets v4 client used as the application's data store.

Every call goes through the :class:`RetryHandler`, so callers only ever see
classified :class:`GoogleServiceError` subclasses.
"""

import logging
from typing import Any, Dict, List, Optional

from googleapiclient.discovery import build

from invoicing.services.credentials import CredentialsSource, resolve_credentials
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.services.retry_handler import RetryHandler

logger = logging.getLogger(__name__)


class GoogleSheetsService:
    """
    Row-level access to the tabs of one or more spreadsheets.

    Credentials may be a caller's OAuth token, a service account info dict,
    or None for Application Default Credentials.
    """

    def __init__(
        self,
        credentials: CredentialsSource = None,
        retry_handler: Optional[RetryHandler] = None,
        scopes: Optional[List[str]] = None,
    ):
        self.retry_handler = retry_handler or RetryHandler()
        self.scopes = scopes
        credentials, description = resolve_credentials(credentials, scopes)
        try:
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        except Exception as e:
            logger.error(f"Could not build the Sheets client: {e}")
            raise
        logger.info(f"Google Sheets service initialized with {description}")

    def _call(self, operation: str, request) -> Dict[str, Any]:
        """Execute a prepared API request under the retry policy."""
        try:
            return self.retry_handler.execute_with_retry(request.execute, operation=operation)
        except GoogleServiceError as e:
            logger.error(f"Sheets {operation} failed: {e.message}")
            raise

    def _values(self):
        return self._service.spreadsheets().values()

    def _batch_update(self, spreadsheet_id: str, operation: str, *requests) -> Dict[str, Any]:
        request = self._service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id, body={"requests": list(requests)}
        )
        return self._call(operation, request)

    def read_values(
        self,
        spreadsheet_id: str,
        range_name: str,
        value_render_option: str = "UNFORMATTED_VALUE",
    ) -> List[List[Any]]:
        """Rows of ``range_name``; an empty range yields an empty list."""
        request = self._values().get(
            spreadsheetId=spreadsheet_id,
            range=range_name,
            valueRenderOption=value_render_option,
        )
        rows = self._call(f"read {range_name}", request).get("values", [])
        logger.debug(f"Read {len(rows)} rows from {range_name}")
        return rows

    def update_values(
        self,
        spreadsheet_id: str,
        range_name: str,
        values: List[List[Any]],
        value_input_option: str = "RAW",
    ) -> Dict[str, Any]:
        request = self._values().update(
            spreadsheetId=spreadsheet_id,
            range=range_name,
            valueInputOption=value_input_option,
            body={"values": values},
        )
        result = self._call(f"update {range_name}", request)
        logger.info(f"Updated {result.get('updatedCells', 0)} cells in {range_name}")
        return result

    def append_rows(
        self,
        spreadsheet_id: str,
        range_name: str,
        values: List[List[Any]],
        value_input_option: str = "RAW",
    ) -> Dict[str, Any]:
        """Insert rows after the last row of the table in ``range_name``."""
        request = self._values().append(
            spreadsheetId=spreadsheet_id,
            range=range_name,
            valueInputOption=value_input_option,
            insertDataOption="INSERT_ROWS",
            body={"values": values},
        )
        result = self._call(f"append {range_name}", request)
        logger.info(f"Appended {len(values)} row(s) to {range_name}")
        return result

    def delete_rows(
        self, spreadsheet_id: str, sheet_id: int, start_index: int, end_index: int
    ) -> Dict[str, Any]:
        """
        Delete rows ``[start_index, end_index)`` from a tab.

        Args:
            spreadsheet_id: The ID of the spreadsheet
            sheet_id: Numeric id of the tab (not its title)
            start_index: First row to delete, 0-based, inclusive
            end_index: Row after the last one to delete
        """
        result = self._batch_update(
            spreadsheet_id,
            "delete rows",
            {
                "deleteDimension": {
                    "range": {
                        "sheetId": sheet_id,
                        "dimension": "ROWS",
                        "startIndex": start_index,
                        "endIndex": end_index,
                    }
                }
            },
        )
        logger.info(f"Deleted rows {start_index}-{end_index - 1} of sheet {sheet_id}")
        return result

    def get_sheet_ids(self, spreadsheet_id: str) -> Dict[str, int]:
        """Tab title -> numeric sheet id."""
        request = self._service.spreadsheets().get(
            spreadsheetId=spreadsheet_id, fields="sheets.properties(sheetId,title)"
        )
        metadata = self._call("list tabs", request)
        return {
            sheet["properties"]["title"]: sheet["properties"]["sheetId"]
            for sheet in metadata.get("sheets", [])
        }

    def create_sheet(
        self,
        spreadsheet_id: str,
        sheet_title: str,
        row_count: int = 1000,
        column_count: int = 26,
    ) -> Dict[str, Any]:
        """Add an empty tab."""
        result = self._batch_update(
            spreadsheet_id,
            f"create tab {sheet_title}",
            {
                "addSheet": {
                    "properties": {
                        "title": sheet_title,
                        "gridProperties": {"rowCount": row_count, "columnCount": column_count},
                    }
                }
            },
        )
        logger.info(f"Created tab '{sheet_title}'")
        return result
