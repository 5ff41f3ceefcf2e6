"""
The invoicing spreadsheet as a whole: entity repositories, the key/value
Settings tab, tab setup and health checks.
"""

import logging
from typing import Any, Dict, List, Optional

from invoicing.models import AppSettings, CompanySettings
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.sheets import schema
from invoicing.sheets.repository import SheetRepository, SheetStore

logger = logging.getLogger(__name__)

_COMPANY_KEYS = {
    "name": "company_name",
    "email": "company_email",
    "phone": "company_phone",
    "tax_rate": "tax_rate",
    "payment_terms": "payment_terms",
    "currency": "currency",
    "date_format": "date_format",
    "time_zone": "time_zone",
    "invoice_prefix": "invoice_prefix",
}
_ADDRESS_KEYS = {name: f"company_{name}" for name in schema.ADDRESS_FIELDS}
_APP_KEYS = ("drive_enabled", "drive_folder_id", "drive_folder_name")


class Workbook:
    """
    Facade over the invoicing spreadsheet.

    Example:
        >>> store = SheetStore(sheets_service, "spreadsheet-id")
        >>> workbook = Workbook(store)
        >>> workbook.clients.list_all()
        []
    """

    def __init__(self, store: SheetStore):
        self.store = store
        self.clients = SheetRepository(store, schema.CLIENTS)
        self.invoices = SheetRepository(store, schema.INVOICES)
        self.payments = SheetRepository(store, schema.PAYMENTS)
        self.templates = SheetRepository(store, schema.TEMPLATES)
        self.projects = SheetRepository(store, schema.PROJECTS)
        self.tasks = SheetRepository(store, schema.TASKS)
        self.time_entries = SheetRepository(store, schema.TIME_ENTRIES)
        self.activity_logs = SheetRepository(store, schema.ACTIVITY_LOGS)
        self.storage_statuses = SheetRepository(store, schema.STORAGE_STATUS)

    @property
    def spreadsheet_id(self) -> str:
        return self.store.spreadsheet_id

    # Settings tab

    def read_settings(self) -> Dict[str, Any]:
        """Return the Settings tab as a key -> value dict."""
        values = self.store.read_values(f"{schema.SETTINGS_TAB}!A:B")
        settings: Dict[str, Any] = {}
        for row in values[1:]:
            if not row or row[0] in (None, ""):
                continue
            settings[str(row[0]).strip()] = row[1] if len(row) > 1 else ""
        return settings

    def write_settings(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``updates`` into the Settings tab and rewrite it."""
        settings = self.read_settings()
        settings.update(updates)

        rows: List[List[Any]] = [list(schema.SETTINGS_HEADERS)]
        for key, value in settings.items():
            rows.append([key, "" if value is None else value])

        self.store.update_values(f"{schema.SETTINGS_TAB}!A1:B{len(rows)}", rows)
        return settings

    def get_company_settings(self) -> CompanySettings:
        raw = self.read_settings()
        data: Dict[str, Any] = {}
        for attr, key in _COMPANY_KEYS.items():
            if raw.get(key) not in (None, ""):
                data[attr] = raw[key]

        address = {attr: raw.get(key) for attr, key in _ADDRESS_KEYS.items()}
        if all(address.values()):
            data["address"] = address
        return CompanySettings.model_validate(data)

    def save_company_settings(self, company: CompanySettings) -> CompanySettings:
        dumped = company.model_dump(mode="json")
        updates = {key: dumped.get(attr) for attr, key in _COMPANY_KEYS.items()}
        address: Optional[Dict[str, Any]] = dumped.get("address")
        for attr, key in _ADDRESS_KEYS.items():
            updates[key] = address.get(attr) if address else None
        self.write_settings(updates)
        return company

    def get_app_settings(self) -> AppSettings:
        raw = self.read_settings()
        data = {key: raw[key] for key in _APP_KEYS if raw.get(key) not in (None, "")}
        return AppSettings.model_validate(data)

    def save_app_settings(self, app_settings: AppSettings) -> AppSettings:
        self.write_settings(app_settings.model_dump(mode="json"))
        return app_settings

    # Setup and health

    def list_tabs(self) -> List[str]:
        return list(self.store.sheet_ids(refresh=True).keys())

    def setup_sheets(self, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Create missing tabs with their header rows and seed default settings.

        Existing tabs and settings are left untouched, so the operation is
        safe to repeat. ``defaults`` override the built-in seed values.

        Returns:
            Dictionary with ``created``, ``existing`` and ``seeded_settings``
        """
        existing = set(self.list_tabs())
        created: List[str] = []

        for tab_name, headers in schema.REQUIRED_TABS.items():
            if tab_name in existing:
                header_row = self.store.read_values(f"{tab_name}!1:1")
                if not header_row or not any(header_row[0]):
                    self.store.update_values(
                        f"{tab_name}!A1:{schema.column_letter(len(headers))}1",
                        [headers],
                    )
                    logger.info(f"Wrote missing header row to '{tab_name}'")
                continue

            self.store.create_tab(tab_name, headers)
            created.append(tab_name)
            logger.info(f"Created tab '{tab_name}'")

        current = self.read_settings()
        missing = {
            key: value
            for key, value in {**schema.DEFAULT_SETTINGS, **(defaults or {})}.items()
            if key not in current
        }
        if missing:
            self.write_settings(missing)

        return {
            "created": created,
            "existing": sorted(existing & set(schema.REQUIRED_TABS)),
            "seeded_settings": sorted(missing),
        }

    def health_check(self, retry_statistics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Check that the spreadsheet is reachable and has every required tab.

        Returns:
            Dictionary with ``status`` (healthy / degraded / unhealthy),
            ``missing_tabs`` and, when given, retry statistics
        """
        result: Dict[str, Any] = {"spreadsheet_id": self.spreadsheet_id}
        try:
            tabs = set(self.list_tabs())
        except GoogleServiceError as e:
            logger.error(f"Spreadsheet health check failed: {e.message}")
            result.update(
                status="unhealthy",
                reachable=False,
                error={"code": e.code, "message": e.message},
            )
        else:
            missing = sorted(set(schema.REQUIRED_TABS) - tabs)
            result.update(
                status="healthy" if not missing else "degraded",
                reachable=True,
                missing_tabs=missing,
            )

        if retry_statistics is not None:
            result["retry_statistics"] = retry_statistics
        if self.store.cache is not None:
            result["cache_statistics"] = self.store.cache.get_cache_statistics()
        return result
