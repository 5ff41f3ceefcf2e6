"""Spreadsheet-as-database layer."""

from invoicing.sheets.repository import SheetRepository, SheetStore
from invoicing.sheets.workbook import Workbook

__all__ = ["SheetRepository", "SheetStore", "Workbook"]
