"""Invoicing service backed by Google Sheets and Google Drive."""

__version__ = "0.1.0"
