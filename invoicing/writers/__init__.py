"""Writers rendering invoices and reports to PDF."""

from invoicing.writers.pdf_generator import (
    InvoicePDFGenerator,
    ReportPDFGenerator,
    format_currency,
)

__all__ = ["InvoicePDFGenerator", "ReportPDFGenerator", "format_currency"]
