"""Calculator modules for invoicing."""

from invoicing.calculators.invoice_calculator import (
    InvoiceTotals,
    PaymentSummary,
    add_months,
    calculate_line_items,
    calculate_totals,
    format_invoice_number,
    next_invoice_number,
    next_occurrence_after,
    schedule_occurrence,
    status_after_payments,
    summarize_payments,
)
from invoicing.calculators.project_calculator import calculate_project_stats

__all__ = [
    # invoice_calculator
    "InvoiceTotals",
    "PaymentSummary",
    "add_months",
    "calculate_line_items",
    "calculate_totals",
    "format_invoice_number",
    "next_invoice_number",
    "next_occurrence_after",
    "schedule_occurrence",
    "status_after_payments",
    "summarize_payments",
    # project_calculator
    "calculate_project_stats",
]
