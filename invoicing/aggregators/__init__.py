"""Aggregators computing dashboard metrics and financial reports."""

from invoicing.aggregators.dashboard import (
    ActivityItem,
    DashboardMetrics,
    build_dashboard_metrics,
)
from invoicing.aggregators.reports import (
    ClientReportRow,
    InvoiceStatusReportRow,
    ReportGenerator,
    ReportType,
    RevenueReportRow,
    export_filename,
    parse_report_type,
    report_to_csv,
)

__all__ = [
    "ActivityItem",
    "ClientReportRow",
    "DashboardMetrics",
    "InvoiceStatusReportRow",
    "ReportGenerator",
    "ReportType",
    "RevenueReportRow",
    "build_dashboard_metrics",
    "export_filename",
    "parse_report_type",
    "report_to_csv",
]
