"""Financial reports built from invoice records.

Three reports are available, each optionally limited to invoices issued
within a date window:

- revenue: paid amounts grouped by issue month (``YYYY-MM``)
- client: invoiced, paid and outstanding totals per client
- invoice-status: invoice count and total amount per status

Reports are computed as pandas DataFrames and exported as CSV or handed to
the PDF writer.
"""

import csv
import logging
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

from invoicing.errors import ValidationFailedError
from invoicing.models import Client, Invoice, round_money

logger = logging.getLogger(__name__)


class ReportType(str, Enum):
    REVENUE = "revenue"
    CLIENT = "client"
    INVOICE_STATUS = "invoice-status"


REPORT_TITLES = {
    ReportType.REVENUE: "Revenue Report",
    ReportType.CLIENT: "Client Report",
    ReportType.INVOICE_STATUS: "Invoice Status Report",
}

# Export column headers and the row fields they come from
EXPORT_COLUMNS: Dict[ReportType, List[tuple]] = {
    ReportType.REVENUE: [
        ("Period", "period"),
        ("Revenue", "revenue"),
        ("Invoice Count", "invoice_count"),
        ("Client Count", "client_count"),
    ],
    ReportType.CLIENT: [
        ("Client Name", "client_name"),
        ("Total Invoiced", "total_invoiced"),
        ("Total Paid", "total_paid"),
        ("Outstanding Amount", "outstanding_amount"),
        ("Invoice Count", "invoice_count"),
    ],
    ReportType.INVOICE_STATUS: [
        ("Status", "status"),
        ("Count", "count"),
        ("Total Amount", "total_amount"),
    ],
}


@dataclass
class RevenueReportRow:
    period: str
    revenue: Decimal
    invoice_count: int
    client_count: int


@dataclass
class ClientReportRow:
    client_id: str
    client_name: str
    total_invoiced: Decimal
    total_paid: Decimal
    outstanding_amount: Decimal
    invoice_count: int


@dataclass
class InvoiceStatusReportRow:
    status: str
    count: int
    total_amount: Decimal


def parse_report_type(value: Optional[str]) -> ReportType:
    try:
        return ReportType(value)
    except ValueError:
        raise ValidationFailedError(
            "Invalid report type specified",
            details={"allowed": [t.value for t in ReportType]},
            code="INVALID_REPORT_TYPE",
        )


def _money(value: Any) -> Decimal:
    return round_money(Decimal(str(value)))


class ReportGenerator:
    """Compute reports over a fixed set of invoices and clients.

    Example:
        >>> generator = ReportGenerator(invoices, clients)
        >>> rows = generator.revenue(date_from=date(2024, 1, 1))
        >>> rows[0].period
        '2024-01'
    """

    def __init__(self, invoices: List[Invoice], clients: List[Client]):
        self.invoices = invoices
        self.client_names = {c.id: c.name for c in clients}

    def _frame(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        client_id: Optional[str] = None,
    ) -> pd.DataFrame:
        rows = [
            {
                "client_id": inv.client_id,
                "status": inv.status.value,
                "issue_date": inv.issue_date,
                "total": float(inv.total),
                "paid_amount": float(inv.paid_amount),
            }
            for inv in self.invoices
            if (date_from is None or inv.issue_date >= date_from)
            and (date_to is None or inv.issue_date <= date_to)
            and (client_id is None or inv.client_id == client_id)
        ]
        df = pd.DataFrame(
            rows, columns=["client_id", "status", "issue_date", "total", "paid_amount"]
        )
        df["period"] = df["issue_date"].map(lambda d: d.strftime("%Y-%m"))
        return df

    def revenue(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> List[RevenueReportRow]:
        """Paid amount per issue month, oldest month first."""
        df = self._frame(date_from, date_to)
        if df.empty:
            return []

        grouped = (
            df.groupby("period")
            .agg(
                revenue=("paid_amount", "sum"),
                invoice_count=("client_id", "size"),
                client_count=("client_id", "nunique"),
            )
            .sort_index()
        )
        return [
            RevenueReportRow(
                period=str(period),
                revenue=_money(row.revenue),
                invoice_count=int(row.invoice_count),
                client_count=int(row.client_count),
            )
            for period, row in grouped.iterrows()
        ]

    def clients(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        client_id: Optional[str] = None,
    ) -> List[ClientReportRow]:
        """Totals per client, largest invoiced amount first."""
        df = self._frame(date_from, date_to, client_id)
        if df.empty:
            return []

        grouped = df.groupby("client_id").agg(
            total_invoiced=("total", "sum"),
            total_paid=("paid_amount", "sum"),
            invoice_count=("total", "size"),
        )
        grouped = grouped.sort_values("total_invoiced", ascending=False, kind="stable")

        result = []
        for cid, row in grouped.iterrows():
            invoiced = _money(row.total_invoiced)
            paid = _money(row.total_paid)
            result.append(
                ClientReportRow(
                    client_id=str(cid),
                    client_name=self.client_names.get(cid, "Unknown Client"),
                    total_invoiced=invoiced,
                    total_paid=paid,
                    outstanding_amount=invoiced - paid,
                    invoice_count=int(row.invoice_count),
                )
            )
        return result

    def invoice_status(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> List[InvoiceStatusReportRow]:
        """Count and total per status, largest total first."""
        df = self._frame(date_from, date_to)
        if df.empty:
            return []

        grouped = df.groupby("status").agg(
            count=("total", "size"),
            total_amount=("total", "sum"),
        )
        grouped = grouped.sort_values("total_amount", ascending=False, kind="stable")
        return [
            InvoiceStatusReportRow(
                status=str(status),
                count=int(row["count"]),
                total_amount=_money(row["total_amount"]),
            )
            for status, row in grouped.iterrows()
        ]

    def generate(
        self,
        report_type: ReportType,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        client_id: Optional[str] = None,
    ) -> List[Any]:
        logger.info(
            f"Generating {report_type.value} report over {len(self.invoices)} invoices"
        )
        if report_type == ReportType.REVENUE:
            return self.revenue(date_from, date_to)
        if report_type == ReportType.CLIENT:
            return self.clients(date_from, date_to, client_id)
        return self.invoice_status(date_from, date_to)


def report_to_dataframe(report_type: ReportType, rows: List[Any]) -> pd.DataFrame:
    """Export layout of a report: titled columns, amounts with two decimals."""
    columns = EXPORT_COLUMNS[report_type]
    records = []
    for row in rows:
        values = asdict(row)
        records.append(
            {
                title: f"{values[field]:.2f}" if isinstance(values[field], Decimal) else values[field]
                for title, field in columns
            }
        )
    return pd.DataFrame(records, columns=[title for title, _ in columns])


def report_to_csv(report_type: ReportType, rows: List[Any]) -> str:
    """CSV text with every cell quoted."""
    df = report_to_dataframe(report_type, rows)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def export_filename(report_type: ReportType, extension: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{report_type.value}-report-{today.isoformat()}.{extension}"
