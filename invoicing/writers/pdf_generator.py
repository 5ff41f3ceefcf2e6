"""
PDF rendering of invoices and reports with reportlab.
"""

import io
import logging
from dataclasses import asdict
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from invoicing.aggregators.reports import EXPORT_COLUMNS, REPORT_TITLES, ReportType
from invoicing.models import Client, CompanySettings, Invoice

logger = logging.getLogger(__name__)

_CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CAD": "CA$", "AUD": "A$", "JPY": "¥"}


def format_currency(amount: Decimal, currency: str = "USD") -> str:
    """Format an amount with thousands separators, e.g. ``$1,234.50``."""
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}"
    if symbol:
        return f"{sign}{symbol}{text}"
    return f"{sign}{text} {currency.upper()}"


class _PDFBase:
    def __init__(self):
        self.page_width, self.page_height = letter
        self.margin = 0.75 * inch
        self.content_width = self.page_width - (2 * self.margin)

        self.brand_color = colors.HexColor("#2563eb")
        self.dark_gray = colors.HexColor("#1f2937")
        self.light_gray = colors.HexColor("#f3f4f6")

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "InvoiceTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=self.brand_color,
            spaceAfter=6,
        )
        self.heading_style = ParagraphStyle(
            "InvoiceHeading",
            parent=styles["Heading3"],
            fontSize=11,
            textColor=self.dark_gray,
            spaceBefore=12,
            spaceAfter=4,
        )
        self.body_style = ParagraphStyle(
            "InvoiceBody",
            parent=styles["Normal"],
            fontSize=9,
            textColor=self.dark_gray,
            leading=12,
        )

    def _document(self, buffer: io.BytesIO, title: str) -> SimpleDocTemplate:
        return SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=title,
        )

    def _table_style(self) -> TableStyle:
        return TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 9),
                ("FONT", (0, 1), (-1, -1), "Helvetica", 9),
                ("TEXTCOLOR", (0, 1), (-1, -1), self.dark_gray),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
                ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )

    def _add_page_number(self, canvas_obj, doc):
        canvas_obj.setFont("Helvetica", 8)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(
            self.page_width - self.margin,
            self.margin / 2,
            f"Page {canvas_obj.getPageNumber()}",
        )

    def _build(self, doc: SimpleDocTemplate, story: list, buffer: io.BytesIO) -> bytes:
        doc.build(story, onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes


class InvoicePDFGenerator(_PDFBase):
    """Render one invoice: issuer and client blocks, line items, totals, notes.

    Example:
        >>> pdf = InvoicePDFGenerator(invoice, client, company).generate()
        >>> pdf[:4]
        b'%PDF'
    """

    def __init__(self, invoice: Invoice, client: Client, company: CompanySettings):
        super().__init__()
        self.invoice = invoice
        self.client = client
        self.company = company

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self.company.currency)

    def _party_lines(self) -> List[List[Any]]:
        company_lines = [f"<b>{escape(self.company.name or 'Your Company')}</b>"]
        if self.company.address:
            company_lines.append(escape(self.company.address.one_line()))
        if self.company.email:
            company_lines.append(escape(str(self.company.email)))
        if self.company.phone:
            company_lines.append(escape(self.company.phone))

        client_lines = [
            "<b>Bill To</b>",
            escape(self.client.name),
            escape(self.client.address.one_line()),
            escape(str(self.client.email)),
        ]
        return [
            [
                Paragraph("<br/>".join(company_lines), self.body_style),
                Paragraph("<br/>".join(client_lines), self.body_style),
            ]
        ]

    def generate(self) -> bytes:
        invoice = self.invoice
        logger.info(f"Generating PDF for invoice {invoice.invoice_number}")

        buffer = io.BytesIO()
        doc = self._document(buffer, f"Invoice {invoice.invoice_number}")
        story: list = []

        story.append(Paragraph(f"INVOICE {escape(invoice.invoice_number)}", self.title_style))
        meta = [
            ["Issue date:", invoice.issue_date.isoformat()],
            ["Due date:", invoice.due_date.isoformat()],
            ["Status:", invoice.status.value.upper()],
        ]
        meta_table = Table(meta, colWidths=[1.2 * inch, 2.0 * inch], hAlign="LEFT")
        meta_table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 9),
                    ("FONT", (1, 0), (1, -1), "Helvetica", 9),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
                ]
            )
        )
        story.append(meta_table)
        story.append(Spacer(1, 0.25 * inch))

        parties = Table(self._party_lines(), colWidths=[self.content_width / 2] * 2)
        parties.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        story.append(parties)
        story.append(Spacer(1, 0.3 * inch))

        rows: List[List[Any]] = [["Description", "Quantity", "Rate", "Amount"]]
        for item in invoice.line_items:
            rows.append(
                [
                    Paragraph(escape(item.description), self.body_style),
                    f"{item.quantity.normalize():f}",
                    self._money(item.rate),
                    self._money(item.amount),
                ]
            )
        items_table = Table(
            rows,
            colWidths=[3.6 * inch, 0.9 * inch, 1.2 * inch, 1.3 * inch],
            repeatRows=1,
        )
        items_table.setStyle(self._table_style())
        story.append(items_table)
        story.append(Spacer(1, 0.2 * inch))

        totals = [
            ["Subtotal", self._money(invoice.subtotal)],
            [f"Tax ({invoice.tax_rate.normalize():f}%)", self._money(invoice.tax_amount)],
            ["Total", self._money(invoice.total)],
        ]
        if invoice.paid_amount > 0:
            totals.append(["Paid", self._money(invoice.paid_amount)])
            totals.append(["Balance due", self._money(invoice.balance)])
        totals_table = Table(totals, colWidths=[1.5 * inch, 1.3 * inch], hAlign="RIGHT")
        totals_table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (-1, -1), "Helvetica", 9),
                    ("FONT", (0, 2), (-1, 2), "Helvetica-Bold", 10),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("LINEABOVE", (0, 2), (-1, 2), 0.75, self.dark_gray),
                ]
            )
        )
        story.append(totals_table)

        if invoice.notes:
            story.append(Paragraph("Notes", self.heading_style))
            story.append(Paragraph(escape(invoice.notes), self.body_style))

        story.append(Spacer(1, 0.3 * inch))
        story.append(
            Paragraph(
                f"Payment is due within {self.company.payment_terms} days. Thank you for your business.",
                ParagraphStyle("Footer", parent=self.body_style, textColor=colors.grey),
            )
        )

        pdf_bytes = self._build(doc, story, buffer)
        logger.info(f"Generated invoice PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes


class ReportPDFGenerator(_PDFBase):
    """Render a report as a titled table."""

    def __init__(
        self,
        report_type: ReportType,
        rows: List[Any],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        currency: str = "USD",
    ):
        super().__init__()
        self.report_type = report_type
        self.rows = rows
        self.date_from = date_from
        self.date_to = date_to
        self.currency = currency

    def _period_label(self) -> str:
        if self.date_from and self.date_to:
            return f"{self.date_from.isoformat()} to {self.date_to.isoformat()}"
        if self.date_from:
            return f"From {self.date_from.isoformat()}"
        if self.date_to:
            return f"Until {self.date_to.isoformat()}"
        return "All time"

    def generate(self) -> bytes:
        title = REPORT_TITLES[self.report_type]
        buffer = io.BytesIO()
        doc = self._document(buffer, title)

        story: list = [
            Paragraph(title, self.title_style),
            Paragraph(f"Period: {self._period_label()}", self.body_style),
            Paragraph(f"Generated: {date.today().isoformat()}", self.body_style),
            Spacer(1, 0.25 * inch),
        ]

        columns = EXPORT_COLUMNS[self.report_type]
        if not self.rows:
            story.append(Paragraph("No data for the selected period.", self.body_style))
        else:
            table_rows: List[List[Any]] = [[header for header, _ in columns]]
            for row in self.rows:
                values = asdict(row)
                table_rows.append(
                    [
                        format_currency(values[field], self.currency)
                        if isinstance(values[field], Decimal)
                        else str(values[field])
                        for _, field in columns
                    ]
                )
            table = Table(
                table_rows,
                colWidths=[self.content_width / len(columns)] * len(columns),
                repeatRows=1,
            )
            table.setStyle(self._table_style())
            story.append(table)

        pdf_bytes = self._build(doc, story, buffer)
        logger.info(f"Generated {self.report_type.value} report PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes
