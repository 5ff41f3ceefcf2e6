"""Report routes: JSON data and CSV or PDF export."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from invoicing.aggregators import (
    ReportGenerator,
    export_filename,
    parse_report_type,
    report_to_csv,
)
from invoicing.api.dependencies import RequestContext, get_context
from invoicing.api.responses import success
from invoicing.writers.pdf_generator import ReportPDFGenerator

router = APIRouter(prefix="/reports", tags=["Reports"])


def _generator(ctx: RequestContext) -> ReportGenerator:
    return ReportGenerator(ctx.workbook.invoices.list_all(), ctx.workbook.clients.list_all())


@router.get("")
def get_report(
    type: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    client_id: Optional[str] = None,
    ctx: RequestContext = Depends(get_context),
):
    report_type = parse_report_type(type)
    rows = _generator(ctx).generate(report_type, date_from, date_to, client_id)
    return success(rows)


@router.get("/export")
def export_report(
    type: Optional[str] = None,
    format: str = Query("csv", pattern="^(csv|pdf)$"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    client_id: Optional[str] = None,
    ctx: RequestContext = Depends(get_context),
):
    report_type = parse_report_type(type)
    rows = _generator(ctx).generate(report_type, date_from, date_to, client_id)
    file_name = export_filename(report_type, format)

    if format == "pdf":
        currency = ctx.workbook.get_company_settings().currency
        content = ReportPDFGenerator(report_type, rows, date_from, date_to, currency).generate()
        media_type = "application/pdf"
    else:
        content = report_to_csv(report_type, rows).encode("utf-8")
        media_type = "text/csv"

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
