"""Server-rendered dashboard pages.

Pages authenticate with the ``access_token`` cookie set by the sign-in form
and read the spreadsheet through the same services as the JSON API.
"""

import logging
from datetime import date
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from invoicing.aggregators import ReportGenerator, ReportType, build_dashboard_metrics
from invoicing.aggregators.reports import EXPORT_COLUMNS, REPORT_TITLES
from invoicing.api.app import get_templates
from invoicing.api.dependencies import (
    ACCESS_TOKEN_COOKIE,
    RequestContext,
    get_optional_context,
)
from invoicing.models import InvoiceStatus
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.payment_service import PaymentService
from invoicing.utils.pagination import paginate
from invoicing.writers.pdf_generator import format_currency

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"], include_in_schema=False)


def _render(
    templates: Jinja2Templates,
    request: Request,
    name: str,
    ctx: Optional[RequestContext],
    **context,
) -> HTMLResponse:
    currency = ctx.workbook.get_company_settings().currency if ctx else "USD"
    return templates.TemplateResponse(
        request,
        name,
        {"money": lambda amount: format_currency(amount, currency), **context},
    )


def _signin_redirect() -> RedirectResponse:
    return RedirectResponse("/signin", status_code=303)


@router.get("/signin", response_class=HTMLResponse)
def signin_page(request: Request, templates: Jinja2Templates = Depends(get_templates)):
    return _render(templates, request, "pages/signin.html", None, title="Sign in")


@router.post("/signin")
def signin(token: str = Form(..., min_length=1)):
    response = RedirectResponse("/", status_code=303)
    response.set_cookie(ACCESS_TOKEN_COOKIE, token.strip(), httponly=True, samesite="lax")
    return response


@router.post("/signout")
def signout():
    response = _signin_redirect()
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@router.get("/", response_class=HTMLResponse)
def dashboard_page(
    request: Request,
    ctx: Optional[RequestContext] = Depends(get_optional_context),
    templates: Jinja2Templates = Depends(get_templates),
):
    if ctx is None:
        return _signin_redirect()
    InvoiceService(ctx.workbook, ctx.activity).mark_overdue()
    metrics = build_dashboard_metrics(
        ctx.workbook.clients.list_all(),
        ctx.workbook.invoices.list_all(),
        ctx.workbook.payments.list_all(),
    )
    return _render(templates, request, "pages/dashboard.html", ctx, title="Dashboard", metrics=metrics)


@router.get("/clients", response_class=HTMLResponse)
def clients_page(
    request: Request,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    ctx: Optional[RequestContext] = Depends(get_optional_context),
    templates: Jinja2Templates = Depends(get_templates),
):
    if ctx is None:
        return _signin_redirect()
    needle = search.lower() if search else None
    clients = sorted(
        (
            c
            for c in ctx.workbook.clients.list_all()
            if not needle or needle in f"{c.name} {c.email}".lower()
        ),
        key=lambda c: c.name.lower(),
    )
    items, meta = paginate(clients, page, 25)
    return _render(
        templates, request, "pages/clients.html", ctx,
        title="Clients", clients=items, meta=meta, search=search or "",
        extra_query=f"&{urlencode({'search': search})}" if search else "",
    )


@router.get("/invoices", response_class=HTMLResponse)
def invoices_page(
    request: Request,
    status: Optional[InvoiceStatus] = None,
    page: int = Query(1, ge=1),
    ctx: Optional[RequestContext] = Depends(get_optional_context),
    templates: Jinja2Templates = Depends(get_templates),
):
    if ctx is None:
        return _signin_redirect()
    invoices = InvoiceService(ctx.workbook, ctx.activity).list_invoices(status=status)
    client_names = {c.id: c.name for c in ctx.workbook.clients.list_all()}
    items, meta = paginate(invoices, page, 25)
    return _render(
        templates, request, "pages/invoices.html", ctx,
        title="Invoices", invoices=items, meta=meta, client_names=client_names,
        statuses=list(InvoiceStatus), selected_status=status.value if status else "",
        extra_query=f"&status={status.value}" if status else "",
    )


@router.get("/payments", response_class=HTMLResponse)
def payments_page(
    request: Request,
    page: int = Query(1, ge=1),
    ctx: Optional[RequestContext] = Depends(get_optional_context),
    templates: Jinja2Templates = Depends(get_templates),
):
    if ctx is None:
        return _signin_redirect()
    payments = PaymentService(ctx.workbook, ctx.activity).list_payments()
    invoice_numbers = {i.id: i.invoice_number for i in ctx.workbook.invoices.list_all()}
    items, meta = paginate(payments, page, 25)
    return _render(
        templates, request, "pages/payments.html", ctx,
        title="Payments", payments=items, meta=meta, invoice_numbers=invoice_numbers,
    )


@router.get("/reports", response_class=HTMLResponse)
def reports_page(
    request: Request,
    type: ReportType = ReportType.REVENUE,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    ctx: Optional[RequestContext] = Depends(get_optional_context),
    templates: Jinja2Templates = Depends(get_templates),
):
    if ctx is None:
        return _signin_redirect()
    generator = ReportGenerator(ctx.workbook.invoices.list_all(), ctx.workbook.clients.list_all())
    rows = generator.generate(type, date_from, date_to)
    return _render(
        templates, request, "pages/reports.html", ctx,
        title="Reports", report_type=type, report_types=list(ReportType), rows=rows,
        report_title=REPORT_TITLES[type], columns=EXPORT_COLUMNS[type],
        date_from=date_from.isoformat() if date_from else "",
        date_to=date_to.isoformat() if date_to else "",
    )
