"""Dashboard metrics route."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from invoicing.aggregators import build_dashboard_metrics
from invoicing.api.dependencies import RequestContext, get_context
from invoicing.api.responses import success
from invoicing.errors import ValidationFailedError
from invoicing.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def dashboard_metrics(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    ctx: RequestContext = Depends(get_context),
):
    """Metrics for the dashboard; overdue invoices are flagged first."""
    if date_from and date_to and date_from > date_to:
        raise ValidationFailedError("date_from must be on or before date_to")

    InvoiceService(ctx.workbook, ctx.activity).mark_overdue()
    metrics = build_dashboard_metrics(
        ctx.workbook.clients.list_all(),
        ctx.workbook.invoices.list_all(),
        ctx.workbook.payments.list_all(),
        date_from,
        date_to,
    )
    return success(metrics)
