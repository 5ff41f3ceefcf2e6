"""Recurring invoice routes and the scheduler (cron) endpoint."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from invoicing.api.dependencies import RequestContext, get_cron_context, get_recurring_service
from invoicing.api.responses import success
from invoicing.models.base import BaseDataModel
from invoicing.services.recurring_service import RecurringService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recurring"])


class ScheduleToggle(BaseDataModel):
    is_active: bool


def _run_summary(result: dict) -> dict:
    return {
        "processed": result["processed"],
        "generated": len(result["generated"]),
        "failed": len(result["errors"]),
    }


@router.get("/invoices/recurring")
def list_recurring(
    due_only: bool = False,
    active_only: bool = False,
    service: RecurringService = Depends(get_recurring_service),
):
    if due_only:
        return success(service.list_due())
    return success(service.list_recurring(active_only))


@router.post("/invoices/recurring")
def generate_due(
    today: Optional[date] = None,
    service: RecurringService = Depends(get_recurring_service),
):
    """Generate every due recurring invoice."""
    result = service.generate_due(today)
    return success(result, {"summary": _run_summary(result)})


@router.post("/invoices/recurring/{invoice_id}", status_code=201)
def generate_one(invoice_id: str, service: RecurringService = Depends(get_recurring_service)):
    return success(service.generate_one(invoice_id))


@router.patch("/invoices/recurring/{invoice_id}")
def toggle_schedule(
    invoice_id: str,
    data: ScheduleToggle,
    service: RecurringService = Depends(get_recurring_service),
):
    return success(service.set_active(invoice_id, data.is_active))


@router.post("/cron/recurring-invoices")
def cron_generate(ctx: RequestContext = Depends(get_cron_context)):
    service = RecurringService(ctx.workbook, ctx.activity)
    result = service.generate_due()
    logger.info(f"Scheduled recurring run: {_run_summary(result)}")
    return success(result, {"summary": _run_summary(result)})


@router.get("/cron/recurring-invoices")
def cron_list_due(ctx: RequestContext = Depends(get_cron_context)):
    due = RecurringService(ctx.workbook, ctx.activity).list_due()
    return success(due, {"count": len(due)})
