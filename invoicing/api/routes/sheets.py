"""Spreadsheet setup and health routes."""

from fastapi import APIRouter, Depends

from invoicing.api.dependencies import RequestContext, get_context
from invoicing.api.responses import success

router = APIRouter(prefix="/sheets", tags=["Sheets"])


@router.post("/setup")
def setup_sheets(ctx: RequestContext = Depends(get_context)):
    """Create missing tabs and seed default settings; safe to repeat."""
    return success(ctx.workbook.setup_sheets(ctx.config.settings_seed()))


@router.get("/health")
def sheets_health(ctx: RequestContext = Depends(get_context)):
    return success(ctx.workbook.health_check(ctx.retry_handler.get_retry_statistics()))
