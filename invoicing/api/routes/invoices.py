"""Invoice routes, including sending, PDF download and HTML preview."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from invoicing.api.app import get_templates
from invoicing.api.dependencies import get_invoice_service, get_storage_service
from invoicing.api.responses import success
from invoicing.models import InvoiceCreate, InvoiceStatus, InvoiceUpdate
from invoicing.models.base import BaseDataModel
from invoicing.services.google_drive_service import sanitize_filename
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.storage_service import StorageService
from invoicing.utils.pagination import paginate
from invoicing.writers.pdf_generator import format_currency

router = APIRouter(prefix="/invoices", tags=["Invoices"])


class StatusChange(BaseDataModel):
    status: InvoiceStatus


@router.get("")
def list_invoices(
    status: Optional[InvoiceStatus] = None,
    client_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoices = service.list_invoices(
        status, client_id, date_from, date_to, search, sort_by, sort_order
    )
    items, meta = paginate(invoices, page, limit)
    return success(items, meta)


@router.post("", status_code=201)
def create_invoice(
    data: InvoiceCreate,
    background_tasks: BackgroundTasks,
    service: InvoiceService = Depends(get_invoice_service),
    storage: StorageService = Depends(get_storage_service),
):
    """Create an invoice; its PDF is archived to Drive after the response."""
    invoice = service.create_invoice(data)
    background_tasks.add_task(storage.archive_invoice, invoice.id)
    return success(invoice)


@router.get("/{invoice_id}")
def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return success(service.get_invoice(invoice_id))


@router.put("/{invoice_id}")
def update_invoice(
    invoice_id: str, data: InvoiceUpdate, service: InvoiceService = Depends(get_invoice_service)
):
    return success(service.update_invoice(invoice_id, data))


@router.patch("/{invoice_id}/status")
def change_status(
    invoice_id: str, data: StatusChange, service: InvoiceService = Depends(get_invoice_service)
):
    return success(service.update_status(invoice_id, data.status))


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return success(service.delete_invoice(invoice_id))


@router.post("/{invoice_id}/send")
def send_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return success(service.send_invoice(invoice_id))


@router.get("/{invoice_id}/pdf")
def download_pdf(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
    storage: StorageService = Depends(get_storage_service),
):
    invoice = service.get_invoice(invoice_id)
    content = storage.render_pdf(invoice)
    file_name = sanitize_filename(f"invoice-{invoice.invoice_number}.pdf")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.get("/{invoice_id}/preview", response_class=HTMLResponse)
def preview_invoice(
    request: Request,
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
    templates: Jinja2Templates = Depends(get_templates),
):
    invoice = service.get_invoice(invoice_id)
    client = service.workbook.clients.require(invoice.client_id)
    company = service.workbook.get_company_settings()
    return templates.TemplateResponse(
        request,
        "invoice_preview.html",
        {
            "invoice": invoice,
            "client": client,
            "company": company,
            "money": lambda amount: format_currency(amount, company.currency),
        },
    )
