"""Payment routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from invoicing.api.dependencies import get_payment_service
from invoicing.api.responses import success
from invoicing.models import PaymentCreate, PaymentMethod, PaymentUpdate
from invoicing.services.payment_service import PaymentService
from invoicing.utils.pagination import paginate

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("")
def list_payments(
    invoice_id: Optional[str] = None,
    payment_method: Optional[PaymentMethod] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    sort_by: str = "payment_date",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: PaymentService = Depends(get_payment_service),
):
    payments = service.list_payments(
        invoice_id, payment_method, date_from, date_to, sort_by, sort_order
    )
    items, meta = paginate(payments, page, limit)
    return success(items, meta)


@router.post("", status_code=201)
def create_payment(data: PaymentCreate, service: PaymentService = Depends(get_payment_service)):
    return success(service.create_payment(data))


@router.get("/{payment_id}")
def get_payment(payment_id: str, service: PaymentService = Depends(get_payment_service)):
    return success(service.get_payment(payment_id))


@router.put("/{payment_id}")
def update_payment(
    payment_id: str, data: PaymentUpdate, service: PaymentService = Depends(get_payment_service)
):
    return success(service.update_payment(payment_id, data))


@router.delete("/{payment_id}")
def delete_payment(payment_id: str, service: PaymentService = Depends(get_payment_service)):
    return success(service.delete_payment(payment_id))
