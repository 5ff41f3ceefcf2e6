"""Bulk operation route."""

from fastapi import APIRouter, Depends

from invoicing.api.dependencies import get_bulk_service
from invoicing.api.responses import success
from invoicing.models.bulk import BulkRequest
from invoicing.services.bulk_service import BulkService

router = APIRouter(prefix="/bulk", tags=["Bulk"])


@router.post("")
def bulk_operation(request: BulkRequest, service: BulkService = Depends(get_bulk_service)):
    return success(service.execute(request))
