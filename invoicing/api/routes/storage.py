"""Drive archive routes: storage status, upload retries and folders."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from invoicing.api.dependencies import get_storage_service
from invoicing.api.responses import success
from invoicing.models.base import BaseDataModel
from invoicing.services.storage_service import StorageService

router = APIRouter(tags=["Storage"])


class BulkRetryRequest(BaseDataModel):
    invoice_ids: List[str] = Field(..., min_length=1, max_length=50)


class FolderCreate(BaseDataModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = None


@router.get("/invoices/storage-status")
def storage_status(
    ids: Optional[str] = Query(None, description="Comma-separated invoice ids"),
    service: StorageService = Depends(get_storage_service),
):
    invoice_ids = [i.strip() for i in ids.split(",") if i.strip()] if ids else None
    return success(service.storage_status(invoice_ids))


@router.post("/invoices/bulk-retry-upload")
def bulk_retry_upload(
    data: BulkRetryRequest, service: StorageService = Depends(get_storage_service)
):
    result = service.bulk_retry(data.invoice_ids)
    return success(result["results"], {"summary": result["summary"]})


@router.post("/invoices/{invoice_id}/retry-upload")
def retry_upload(invoice_id: str, service: StorageService = Depends(get_storage_service)):
    return success(service.retry_upload(invoice_id))


@router.get("/google-drive/folders")
def list_folders(service: StorageService = Depends(get_storage_service)):
    return success(service.list_folders())


@router.post("/google-drive/folders", status_code=201)
def create_folder(data: FolderCreate, service: StorageService = Depends(get_storage_service)):
    return success(service.create_folder(data.name.strip(), data.parent_id))
