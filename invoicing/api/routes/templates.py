"""Invoice template routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from invoicing.api.dependencies import get_template_service
from invoicing.api.responses import success
from invoicing.models import TemplateCreate, TemplateUpdate
from invoicing.models.base import BaseDataModel
from invoicing.services.template_service import TemplateService

router = APIRouter(prefix="/templates", tags=["Templates"])


class ApplyTemplate(BaseDataModel):
    client_id: str
    issue_date: Optional[date] = None


@router.get("")
def list_templates(
    active_only: bool = False,
    search: Optional[str] = None,
    service: TemplateService = Depends(get_template_service),
):
    return success(service.list_templates(active_only, search))


@router.post("", status_code=201)
def create_template(data: TemplateCreate, service: TemplateService = Depends(get_template_service)):
    return success(service.create_template(data))


@router.get("/{template_id}")
def get_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    return success(service.get_template(template_id))


@router.put("/{template_id}")
def update_template(
    template_id: str,
    data: TemplateUpdate,
    service: TemplateService = Depends(get_template_service),
):
    return success(service.update_template(template_id, data))


@router.delete("/{template_id}")
def delete_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    return success(service.delete_template(template_id))


@router.post("/{template_id}/apply")
def apply_template(
    template_id: str,
    data: ApplyTemplate,
    service: TemplateService = Depends(get_template_service),
):
    """Invoice form data built from the template; nothing is stored."""
    return success(service.apply_template(template_id, data.client_id, data.issue_date))
