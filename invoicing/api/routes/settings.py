"""Company and application settings routes."""

from fastapi import APIRouter, Depends

from invoicing.api.dependencies import RequestContext, get_context
from invoicing.api.responses import success
from invoicing.models import (
    ActivityType,
    AppSettingsUpdate,
    CompanySettingsUpdate,
    EntityType,
)
from invoicing.models.base import merge_update

router = APIRouter(tags=["Settings"])


@router.get("/settings")
def get_company_settings(ctx: RequestContext = Depends(get_context)):
    return success(ctx.workbook.get_company_settings())


@router.put("/settings")
def update_company_settings(
    data: CompanySettingsUpdate, ctx: RequestContext = Depends(get_context)
):
    updated = merge_update(ctx.workbook.get_company_settings(), data)
    ctx.workbook.save_company_settings(updated)
    ctx.activity.log(
        ActivityType.SETTINGS_UPDATED,
        EntityType.SETTINGS,
        "company",
        "Company settings updated",
        new_value=", ".join(sorted(data.model_fields_set)),
    )
    return success(updated)


@router.get("/app-settings")
def get_app_settings(ctx: RequestContext = Depends(get_context)):
    return success(ctx.workbook.get_app_settings())


@router.put("/app-settings")
def update_app_settings(data: AppSettingsUpdate, ctx: RequestContext = Depends(get_context)):
    updated = merge_update(ctx.workbook.get_app_settings(), data)
    ctx.workbook.save_app_settings(updated)
    ctx.activity.log(
        ActivityType.SETTINGS_UPDATED,
        EntityType.SETTINGS,
        "app",
        "Google Drive settings updated",
        new_value=", ".join(sorted(data.model_fields_set)),
    )
    return success(updated)
