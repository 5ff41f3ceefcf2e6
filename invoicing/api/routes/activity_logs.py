"""Activity log routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from invoicing.api.dependencies import RequestContext, get_context
from invoicing.api.responses import success
from invoicing.models import ActivityType, EntityType

router = APIRouter(prefix="/activity-logs", tags=["Activity"])


@router.get("")
def list_activity_logs(
    entity_type: Optional[EntityType] = None,
    entity_id: Optional[str] = None,
    type: Optional[ActivityType] = None,
    user_email: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    ctx: RequestContext = Depends(get_context),
):
    logs, meta = ctx.activity.list_logs(
        entity_type=entity_type,
        entity_id=entity_id,
        activity_type=type,
        user_email=user_email,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        limit=limit,
    )
    return success(logs, meta)
