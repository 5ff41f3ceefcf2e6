"""API routes.

JSON routes are prefixed with /api. Routers with literal paths under
/invoices (recurring, storage) are included before the invoice router so
they are not captured by ``/invoices/{invoice_id}``.
"""

from fastapi import APIRouter

from invoicing.api.routes import (
    activity_logs,
    bulk,
    clients,
    dashboard,
    invoices,
    payments,
    projects,
    recurring,
    reports,
    settings,
    sheets,
    storage,
    templates,
)
from invoicing.api.routes.pages import router as pages_router

api_router = APIRouter(prefix="/api")
api_router.include_router(recurring.router)
api_router.include_router(storage.router)
api_router.include_router(invoices.router)
api_router.include_router(clients.router)
api_router.include_router(payments.router)
api_router.include_router(templates.router)
api_router.include_router(projects.router)
api_router.include_router(activity_logs.router)
api_router.include_router(dashboard.router)
api_router.include_router(reports.router)
api_router.include_router(bulk.router)
api_router.include_router(settings.router)
api_router.include_router(sheets.router)

__all__ = ["api_router", "pages_router"]
