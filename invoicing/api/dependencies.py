"""
Request dependencies: caller credentials, the spreadsheet and the services.

Every request carries ``Authorization: Bearer <token>``. A Google OAuth
access token is used as the caller's own credentials; a token equal to the
configured ``API_TOKEN`` selects the configured service account instead.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request

from invoicing.config import InvoicingConfig, get_config
from invoicing.errors import InvoicingError, UnauthenticatedError
from invoicing.services.activity_logger import ActivityLogger, RequestInfo
from invoicing.services.bulk_service import BulkService
from invoicing.services.client_service import ClientService
from invoicing.services.credentials import CredentialsSource, credentials_from_access_token
from invoicing.services.google_drive_service import GoogleDriveService
from invoicing.services.google_sheets_service import GoogleSheetsService
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.payment_service import PaymentService
from invoicing.services.project_service import ProjectService
from invoicing.services.recurring_service import RecurringService
from invoicing.services.retry_handler import RetryHandler, create_retry_handler
from invoicing.services.sheets_cache_service import get_sheets_cache
from invoicing.services.storage_service import StorageService
from invoicing.services.template_service import TemplateService
from invoicing.sheets import SheetStore, Workbook

logger = logging.getLogger(__name__)


def get_app_config() -> InvoicingConfig:
    return get_config()


ACCESS_TOKEN_COOKIE = "access_token"


def bearer_token(request: Request) -> Optional[str]:
    """Token from the Authorization header, else from the dashboard cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def tokens_match(given: Optional[str], expected: Optional[str]) -> bool:
    if not given or not expected:
        return False
    return hmac.compare_digest(given.encode(), expected.encode())


@dataclass
class RequestContext:
    """Everything a route needs to work on the caller's spreadsheet."""

    config: InvoicingConfig
    workbook: Workbook
    activity: ActivityLogger
    retry_handler: RetryHandler
    drive_factory: Callable[[], GoogleDriveService]


def resolve_caller(token: str, config: InvoicingConfig) -> CredentialsSource:
    """Credentials for a bearer token."""
    if tokens_match(token, config.api_token):
        service_account = config.get_google_service_account_info()
        if service_account is None:
            raise InvoicingError(
                "API_TOKEN is configured but no service account is available",
                code="CONFIGURATION_ERROR",
            )
        return service_account
    return credentials_from_access_token(token)


def build_context(
    token: str, config: InvoicingConfig, request_info: Optional[RequestInfo] = None
) -> RequestContext:
    """Wire the Google clients, cache partition and workbook for one caller."""
    # Cached ranges are partitioned per caller so data never crosses tokens
    principal = hashlib.sha256(token.encode()).hexdigest()[:32]
    return build_credentials_context(
        resolve_caller(token, config), principal, config, request_info
    )


def build_credentials_context(
    credentials: CredentialsSource,
    principal: str,
    config: InvoicingConfig,
    request_info: Optional[RequestInfo] = None,
) -> RequestContext:
    retry_handler = create_retry_handler(config)
    sheets = GoogleSheetsService(credentials, retry_handler, scopes=config.google_scopes)

    store = SheetStore(sheets, config.spreadsheet_id, get_sheets_cache(config), principal)
    workbook = Workbook(store)

    def drive_factory() -> GoogleDriveService:
        return GoogleDriveService(credentials, retry_handler, scopes=config.google_scopes)

    return RequestContext(
        config=config,
        workbook=workbook,
        activity=ActivityLogger(workbook, request_info),
        retry_handler=retry_handler,
        drive_factory=drive_factory,
    )


def _request_info(request: Request) -> RequestInfo:
    return RequestInfo(
        user_email=request.headers.get("x-user-email"),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_context(request: Request, config: InvoicingConfig = Depends(get_app_config)) -> RequestContext:
    token = bearer_token(request)
    if token is None:
        raise UnauthenticatedError("Authentication required")
    return build_context(token, config, _request_info(request))


def get_optional_context(
    request: Request, config: InvoicingConfig = Depends(get_app_config)
) -> Optional[RequestContext]:
    """Like :func:`get_context` but None for anonymous dashboard visitors."""
    token = bearer_token(request)
    if token is None:
        return None
    return build_context(token, config, _request_info(request))


def get_cron_context(
    request: Request, config: InvoicingConfig = Depends(get_app_config)
) -> RequestContext:
    """Scheduler requests present CRON_SECRET_TOKEN and act as the service account."""
    if not config.cron_secret_token:
        raise InvoicingError("CRON_SECRET_TOKEN is not configured", code="CONFIGURATION_ERROR")
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not tokens_match(token.strip(), config.cron_secret_token):
        raise UnauthenticatedError("Invalid cron token")
    if config.api_token is None:
        raise InvoicingError(
            "API_TOKEN must be configured for scheduled runs", code="CONFIGURATION_ERROR"
        )
    return build_context(config.api_token, config, RequestInfo(user_email="cron"))


def get_client_service(ctx: RequestContext = Depends(get_context)) -> ClientService:
    return ClientService(ctx.workbook, ctx.activity)


def get_invoice_service(ctx: RequestContext = Depends(get_context)) -> InvoiceService:
    return InvoiceService(ctx.workbook, ctx.activity)


def get_payment_service(ctx: RequestContext = Depends(get_context)) -> PaymentService:
    return PaymentService(ctx.workbook, ctx.activity)


def get_template_service(ctx: RequestContext = Depends(get_context)) -> TemplateService:
    return TemplateService(ctx.workbook, ctx.activity)


def get_project_service(ctx: RequestContext = Depends(get_context)) -> ProjectService:
    return ProjectService(ctx.workbook, ctx.activity)


def get_recurring_service(ctx: RequestContext = Depends(get_context)) -> RecurringService:
    return RecurringService(ctx.workbook, ctx.activity)


def get_bulk_service(ctx: RequestContext = Depends(get_context)) -> BulkService:
    return BulkService(ctx.workbook, ctx.activity)


def get_storage_service(ctx: RequestContext = Depends(get_context)) -> StorageService:
    return StorageService(ctx.workbook, ctx.activity, ctx.drive_factory)
