"""FastAPI application factory for the invoicing service.

Serves the JSON API under ``/api`` and the HTML dashboard under ``/``.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.templating import Jinja2Templates

from invoicing import __version__
from invoicing.api.responses import error_response
from invoicing.errors import InvoicingError
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.utils.logging_utils import LogContext, generate_correlation_id

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "web" / "templates"

_templates: Optional[Jinja2Templates] = None


def get_templates() -> Jinja2Templates:
    global _templates
    if _templates is None:
        _templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    return _templates


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvoicingError)
    async def invoicing_error_handler(request: Request, exc: InvoicingError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
        return error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(GoogleServiceError)
    async def google_error_handler(request: Request, exc: GoogleServiceError):
        logger.warning(
            f"{request.method} {request.url.path} Google API error "
            f"({exc.kind.value}): {exc.message}"
        )
        return error_response(
            exc.status_code,
            exc.code,
            exc.message,
            {"kind": exc.kind.value, "retryable": exc.retryable},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = _validation_details(exc)
        logger.info(f"Validation error for {request.url.path}: {details}")
        return error_response(400, "VALIDATION_ERROR", "Invalid request data", details)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def create_app(
    title: str = "Invoicing",
    cors_origins: Optional[List[str]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        title: API title for OpenAPI docs
        cors_origins: Allowed CORS origins (defaults to all)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        version=__version__,
        description="Invoicing backed by Google Sheets and Google Drive",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or generate_correlation_id()
        started = time.perf_counter()
        with LogContext(correlation_id=correlation_id, path=request.url.path):
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.0f} ms)"
            )
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    register_exception_handlers(app)

    from invoicing.api.routes import api_router, pages_router

    app.include_router(api_router)
    app.include_router(pages_router)

    @app.get("/health", tags=["System"])
    def health_check() -> Dict[str, Any]:
        """Liveness probe; spreadsheet health lives at /api/sheets/health."""
        return {"status": "healthy", "version": __version__, "service": "invoicing"}

    return app
