"""Spreadsheet access for CLI commands, acting as the configured service account."""

import logging
from typing import Optional

import click

from invoicing.api.dependencies import RequestContext, build_credentials_context
from invoicing.config import InvoicingConfig, load_config
from invoicing.services.activity_logger import RequestInfo

logger = logging.getLogger(__name__)

CLI_PRINCIPAL = "service-account-cli"


def build_cli_context(config: InvoicingConfig) -> RequestContext:
    """Service account from the environment, else Application Default Credentials."""
    credentials = config.get_google_service_account_info()
    if credentials is None:
        logger.info("No service account configured; using Application Default Credentials")
    return build_credentials_context(
        credentials, CLI_PRINCIPAL, config, RequestInfo(user_email="cli")
    )


def get_config_from(ctx: click.Context) -> InvoicingConfig:
    obj = ctx.ensure_object(dict)
    if obj.get("config") is None:
        obj["config"] = load_config(obj.get("env_file"))
    return obj["config"]


def get_request_context(ctx: click.Context) -> RequestContext:
    """The command's workbook context, built once per invocation."""
    obj = ctx.ensure_object(dict)
    existing: Optional[RequestContext] = obj.get("context")
    if existing is None:
        existing = build_cli_context(get_config_from(ctx))
        obj["context"] = existing
    return existing
