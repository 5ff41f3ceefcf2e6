"""Drive archive retry command."""

import click

from invoicing.cli.context import get_request_context
from invoicing.cli.error_handlers import with_error_handling
from invoicing.cli.utils.formatters import format_error, format_info, format_success
from invoicing.models import StorageState
from invoicing.services.storage_service import StorageService


@click.command(name="retry-uploads")
@click.option("--all", "include_permanent", is_flag=True, help="Also retry non-retryable failures")
@click.pass_context
def retry_uploads(ctx: click.Context, include_permanent: bool):
    """Retry Drive uploads of invoices whose archive failed."""
    with with_error_handling(ctx.obj.get("debug", False)):
        request_ctx = get_request_context(ctx)
        service = StorageService(request_ctx.workbook, request_ctx.activity, request_ctx.drive_factory)

        failed = [
            s.invoice_id
            for s in service.storage_status()
            if s.status == StorageState.FAILED and (s.retryable or include_permanent)
        ]
        if not failed:
            click.echo(format_info("No failed uploads to retry"))
            return

        result = service.bulk_retry(failed)
        for item in result["results"]:
            if not item["success"]:
                message = item.get("error", {}).get("message") or item["status"].error_message
                click.echo(format_error(f"{item['invoice_id']}: {message}"))

        summary = result["summary"]
        click.echo(
            format_success(
                f"Retried {summary['total']} upload(s): "
                f"{summary['succeeded']} stored, {summary['failed']} failed"
            )
        )
