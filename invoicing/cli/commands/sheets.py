"""Spreadsheet setup and health commands."""

import click

from invoicing.cli.context import get_request_context
from invoicing.cli.error_handlers import with_error_handling
from invoicing.cli.utils.formatters import (
    format_error,
    format_info,
    format_success,
    format_table,
    format_warning,
)


@click.command(name="setup-sheets")
@click.pass_context
def setup_sheets(ctx: click.Context):
    """Create missing tabs and seed default settings.

    Safe to run repeatedly; existing tabs and settings are left untouched.
    """
    with with_error_handling(ctx.obj.get("debug", False)):
        request_ctx = get_request_context(ctx)
        click.echo(format_info("Checking spreadsheet tabs..."))
        result = request_ctx.workbook.setup_sheets(request_ctx.config.settings_seed())

        created = result.get("created", [])
        if created:
            click.echo(format_success(f"Created {len(created)} tab(s): {', '.join(created)}"))
        else:
            click.echo(format_success("All tabs already exist"))
        seeded = result.get("seeded_settings", [])
        if seeded:
            click.echo(format_info(f"Seeded settings: {', '.join(seeded)}"))


@click.command(name="health")
@click.pass_context
def health(ctx: click.Context):
    """Check that every tab exists and report API retry statistics."""
    with with_error_handling(ctx.obj.get("debug", False)):
        request_ctx = get_request_context(ctx)
        report = request_ctx.workbook.health_check(
            request_ctx.retry_handler.get_retry_statistics()
        )

        status = report["status"]
        if status == "unhealthy":
            error = report.get("error", {})
            click.echo(format_error(f"Spreadsheet unreachable: {error.get('message')}"))
            ctx.exit(1)

        stats = report.get("retry_statistics", {})
        rows = [[key.replace("_", " "), value] for key, value in stats.items()]
        if rows:
            click.echo(format_table(["Retry statistic", "Value"], rows))

        missing = report.get("missing_tabs", [])
        if missing:
            click.echo(format_warning(f"Missing tabs: {', '.join(missing)}; run setup-sheets"))
            ctx.exit(1)
        click.echo(format_success(f"Spreadsheet {report['spreadsheet_id']} is healthy"))
