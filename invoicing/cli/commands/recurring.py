"""Recurring invoice generation command."""

from datetime import date
from typing import Optional

import click

from invoicing.cli.context import get_request_context
from invoicing.cli.error_handlers import with_error_handling
from invoicing.cli.utils.formatters import (
    format_error,
    format_info,
    format_success,
    format_table,
)
from invoicing.services.recurring_service import RecurringService


@click.command(name="run-recurring")
@click.option(
    "--date",
    "run_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Treat this day as today (YYYY-MM-DD)",
)
@click.option("--dry-run", is_flag=True, help="List due schedules without generating")
@click.pass_context
def run_recurring(ctx: click.Context, run_date, dry_run: bool):
    """Generate invoices for every recurring schedule that is due.

    Example:
        invoicing run-recurring
        invoicing run-recurring --date 2024-03-01 --dry-run
    """
    today: Optional[date] = run_date.date() if run_date else None
    with with_error_handling(ctx.obj.get("debug", False)):
        request_ctx = get_request_context(ctx)
        service = RecurringService(request_ctx.workbook, request_ctx.activity)

        if dry_run:
            due = service.list_due(today)
            if not due:
                click.echo(format_info("No recurring invoices are due"))
                return
            rows = [
                [
                    inv.invoice_number,
                    inv.recurring_schedule.describe(),
                    inv.recurring_schedule.next_invoice_date.isoformat(),
                ]
                for inv in due
            ]
            click.echo(format_table(["Invoice", "Schedule", "Next date"], rows))
            click.echo(format_info(f"{len(due)} schedule(s) due"))
            return

        result = service.generate_due(today)
        for invoice in result["generated"]:
            click.echo(f"  {invoice.invoice_number}  {invoice.issue_date}  {invoice.total}")
        for failure in result["errors"]:
            click.echo(format_error(f"{failure['invoice_id']}: {failure['error']}"))

        click.echo(
            format_success(
                f"Processed {result['processed']} schedule(s): "
                f"{len(result['generated'])} generated, {len(result['errors'])} failed"
            )
        )
        if result["errors"]:
            ctx.exit(1)
