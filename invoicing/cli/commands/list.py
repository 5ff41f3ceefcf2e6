"""List invoices command."""

from typing import Optional

import click

from invoicing.cli.context import get_request_context
from invoicing.cli.error_handlers import with_error_handling
from invoicing.cli.utils.formatters import format_info, format_success, format_table
from invoicing.models import InvoiceStatus
from invoicing.services.invoice_service import InvoiceService


@click.command(name="list-invoices")
@click.option(
    "--status",
    type=click.Choice([s.value for s in InvoiceStatus]),
    default=None,
    help="Only invoices with this status",
)
@click.option("--client-id", type=str, default=None, help="Only invoices of this client")
@click.option("--limit", type=int, default=50, show_default=True)
@click.pass_context
def list_invoices(ctx: click.Context, status: Optional[str], client_id: Optional[str], limit: int):
    """List invoices, newest first.

    Example:
        invoicing list-invoices --status overdue
    """
    with with_error_handling(ctx.obj.get("debug", False)):
        request_ctx = get_request_context(ctx)
        service = InvoiceService(request_ctx.workbook, request_ctx.activity)
        invoices = service.list_invoices(
            status=InvoiceStatus(status) if status else None, client_id=client_id
        )

        if not invoices:
            click.echo(format_info("No invoices found"))
            return

        client_names = {c.id: c.name for c in request_ctx.workbook.clients.list_all()}
        rows = [
            [
                inv.invoice_number,
                client_names.get(inv.client_id, "Unknown Client"),
                inv.issue_date.isoformat(),
                inv.due_date.isoformat(),
                inv.status.value,
                f"{inv.total:.2f}",
                f"{inv.balance:.2f}",
            ]
            for inv in invoices[:limit]
        ]
        click.echo(
            format_table(["Number", "Client", "Issued", "Due", "Status", "Total", "Balance"], rows)
        )
        shown = min(limit, len(invoices))
        click.echo(format_success(f"Showing {shown} of {len(invoices)} invoice(s)"))
