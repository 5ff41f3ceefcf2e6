"""Report export command."""

from pathlib import Path
from typing import Optional

import click

from invoicing.aggregators import ReportGenerator, export_filename, parse_report_type, report_to_csv
from invoicing.cli.context import get_request_context
from invoicing.cli.error_handlers import with_error_handling
from invoicing.cli.utils.formatters import format_success
from invoicing.writers import ReportPDFGenerator


@click.command(name="export-report")
@click.option(
    "--type",
    "report_type",
    type=click.Choice(["revenue", "client", "invoice-status"]),
    default="revenue",
    show_default=True,
)
@click.option("--from", "date_from", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--to", "date_to", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--format", "fmt", type=click.Choice(["csv", "pdf"]), default="csv", show_default=True)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Output file (default: <type>-report-<date>.<format>)",
)
@click.pass_context
def export_report(ctx: click.Context, report_type: str, date_from, date_to, fmt: str, output: Optional[str]):
    """Write a revenue, client or invoice-status report to a file.

    Example:
        invoicing export-report --type client --from 2024-01-01 --format pdf
    """
    with with_error_handling(ctx.obj.get("debug", False)):
        kind = parse_report_type(report_type)
        start = date_from.date() if date_from else None
        end = date_to.date() if date_to else None

        request_ctx = get_request_context(ctx)
        workbook = request_ctx.workbook
        rows = ReportGenerator(workbook.invoices.list_all(), workbook.clients.list_all()).generate(
            kind, start, end
        )

        target = Path(output or export_filename(kind, fmt))
        if fmt == "csv":
            target.write_text(report_to_csv(kind, rows), encoding="utf-8")
        else:
            currency = workbook.get_company_settings().currency
            target.write_bytes(ReportPDFGenerator(kind, rows, start, end, currency).generate())

        click.echo(format_success(f"Wrote {len(rows)} row(s) to {target}"))
