"""Invoicing CLI.

Runs the web application and the maintenance jobs (spreadsheet setup,
recurring invoice generation, Drive upload retries and report exports)
against the configured spreadsheet as the service account.
"""

from typing import Optional

import click

from invoicing import __version__
from invoicing.cli.commands.list import list_invoices
from invoicing.cli.commands.recurring import run_recurring
from invoicing.cli.commands.reports import export_report
from invoicing.cli.commands.server import serve
from invoicing.cli.commands.sheets import health, setup_sheets
from invoicing.cli.commands.storage import retry_uploads
from invoicing.config.logging_config import LoggingConfig, configure_logging


@click.group(help="Invoicing - Google Sheets backed invoices, payments and reports")
@click.version_option(version=__version__)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Load configuration from this .env file",
)
@click.option("--debug", is_flag=True, help="Show full stack traces on errors")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[str], debug: bool):
    """Invoicing CLI main entry point."""
    obj = ctx.ensure_object(dict)
    obj.setdefault("env_file", env_file)
    obj["debug"] = debug
    configure_logging(LoggingConfig.from_env(default_level="DEBUG" if debug else "INFO"))


cli.add_command(serve)
cli.add_command(setup_sheets)
cli.add_command(health)
cli.add_command(run_recurring)
cli.add_command(list_invoices)
cli.add_command(export_report)
cli.add_command(retry_uploads)


def main():
    cli()


if __name__ == "__main__":
    main()
