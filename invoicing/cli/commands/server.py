"""Run the web application."""

from typing import Optional

import click
import uvicorn

from invoicing.api import create_app
from invoicing.cli.context import get_config_from
from invoicing.cli.utils.formatters import format_info


@click.command(name="serve")
@click.option("--host", type=str, default=None, help="Bind address (default: HOST)")
@click.option("--port", type=int, default=None, help="Port (default: PORT)")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]):
    """Serve the JSON API and dashboard with uvicorn.

    Example:
        invoicing serve --port 8080
    """
    config = get_config_from(ctx)
    bind_host = host or config.host
    bind_port = port or config.port
    click.echo(format_info(f"Serving on http://{bind_host}:{bind_port}"))
    app = create_app(cors_origins=config.cors_origins)
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)
