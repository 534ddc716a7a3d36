"""serve: start the MCP server (requires the domcp[mcp] extra)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from domcp.commands._base import DomcpCommand

if TYPE_CHECKING:
    from domcp.commands._context import AppContext


@click.command(
    cls=DomcpCommand,
    examples="""\
  # stdio transport (what MCP clients launch)
  domcp serve

  # Streamable HTTP on a custom address
  domcp serve --transport streamable-http --host 0.0.0.0 --port 9000""",
)
@click.option(
    "--transport",
    default=None,
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol (default from [mcp] config).",
)
@click.option("--host", default=None, help="Bind address (HTTP transports only).")
@click.option("--port", default=None, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def serve(app: AppContext, transport: str | None, host: str | None, port: int | None) -> None:
    """Start the MCP server for the current workspace."""
    from domcp.mcp.server import create_server, mcp_available

    if not mcp_available:
        click.echo("MCP not installed. Install with: pip install domcp[mcp]", err=True)
        raise SystemExit(1)

    cfg = app.settings.mcp
    server = create_server(
        settings=app.settings,
        host=host or cfg.host,
        port=port or cfg.port,
    )
    server.run(transport=transport or cfg.transport)
