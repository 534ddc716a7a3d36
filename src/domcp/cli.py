"""Root CLI group for domcp with global flags and command registration."""

from __future__ import annotations

import click

from domcp import __version__
from domcp.commands import register_commands
from domcp.commands._base import DomcpGroup
from domcp.commands._context import AppContext
from domcp.config.settings import DomcpSettings


@click.group(cls=DomcpGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="domcp")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logs and telemetry spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-w",
    "--workspace",
    default=None,
    help="Workspace identifier (default: current directory).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    workspace: str | None,
) -> None:
    """domcp: architecture model server for AI coding assistants."""
    settings = DomcpSettings.from_cli(
        config_path=config_path,
        workspace=workspace,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
