"""Commands: import, export and list stored models."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import click

from domcp.commands._base import DomcpCommand

if TYPE_CHECKING:
    from domcp.commands._context import AppContext


@click.command(
    "import",
    cls=DomcpCommand,
    examples="""\
  domcp import architecture.json
  domcp -w ~/code/shop import shop-model.json""",
)
@click.argument("file", type=click.Path(path_type=Path, dir_okay=False))
@click.pass_obj
def import_cmd(app: AppContext, file: Path) -> None:
    """Validate FILE and save it as the workspace's baseline model."""
    from domcp.services.transfer import TransferService

    app.emit(TransferService(app.workspace).import_model(file))


@click.command(
    "export",
    cls=DomcpCommand,
    examples="""\
  domcp export                       # JSON to stdout
  domcp export -o architecture.json""",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write to this file instead of stdout.",
)
@click.pass_obj
def export_cmd(app: AppContext, output: Path | None) -> None:
    """Export the workspace's model as JSON."""
    from domcp.services.transfer import TransferService

    result = TransferService(app.workspace).export_model(output)
    if output is None and result.ok and not app.settings.json_output:
        click.echo(json.dumps(result.data["model"], indent=2))
        return
    app.emit(result)


@click.command(
    "list",
    cls=DomcpCommand,
    examples="""\
  domcp list
  domcp -q list      # workspace ids only""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List stored workspaces, most recently saved first."""
    from domcp.services.query import QueryService

    app.emit(QueryService(app.workspace).projects())
