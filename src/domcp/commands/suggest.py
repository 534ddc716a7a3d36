"""Command: resolve a conventional file path."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from domcp.commands._base import DomcpCommand
from domcp.domain.conventions import ARTIFACT_KINDS

if TYPE_CHECKING:
    from domcp.commands._context import AppContext


@click.command(
    "suggest-path",
    cls=DomcpCommand,
    examples="""\
  domcp suggest-path Identity domain User --kind entity
  domcp suggest-path Billing infrastructure InvoiceRepository --kind repository""",
)
@click.argument("context")
@click.argument("layer")
@click.argument("type_name", metavar="TYPE")
@click.option(
    "--kind",
    type=click.Choice(ARTIFACT_KINDS),
    default=None,
    help="Artifact kind; selects the naming convention applied to TYPE.",
)
@click.pass_obj
def suggest_path(
    app: AppContext, context: str, layer: str, type_name: str, kind: str | None
) -> None:
    """Print where TYPE belongs in CONTEXT's LAYER."""
    from domcp.services.query import QueryService

    svc = QueryService(app.workspace, planner=app.settings.planner)
    app.emit(svc.suggest_path(context, layer, type_name, kind=kind))
