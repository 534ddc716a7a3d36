"""Commands: diff and plan a model file against the stored baseline."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from domcp.commands._base import DomcpCommand

if TYPE_CHECKING:
    from domcp.commands._context import AppContext

_RENAME_HELP = "Declare a rename as ELEMENT:OLD:NEW[:CONTEXT]. Repeatable."


def parse_rename(raw: str) -> dict[str, Any]:
    """Parse ``ELEMENT:OLD:NEW[:CONTEXT]`` into a rename hint payload."""
    parts = raw.split(":")
    if len(parts) not in (3, 4) or not all(parts):
        msg = f"Invalid rename '{raw}'. Expected ELEMENT:OLD:NEW[:CONTEXT]"
        raise click.BadParameter(msg, param_hint="--rename")
    hint: dict[str, Any] = {"element": parts[0], "old": parts[1], "new": parts[2]}
    if len(parts) == 4:
        hint["context"] = parts[3]
    return hint


def _working(app: AppContext, file: Path) -> Any:
    """The model in *file*, or emit the read failure and exit."""
    from domcp.domain.errors import DomcpError
    from domcp.services.result import ServiceResult
    from domcp.services.transfer import read_model_file

    try:
        return read_model_file(file)
    except DomcpError as exc:
        app.emit(ServiceResult.from_error("read_model_file", exc))


_file_argument = click.argument("file", type=click.Path(path_type=Path, dir_okay=False))
_rename_option = click.option("--rename", "renames", multiple=True, help=_RENAME_HELP)


@click.command(
    cls=DomcpCommand,
    examples="""\
  domcp diff architecture.json
  domcp diff architecture.json --rename entity:Customer:Client:Billing
  domcp --json diff architecture.json""",
)
@_file_argument
@_rename_option
@click.pass_obj
def diff(app: AppContext, file: Path, renames: tuple[str, ...]) -> None:
    """Show structural changes from the stored baseline to FILE."""
    from domcp.services.reconcile import ReconcileService

    hints = [parse_rename(r) for r in renames]
    svc = ReconcileService(app.workspace, planner=app.settings.planner)
    app.emit(svc.compare(hints, working=_working(app, file)))


@click.command(
    cls=DomcpCommand,
    examples="""\
  domcp plan architecture.json
  domcp plan architecture.json --rename context:Accounts:Identity
  domcp -q plan architecture.json     # one action per line""",
)
@_file_argument
@_rename_option
@click.pass_obj
def plan(app: AppContext, file: Path, renames: tuple[str, ...]) -> None:
    """Draft the file-level refactoring plan from the stored baseline to FILE."""
    from domcp.services.reconcile import ReconcileService

    hints = [parse_rename(r) for r in renames]
    svc = ReconcileService(app.workspace, planner=app.settings.planner)
    app.emit(svc.plan(hints, working=_working(app, file)))
