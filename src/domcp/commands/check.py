"""Commands: rule evaluation and point dependency checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from domcp.commands._base import DomcpCommand

if TYPE_CHECKING:
    from domcp.commands._context import AppContext


@click.command(
    cls=DomcpCommand,
    examples="""\
  domcp check
  domcp check --min-severity warning
  domcp check --strict            # exit 1 on any error-level violation
  domcp --json check""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["error", "warning", "info"]),
    default=None,
    help="Hide violations below this severity.",
)
@click.option("--strict", is_flag=True, help="Fail when error-level violations remain.")
@click.pass_obj
def check(app: AppContext, min_severity: str | None, strict: bool) -> None:
    """Evaluate architectural rules against the stored model."""
    from domcp.services.check import CheckService

    svc = CheckService(app.workspace, config=app.settings.check)
    app.emit(svc.check(min_severity=min_severity, strict=strict))


@click.command(
    "validate-dependency",
    cls=DomcpCommand,
    examples="""\
  domcp validate-dependency Billing Identity
  domcp validate-dependency --strict Identity Billing""",
)
@click.argument("from_context")
@click.argument("to_context")
@click.option("--strict", is_flag=True, help="Exit 1 when the dependency is not allowed.")
@click.pass_obj
def validate_dependency(app: AppContext, from_context: str, to_context: str, strict: bool) -> None:
    """Check whether FROM_CONTEXT may depend on TO_CONTEXT."""
    from domcp.services.check import CheckService

    svc = CheckService(app.workspace, config=app.settings.check)
    app.emit(svc.validate_dependency(from_context, to_context, strict=strict))
