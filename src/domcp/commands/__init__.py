"""Subcommand modules for domcp.

Provides register_commands() which uses deferred imports to keep
``domcp --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from domcp.commands.check import check, validate_dependency
    from domcp.commands.project import export_cmd, import_cmd, list_cmd
    from domcp.commands.reconcile import diff, plan
    from domcp.commands.serve import serve
    from domcp.commands.suggest import suggest_path

    cli.add_command(serve)
    cli.add_command(import_cmd)
    cli.add_command(export_cmd)
    cli.add_command(list_cmd)
    cli.add_command(check)
    cli.add_command(validate_dependency)
    cli.add_command(diff)
    cli.add_command(plan)
    cli.add_command(suggest_path)
