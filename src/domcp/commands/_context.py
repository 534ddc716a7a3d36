"""AppContext: shared Click context for all commands.

Created once by the root group and handed to subcommands via
``@click.pass_obj``. It owns the lazily opened workspace and the single
place where results are printed and exit codes decided.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from domcp.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from domcp.config.settings import DomcpSettings
    from domcp.infrastructure.workspace import Workspace
    from domcp.services.result import ServiceResult


class AppContext:
    """State shared by every subcommand of one CLI invocation.

    The workspace is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: DomcpSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from domcp.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from domcp.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        """The workspace for ``settings.workspace`` (opened lazily)."""
        if self._workspace is None:
            from domcp.config.logging import bind_workspace
            from domcp.infrastructure.store import SqliteModelStore
            from domcp.infrastructure.workspace import Workspace

            store = SqliteModelStore(self.settings.store.resolved_path)
            self._workspace = Workspace.open(str(self.settings.workspace), store)
            bind_workspace(self._workspace.workspace_id)
        return self._workspace

    def close(self) -> None:
        if self._workspace is not None:
            self._workspace.close()
            self._workspace = None

    def emit(self, result: ServiceResult) -> None:
        """Print *result* with the right stream and exit code.

        * Success: stdout. Warnings go to stderr outside JSON mode so
          piped output stays clean.
        * Failure: stderr, then exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            raise SystemExit(1)
