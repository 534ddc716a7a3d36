"""Click classes shared by every domcp subcommand.

Each command carries a block of sample invocations (``domcp check
--strict``, ``domcp diff FILE --rename ...``) that is printed by
``--examples`` instead of being folded into ``--help``. The flag is eager,
so it answers before the workspace or the model store is opened.
"""

from __future__ import annotations

from typing import Any

import click

EXAMPLES_HEADER = "Examples for '{path}':\n"


class DomcpCommand(click.Command):
    """A domcp subcommand with optional ``examples=`` text."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(self._examples_option())

    def _examples_option(self) -> click.Option:
        def emit(ctx: click.Context, _param: click.Parameter, wanted: bool) -> None:
            if not wanted or ctx.resilient_parsing:
                return
            click.echo(EXAMPLES_HEADER.format(path=ctx.command_path))
            click.echo(self.examples)
            ctx.exit(0)

        return click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=emit,
            help="Show sample invocations and exit.",
        )


class DomcpGroup(click.Group):
    """Root ``domcp`` group; subcommands default to :class:`DomcpCommand`."""

    command_class = DomcpCommand
