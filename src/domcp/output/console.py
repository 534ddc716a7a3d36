"""Rich Console factory and theme for domcp output.

Consoles render to a StringIO buffer so every renderer keeps the
``-> str`` contract. In non-TTY environments (tests, pipes) Rich drops
color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DOMCP_THEME = Theme(
    {
        "domcp.ok": "bold green",
        "domcp.error": "bold red",
        "domcp.warning": "bold yellow",
        "domcp.op": "bold cyan",
        "domcp.key": "dim",
        "domcp.name": "bold blue",
        "domcp.path": "dim",
        "domcp.severity.error": "red",
        "domcp.severity.warning": "yellow",
        "domcp.severity.info": "cyan",
        "domcp.priority.critical": "bold red",
        "domcp.priority.high": "yellow",
        "domcp.priority.medium": "default",
        "domcp.priority.low": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=DOMCP_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for(kind: str, value: str) -> str:
    """Theme style for a severity or priority value, e.g. ``style_for("priority", "high")``."""
    name = f"domcp.{kind}.{value}"
    return name if name in DOMCP_THEME.styles else ""
