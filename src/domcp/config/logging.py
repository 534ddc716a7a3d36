"""structlog setup for domcp.

stdout belongs to MCP stdio traffic and command output, so every log
record goes to stderr, rendered for a terminal by default or as JSON
lines with ``--log-json``. Records carry the active workspace once
:func:`bind_workspace` has been called.
"""

from __future__ import annotations

import logging
import sys

import structlog

_HANDLER_NAME = "domcp-stderr"

# Libraries whose DEBUG chatter stays hidden even with --verbose.
QUIET_LOGGERS: tuple[str, ...] = ("sqlalchemy", "mcp", "httpx", "uvicorn")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _stderr_handler(log_json: bool) -> logging.Handler:
    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging to stderr.

    Calling this again swaps the domcp handler instead of adding another.

    Args:
        verbose: DEBUG for ``domcp.*`` loggers; WARNING otherwise.
        log_json: JSON lines instead of the console renderer.
    """
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(_stderr_handler(log_json))
    root.setLevel(logging.WARNING)

    logging.getLogger("domcp").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_workspace(workspace_id: str) -> None:
    """Tag subsequent log records of this context with *workspace_id*."""
    structlog.contextvars.bind_contextvars(workspace=workspace_id)
