"""FastMCP server setup.

Optional extra, guarded behind try/except ImportError.
Transport: stdio by default, SSE or streamable HTTP optional.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from domcp.config.settings import DomcpSettings

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

__all__ = ["create_server", "mcp_available"]


def create_server(
    *,
    settings: DomcpSettings | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> Any:
    """Create and configure the MCP server.

    Opens the workspace named by *settings* (or the current directory)
    and registers all tools, resources and prompts. Returns the FastMCP
    instance. *host* and *port* only matter for HTTP transports.

    Raises RuntimeError if the mcp extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install domcp[mcp]"
        raise RuntimeError(msg)

    from domcp.config.logging import bind_workspace
    from domcp.config.settings import DomcpSettings
    from domcp.infrastructure.store import SqliteModelStore
    from domcp.infrastructure.workspace import Workspace
    from domcp.mcp.prompts import register_prompts
    from domcp.mcp.resources import register_resources
    from domcp.mcp.tools import register_tools

    settings = settings or DomcpSettings.from_cli()
    store = SqliteModelStore(settings.store.resolved_path)
    ws = Workspace.open(str(settings.workspace), store)
    bind_workspace(ws.workspace_id)

    server = _FastMCP("domcp", host=host, port=port)

    register_tools(server, ws, settings)
    register_resources(server, ws)
    register_prompts(server, ws)

    return server
