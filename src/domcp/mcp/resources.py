"""MCP resource definitions: 5 URI-based resources.

URIs: domcp://architecture/overview, domcp://architecture/rules,
domcp://architecture/conventions, domcp://architecture/violations and the
template domcp://context/{name}.
Each resource has a ``<name>_impl`` function testable without the mcp package.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from domcp.domain.errors import NotFoundError
from domcp.domain.registry import architecture_summary, find_context
from domcp.domain.rules import list_violations

if TYPE_CHECKING:
    from domcp.infrastructure.workspace import Workspace

# ---------------------------------------------------------------------------
# Resource implementations (testable without mcp)
# ---------------------------------------------------------------------------


def overview_impl(ws: Workspace) -> dict[str, Any]:
    return architecture_summary(ws.model)


def rules_impl(ws: Workspace) -> list[dict[str, Any]]:
    return [r.model_dump(mode="json") for r in ws.model.rules]


def conventions_impl(ws: Workspace) -> dict[str, Any]:
    return ws.model.conventions.model_dump(mode="json")


def violations_impl(ws: Workspace) -> list[dict[str, Any]]:
    return [v.model_dump(mode="json") for v in list_violations(ws.model)]


def context_impl(ws: Workspace, name: str) -> dict[str, Any]:
    """One bounded context by (case-insensitive) name, or an error payload."""
    try:
        return find_context(ws.model, name).model_dump(mode="json")
    except NotFoundError as exc:
        return {"error": {"code": exc.code, "message": exc.message}}


# ---------------------------------------------------------------------------
# Registration: wraps _impl functions with FastMCP decorators
# ---------------------------------------------------------------------------


def register_resources(server: Any, ws: Workspace) -> None:
    """Register all MCP resources on the FastMCP server."""

    @server.resource(  # type: ignore[untyped-decorator]
        "domcp://architecture/overview", mime_type="application/json"
    )
    def overview_resource() -> str:
        """Compact summary of the whole architecture."""
        return json.dumps(overview_impl(ws), indent=2)

    @server.resource(  # type: ignore[untyped-decorator]
        "domcp://architecture/rules", mime_type="application/json"
    )
    def rules_resource() -> str:
        """All declared architectural rules."""
        return json.dumps(rules_impl(ws), indent=2)

    @server.resource(  # type: ignore[untyped-decorator]
        "domcp://architecture/conventions", mime_type="application/json"
    )
    def conventions_resource() -> str:
        """Naming and file-structure conventions."""
        return json.dumps(conventions_impl(ws), indent=2)

    @server.resource(  # type: ignore[untyped-decorator]
        "domcp://architecture/violations", mime_type="application/json"
    )
    def violations_resource() -> str:
        """Current rule violations of the working model."""
        return json.dumps(violations_impl(ws), indent=2)

    @server.resource(  # type: ignore[untyped-decorator]
        "domcp://context/{name}", mime_type="application/json"
    )
    def context_resource(name: str) -> str:
        """Full definition of one bounded context."""
        return json.dumps(context_impl(ws, name), indent=2)
