"""MCP prompt definitions: the domcp_guidelines workflow prompt.

The prompt text is built from the live working model so an agent sees
the current contexts and rules. ``domcp_guidelines_impl`` is testable
without the mcp package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from domcp.infrastructure.workspace import Workspace


def domcp_guidelines_impl(ws: Workspace) -> str:
    """Architecture guidelines and the tool calls expected around code changes."""
    model = ws.model
    if model.bounded_contexts:
        contexts = "Bounded contexts: " + ", ".join(bc.name for bc in model.bounded_contexts)
        bootstrap = ""
    else:
        contexts = "No bounded contexts defined yet."
        bootstrap = (
            "\n**This project has no domain model yet.** Analyze the codebase first: "
            "identify bounded contexts, entities, services and events with the write "
            "tools, then call `save_model` to persist.\n"
        )

    rules = ""
    if model.rules:
        lines = [f"- **{r.id}** ({r.severity}): {r.description}" for r in model.rules]
        rules = "\n### Rules\n\n" + "\n".join(lines) + "\n"

    return f"""## domcp: {model.name}

{contexts}
{bootstrap}
### Workflow

1. **Before writing code**: call `get_architecture_overview`
2. **Before creating files**: call `suggest_file_path`
3. **Before cross-context imports**: call `validate_dependency`
4. **After model changes**: call `compare_model`, then `draft_refactoring_plan`, \
then `save_model`
{rules}"""


def register_prompts(server: Any, ws: Workspace) -> None:
    """Register the MCP prompts on the FastMCP server."""

    @server.prompt()  # type: ignore[untyped-decorator]
    def domcp_guidelines() -> str:
        """Architecture guidelines and mandatory tool usage for this project."""
        return domcp_guidelines_impl(ws)
