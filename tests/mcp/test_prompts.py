"""Tests for the domcp_guidelines prompt."""

from __future__ import annotations

from domcp.infrastructure.workspace import Workspace
from domcp.mcp.prompts import domcp_guidelines_impl


class TestGuidelines:
    def test_lists_contexts_and_rules(self, seeded: Workspace) -> None:
        text = domcp_guidelines_impl(seeded)
        assert text.startswith("## domcp: Shop")
        assert "Bounded contexts: Identity, Billing" in text
        assert "- **LAYER-001** (error): Domain layer must not depend on infrastructure" in text
        assert "no domain model yet" not in text

    def test_empty_model_asks_for_bootstrap(self, workspace: Workspace) -> None:
        text = domcp_guidelines_impl(workspace)
        assert "No bounded contexts defined yet." in text
        assert "**This project has no domain model yet.**" in text
        assert "### Rules" not in text

    def test_workflow_names_real_tools(self, workspace: Workspace) -> None:
        text = domcp_guidelines_impl(workspace)
        for tool in ("get_architecture_overview", "suggest_file_path", "save_model"):
            assert f"`{tool}`" in text
