"""Pydantic configuration sections with code-baked defaults.

Sparse TOML contract: defaults live here, domcp.toml only holds overrides.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    path: Path = Path("~/.domcp/domcp.db")

    @property
    def resolved_path(self) -> Path:
        return self.path.expanduser()


class McpConfig(BaseModel):
    """[mcp] section."""

    model_config = {"frozen": True}

    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000


class PlannerConfig(BaseModel):
    """[planner] section.

    ``fallback_pattern`` is used when a model declares no file-structure
    pattern; set it to an empty string to surface MISSING_PATTERN instead.
    """

    model_config = {"frozen": True}

    fallback_pattern: str | None = "src/{context}/{layer}/{type}.py"
    module_index: str = "__init__"


class CheckConfig(BaseModel):
    """[check] section."""

    model_config = {"frozen": True}

    min_severity: str = "info"
    strict: bool = False
    ignore: list[str] = Field(default_factory=list)
