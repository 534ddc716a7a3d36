"""DomcpSettings: one frozen object built from every configuration layer.

Priority, highest first:
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``DOMCP_*`` prefix, nested sections via ``__``
     (``DOMCP_STORE__PATH``, ``DOMCP_CHECK__STRICT``)
  3. The workspace's ``domcp.toml`` (see :mod:`domcp.config.discovery`)
  4. Code defaults baked into the section models

A relative ``[store] path`` in ``domcp.toml`` is anchored at the file's
directory, so a project can keep its store next to its config.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from domcp.config.discovery import find_config
from domcp.config.models import CheckConfig, McpConfig, PlannerConfig, StoreConfig

# TOML file for the settings object under construction.
_toml_path: ContextVar[Path | None] = ContextVar("domcp_toml_path", default=None)


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*, anchoring a relative store path at its directory."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc
    store = data.get("store")
    if isinstance(store, dict) and isinstance(store.get("path"), str):
        raw = Path(store["path"]).expanduser()
        if not raw.is_absolute():
            data["store"] = {**store, "path": str(path.parent / raw)}
    return data


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings layer backed by one ``domcp.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = read_toml(toml_path) if toml_path and toml_path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


class DomcpSettings(BaseSettings):
    """Settings for the domcp CLI and MCP server.

    Attributes:
        workspace: Workspace identifier (a project directory), default cwd.
        config_path: The domcp.toml in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DOMCP_",
        "env_nested_delimiter": "__",
    }

    workspace: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # Output flags
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # domcp.toml sections
    store: StoreConfig = Field(default_factory=StoreConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)
    planner: PlannerConfig = Field(default_factory=PlannerConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _toml_path.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace: Path | str | None = None,
        **cli_flags: Any,
    ) -> DomcpSettings:
        """Settings for one CLI invocation or server start.

        An explicit *config_path* that does not exist is ignored; without
        one, the config is discovered from *workspace* (or cwd). Flags left
        as None are dropped so env vars and TOML values still apply.
        """
        if config_path:
            explicit = Path(config_path).expanduser()
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(Path(workspace) if workspace is not None else None)

        overrides = {k: v for k, v in cli_flags.items() if v is not None}
        if workspace is not None:
            overrides["workspace"] = Path(workspace)

        token = _toml_path.set(toml_path)
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _toml_path.reset(token)
