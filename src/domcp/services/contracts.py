"""Typed payload contracts for service and adapter boundaries.

The larger payloads are validated before they leave the service layer so
shape regressions (for example ``actions`` vs ``items``) fail fast in
tests rather than in an MCP client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class ChangeItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str
    kind: str
    element: str
    name: str
    context: str | None = None
    previous_name: str | None = None
    field_diffs: dict[str, Any] = {}


class CompareData(BaseModel):
    """Payload contract for ``ReconcileService.compare``."""

    workspace: str
    count: int
    summary: dict[str, int]
    changes: list[ChangeItem]


class ActionItem(BaseModel):
    kind: str
    target_path: str
    priority: str
    note: str
    source_path: str | None = None
    change: str = ""


class PlanData(BaseModel):
    """Payload contract for ``ReconcileService.plan``."""

    workspace: str
    change_count: int
    actions: list[ActionItem]
    migration_notes: list[str]
    changes: list[ChangeItem]


class ViolationItem(BaseModel):
    rule_id: str
    severity: str
    scope: str
    message: str
    category: str


class ViolationsData(BaseModel):
    """Payload contract for ``CheckService.check``."""

    count: int
    error_count: int
    warning_count: int
    info_count: int
    healthy: bool
    violations: list[ViolationItem]


class ProjectItem(BaseModel):
    workspace_id: str
    project_name: str
    created_at: str
    updated_at: str


class ProjectListData(BaseModel):
    """Payload contract for ``QueryService.projects``."""

    count: int
    items: list[ProjectItem]
