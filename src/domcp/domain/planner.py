"""Refactoring planner: turn a diff into prioritized file-level actions.

Mapping summary:

- Added elements become ``create_file``. Aggregate roots and domain
  services are high priority, everything else medium. A new context gets
  one module index per declared layer.
- Removed elements become ``delete_file`` at medium priority.
- Renames (caller-hinted), module path changes and service layer changes
  become ``move_file`` at critical priority.
- Entity field changes become one ``modify_file`` per entity. Field
  additions are high priority and always add a storage migration note.
  Removals are high priority and add one only for a repository-backed
  entity. Field type changes are critical.
- Dependency changes become low priority ``modify_file`` on the context
  module. Rule and model changes need no file actions.

Actions are stably sorted critical > high > medium > low, so ties keep
diff order and repeated calls yield identical plans.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from domcp.domain.conventions import (
    declared_layers,
    module_path,
    render_pattern,
    suggest_path,
    type_case,
)
from domcp.domain.diff import Change, FieldDiff
from domcp.domain.errors import MissingPattern, UnknownLayer
from domcp.domain.model import Conventions
from domcp.domain.naming import apply_case
from domcp.domain.types import (
    PRIORITY_RANK,
    ActionKind,
    ChangeKind,
    ElementKind,
    Priority,
    ServiceKind,
)

_KIND_OF: dict[ElementKind, str] = {
    ElementKind.ENTITY: "entity",
    ElementKind.VALUE_OBJECT: "value_object",
    ElementKind.SERVICE: "service",
    ElementKind.REPOSITORY: "repository",
    ElementKind.EVENT: "event",
}

_LABEL: dict[ElementKind, str] = {
    ElementKind.ENTITY: "entity",
    ElementKind.VALUE_OBJECT: "value object",
    ElementKind.SERVICE: "service",
    ElementKind.REPOSITORY: "repository",
    ElementKind.EVENT: "domain event",
}


class Action(BaseModel):
    model_config = {"frozen": True}

    kind: ActionKind
    target_path: str
    priority: Priority
    note: str
    source_path: str | None = None
    change: str = ""


class RefactoringPlan(BaseModel):
    model_config = {"frozen": True}

    actions: list[Action] = Field(default_factory=list)
    migration_notes: list[str] = Field(default_factory=list)
    change_count: int = 0


class _Paths:
    """Convention-backed path resolution with an optional fallback pattern."""

    def __init__(
        self, conventions: Conventions, fallback_pattern: str | None, module_index: str
    ) -> None:
        self.conventions = conventions
        self.fallback = fallback_pattern
        self.module_index = module_index

    @property
    def pattern(self) -> str:
        configured = self.conventions.file_structure.pattern
        if configured.strip():
            return configured
        if self.fallback:
            return self.fallback
        raise MissingPattern

    def artifact(self, context: str, layer: str, name: str, kind: str) -> tuple[str, str]:
        """Return ``(path, note)``; the note flags undeclared layers."""
        pattern = self.pattern
        try:
            return suggest_path(
                self.conventions, context, layer, name, kind=kind, pattern=pattern
            ), ""
        except UnknownLayer:
            styled = apply_case(name, type_case(self.conventions, kind))
            note = f" (layer '{layer}' is not declared in conventions)"
            return render_pattern(pattern, context, layer, styled), note

    def module(self, context: str, layer: str) -> str:
        return module_path(
            self.conventions, context, layer, self.module_index, pattern=self.pattern
        )

    def layers(self) -> list[str]:
        return declared_layers(self.conventions)


def _field_map(value: Any) -> dict[str, dict[str, Any]]:
    if not isinstance(value, list):
        return {}
    return {str(f["name"]).casefold(): f for f in value if isinstance(f, dict) and "name" in f}


class _Planner:
    def __init__(self, paths: _Paths) -> None:
        self.paths = paths
        self.actions: list[Action] = []
        self.notes: list[str] = []

    def add(
        self,
        change: Change,
        kind: ActionKind,
        path: str,
        priority: Priority,
        note: str,
        *,
        source: str | None = None,
    ) -> None:
        self.actions.append(
            Action(
                kind=kind,
                target_path=path,
                priority=priority,
                note=note,
                source_path=source,
                change=change.label,
            )
        )

    # ── dispatch ───────────────────────────────────────────────────────

    def plan(self, change: Change) -> None:
        match change.element:
            case ElementKind.CONTEXT:
                self._context(change)
            case ElementKind.DEPENDENCY:
                self._dependency(change)
            case ElementKind.MODEL | ElementKind.RULE:
                return
            case _:
                self._artifact(change)

    # ── contexts and dependencies ──────────────────────────────────────

    def _context(self, change: Change) -> None:
        name = change.name
        match change.kind:
            case ChangeKind.ADDED:
                for layer in self.paths.layers():
                    self.add(
                        change,
                        ActionKind.CREATE_FILE,
                        self.paths.module(name, layer),
                        Priority.MEDIUM,
                        f"Create {layer} layer module for context '{name}'",
                    )
            case ChangeKind.REMOVED:
                for layer in self.paths.layers():
                    self.add(
                        change,
                        ActionKind.DELETE_FILE,
                        self.paths.module(name, layer),
                        Priority.MEDIUM,
                        f"Remove {layer} layer module of context '{name}'",
                    )
            case ChangeKind.RENAMED:
                old = change.previous_name or name
                for layer in self.paths.layers():
                    self.add(
                        change,
                        ActionKind.MOVE_FILE,
                        self.paths.module(name, layer),
                        Priority.CRITICAL,
                        f"Move {layer} layer module from context '{old}' to '{name}'",
                        source=self.paths.module(old, layer),
                    )
            case ChangeKind.MODIFIED:
                moved = change.field_diffs.get("module_path")
                if moved is not None:
                    self.add(
                        change,
                        ActionKind.MOVE_FILE,
                        moved.new or self.paths.module(name, self.paths.layers()[0]),
                        Priority.CRITICAL,
                        f"Move module of context '{name}' from {moved.old or '?'} "
                        f"to {moved.new or '?'}",
                        source=moved.old,
                    )

    def _dependency(self, change: Change) -> None:
        ctx = change.context or ""
        path = self.paths.module(ctx, self.paths.layers()[0])
        if change.kind == ChangeKind.ADDED:
            note = f"Wire dependency '{ctx}' -> '{change.name}'"
        else:
            note = f"Remove dependency '{ctx}' -> '{change.name}' and its imports"
        self.add(change, ActionKind.MODIFY_FILE, path, Priority.LOW, note)

    # ── context children ───────────────────────────────────────────────

    def _artifact(self, change: Change) -> None:
        ctx = change.context or ""
        kind = _KIND_OF[change.element]
        label = _LABEL[change.element]
        layer = change.layer or "domain"
        path, layer_note = self.paths.artifact(ctx, layer, change.name, kind)

        match change.kind:
            case ChangeKind.ADDED:
                snap = change.snapshot or {}
                is_root = change.element == ElementKind.ENTITY and bool(snap.get("aggregate_root"))
                is_domain_service = change.element == ElementKind.SERVICE and snap.get(
                    "kind", ServiceKind.DOMAIN.value
                ) == ServiceKind.DOMAIN.value
                important = is_root or is_domain_service
                priority = Priority.HIGH if important else Priority.MEDIUM
                self.add(
                    change,
                    ActionKind.CREATE_FILE,
                    path,
                    priority,
                    f"Create {label} '{change.name}'{layer_note}",
                )
                if change.element == ElementKind.ENTITY and change.managed_by:
                    self.notes.append(
                        f"New entity '{change.name}' — may need schema/storage migration"
                    )
            case ChangeKind.REMOVED:
                self.add(
                    change,
                    ActionKind.DELETE_FILE,
                    path,
                    Priority.MEDIUM,
                    f"Remove {label} '{change.name}' and all references{layer_note}",
                )
                if change.element == ElementKind.ENTITY and change.managed_by:
                    self.notes.append(
                        f"Removed entity '{change.name}' — needs schema/storage migration"
                    )
            case ChangeKind.RENAMED:
                old_layer = layer
                moved = change.field_diffs.get("effective_layer")
                if moved is not None and moved.old:
                    old_layer = str(moved.old)
                source, _ = self.paths.artifact(ctx, old_layer, change.previous_name or "", kind)
                self.add(
                    change,
                    ActionKind.MOVE_FILE,
                    path,
                    Priority.CRITICAL,
                    f"Rename {label} '{change.previous_name}' to '{change.name}' "
                    f"and update references{layer_note}",
                    source=source,
                )
            case ChangeKind.MODIFIED:
                self._modified(change, ctx, kind, label, path, layer_note)

    def _modified(
        self, change: Change, ctx: str, kind: str, label: str, path: str, layer_note: str
    ) -> None:
        diffs = dict(change.field_diffs)
        moved = diffs.pop("effective_layer", None)
        if moved is not None and moved.old:
            source, _ = self.paths.artifact(ctx, str(moved.old), change.name, kind)
            self.add(
                change,
                ActionKind.MOVE_FILE,
                path,
                Priority.CRITICAL,
                f"Move {label} '{change.name}' from {moved.old} to {moved.new} layer{layer_note}",
                source=source,
            )
            diffs.pop("kind", None)
            diffs.pop("layer", None)
        if not diffs:
            return

        parts: list[str] = []
        priority = Priority.MEDIUM
        fields = diffs.pop("fields", None)
        if change.element == ElementKind.ENTITY and fields is not None:
            priority, parts = self._entity_fields(change, fields)
        if fields is not None and change.element != ElementKind.ENTITY:
            parts.append("update fields")
        if "aggregate_root" in diffs:
            priority = _max_priority(priority, Priority.HIGH)
            parts.append("aggregate root flag changed")
        others = [k for k in diffs if k != "aggregate_root"]
        if others:
            if others == ["description"] and not parts:
                priority = Priority.LOW
            parts.append(f"update {', '.join(others)}")
        if not parts:
            return
        self.add(
            change,
            ActionKind.MODIFY_FILE,
            path,
            priority,
            f"{label.capitalize()} '{change.name}': {'; '.join(parts)}{layer_note}",
        )

    def _entity_fields(self, change: Change, diff: FieldDiff) -> tuple[Priority, list[str]]:
        old, new = _field_map(diff.old), _field_map(diff.new)
        backed = bool(change.managed_by)
        entity = change.name
        priority = Priority.MEDIUM
        parts: list[str] = []
        for key, field in new.items():
            if key in old:
                continue
            note = f"New field '{field['name']}' on '{entity}' — needs schema/storage migration"
            self.notes.append(note)
            parts.append(note)
            priority = _max_priority(priority, Priority.HIGH)
        for key, field in old.items():
            if key in new:
                continue
            priority = _max_priority(priority, Priority.HIGH)
            if backed:
                note = (
                    f"Removed field '{field['name']}' from '{entity}' — "
                    "needs schema/storage migration"
                )
                self.notes.append(note)
                parts.append(note)
            else:
                parts.append(f"Remove field '{field['name']}'")
        for key, field in new.items():
            before = old.get(key)
            if before is None:
                continue
            if before.get("type") != field.get("type"):
                priority = Priority.CRITICAL
                parts.append(
                    f"Change type of '{field['name']}' from {before.get('type')} "
                    f"to {field.get('type')}"
                )
                if backed:
                    self.notes.append(
                        f"Field type change on '{entity}.{field['name']}' — needs data migration"
                    )
            elif before != field:
                parts.append(f"Update field '{field['name']}'")
        return priority, parts


def _max_priority(a: Priority, b: Priority) -> Priority:
    return a if PRIORITY_RANK[a] <= PRIORITY_RANK[b] else b


def draft_plan(
    changes: Sequence[Change],
    conventions: Conventions,
    *,
    fallback_pattern: str | None = None,
    module_index: str = "__init__",
) -> RefactoringPlan:
    """Synthesize an ordered refactoring plan from *changes*.

    Raises:
        MissingPattern: A change needs a path, no pattern is configured
            and no *fallback_pattern* was given.
    """
    planner = _Planner(_Paths(conventions, fallback_pattern, module_index))
    for change in changes:
        planner.plan(change)
    actions = sorted(planner.actions, key=lambda a: PRIORITY_RANK[a.priority])
    return RefactoringPlan(
        actions=actions,
        migration_notes=planner.notes,
        change_count=len(changes),
    )
