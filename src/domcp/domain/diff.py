"""Diff engine: structural delta between the working model and the baseline.

Identity is the case-insensitive name within the parent scope (``id`` for
rules). Container order never matters. Lists of named records and lists
of strings are compared as unordered keyed sets, so reordering fields or
dependencies is not a change.

Renames are never guessed. A rename is only reported when the caller
passes a :class:`RenameHint` whose old name exists only in the baseline
and whose new name exists only in the working model. Without a hint a
rename shows up as a removal plus an addition.

``compute_diff`` is pure. Diffing (B, A) with inverted hints yields the
inverse of each change in diff (A, B): added and removed swap, modified
and renamed swap old and new.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, cast

from pydantic import BaseModel, Field

from domcp.domain.model import ArchitecturalRule, BoundedContext, DomainModel
from domcp.domain.types import ChangeKind, ElementKind

_ABSENT: Any = object()

_CHILDREN: tuple[tuple[str, ElementKind], ...] = (
    ("entities", ElementKind.ENTITY),
    ("value_objects", ElementKind.VALUE_OBJECT),
    ("services", ElementKind.SERVICE),
    ("repositories", ElementKind.REPOSITORY),
    ("events", ElementKind.EVENT),
)

_CONTEXT_SKIP = frozenset({"name", "dependencies", *(attr for attr, _ in _CHILDREN)})
_MODEL_SKIP = frozenset({"bounded_contexts", "rules"})

# Name of every model-level change; a model rename lives in field_diffs["name"].
MODEL_CHANGE_NAME = "model"

_INVERSE_KIND = {
    ChangeKind.ADDED: ChangeKind.REMOVED,
    ChangeKind.REMOVED: ChangeKind.ADDED,
    ChangeKind.MODIFIED: ChangeKind.MODIFIED,
    ChangeKind.RENAMED: ChangeKind.RENAMED,
}


class FieldDiff(BaseModel):
    """Old and new value of one attribute; None marks an absent side."""

    model_config = {"frozen": True}

    old: Any = None
    new: Any = None

    def inverse(self) -> FieldDiff:
        return FieldDiff(old=self.new, new=self.old)


class RenameHint(BaseModel):
    """Caller-supplied signal that *old* was renamed to *new*.

    *context* narrows element hints to one context; either side's context
    name matches.
    """

    model_config = {"frozen": True}

    element: ElementKind
    old: str
    new: str
    context: str | None = None

    def inverse(self) -> RenameHint:
        return self.model_copy(update={"old": self.new, "new": self.old})


class Change(BaseModel):
    model_config = {"frozen": True}

    kind: ChangeKind
    element: ElementKind
    name: str
    context: str | None = None
    previous_name: str | None = None
    field_diffs: dict[str, FieldDiff] = Field(default_factory=dict)
    snapshot: dict[str, Any] | None = None
    managed_by: list[str] = Field(default_factory=list)
    layer: str | None = None

    @property
    def label(self) -> str:
        """Readable change name, e.g. ``EntityModified`` or ``ContextAdded``."""
        element = "".join(part.capitalize() for part in self.element.value.split("_"))
        return f"{element}{self.kind.value.capitalize()}"

    def inverse(self) -> Change:
        update: dict[str, Any] = {
            "kind": _INVERSE_KIND[self.kind],
            "field_diffs": {k: v.inverse() for k, v in self.field_diffs.items()},
        }
        moved = self.field_diffs.get("effective_layer")
        if moved is not None:
            update["layer"] = moved.old
        if self.kind == ChangeKind.RENAMED and self.previous_name is not None:
            update["name"] = self.previous_name
            update["previous_name"] = self.name
        return self.model_copy(update=update)

    def describe(self) -> str:
        where = f"{self.context}." if self.context else ""
        if self.kind == ChangeKind.RENAMED:
            return f"{self.label}: {where}{self.previous_name} -> {self.name}"
        if self.field_diffs:
            return f"{self.label}: {where}{self.name} ({', '.join(self.field_diffs)})"
        return f"{self.label}: {where}{self.name}"


# ── Comparison helpers ─────────────────────────────────────────────────


def _normalize(value: Any) -> Any:
    """Order-insensitive canonical form used for equality only."""
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        if value and all(isinstance(v, dict) and "name" in v for v in value):
            return {str(v["name"]).casefold(): _normalize(v) for v in value}
        if all(isinstance(v, str) for v in value):
            return sorted(set(value))
        return [_normalize(v) for v in value]
    return value


def _dump(record: BaseModel | None) -> dict[str, Any]:
    return record.model_dump(mode="json") if record is not None else {}


def field_diffs(
    new: BaseModel | None, old: BaseModel | None, *, skip: Iterable[str] = ("name",)
) -> dict[str, FieldDiff]:
    """Attribute-level differences; attributes absent on both sides are omitted."""
    skipped = set(skip)
    new_d, old_d = _dump(new), _dump(old)
    keys = [k for k in new_d if k not in skipped]
    keys += [k for k in old_d if k not in skipped and k not in new_d]
    diffs: dict[str, FieldDiff] = {}
    for key in keys:
        before = old_d.get(key, _ABSENT)
        after = new_d.get(key, _ABSENT)
        both = before is not _ABSENT and after is not _ABSENT
        if both and _normalize(before) == _normalize(after):
            continue
        diffs[key] = FieldDiff(
            old=None if before is _ABSENT else before,
            new=None if after is _ABSENT else after,
        )
    return diffs


def _pair[T](
    working: Sequence[T],
    baseline: Sequence[T],
    key: Callable[[T], str],
    renames: Sequence[tuple[str, str]],
) -> list[tuple[T | None, T | None]]:
    """Match items by key, then by rename hints; unmatched items pair with None."""
    base_by = {key(b).casefold(): b for b in baseline}
    work_keys = {key(w).casefold() for w in working}
    renamed: dict[str, T] = {}
    claimed: set[str] = set()
    for old, new in renames:
        old_k, new_k = old.casefold(), new.casefold()
        if (
            old_k in base_by
            and old_k not in work_keys
            and new_k in work_keys
            and new_k not in base_by
            and old_k not in claimed
            and new_k not in renamed
        ):
            renamed[new_k] = base_by[old_k]
            claimed.add(old_k)

    used: set[str] = set()
    pairs: list[tuple[T | None, T | None]] = []
    for w in working:
        k = key(w).casefold()
        if k in base_by:
            pairs.append((w, base_by[k]))
            used.add(k)
        elif k in renamed:
            b = renamed[k]
            pairs.append((w, b))
            used.add(key(b).casefold())
        else:
            pairs.append((w, None))
    pairs.extend((None, b) for b in baseline if key(b).casefold() not in used)
    return pairs


def _name(record: Any) -> str:
    return str(record.name)


def _managed_by(
    entity_names: Iterable[str], contexts: Iterable[BoundedContext | None]
) -> list[str]:
    names = {n.casefold() for n in entity_names}
    repos = {
        repo.name
        for bc in contexts
        if bc is not None
        for repo in bc.repositories
        if repo.aggregate.casefold() in names
    }
    return sorted(repos, key=str.casefold)


# ── Per-level diffing ──────────────────────────────────────────────────


def _hints_for(
    renames: Sequence[RenameHint],
    element: ElementKind,
    contexts: Iterable[str] = (),
) -> list[tuple[str, str]]:
    scope = {c.casefold() for c in contexts}
    return [
        (h.old, h.new)
        for h in renames
        if h.element == element and (h.context is None or h.context.casefold() in scope)
    ]


def _layer_of(record: Any) -> str:
    """Effective layer of a context child (services and repositories carry one)."""
    layer = getattr(record, "effective_layer", None)
    return layer if isinstance(layer, str) else "domain"


def _child_changes(
    new_bc: BoundedContext | None,
    old_bc: BoundedContext | None,
    renames: Sequence[RenameHint],
) -> list[Change]:
    ctx_name = (new_bc or old_bc).name  # type: ignore[union-attr]
    ctx_names = [bc.name for bc in (new_bc, old_bc) if bc is not None]
    changes: list[Change] = []
    for attr, element in _CHILDREN:
        working = getattr(new_bc, attr) if new_bc is not None else []
        baseline = getattr(old_bc, attr) if old_bc is not None else []
        hints = _hints_for(renames, element, ctx_names)
        for new, old in _pair(working, baseline, _name, hints):
            present = new if new is not None else old
            common: dict[str, Any] = {
                "element": element,
                "context": ctx_name,
                "layer": _layer_of(present),
            }
            if element == ElementKind.ENTITY:
                entity_names = [r.name for r in (new, old) if r is not None]
                common["managed_by"] = _managed_by(entity_names, (new_bc, old_bc))
            if old is None or new is None:
                kind = ChangeKind.ADDED if old is None else ChangeKind.REMOVED
                changes.append(
                    Change(kind=kind, name=present.name, snapshot=_dump(present), **common)
                )
                continue
            diffs = field_diffs(new, old)
            if _layer_of(new) != _layer_of(old):
                diffs["effective_layer"] = FieldDiff(old=_layer_of(old), new=_layer_of(new))
            if new.name.casefold() != old.name.casefold():
                changes.append(
                    Change(
                        kind=ChangeKind.RENAMED,
                        name=new.name,
                        previous_name=old.name,
                        field_diffs=diffs,
                        **common,
                    )
                )
            elif diffs:
                changes.append(
                    Change(kind=ChangeKind.MODIFIED, name=new.name, field_diffs=diffs, **common)
                )
    return changes


def _dependency_changes(
    new_bc: BoundedContext | None, old_bc: BoundedContext | None
) -> list[Change]:
    ctx_name = (new_bc or old_bc).name  # type: ignore[union-attr]
    working = new_bc.dependencies if new_bc is not None else []
    baseline = old_bc.dependencies if old_bc is not None else []
    work_keys = {d.casefold() for d in working}
    base_keys = {d.casefold() for d in baseline}
    changes = [
        Change(kind=ChangeKind.ADDED, element=ElementKind.DEPENDENCY, name=d, context=ctx_name)
        for d in working
        if d.casefold() not in base_keys
    ]
    changes += [
        Change(kind=ChangeKind.REMOVED, element=ElementKind.DEPENDENCY, name=d, context=ctx_name)
        for d in baseline
        if d.casefold() not in work_keys
    ]
    return changes


def _context_changes(
    new_bc: BoundedContext | None,
    old_bc: BoundedContext | None,
    renames: Sequence[RenameHint],
) -> list[Change]:
    changes: list[Change] = []
    if old_bc is None:
        added = cast(BoundedContext, new_bc)
        changes.append(
            Change(
                kind=ChangeKind.ADDED,
                element=ElementKind.CONTEXT,
                name=added.name,
                snapshot=_dump(added),
            )
        )
    elif new_bc is None:
        changes.append(
            Change(
                kind=ChangeKind.REMOVED,
                element=ElementKind.CONTEXT,
                name=old_bc.name,
                snapshot=_dump(old_bc),
            )
        )
    else:
        diffs = field_diffs(new_bc, old_bc, skip=_CONTEXT_SKIP)
        if new_bc.name.casefold() != old_bc.name.casefold():
            changes.append(
                Change(
                    kind=ChangeKind.RENAMED,
                    element=ElementKind.CONTEXT,
                    name=new_bc.name,
                    previous_name=old_bc.name,
                    field_diffs=diffs,
                )
            )
        elif diffs:
            changes.append(
                Change(
                    kind=ChangeKind.MODIFIED,
                    element=ElementKind.CONTEXT,
                    name=new_bc.name,
                    field_diffs=diffs,
                )
            )
    changes.extend(_dependency_changes(new_bc, old_bc))
    changes.extend(_child_changes(new_bc, old_bc, renames))
    return changes


def _rule_changes(working: DomainModel, baseline: DomainModel) -> list[Change]:
    changes: list[Change] = []
    for new, old in _pair(working.rules, baseline.rules, lambda r: r.id, ()):
        if old is None:
            added = cast(ArchitecturalRule, new)
            changes.append(
                Change(
                    kind=ChangeKind.ADDED,
                    element=ElementKind.RULE,
                    name=added.id,
                    snapshot=_dump(added),
                )
            )
        elif new is None:
            changes.append(
                Change(
                    kind=ChangeKind.REMOVED,
                    element=ElementKind.RULE,
                    name=old.id,
                    snapshot=_dump(old),
                )
            )
        else:
            diffs = field_diffs(new, old, skip=("id",))
            if diffs:
                changes.append(
                    Change(
                        kind=ChangeKind.MODIFIED,
                        element=ElementKind.RULE,
                        name=new.id,
                        field_diffs=diffs,
                    )
                )
    return changes


def compute_diff(
    working: DomainModel,
    baseline: DomainModel,
    *,
    renames: Sequence[RenameHint] = (),
) -> list[Change]:
    """Ordered structural changes turning *baseline* into *working*.

    A changed model name or attribute is one ``ModelModified`` named
    ``MODEL_CHANGE_NAME``.

    Order: model attributes, then contexts (working order, then
    baseline-only), then rules. Within a context: the context itself,
    its dependencies, entities, value objects, services, repositories,
    events.
    """
    changes: list[Change] = []
    model_diffs = field_diffs(working, baseline, skip=_MODEL_SKIP)
    if model_diffs:
        changes.append(
            Change(
                kind=ChangeKind.MODIFIED,
                element=ElementKind.MODEL,
                name=MODEL_CHANGE_NAME,
                field_diffs=model_diffs,
            )
        )
    context_hints = [(h.old, h.new) for h in renames if h.element == ElementKind.CONTEXT]
    for new_bc, old_bc in _pair(
        working.bounded_contexts, baseline.bounded_contexts, _name, context_hints
    ):
        changes.extend(_context_changes(new_bc, old_bc, renames))
    changes.extend(_rule_changes(working, baseline))
    return changes
