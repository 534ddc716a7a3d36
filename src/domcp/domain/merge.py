"""Merge-on-update reducers.

Every function here is pure: it takes a model plus an incoming record and
returns a brand new model. The input is never mutated, and a failure
raises before anything is assigned, so callers can swap the result in
atomically.

Merge policy for an incoming record matched by (case-insensitive) name:

- Only attributes the caller actually provided (``model_fields_set``)
  are applied.
- The identifying name (or rule id) keeps its recorded spelling.
- Scalars and dependency lists are replaced.
- Named sub-lists (fields, methods, child elements of a context) are
  merged item by item.
- Free-text lists (invariants, validation rules) are unioned.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from domcp.domain.errors import NotFoundError, ValidationFailed
from domcp.domain.model import (
    ArchitecturalRule,
    BoundedContext,
    Conventions,
    DomainEvent,
    DomainModel,
    Entity,
    Repository,
    Service,
    ValueObject,
    same_name,
)

NAMED = "named"
UNION = "union"

# Identity keys keep their recorded spelling.
_IDENTITY = frozenset({"name", "id"})

_LIST_POLICY: dict[type[BaseModel], dict[str, str]] = {
    Entity: {"fields": NAMED, "methods": NAMED, "invariants": UNION},
    ValueObject: {"fields": NAMED, "validation_rules": UNION},
    Service: {"methods": NAMED},
    Repository: {"methods": NAMED},
    DomainEvent: {"fields": NAMED},
    BoundedContext: {
        "entities": NAMED,
        "value_objects": NAMED,
        "services": NAMED,
        "repositories": NAMED,
        "events": NAMED,
    },
}

# Context attribute holding each child element type.
CHILD_ATTR: dict[type[BaseModel], str] = {
    Entity: "entities",
    ValueObject: "value_objects",
    Service: "services",
    Repository: "repositories",
    DomainEvent: "events",
}

_CHILD_LABEL: dict[type[BaseModel], str] = {
    Entity: "entity",
    ValueObject: "value object",
    Service: "service",
    Repository: "repository",
    DomainEvent: "domain event",
}


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


def _rebuild[T: BaseModel](cls: type[T], data: dict[str, Any]) -> T:
    try:
        return cls.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed(str(exc), element=cls.__name__) from exc


def union_strings(existing: list[str], incoming: list[str]) -> list[str]:
    """Order-preserving union; existing entries first."""
    merged = list(existing)
    for item in incoming:
        if item not in merged:
            merged.append(item)
    return merged


def merge_record[T: BaseModel](existing: T, incoming: T) -> T:
    """Merge the provided attributes of *incoming* into *existing*."""
    policy = _LIST_POLICY.get(type(existing), {})
    data = existing.model_dump()
    provided = set(incoming.model_fields_set) | set(incoming.model_extra or {})
    provided -= _IDENTITY
    for key in sorted(provided):
        value = getattr(incoming, key)
        current = getattr(existing, key, None)
        match policy.get(key):
            case "named":
                data[key] = _dump(merge_named(current, value))
            case "union":
                data[key] = union_strings(current, value)
            case _ if isinstance(value, BaseModel) and isinstance(current, BaseModel):
                data[key] = merge_record(current, value).model_dump()
            case _:
                data[key] = _dump(value)
    return _rebuild(type(existing), data)


def merge_named[T: BaseModel](existing: list[T], incoming: list[T]) -> list[T]:
    """Merge lists of named records; unmatched incoming items are appended."""
    result = list(existing)
    for item in incoming:
        for i, current in enumerate(result):
            if same_name(current.name, item.name):  # type: ignore[attr-defined]
                result[i] = merge_record(current, item)
                break
        else:
            result.append(item)
    return result


# ── Context-level helpers ──────────────────────────────────────────────


def _context_index(model: DomainModel, name: str) -> int:
    for i, bc in enumerate(model.bounded_contexts):
        if same_name(bc.name, name):
            return i
    raise NotFoundError("bounded context", name)


def _replace_context(model: DomainModel, index: int, bc: BoundedContext) -> DomainModel:
    contexts = list(model.bounded_contexts)
    contexts[index] = bc
    return _rebuild(DomainModel, {**model.model_dump(), "bounded_contexts": _dump(contexts)})


def _upsert_child[T: BaseModel](
    model: DomainModel, context: str, incoming: T
) -> tuple[DomainModel, bool]:
    attr = CHILD_ATTR[type(incoming)]
    index = _context_index(model, context)
    bc = model.bounded_contexts[index]
    children: list[T] = getattr(bc, attr)
    name = incoming.name  # type: ignore[attr-defined]
    created = not any(same_name(c.name, name) for c in children)  # type: ignore[attr-defined]
    merged = merge_named(children, [incoming])
    new_bc = _rebuild(BoundedContext, {**bc.model_dump(), attr: _dump(merged)})
    return _replace_context(model, index, new_bc), created


def _remove_child[C: BaseModel](
    model: DomainModel, context: str, element: type[C], name: str
) -> tuple[DomainModel, C]:
    attr = CHILD_ATTR[element]
    index = _context_index(model, context)
    bc = model.bounded_contexts[index]
    children = getattr(bc, attr)
    for child in children:
        if same_name(child.name, name):
            kept = [c for c in children if c is not child]
            new_bc = _rebuild(BoundedContext, {**bc.model_dump(), attr: _dump(kept)})
            return _replace_context(model, index, new_bc), child
    raise NotFoundError(_CHILD_LABEL[element], name, context=bc.name)


# ── Public reducers ────────────────────────────────────────────────────


def upsert_context(model: DomainModel, incoming: BoundedContext) -> tuple[DomainModel, bool]:
    """Create or merge a bounded context. Dependencies are replaced, not unioned."""
    if any(same_name(dep, incoming.name) for dep in incoming.dependencies):
        msg = f"Bounded context '{incoming.name}' cannot depend on itself"
        raise ValidationFailed(msg, context=incoming.name)
    for i, bc in enumerate(model.bounded_contexts):
        if same_name(bc.name, incoming.name):
            return _replace_context(model, i, merge_record(bc, incoming)), False
    contexts = [*model.bounded_contexts, incoming]
    return _rebuild(DomainModel, {**model.model_dump(), "bounded_contexts": _dump(contexts)}), True


def upsert_entity(model: DomainModel, context: str, incoming: Entity) -> tuple[DomainModel, bool]:
    return _upsert_child(model, context, incoming)


def upsert_value_object(
    model: DomainModel, context: str, incoming: ValueObject
) -> tuple[DomainModel, bool]:
    return _upsert_child(model, context, incoming)


def upsert_service(model: DomainModel, context: str, incoming: Service) -> tuple[DomainModel, bool]:
    return _upsert_child(model, context, incoming)


def upsert_repository(
    model: DomainModel, context: str, incoming: Repository
) -> tuple[DomainModel, bool]:
    return _upsert_child(model, context, incoming)


def upsert_event(
    model: DomainModel, context: str, incoming: DomainEvent
) -> tuple[DomainModel, bool]:
    return _upsert_child(model, context, incoming)


def upsert_rule(model: DomainModel, incoming: ArchitecturalRule) -> tuple[DomainModel, bool]:
    rules = list(model.rules)
    for i, rule in enumerate(rules):
        if same_name(rule.id, incoming.id):
            rules[i] = merge_record(rule, incoming)
            created = False
            break
    else:
        rules.append(incoming)
        created = True
    return _rebuild(DomainModel, {**model.model_dump(), "rules": _dump(rules)}), created


def update_conventions(model: DomainModel, incoming: Conventions) -> DomainModel:
    merged = merge_record(model.conventions, incoming)
    return _rebuild(DomainModel, {**model.model_dump(), "conventions": merged.model_dump()})


def update_model_info(
    model: DomainModel, incoming: DomainModel, provided: set[str] | None = None
) -> DomainModel:
    """Apply provided top-level attributes (name, description, tech stack)."""
    provided = incoming.model_fields_set if provided is None else provided
    data = model.model_dump()
    for key in ("name", "description", "tech_stack"):
        if key in provided:
            value = getattr(incoming, key)
            if isinstance(value, BaseModel):
                value = merge_record(getattr(model, key), value).model_dump()
            data[key] = value
    return _rebuild(DomainModel, data)


def remove_entity(model: DomainModel, context: str, name: str) -> tuple[DomainModel, Entity]:
    return _remove_child(model, context, Entity, name)


def remove_service(model: DomainModel, context: str, name: str) -> tuple[DomainModel, Service]:
    return _remove_child(model, context, Service, name)


def remove_context(model: DomainModel, name: str) -> tuple[DomainModel, BoundedContext]:
    """Drop a context. Other contexts' dependencies on it become dangling."""
    index = _context_index(model, name)
    removed = model.bounded_contexts[index]
    contexts = [bc for i, bc in enumerate(model.bounded_contexts) if i != index]
    data = {**model.model_dump(), "bounded_contexts": _dump(contexts)}
    return _rebuild(DomainModel, data), removed


def remove_rule(model: DomainModel, rule_id: str) -> tuple[DomainModel, ArchitecturalRule]:
    for rule in model.rules:
        if same_name(rule.id, rule_id):
            kept = [r for r in model.rules if r is not rule]
            return _rebuild(DomainModel, {**model.model_dump(), "rules": _dump(kept)}), rule
    raise NotFoundError("rule", rule_id)
