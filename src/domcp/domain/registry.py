"""Case-insensitive lookup over a DomainModel and the compact overview."""

from __future__ import annotations

from typing import Any

from domcp.domain.errors import NotFoundError
from domcp.domain.model import BoundedContext, DomainModel, Entity, Service, same_name


def find_context(model: DomainModel, name: str) -> BoundedContext:
    for bc in model.bounded_contexts:
        if same_name(bc.name, name):
            return bc
    raise NotFoundError("bounded context", name)


def find_entity(
    model: DomainModel, name: str, context: str | None = None
) -> tuple[BoundedContext, Entity]:
    """Locate an entity, optionally restricted to one context.

    Without *context* the first match in declaration order wins.
    """
    contexts = [find_context(model, context)] if context else model.bounded_contexts
    for bc in contexts:
        for entity in bc.entities:
            if same_name(entity.name, name):
                return bc, entity
    raise NotFoundError("entity", name, context=context)


def find_service(
    model: DomainModel, name: str, context: str | None = None
) -> tuple[BoundedContext, Service]:
    contexts = [find_context(model, context)] if context else model.bounded_contexts
    for bc in contexts:
        for svc in bc.services:
            if same_name(svc.name, name):
                return bc, svc
    raise NotFoundError("service", name, context=context)


def context_names(model: DomainModel) -> list[str]:
    return [bc.name for bc in model.bounded_contexts]


def has_context(model: DomainModel, name: str) -> bool:
    return any(same_name(bc.name, name) for bc in model.bounded_contexts)


def architecture_summary(model: DomainModel) -> dict[str, Any]:
    """High-level overview: contexts with element names, rules, tech stack."""
    contexts = [
        {
            "name": bc.name,
            "description": bc.description,
            "module_path": bc.module_path,
            "entities": [e.name for e in bc.entities],
            "aggregate_roots": [e.name for e in bc.entities if e.aggregate_root],
            "value_objects": [v.name for v in bc.value_objects],
            "services": [s.name for s in bc.services],
            "repositories": [r.name for r in bc.repositories],
            "events": [ev.name for ev in bc.events],
            "dependencies": list(bc.dependencies),
        }
        for bc in model.bounded_contexts
    ]
    return {
        "name": model.name,
        "description": model.description,
        "tech_stack": model.tech_stack.model_dump(),
        "bounded_contexts": contexts,
        "rules": [
            {
                "id": r.id,
                "severity": r.severity.value,
                "scope": r.scope,
                "description": r.description,
            }
            for r in model.rules
        ],
        "context_count": len(contexts),
        "entity_count": sum(len(bc.entities) for bc in model.bounded_contexts),
    }
