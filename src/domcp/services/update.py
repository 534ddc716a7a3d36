"""UpdateService: merge-on-update writes against the working model.

Pipeline: VALIDATE -> MERGE -> ASSIGN -> RESPOND

Payloads arrive as plain dicts (the MCP tool arguments). Only the keys a
caller sends are applied; everything already recorded is kept. Dangling
references are accepted and reported as warnings, never rejected.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from domcp.domain import merge
from domcp.domain.errors import DomcpError
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
from domcp.services.base import BaseService
from domcp.services.result import ServiceResult
from domcp.services.telemetry import trace_span, traced


def _entity_names(model: DomainModel, context: str) -> list[str]:
    for bc in model.bounded_contexts:
        if same_name(bc.name, context):
            return [e.name for e in bc.entities]
    return []


def _has(names: list[str], name: str) -> bool:
    return any(same_name(n, name) for n in names)


class UpdateService(BaseService):
    """Creates, merges and removes elements of the working model."""

    # ------------------------------------------------------------------
    # Bounded contexts
    # ------------------------------------------------------------------

    @traced
    def upsert_context(self, data: dict[str, Any]) -> ServiceResult:
        op = "update_bounded_context"
        try:
            record = self._build(BoundedContext, data)
            with self._workspace.edit() as pending:
                created = pending.apply(merge.upsert_context, record)
        except DomcpError as exc:
            return self._fail(op, exc)

        known = [bc.name for bc in self.model.bounded_contexts]
        warnings = [
            f"Dependency '{dep}' of '{record.name}' is not a defined bounded context"
            for dep in record.dependencies
            if not _has(known, dep)
        ]
        return self._written(op, "context", record.name, created, warnings=warnings)

    @traced
    def remove_context(self, name: str) -> ServiceResult:
        op = "remove_context"
        try:
            with self._workspace.edit() as pending:
                removed = pending.apply(merge.remove_context, name)
        except DomcpError as exc:
            return self._fail(op, exc)
        dependents = [
            bc.name
            for bc in self.model.bounded_contexts
            if _has(bc.dependencies, removed.name)
        ]
        warnings = [f"'{d}' still depends on removed context '{removed.name}'" for d in dependents]
        return ServiceResult(
            ok=True,
            op=op,
            data={"removed": removed.name, "element": "context"},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Context children
    # ------------------------------------------------------------------

    @traced
    def upsert_entity(self, context: str, data: dict[str, Any]) -> ServiceResult:
        return self._upsert_child("update_entity", "entity", context, Entity, data)

    @traced
    def upsert_value_object(self, context: str, data: dict[str, Any]) -> ServiceResult:
        return self._upsert_child("update_value_object", "value_object", context, ValueObject, data)

    @traced
    def upsert_service(self, context: str, data: dict[str, Any]) -> ServiceResult:
        return self._upsert_child("update_service", "service", context, Service, data)

    @traced
    def upsert_repository(self, context: str, data: dict[str, Any]) -> ServiceResult:
        result = self._upsert_child("update_repository", "repository", context, Repository, data)
        if result.ok:
            aggregate = str(data.get("aggregate") or "")
            if aggregate and not _has(_entity_names(self.model, context), aggregate):
                warning = (
                    f"Repository '{result.data['name']}' manages '{aggregate}', "
                    f"which is not an entity of '{context}'"
                )
                result = result.model_copy(update={"warnings": [*result.warnings, warning]})
        return result

    @traced
    def upsert_event(self, context: str, data: dict[str, Any]) -> ServiceResult:
        result = self._upsert_child("update_event", "event", context, DomainEvent, data)
        if result.ok:
            source = str(data.get("source") or "")
            if source and not _has(_entity_names(self.model, context), source):
                warning = (
                    f"Event '{result.data['name']}' is raised by '{source}', "
                    f"which is not an entity of '{context}'"
                )
                result = result.model_copy(update={"warnings": [*result.warnings, warning]})
        return result

    @traced
    def remove_entity(self, context: str, name: str) -> ServiceResult:
        op = "remove_entity"
        try:
            with self._workspace.edit() as pending:
                removed = pending.apply(merge.remove_entity, context, name)
        except DomcpError as exc:
            return self._fail(op, exc)
        warnings: list[str] = []
        for bc in self.model.bounded_contexts:
            if not same_name(bc.name, context):
                continue
            warnings.extend(
                f"Repository '{repo}' still manages removed entity '{removed.name}'"
                for repo in bc.repositories_for(removed.name)
            )
            warnings.extend(
                f"Event '{ev.name}' is still sourced from removed entity '{removed.name}'"
                for ev in bc.events
                if same_name(ev.source, removed.name)
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"removed": removed.name, "element": "entity", "context": context},
            warnings=warnings,
        )

    @traced
    def remove_service(self, context: str, name: str) -> ServiceResult:
        op = "remove_service"
        try:
            with self._workspace.edit() as pending:
                removed = pending.apply(merge.remove_service, context, name)
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"removed": removed.name, "element": "service", "context": context},
        )

    # ------------------------------------------------------------------
    # Model-level records
    # ------------------------------------------------------------------

    @traced
    def upsert_rule(self, data: dict[str, Any]) -> ServiceResult:
        op = "update_rule"
        try:
            record = self._build(ArchitecturalRule, data)
            with self._workspace.edit() as pending:
                created = pending.apply(merge.upsert_rule, record)
        except DomcpError as exc:
            return self._fail(op, exc)
        return self._written(op, "rule", record.id, created)

    @traced
    def remove_rule(self, rule_id: str) -> ServiceResult:
        op = "remove_rule"
        try:
            with self._workspace.edit() as pending:
                removed = pending.apply(merge.remove_rule, rule_id)
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data={"removed": removed.id, "element": "rule"})

    @traced
    def update_conventions(self, data: dict[str, Any]) -> ServiceResult:
        op = "update_conventions"
        try:
            record = self._build(Conventions, data)
            with self._workspace.edit() as pending:
                pending.apply(merge.update_conventions, record)
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True, op=op, data=self.model.conventions.model_dump(mode="json")
        )

    @traced
    def update_model_info(self, data: dict[str, Any]) -> ServiceResult:
        """Set the model's name, description or tech stack."""
        op = "update_model_info"
        payload = {k: v for k, v in data.items() if k in ("name", "description", "tech_stack")}
        try:
            # name is required by the schema; fall back to the current one
            record = self._build(DomainModel, {"name": self.model.name, **payload})
            with self._workspace.edit() as pending:
                pending.apply(merge.update_model_info, record, set(payload))
        except DomcpError as exc:
            return self._fail(op, exc)
        model = self.model
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "name": model.name,
                "description": model.description,
                "tech_stack": model.tech_stack.model_dump(mode="json"),
            },
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build[T: BaseModel](self, cls: type[T], data: dict[str, Any]) -> T:
        """Validate a payload into a record, keeping track of provided keys."""
        with trace_span("validate"):
            try:
                return cls.model_validate(data)
            except ValidationError as exc:
                raise self._invalid(exc, element=cls.__name__) from exc

    def _upsert_child(
        self,
        op: str,
        element: str,
        context: str,
        cls: type[Entity | ValueObject | Service | Repository | DomainEvent],
        data: dict[str, Any],
    ) -> ServiceResult:
        reducer = {
            Entity: merge.upsert_entity,
            ValueObject: merge.upsert_value_object,
            Service: merge.upsert_service,
            Repository: merge.upsert_repository,
            DomainEvent: merge.upsert_event,
        }[cls]
        try:
            record = self._build(cls, data)
            with self._workspace.edit() as pending:
                created = pending.apply(reducer, context, record)
        except DomcpError as exc:
            return self._fail(op, exc)
        return self._written(op, element, record.name, created, context=context)

    @staticmethod
    def _written(
        op: str,
        element: str,
        name: str,
        created: bool,
        *,
        context: str | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        data: dict[str, Any] = {
            "element": element,
            "name": name,
            "status": "created" if created else "updated",
        }
        if context is not None:
            data["context"] = context
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings or [])
