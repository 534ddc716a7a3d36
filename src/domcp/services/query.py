"""QueryService: read operations over the working model.

Reads never mutate. Unknown names come back as NOT_FOUND results rather
than exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from domcp.domain.conventions import ARTIFACT_KINDS, layer_for_kind, suggest_path
from domcp.domain.errors import DomcpError, ValidationFailed
from domcp.domain.model import same_name
from domcp.domain.registry import (
    architecture_summary,
    find_context,
    find_entity,
    find_service,
)
from domcp.domain.rules import dependency_graph
from domcp.services.base import BaseService
from domcp.services.contracts import ProjectListData, dump_validated
from domcp.services.result import ServiceResult
from domcp.services.telemetry import traced

if TYPE_CHECKING:
    from domcp.config.models import PlannerConfig
    from domcp.infrastructure.workspace import Workspace


class QueryService(BaseService):
    """Lookups, overview, conventions and path suggestions."""

    def __init__(self, workspace: Workspace, *, planner: PlannerConfig | None = None) -> None:
        super().__init__(workspace)
        self._fallback_pattern = planner.fallback_pattern if planner else None

    @traced
    def overview(self) -> ServiceResult:
        model = self.model
        data = architecture_summary(model)
        graph = dependency_graph(model)
        data["dependency_edges"] = [list(edge) for edge in graph.edges]
        return ServiceResult(ok=True, op="get_architecture_overview", data=data)

    @traced
    def context(self, name: str) -> ServiceResult:
        op = "get_bounded_context"
        try:
            bc = find_context(self.model, name)
        except DomcpError as exc:
            return self._fail(op, exc)
        dependents = [
            other.name
            for other in self.model.bounded_contexts
            if any(same_name(dep, bc.name) for dep in other.dependencies)
        ]
        data = bc.model_dump(mode="json")
        data["dependents"] = dependents
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def entity(self, name: str, *, context: str | None = None) -> ServiceResult:
        op = "get_entity"
        try:
            bc, entity = find_entity(self.model, name, context)
        except DomcpError as exc:
            return self._fail(op, exc)
        events = [ev.name for ev in bc.events if same_name(ev.source, entity.name)]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "context": bc.name,
                "entity": entity.model_dump(mode="json"),
                "repositories": bc.repositories_for(entity.name),
                "events": events,
            },
        )

    @traced
    def service(self, name: str, *, context: str | None = None) -> ServiceResult:
        op = "get_service_spec"
        try:
            bc, svc = find_service(self.model, name, context)
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "context": bc.name,
                "service": svc.model_dump(mode="json"),
                "layer": svc.effective_layer,
                "signatures": [m.render() for m in svc.methods],
            },
        )

    @traced
    def rules(self) -> ServiceResult:
        rules = [r.model_dump(mode="json") for r in self.model.rules]
        return ServiceResult(
            ok=True,
            op="get_architectural_rules",
            data={"count": len(rules), "rules": rules},
        )

    @traced
    def conventions(self) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op="get_conventions",
            data=self.model.conventions.model_dump(mode="json"),
        )

    @traced
    def suggest_path(
        self, context: str, layer: str, type_name: str, *, kind: str | None = None
    ) -> ServiceResult:
        """Canonical path from the configured pattern; no fallback is applied."""
        op = "suggest_path"
        try:
            path = suggest_path(self.model.conventions, context, layer, type_name, kind=kind)
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"path": path, "context": context, "layer": layer, "type": type_name},
        )

    @traced
    def suggest_file_path(self, context: str, kind: str, name: str) -> ServiceResult:
        """Path for an artifact kind, inferring the layer from the kind.

        Uses the configured fallback pattern when the model declares none.
        """
        op = "suggest_file_path"
        warnings: list[str] = []
        try:
            if kind not in ARTIFACT_KINDS:
                expected = ", ".join(ARTIFACT_KINDS)
                msg = f"Unknown artifact kind '{kind}'. Expected one of: {expected}"
                raise ValidationFailed(msg, kind=kind)
            layer = layer_for_kind(kind)
            if kind == "service":
                existing = next(
                    (
                        svc
                        for bc in self.model.bounded_contexts
                        if same_name(bc.name, context)
                        for svc in bc.services
                        if same_name(svc.name, name)
                    ),
                    None,
                )
                if existing is not None:
                    layer = existing.effective_layer
            pattern: str | None = None
            configured = self.model.conventions.file_structure.pattern.strip()
            if not configured and self._fallback_pattern:
                pattern = self._fallback_pattern
                warnings.append(f"No file-structure pattern configured; using '{pattern}'")
            path = suggest_path(
                self.model.conventions, context, layer, name, kind=kind, pattern=pattern
            )
        except DomcpError as exc:
            return self._fail(op, exc, warnings=warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"path": path, "context": context, "layer": layer, "kind": kind, "name": name},
            warnings=warnings,
        )

    @traced
    def projects(self) -> ServiceResult:
        op = "list_projects"
        try:
            rows = self._workspace.store.list()
        except DomcpError as exc:
            return self._fail(op, exc)
        items = [r.model_dump() for r in rows]
        data = dump_validated(ProjectListData, {"count": len(items), "items": items})
        return ServiceResult(ok=True, op=op, data=data)
