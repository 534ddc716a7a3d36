"""MCP tool definitions: 20 tools across 3 categories.

Categories: Read (9), Write (8), Reconciliation (3).
Each tool has a ``<name>_impl`` function testable without the mcp package.
``register_tools()`` wraps them with FastMCP decorators.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from domcp.services.result import ServiceResult

if TYPE_CHECKING:
    from domcp.config.settings import DomcpSettings
    from domcp.infrastructure.workspace import Workspace


def _to_mcp_response(result: ServiceResult) -> dict[str, Any]:
    """Convert a ServiceResult to an MCP-friendly dict."""
    response: dict[str, Any] = {
        "ok": result.ok,
        "op": result.op,
        "data": result.data,
    }
    if result.warnings:
        response["warnings"] = result.warnings
    if result.error is not None:
        response["error"] = {
            "code": result.error.code,
            "message": result.error.message,
            "detail": result.error.detail,
        }
    return response


def _provided(**kwargs: Any) -> dict[str, Any]:
    """Drop arguments the caller left unset so merges keep recorded values."""
    return {k: v for k, v in kwargs.items() if v is not None}


# ---------------------------------------------------------------------------
# Read tools (9)
# ---------------------------------------------------------------------------


def get_architecture_overview_impl(ws: Workspace) -> dict[str, Any]:
    from domcp.services.query import QueryService

    return _to_mcp_response(QueryService(ws).overview())


def get_bounded_context_impl(ws: Workspace, name: str) -> dict[str, Any]:
    from domcp.services.query import QueryService

    return _to_mcp_response(QueryService(ws).context(name))


def get_entity_impl(ws: Workspace, name: str, *, context: str | None = None) -> dict[str, Any]:
    from domcp.services.query import QueryService

    return _to_mcp_response(QueryService(ws).entity(name, context=context))


def get_service_spec_impl(
    ws: Workspace, name: str, *, context: str | None = None
) -> dict[str, Any]:
    from domcp.services.query import QueryService

    return _to_mcp_response(QueryService(ws).service(name, context=context))


def validate_dependency_impl(
    ws: Workspace, from_context: str, to_context: str, *, settings: DomcpSettings | None = None
) -> dict[str, Any]:
    """Check whether one bounded context may depend on another."""
    from domcp.services.check import CheckService

    svc = CheckService(ws, config=settings.check if settings else None)
    return _to_mcp_response(svc.validate_dependency(from_context, to_context))


def list_violations_impl(
    ws: Workspace, *, min_severity: str | None = None, settings: DomcpSettings | None = None
) -> dict[str, Any]:
    from domcp.services.check import CheckService

    svc = CheckService(ws, config=settings.check if settings else None)
    return _to_mcp_response(svc.check(min_severity=min_severity))


def get_architectural_rules_impl(ws: Workspace) -> dict[str, Any]:
    from domcp.services.query import QueryService

    return _to_mcp_response(QueryService(ws).rules())


def get_conventions_impl(ws: Workspace) -> dict[str, Any]:
    from domcp.services.query import QueryService

    return _to_mcp_response(QueryService(ws).conventions())


def suggest_file_path_impl(
    ws: Workspace,
    context: str,
    kind: str,
    name: str,
    *,
    settings: DomcpSettings | None = None,
) -> dict[str, Any]:
    """Where a new artifact of *kind* named *name* belongs."""
    from domcp.services.query import QueryService

    svc = QueryService(ws, planner=settings.planner if settings else None)
    return _to_mcp_response(svc.suggest_file_path(context, kind, name))


# ---------------------------------------------------------------------------
# Write tools (8)
# ---------------------------------------------------------------------------


def update_bounded_context_impl(
    ws: Workspace,
    name: str,
    *,
    description: str | None = None,
    module_path: str | None = None,
    dependencies: list[str] | None = None,
) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    data = _provided(
        name=name, description=description, module_path=module_path, dependencies=dependencies
    )
    return _to_mcp_response(UpdateService(ws).upsert_context(data))


def update_entity_impl(
    ws: Workspace,
    context: str,
    name: str,
    *,
    description: str | None = None,
    aggregate_root: bool | None = None,
    fields: list[dict[str, Any]] | None = None,
    methods: list[dict[str, Any]] | None = None,
    invariants: list[str] | None = None,
) -> dict[str, Any]:
    """Create or merge an entity; fields and methods merge by name."""
    from domcp.services.update import UpdateService

    data = _provided(
        name=name,
        description=description,
        aggregate_root=aggregate_root,
        fields=fields,
        methods=methods,
        invariants=invariants,
    )
    return _to_mcp_response(UpdateService(ws).upsert_entity(context, data))


def update_service_impl(
    ws: Workspace,
    context: str,
    name: str,
    *,
    description: str | None = None,
    kind: str | None = None,
    layer: str | None = None,
    methods: list[dict[str, Any]] | None = None,
    dependencies: list[str] | None = None,
) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    data = _provided(
        name=name,
        description=description,
        kind=kind,
        layer=layer,
        methods=methods,
        dependencies=dependencies,
    )
    return _to_mcp_response(UpdateService(ws).upsert_service(context, data))


def update_event_impl(
    ws: Workspace,
    context: str,
    name: str,
    *,
    description: str | None = None,
    source: str | None = None,
    fields: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    data = _provided(name=name, description=description, source=source, fields=fields)
    return _to_mcp_response(UpdateService(ws).upsert_event(context, data))


def update_value_object_impl(
    ws: Workspace,
    context: str,
    name: str,
    *,
    description: str | None = None,
    fields: list[dict[str, Any]] | None = None,
    validation_rules: list[str] | None = None,
) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    data = _provided(
        name=name, description=description, fields=fields, validation_rules=validation_rules
    )
    return _to_mcp_response(UpdateService(ws).upsert_value_object(context, data))


def update_repository_impl(
    ws: Workspace,
    context: str,
    name: str,
    *,
    aggregate: str | None = None,
    layer: str | None = None,
    methods: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    data = _provided(name=name, aggregate=aggregate, layer=layer, methods=methods)
    return _to_mcp_response(UpdateService(ws).upsert_repository(context, data))


def update_rule_impl(
    ws: Workspace,
    rule_id: str,
    *,
    description: str | None = None,
    severity: str | None = None,
    scope: str | None = None,
) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    data = _provided(id=rule_id, description=description, severity=severity, scope=scope)
    return _to_mcp_response(UpdateService(ws).upsert_rule(data))


def remove_entity_impl(ws: Workspace, context: str, name: str) -> dict[str, Any]:
    from domcp.services.update import UpdateService

    return _to_mcp_response(UpdateService(ws).remove_entity(context, name))


# ---------------------------------------------------------------------------
# Reconciliation tools (3)
# ---------------------------------------------------------------------------


def compare_model_impl(
    ws: Workspace, *, renames: list[dict[str, Any]] | None = None
) -> dict[str, Any]:
    """Structural changes between the saved baseline and the working model."""
    from domcp.services.reconcile import ReconcileService

    return _to_mcp_response(ReconcileService(ws).compare(renames or []))


def draft_refactoring_plan_impl(
    ws: Workspace,
    *,
    renames: list[dict[str, Any]] | None = None,
    settings: DomcpSettings | None = None,
) -> dict[str, Any]:
    from domcp.services.reconcile import ReconcileService

    svc = ReconcileService(ws, planner=settings.planner if settings else None)
    return _to_mcp_response(svc.plan(renames or []))


def save_model_impl(ws: Workspace) -> dict[str, Any]:
    from domcp.services.reconcile import ReconcileService

    return _to_mcp_response(ReconcileService(ws).save())


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_tools(server: Any, ws: Workspace, settings: DomcpSettings | None = None) -> None:
    """Register all MCP tools on *server*."""

    @server.tool()  # type: ignore[untyped-decorator]
    def get_architecture_overview() -> dict[str, Any]:
        """Compact summary of every bounded context, its elements and the rules."""
        return get_architecture_overview_impl(ws)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_bounded_context(name: str) -> dict[str, Any]:
        """Full definition of one bounded context, plus the contexts that depend on it."""
        return get_bounded_context_impl(ws, name)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_entity(name: str, context: str | None = None) -> dict[str, Any]:
        """One entity with its repositories and the events it raises."""
        return get_entity_impl(ws, name, context=context)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_service_spec(name: str, context: str | None = None) -> dict[str, Any]:
        """One service with its layer and rendered method signatures."""
        return get_service_spec_impl(ws, name, context=context)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_dependency(from_context: str, to_context: str) -> dict[str, Any]:
        """Check whether from_context may depend on to_context, with the reason."""
        return validate_dependency_impl(ws, from_context, to_context, settings=settings)

    @server.tool()  # type: ignore[untyped-decorator]
    def list_violations(min_severity: str | None = None) -> dict[str, Any]:
        """Evaluate architectural rules against the working model."""
        return list_violations_impl(ws, min_severity=min_severity, settings=settings)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_architectural_rules() -> dict[str, Any]:
        """All declared architectural rules."""
        return get_architectural_rules_impl(ws)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_conventions() -> dict[str, Any]:
        """Naming, file-structure, error-handling and testing conventions."""
        return get_conventions_impl(ws)

    @server.tool()  # type: ignore[untyped-decorator]
    def suggest_file_path(context: str, kind: str, name: str) -> dict[str, Any]:
        """Conventional path for an entity, value_object, event, service or repository."""
        return suggest_file_path_impl(ws, context, kind, name, settings=settings)

    @server.tool()  # type: ignore[untyped-decorator]
    def update_bounded_context(
        name: str,
        description: str | None = None,
        module_path: str | None = None,
        dependencies: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create or update a bounded context. dependencies replaces the allowed list."""
        return update_bounded_context_impl(
            ws, name, description=description, module_path=module_path, dependencies=dependencies
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_entity(
        context: str,
        name: str,
        description: str | None = None,
        aggregate_root: bool | None = None,
        fields: list[dict[str, Any]] | None = None,
        methods: list[dict[str, Any]] | None = None,
        invariants: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create or merge an entity. Existing fields and methods are kept."""
        return update_entity_impl(
            ws,
            context,
            name,
            description=description,
            aggregate_root=aggregate_root,
            fields=fields,
            methods=methods,
            invariants=invariants,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_service(
        context: str,
        name: str,
        description: str | None = None,
        kind: str | None = None,
        layer: str | None = None,
        methods: list[dict[str, Any]] | None = None,
        dependencies: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create or merge a service (kind: domain, application or infrastructure)."""
        return update_service_impl(
            ws,
            context,
            name,
            description=description,
            kind=kind,
            layer=layer,
            methods=methods,
            dependencies=dependencies,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_event(
        context: str,
        name: str,
        description: str | None = None,
        source: str | None = None,
        fields: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create or merge a domain event raised by the source entity."""
        return update_event_impl(
            ws, context, name, description=description, source=source, fields=fields
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_value_object(
        context: str,
        name: str,
        description: str | None = None,
        fields: list[dict[str, Any]] | None = None,
        validation_rules: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create or merge a value object."""
        return update_value_object_impl(
            ws,
            context,
            name,
            description=description,
            fields=fields,
            validation_rules=validation_rules,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_repository(
        context: str,
        name: str,
        aggregate: str | None = None,
        layer: str | None = None,
        methods: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Create or merge a repository managing an aggregate root."""
        return update_repository_impl(
            ws, context, name, aggregate=aggregate, layer=layer, methods=methods
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_rule(
        rule_id: str,
        description: str | None = None,
        severity: str | None = None,
        scope: str | None = None,
    ) -> dict[str, Any]:
        """Create or update an architectural rule (scope: context, layer or global)."""
        return update_rule_impl(
            ws, rule_id, description=description, severity=severity, scope=scope
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def remove_entity(context: str, name: str) -> dict[str, Any]:
        """Remove an entity from a bounded context."""
        return remove_entity_impl(ws, context, name)

    @server.tool()  # type: ignore[untyped-decorator]
    def compare_model(renames: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Diff the working model against the saved baseline.

        renames: optional hints like {"element": "entity", "old": "Customer",
        "new": "Client", "context": "Billing"}.
        """
        return compare_model_impl(ws, renames=renames)

    @server.tool()  # type: ignore[untyped-decorator]
    def draft_refactoring_plan(renames: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Ordered file actions that bring the code in line with the working model."""
        return draft_refactoring_plan_impl(ws, renames=renames, settings=settings)

    @server.tool()  # type: ignore[untyped-decorator]
    def save_model() -> dict[str, Any]:
        """Persist the working model as the new baseline."""
        return save_model_impl(ws)
