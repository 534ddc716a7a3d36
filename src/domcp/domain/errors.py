"""Typed domain exceptions.

Each error carries a stable ``code`` that the service layer copies into
``ServiceError.code``. ``detail`` holds structured context for adapters.
Malformed references are never raised: the rule engine reports them as
warning-level violations instead.
"""

from __future__ import annotations

from typing import Any


class DomcpError(Exception):
    """Base class for all expected domcp failures."""

    code = "DOMCP_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail


class NotFoundError(DomcpError):
    """A context, entity, service or rule referenced by name does not exist."""

    code = "NOT_FOUND"

    def __init__(self, element: str, name: str, *, context: str | None = None) -> None:
        where = f" in context '{context}'" if context else ""
        super().__init__(f"{element.capitalize()} '{name}' not found{where}", element=element)
        self.detail["name"] = name
        if context:
            self.detail["context"] = context


class ValidationFailed(DomcpError):
    """A structural invariant or a blocking rule was violated."""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, *, rule_id: str | None = None, **detail: Any) -> None:
        super().__init__(message, **detail)
        self.rule_id = rule_id
        if rule_id:
            self.detail["rule_id"] = rule_id


class ConventionError(DomcpError):
    """The convention resolver cannot derive a path."""

    code = "CONVENTION_ERROR"


class UnknownLayer(ConventionError):
    code = "UNKNOWN_LAYER"

    def __init__(self, layer: str, declared: list[str]) -> None:
        allowed = ", ".join(declared)
        super().__init__(
            f"Unknown layer '{layer}'. Declared layers: {allowed}",
            layer=layer,
            declared=declared,
        )


class MissingPattern(ConventionError):
    code = "MISSING_PATTERN"

    def __init__(self) -> None:
        super().__init__(
            "No file-structure pattern configured in conventions.file_structure.pattern"
        )


class PersistenceError(DomcpError):
    """Load or save against the model store failed."""

    code = "PERSISTENCE_ERROR"


class ModelFileError(DomcpError):
    """A model file could not be read, parsed or written."""

    code = "IO_ERROR"
