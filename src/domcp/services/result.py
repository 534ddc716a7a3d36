"""ServiceResult and ServiceError: the contract every service method returns.

The CLI and the MCP adapter both consume this type; neither ever sees a
raw domain exception for an expected failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from domcp.domain.errors import DomcpError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name, matching the MCP tool name where one exists.
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, e.g. dangling references.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def from_error(
        cls, op: str, exc: DomcpError, *, warnings: list[str] | None = None
    ) -> ServiceResult:
        """Failed result carrying the exception's code, message and detail."""
        return cls(
            ok=False,
            op=op,
            warnings=warnings or [],
            error=ServiceError(code=exc.code, message=exc.message, detail=exc.detail),
        )
