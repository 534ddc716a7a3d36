"""BaseService: shared foundation for all domcp services.

Every service receives a :class:`Workspace` at construction time. Reads
use ``self._workspace.model``; writes go through
``self._workspace.edit()`` so they are serialized and all-or-nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from domcp.domain.errors import DomcpError, ValidationFailed
from domcp.services.result import ServiceResult

if TYPE_CHECKING:
    from domcp.domain.model import DomainModel
    from domcp.infrastructure.workspace import Workspace

logger = structlog.get_logger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class UpdateService(BaseService):
            def update_entity(self, context: str, name: str, ...) -> ServiceResult:
                with self._workspace.edit() as pending:
                    created = pending.apply(upsert_entity, context, record)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @property
    def model(self) -> DomainModel:
        return self._workspace.model

    def _fail(
        self, op: str, exc: DomcpError, *, warnings: list[str] | None = None
    ) -> ServiceResult:
        """Convert an expected domain failure into a failed ServiceResult."""
        logger.debug("service.failed", op=op, code=exc.code, message=exc.message)
        return ServiceResult.from_error(op, exc, warnings=warnings)

    @staticmethod
    def _invalid(exc: ValidationError, **detail: Any) -> ValidationFailed:
        """Wrap a pydantic input error as a VALIDATION_FAILED domain error."""
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in exc.errors()
        ]
        return ValidationFailed("; ".join(problems), **detail)
