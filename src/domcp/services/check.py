"""CheckService: dependency validation and rule evaluation.

Both operations only report. A strict caller turns a denial or an
error-level violation into a VALIDATION_FAILED result; the model itself
is never touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from domcp.domain.errors import DomcpError, ValidationFailed
from domcp.domain.rules import blocking, list_violations, validate_dependency
from domcp.domain.types import SEVERITY_RANK, Severity
from domcp.services.base import BaseService
from domcp.services.contracts import ViolationsData, dump_validated
from domcp.services.result import ServiceResult
from domcp.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from domcp.config.models import CheckConfig
    from domcp.infrastructure.workspace import Workspace


class CheckService(BaseService):
    """Dependency checks and the violation report."""

    def __init__(self, workspace: Workspace, *, config: CheckConfig | None = None) -> None:
        super().__init__(workspace)
        self._ignore = {rid.casefold() for rid in config.ignore} if config else set()
        self._min_severity = Severity(config.min_severity) if config else Severity.INFO
        self._strict = config.strict if config else False

    @traced
    def validate_dependency(
        self, from_context: str, to_context: str, *, strict: bool = False
    ) -> ServiceResult:
        op = "validate_dependency"
        try:
            verdict = validate_dependency(self.model, from_context, to_context)
            if not verdict.allowed and (strict or self._strict):
                raise ValidationFailed(
                    verdict.reason,
                    rule_id=verdict.rule_id,
                    from_context=verdict.from_context,
                    to_context=verdict.to_context,
                )
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data=verdict.model_dump(mode="json", exclude={"warnings"}),
            warnings=verdict.warnings,
        )

    @traced
    def check(
        self, *, min_severity: Severity | str | None = None, strict: bool = False
    ) -> ServiceResult:
        """Evaluate rules and structural checks against the working model.

        Args:
            min_severity: Drop violations less severe than this.
            strict: Fail when any error-level violation remains.
        """
        op = "list_violations"
        try:
            threshold = Severity(min_severity) if min_severity else self._min_severity
        except ValueError:
            expected = ", ".join(Severity)
            msg = f"Unknown severity '{min_severity}'. Expected one of: {expected}"
            return self._fail(op, ValidationFailed(msg, min_severity=min_severity))
        with trace_span("evaluate"):
            found = [
                v
                for v in list_violations(self.model)
                if v.rule_id.casefold() not in self._ignore
                and SEVERITY_RANK[v.severity] <= SEVERITY_RANK[threshold]
            ]

        counts = {sev: sum(1 for v in found if v.severity == sev) for sev in Severity}
        data = dump_validated(
            ViolationsData,
            {
                "count": len(found),
                "error_count": counts[Severity.ERROR],
                "warning_count": counts[Severity.WARNING],
                "info_count": counts[Severity.INFO],
                "healthy": counts[Severity.ERROR] == 0,
                "violations": [v.model_dump(mode="json") for v in found],
            },
        )

        errors = blocking(found)
        if errors and (strict or self._strict):
            first = errors[0]
            msg = f"{len(errors)} error-level violation(s); first: {first.message}"
            exc = ValidationFailed(msg, rule_id=first.rule_id, violations=data["violations"])
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data=data)
