"""ReconcileService: diff, plan and persist the working model.

Pipeline: LOAD BASELINE -> DIFF -> PLAN -> RESPOND

``compare`` and ``plan`` are read-only. ``save`` is the only operation
that writes to the store; on failure the working model stays in memory.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from domcp.domain.diff import Change, RenameHint, compute_diff
from domcp.domain.errors import DomcpError
from domcp.domain.planner import draft_plan
from domcp.services.base import BaseService
from domcp.services.contracts import CompareData, PlanData, dump_validated
from domcp.services.result import ServiceResult
from domcp.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from domcp.config.models import PlannerConfig
    from domcp.domain.model import DomainModel
    from domcp.infrastructure.workspace import Workspace

RenameInput = RenameHint | Mapping[str, Any]


def change_payload(change: Change) -> dict[str, Any]:
    """JSON-ready change record with its readable label."""
    data = {k: v for k, v in change.model_dump(mode="json").items() if v is not None}
    return {"label": change.label, **data}


class ReconcileService(BaseService):
    """Compares the working model to the baseline and drafts refactoring plans."""

    def __init__(self, workspace: Workspace, *, planner: PlannerConfig | None = None) -> None:
        super().__init__(workspace)
        self._fallback = planner.fallback_pattern if planner else None
        self._module_index = planner.module_index if planner else "__init__"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def compare(
        self,
        renames: Iterable[RenameInput] = (),
        *,
        working: DomainModel | None = None,
    ) -> ServiceResult:
        """Structural changes from the baseline to the working model.

        Args:
            renames: Caller-declared renames; without one a rename shows
                up as a removal plus an addition.
            working: Compare this model instead of the session's working model.
        """
        op = "compare_model"
        try:
            changes = self._diff(renames, working)
        except DomcpError as exc:
            return self._fail(op, exc)
        summary = Counter(c.label for c in changes)
        data = dump_validated(
            CompareData,
            {
                "workspace": self._workspace.workspace_id,
                "count": len(changes),
                "summary": dict(sorted(summary.items())),
                "changes": [change_payload(c) for c in changes],
            },
        )
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def plan(
        self,
        renames: Iterable[RenameInput] = (),
        *,
        working: DomainModel | None = None,
    ) -> ServiceResult:
        """Ordered file-level actions that bring code in line with the working model."""
        op = "draft_refactoring_plan"
        target = working if working is not None else self.model
        warnings: list[str] = []
        try:
            changes = self._diff(renames, working)
            if not target.conventions.file_structure.pattern.strip() and self._fallback:
                warnings.append(
                    f"No file-structure pattern configured; using '{self._fallback}'"
                )
            with trace_span("draft_plan"):
                plan = draft_plan(
                    changes,
                    target.conventions,
                    fallback_pattern=self._fallback,
                    module_index=self._module_index,
                )
        except DomcpError as exc:
            return self._fail(op, exc, warnings=warnings)
        data = dump_validated(
            PlanData,
            {
                "workspace": self._workspace.workspace_id,
                "change_count": plan.change_count,
                "actions": [a.model_dump(mode="json") for a in plan.actions],
                "migration_notes": plan.migration_notes,
                "changes": [change_payload(c) for c in changes],
            },
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def save(self) -> ServiceResult:
        """Persist the working model as the new baseline."""
        op = "save_model"
        try:
            info = self._workspace.persist()
        except DomcpError as exc:
            return self._fail(op, exc, warnings=["Working model kept in memory; nothing saved"])
        return ServiceResult(ok=True, op=op, data=info.model_dump())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _diff(self, renames: Iterable[RenameInput], working: DomainModel | None) -> list[Change]:
        hints = self._hints(renames)
        with trace_span("load_baseline"):
            baseline = self._workspace.baseline()
        with trace_span("compute_diff"):
            target = working if working is not None else self.model
            return compute_diff(target, baseline, renames=hints)

    def _hints(self, renames: Iterable[RenameInput]) -> list[RenameHint]:
        hints: list[RenameHint] = []
        for raw in renames:
            if isinstance(raw, RenameHint):
                hints.append(raw)
                continue
            try:
                hints.append(RenameHint.model_validate(dict(raw)))
            except ValidationError as exc:
                raise self._invalid(exc, element="RenameHint") from exc
        return hints
