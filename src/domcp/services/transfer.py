"""TransferService: JSON import and export of a whole model.

Import validates the file (non-empty names, unique context names and rule
ids, no self-dependencies), replaces the working model and saves it as
the new baseline in one step.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from domcp.domain.errors import DomcpError, ModelFileError
from domcp.domain.model import DomainModel
from domcp.services.base import BaseService
from domcp.services.result import ServiceResult
from domcp.services.telemetry import trace_span, traced


def read_model_file(path: Path) -> DomainModel:
    """Parse and validate a model JSON file.

    Raises:
        ModelFileError: The file is missing, unreadable or not JSON.
        ValidationFailed: The JSON does not describe a valid model.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ModelFileError(f"Cannot read {path}: {exc.strerror or exc}", path=str(path)) from exc
    except json.JSONDecodeError as exc:
        msg = f"{path} is not valid JSON (line {exc.lineno}, column {exc.colno})"
        raise ModelFileError(msg, path=str(path)) from exc
    try:
        return DomainModel.model_validate(raw)
    except ValidationError as exc:
        raise BaseService._invalid(exc, path=str(path)) from exc


class TransferService(BaseService):
    """Moves whole models between JSON files and the store."""

    @traced
    def import_model(self, path: Path) -> ServiceResult:
        op = "import_model"
        try:
            with trace_span("read"):
                model = read_model_file(path)
            previous = self.model
            self._workspace.replace(model)
            try:
                info = self._workspace.persist()
            except DomcpError:
                self._workspace.replace(previous)
                raise
        except DomcpError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                **info.model_dump(),
                "path": str(path),
                "contexts": len(model.bounded_contexts),
                "rules": len(model.rules),
            },
        )

    @traced
    def export_model(self, path: Path | None = None) -> ServiceResult:
        """Write the working model as JSON, or return it inline when *path* is None."""
        op = "export_model"
        model = self.model
        if path is None:
            return ServiceResult(ok=True, op=op, data={"model": model.model_dump(mode="json")})
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(model.to_json() + "\n", encoding="utf-8")
        except OSError as exc:
            err = ModelFileError(f"Cannot write {path}: {exc.strerror or exc}", path=str(path))
            return self._fail(op, err)
        return ServiceResult(
            ok=True,
            op=op,
            data={"path": str(path), "name": model.name, "contexts": len(model.bounded_contexts)},
        )
