"""Model repository: persisted baseline DomainModel per workspace.

The store is an explicit object with an ``open()`` / ``close()`` lifecycle
instead of ambient global state. ``SqliteModelStore`` is the production
implementation and ``MemoryModelStore`` is the in-process test double.

Saves replace the whole record in one statement. Concurrent savers of
the same workspace are not coordinated: the last save wins.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from domcp.domain.errors import PersistenceError
from domcp.domain.model import DomainModel
from domcp.infrastructure.database.engine import init_database
from domcp.infrastructure.database.schema import projects

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def canonical_workspace_id(raw: str | Path) -> str:
    """Normalize a workspace identifier.

    Trailing separators are dropped and existing paths are resolved, so
    ``./proj/`` and ``/abs/proj`` address the same record.
    """
    text = str(raw).strip()
    if len(text) > 1:
        text = text.rstrip("/")
    path = Path(text).expanduser()
    if text and path.exists():
        return str(path.resolve())
    return text


class ProjectInfo(BaseModel):
    """Summary row for one stored workspace."""

    model_config = {"frozen": True}

    workspace_id: str
    project_name: str
    created_at: str
    updated_at: str


class ModelRepository(Protocol):
    """Keyed storage of one serialized DomainModel per workspace."""

    def open(self) -> None: ...

    def close(self) -> None: ...

    def load(self, workspace_id: str) -> DomainModel | None: ...

    def save(self, workspace_id: str, model: DomainModel) -> ProjectInfo: ...

    def list(self) -> list[ProjectInfo]: ...

    def delete(self, workspace_id: str) -> bool: ...


def _decode(workspace_id: str, raw: str) -> DomainModel:
    try:
        return DomainModel.from_json(raw)
    except ValidationError as exc:
        msg = f"Stored model for '{workspace_id}' is corrupt: {exc.error_count()} error(s)"
        raise PersistenceError(msg, workspace_id=workspace_id) from exc


class SqliteModelStore:
    """SQLite-backed model store (WAL mode, one row per workspace)."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path.expanduser()
        self._engine: Engine | None = None

    def __enter__(self) -> SqliteModelStore:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            msg = f"Model store at {self.db_path} is not open"
            raise PersistenceError(msg, db_path=str(self.db_path))
        return self._engine

    def open(self) -> None:
        if self._engine is not None:
            return
        try:
            self._engine = init_database(self.db_path)
        except (SQLAlchemyError, OSError) as exc:
            msg = f"Failed to open model store at {self.db_path}: {exc}"
            raise PersistenceError(msg, db_path=str(self.db_path)) from exc
        logger.debug("Opened model store at %s", self.db_path)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def load(self, workspace_id: str) -> DomainModel | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(projects.c.model_json).where(projects.c.workspace_id == workspace_id)
                ).first()
        except SQLAlchemyError as exc:
            msg = f"Failed to load model for '{workspace_id}': {exc}"
            raise PersistenceError(msg, workspace_id=workspace_id) from exc
        if row is None:
            return None
        return _decode(workspace_id, row.model_json)

    def save(self, workspace_id: str, model: DomainModel) -> ProjectInfo:
        now = _now()
        stmt = sqlite_insert(projects).values(
            workspace_id=workspace_id,
            project_name=model.name,
            model_json=model.model_dump_json(),
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[projects.c.workspace_id],
            set_={
                "project_name": stmt.excluded.project_name,
                "model_json": stmt.excluded.model_json,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
                row = conn.execute(
                    select(projects.c.created_at).where(projects.c.workspace_id == workspace_id)
                ).one()
        except SQLAlchemyError as exc:
            msg = f"Failed to save model for '{workspace_id}': {exc}"
            raise PersistenceError(msg, workspace_id=workspace_id) from exc
        logger.debug("Saved model for %s", workspace_id)
        return ProjectInfo(
            workspace_id=workspace_id,
            project_name=model.name,
            created_at=row.created_at,
            updated_at=now,
        )

    def list(self) -> list[ProjectInfo]:
        query = select(
            projects.c.workspace_id,
            projects.c.project_name,
            projects.c.created_at,
            projects.c.updated_at,
        ).order_by(projects.c.updated_at.desc(), projects.c.workspace_id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list projects: {exc}") from exc
        return [
            ProjectInfo(
                workspace_id=r.workspace_id,
                project_name=r.project_name,
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in rows
        ]

    def delete(self, workspace_id: str) -> bool:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(projects).where(projects.c.workspace_id == workspace_id)
                )
        except SQLAlchemyError as exc:
            msg = f"Failed to delete model for '{workspace_id}': {exc}"
            raise PersistenceError(msg, workspace_id=workspace_id) from exc
        return bool(result.rowcount)


class MemoryModelStore:
    """In-memory model store holding serialized JSON, for tests and dry runs."""

    def __init__(self) -> None:
        self._rows: dict[str, ProjectInfo] = {}
        self._docs: dict[str, str] = {}
        self.opened = False

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.opened = False

    def load(self, workspace_id: str) -> DomainModel | None:
        raw = self._docs.get(workspace_id)
        return None if raw is None else _decode(workspace_id, raw)

    def save(self, workspace_id: str, model: DomainModel) -> ProjectInfo:
        now = _now()
        previous = self._rows.get(workspace_id)
        info = ProjectInfo(
            workspace_id=workspace_id,
            project_name=model.name,
            created_at=previous.created_at if previous else now,
            updated_at=now,
        )
        self._docs[workspace_id] = model.model_dump_json()
        self._rows[workspace_id] = info
        return info

    def list(self) -> list[ProjectInfo]:
        rows = sorted(self._rows.values(), key=lambda r: r.workspace_id)
        return sorted(rows, key=lambda r: r.updated_at, reverse=True)

    def delete(self, workspace_id: str) -> bool:
        self._docs.pop(workspace_id, None)
        return self._rows.pop(workspace_id, None) is not None
