"""Workspace: the working model of one serving session.

The Workspace is the single dependency injected into every service. It
holds the store, the workspace identifier and the in-memory working
model. Writes go through :meth:`Workspace.edit`, which serializes them
under a lock and assigns the new model only when the block completes
without raising, so a failed edit never leaves a half-applied model.

The working model is discarded with the session unless persisted.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from domcp.domain.model import DomainModel
from domcp.infrastructure.store import canonical_workspace_id

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from domcp.infrastructure.store import ModelRepository, ProjectInfo

logger = logging.getLogger(__name__)


@dataclass
class ModelEdit:
    """Pending edit yielded by :meth:`Workspace.edit`.

    Each :meth:`apply` runs a pure reducer against the pending model.
    """

    model: DomainModel
    applied: list[str] = field(default_factory=list)

    def apply(self, reducer: Callable[..., Any], *args: Any) -> Any:
        """Run ``reducer(model, *args)``, keep its new model, return the rest.

        Reducers return either a model or ``(model, outcome)``.
        """
        result = reducer(self.model, *args)
        if isinstance(result, tuple):
            self.model, outcome = result
        else:
            self.model, outcome = result, None
        self.applied.append(getattr(reducer, "__name__", "reducer"))
        return outcome


class Workspace:
    """Working model plus its backing store for one workspace identifier."""

    def __init__(self, workspace_id: str, store: ModelRepository) -> None:
        self.workspace_id = canonical_workspace_id(workspace_id)
        self.store = store
        self._lock = threading.RLock()
        self._model: DomainModel | None = None

    @classmethod
    def open(cls, workspace_id: str, store: ModelRepository) -> Workspace:
        """Open *store* and load the working model from its baseline."""
        store.open()
        ws = cls(workspace_id, store)
        _ = ws.model
        return ws

    def close(self) -> None:
        self.store.close()

    @property
    def model(self) -> DomainModel:
        """The working model, loaded from the baseline on first access."""
        with self._lock:
            if self._model is None:
                self._model = self.baseline()
                logger.debug("Loaded working model for %s", self.workspace_id)
            return self._model

    def baseline(self) -> DomainModel:
        """The persisted model, or an empty one when nothing is stored."""
        stored = self.store.load(self.workspace_id)
        return stored if stored is not None else DomainModel.empty(self.workspace_id)

    @contextmanager
    def edit(self) -> Iterator[ModelEdit]:
        """Serialize a write; commit the pending model only on clean exit."""
        with self._lock:
            pending = ModelEdit(self.model)
            yield pending
            self._model = pending.model
            if pending.applied:
                logger.debug("Applied %s to %s", ", ".join(pending.applied), self.workspace_id)

    def replace(self, model: DomainModel) -> None:
        with self._lock:
            self._model = model

    def persist(self) -> ProjectInfo:
        """Save the working model as the new baseline.

        On failure the working model stays in memory untouched.
        """
        with self._lock:
            return self.store.save(self.workspace_id, self.model)
