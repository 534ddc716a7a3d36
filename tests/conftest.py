"""Shared pytest fixtures for domcp tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from domcp.domain.model import DomainModel
from domcp.infrastructure.store import MemoryModelStore, SqliteModelStore
from domcp.infrastructure.workspace import Workspace
from domcp.services.telemetry import disable_telemetry

SAMPLE_MODEL: dict[str, Any] = {
    "name": "Shop",
    "description": "Online shop",
    "tech_stack": {"language": "python", "framework": "fastapi", "database": "postgres"},
    "bounded_contexts": [
        {
            "name": "Identity",
            "description": "Users and authentication",
            "module_path": "src/identity",
            "entities": [
                {
                    "name": "User",
                    "aggregate_root": True,
                    "fields": [
                        {"name": "id", "type": "UUID", "required": True},
                        {"name": "email", "type": "str", "required": True},
                    ],
                    "methods": [{"name": "register", "return_type": "User"}],
                    "invariants": ["email is unique"],
                }
            ],
            "repositories": [{"name": "UserRepository", "aggregate": "User"}],
            "services": [
                {"name": "AuthService", "kind": "domain"},
                {"name": "TokenStore", "kind": "infrastructure"},
            ],
            "events": [{"name": "UserRegistered", "source": "User"}],
        },
        {
            "name": "Billing",
            "description": "Invoices and payments",
            "entities": [
                {
                    "name": "Invoice",
                    "aggregate_root": True,
                    "fields": [
                        {"name": "id", "type": "UUID", "required": True},
                        {"name": "amount", "type": "Decimal"},
                    ],
                }
            ],
            "value_objects": [{"name": "Money", "fields": [{"name": "amount", "type": "Decimal"}]}],
            "services": [{"name": "BillingService", "kind": "application"}],
            "dependencies": ["Identity"],
        },
    ],
    "rules": [
        {
            "id": "LAYER-001",
            "description": "Domain layer must not depend on infrastructure",
            "severity": "error",
            "scope": "global",
        },
        {
            "id": "DEP-001",
            "description": "Contexts may only depend on declared dependencies",
            "severity": "error",
            "scope": "global",
        },
    ],
    "conventions": {
        "naming": {"entities": "PascalCase", "services": "PascalCase"},
        "file_structure": {
            "pattern": "src/{context}/{layer}/{type}.py",
            "layers": ["domain", "application", "infrastructure"],
        },
    },
}


@pytest.fixture(autouse=True)
def _telemetry_off() -> Iterator[None]:
    """Keep telemetry and bound log context from leaking between tests."""
    yield
    disable_telemetry()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def sample_model() -> DomainModel:
    """Two contexts, Billing -> Identity, with a repository-backed User."""
    return DomainModel.model_validate(SAMPLE_MODEL)


@pytest.fixture
def memory_store() -> MemoryModelStore:
    return MemoryModelStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterator[SqliteModelStore]:
    store = SqliteModelStore(tmp_path / "db" / "domcp.db")
    store.open()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def workspace(memory_store: MemoryModelStore) -> Workspace:
    """Empty workspace over an in-memory store."""
    return Workspace.open("/work/shop", memory_store)


@pytest.fixture
def seeded(memory_store: MemoryModelStore, sample_model: DomainModel) -> Workspace:
    """Workspace whose baseline and working model are the sample model."""
    memory_store.save("/work/shop", sample_model)
    return Workspace.open("/work/shop", memory_store)


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate CLI runs: temp store, temp workspace, no ambient config."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    monkeypatch.delenv("DOMCP_CONFIG", raising=False)
    monkeypatch.setenv("DOMCP_STORE__PATH", str(tmp_path / "store" / "domcp.db"))
    return project
