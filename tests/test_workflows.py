"""Integration workflow tests: multi-step scenarios spanning several services.

Each scenario runs against the SQLite store so the baseline really goes
through a save and a reload.
"""

from __future__ import annotations

from pathlib import Path

from domcp.domain.model import DomainModel
from domcp.infrastructure.store import SqliteModelStore
from domcp.infrastructure.workspace import Workspace
from domcp.services.check import CheckService
from domcp.services.query import QueryService
from domcp.services.reconcile import ReconcileService
from domcp.services.transfer import TransferService
from domcp.services.update import UpdateService


class TestBootstrapWorkflow:
    """Empty workspace -> describe the code -> save -> reopen."""

    def test_bootstrap_then_reopen(self, sqlite_store: SqliteModelStore) -> None:
        ws = Workspace.open("/work/blog", sqlite_store)
        update = UpdateService(ws)
        assert update.update_conventions(
            {"file_structure": {"pattern": "app/{context}/{layer}/{type}.py"}}
        ).ok
        assert update.upsert_context({"name": "Publishing"}).ok
        assert update.upsert_entity(
            "Publishing", {"name": "Post", "aggregate_root": True, "fields": [{"name": "title"}]}
        ).ok
        assert update.upsert_repository(
            "Publishing", {"name": "PostRepository", "aggregate": "Post"}
        ).ok

        plan = ReconcileService(ws).plan()
        paths = [a["target_path"] for a in plan.data["actions"]]
        assert "app/publishing/domain/__init__.py" in paths
        assert "app/publishing/domain/post.py" in paths

        assert ReconcileService(ws).save().ok

        reopened = Workspace.open("/work/blog", sqlite_store)
        assert reopened.model == ws.model
        assert ReconcileService(reopened).compare().data["count"] == 0


class TestEditReviewSave:
    """Seeded baseline -> edits -> diff -> plan -> save."""

    def test_review_cycle(self, sqlite_store: SqliteModelStore, sample_model: DomainModel) -> None:
        sqlite_store.save("/work/shop", sample_model)
        ws = Workspace.open("/work/shop", sqlite_store)
        update = UpdateService(ws)
        update.upsert_entity("Identity", {"name": "User", "fields": [{"name": "last_login"}]})
        update.upsert_service("Identity", {"name": "TokenStore", "kind": "domain"})

        diff = ReconcileService(ws).compare()
        assert diff.data["summary"] == {"EntityModified": 1, "ServiceModified": 1}

        plan = ReconcileService(ws).plan().data
        assert [a["priority"] for a in plan["actions"]] == ["critical", "high"]
        assert plan["actions"][0]["source_path"] == "src/identity/infrastructure/TokenStore.py"

        # Unsaved edits never reach the store.
        assert sqlite_store.load("/work/shop") == sample_model

        ReconcileService(ws).save()
        assert sqlite_store.load("/work/shop") == ws.model
        assert ReconcileService(ws).plan().data["actions"] == []


class TestViolationFixLoop:
    """Introduce a layering violation, see it reported, then fix it."""

    def test_fix_layer_violation(
        self, sqlite_store: SqliteModelStore, sample_model: DomainModel
    ) -> None:
        sqlite_store.save("/work/shop", sample_model)
        ws = Workspace.open("/work/shop", sqlite_store)
        update = UpdateService(ws)
        check = CheckService(ws)

        update.upsert_service("Identity", {"name": "AuthService", "dependencies": ["TokenStore"]})
        report = check.check(min_severity="error")
        assert report.data["error_count"] == 1
        assert report.data["violations"][0]["rule_id"] == "LAYER-001"
        assert not check.check(strict=True).ok

        update.upsert_service("Identity", {"name": "AuthService", "dependencies": []})
        assert check.check(strict=True).ok


class TestImportExport:
    def test_file_round_trip_through_the_store(
        self, tmp_path: Path, sqlite_store: SqliteModelStore, sample_model: DomainModel
    ) -> None:
        source = tmp_path / "in.json"
        source.write_text(sample_model.to_json(), encoding="utf-8")
        ws = Workspace.open("/work/shop", sqlite_store)

        assert TransferService(ws).import_model(source).ok
        assert QueryService(ws).projects().data["count"] == 1

        UpdateService(ws).upsert_context({"name": "Shipping", "dependencies": ["Billing"]})
        target = tmp_path / "out" / "model.json"
        assert TransferService(ws).export_model(target).ok

        exported = DomainModel.model_validate_json(target.read_text(encoding="utf-8"))
        assert [bc.name for bc in exported.bounded_contexts] == ["Identity", "Billing", "Shipping"]
        # Export writes the working model; the baseline is unchanged.
        assert ws.baseline() == sample_model
