"""Tests for ReconcileService: compare, plan and save."""

from __future__ import annotations

from domcp.config.models import PlannerConfig
from domcp.domain.diff import Change, RenameHint
from domcp.domain.errors import PersistenceError
from domcp.domain.model import DomainModel
from domcp.domain.types import ChangeKind, ElementKind
from domcp.infrastructure.store import MemoryModelStore, ProjectInfo
from domcp.infrastructure.workspace import Workspace
from domcp.services.reconcile import ReconcileService, change_payload
from domcp.services.update import UpdateService


class _FailingStore(MemoryModelStore):
    def save(self, workspace_id: str, model: DomainModel) -> ProjectInfo:
        raise PersistenceError("disk full", workspace_id=workspace_id)


def _add_last_login(ws: Workspace) -> None:
    result = UpdateService(ws).upsert_entity(
        "Identity", {"name": "User", "fields": [{"name": "last_login", "type": "datetime"}]}
    )
    assert result.ok


class TestCompare:
    def test_unchanged_workspace(self, seeded: Workspace) -> None:
        result = ReconcileService(seeded).compare()
        assert result.ok
        assert result.op == "compare_model"
        assert result.data["count"] == 0
        assert result.data["changes"] == []
        assert result.data["workspace"] == "/work/shop"

    def test_reports_field_addition(self, seeded: Workspace) -> None:
        _add_last_login(seeded)
        result = ReconcileService(seeded).compare()
        assert result.data["count"] == 1
        assert result.data["summary"] == {"EntityModified": 1}
        change = result.data["changes"][0]
        assert change["label"] == "EntityModified"
        assert change["managed_by"] == ["UserRepository"]
        assert "snapshot" not in change

    def test_compare_does_not_mutate(self, seeded: Workspace) -> None:
        _add_last_login(seeded)
        before = seeded.model
        ReconcileService(seeded).compare()
        assert seeded.model is before

    def test_rename_hints_as_dicts(self, seeded: Workspace) -> None:
        UpdateService(seeded).remove_entity("Billing", "Invoice")
        UpdateService(seeded).upsert_entity("Billing", {"name": "Bill", "aggregate_root": True})
        hints = [{"element": "entity", "old": "Invoice", "new": "Bill"}]
        result = ReconcileService(seeded).compare(hints)
        assert result.data["summary"] == {"EntityRenamed": 1}
        assert result.data["changes"][0]["previous_name"] == "Invoice"

    def test_bad_hint_is_validation_failure(self, seeded: Workspace) -> None:
        result = ReconcileService(seeded).compare([{"element": "widget", "old": "a", "new": "b"}])
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"

    def test_explicit_working_model(self, seeded: Workspace, sample_model: DomainModel) -> None:
        other = sample_model.model_copy(update={"description": "changed"})
        result = ReconcileService(seeded).compare(working=other)
        assert result.data["summary"] == {"ModelModified": 1}


class TestPlan:
    def test_field_addition_plan(self, seeded: Workspace) -> None:
        _add_last_login(seeded)
        result = ReconcileService(seeded).plan()
        assert result.ok
        assert result.op == "draft_refactoring_plan"
        (action,) = result.data["actions"]
        assert action["priority"] == "high"
        assert action["kind"] == "modify_file"
        assert action["target_path"] == "src/identity/domain/User.py"
        assert result.data["migration_notes"] == [
            "New field 'last_login' on 'User' — needs schema/storage migration"
        ]
        assert result.warnings == []

    def test_plan_is_repeatable(self, seeded: Workspace) -> None:
        _add_last_login(seeded)
        service = ReconcileService(seeded)
        assert service.plan().data == service.plan().data

    def test_missing_pattern_without_fallback(self, workspace: Workspace) -> None:
        UpdateService(workspace).upsert_context({"name": "Identity"})
        result = ReconcileService(workspace).plan()
        assert result.error is not None
        assert result.error.code == "MISSING_PATTERN"

    def test_fallback_pattern_warns(self, workspace: Workspace) -> None:
        UpdateService(workspace).upsert_context({"name": "Identity"})
        result = ReconcileService(workspace, planner=PlannerConfig()).plan()
        assert result.ok
        assert result.warnings == [
            "No file-structure pattern configured; using 'src/{context}/{layer}/{type}.py'"
        ]
        assert result.data["actions"][0]["target_path"] == "src/identity/domain/__init__.py"

    def test_module_index_from_config(self, workspace: Workspace) -> None:
        UpdateService(workspace).upsert_context({"name": "Identity"})
        planner = PlannerConfig(module_index="mod")
        result = ReconcileService(workspace, planner=planner).plan()
        assert result.data["actions"][0]["target_path"] == "src/identity/domain/mod.py"


class TestSave:
    def test_save_becomes_new_baseline(self, seeded: Workspace) -> None:
        _add_last_login(seeded)
        service = ReconcileService(seeded)
        result = service.save()
        assert result.ok
        assert result.data["project_name"] == "Shop"
        assert service.compare().data["count"] == 0

    def test_failed_save_keeps_working_model(self) -> None:
        ws = Workspace.open("/w", _FailingStore())
        UpdateService(ws).upsert_context({"name": "Identity"})
        result = ReconcileService(ws).save()
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "PERSISTENCE_ERROR"
        assert result.warnings == ["Working model kept in memory; nothing saved"]
        assert [bc.name for bc in ws.model.bounded_contexts] == ["Identity"]


class TestChangePayload:
    def test_label_and_no_null_keys(self) -> None:
        change = Change(kind=ChangeKind.ADDED, element=ElementKind.RULE, name="R1")
        payload = change_payload(change)
        assert payload["label"] == "RuleAdded"
        assert "context" not in payload
        assert "previous_name" not in payload

    def test_hint_objects_pass_through(self, seeded: Workspace) -> None:
        hint = RenameHint(element=ElementKind.CONTEXT, old="Billing", new="Payments")
        assert ReconcileService(seeded).compare([hint]).ok
