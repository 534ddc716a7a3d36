"""Tests for refactoring plan synthesis."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from domcp.domain import merge
from domcp.domain.diff import RenameHint, compute_diff
from domcp.domain.errors import MissingPattern
from domcp.domain.model import DomainModel, Entity, FieldDef
from domcp.domain.planner import RefactoringPlan, draft_plan
from domcp.domain.types import PRIORITY_RANK, ActionKind, ElementKind, Priority


def _variant(model: DomainModel, mutate: Callable[[dict[str, Any]], None]) -> DomainModel:
    data = model.model_dump(mode="json")
    mutate(data)
    return DomainModel.model_validate(data)


def _context(data: dict[str, Any], name: str) -> dict[str, Any]:
    return next(bc for bc in data["bounded_contexts"] if bc["name"] == name)


def _plan(
    working: DomainModel,
    baseline: DomainModel,
    renames: list[RenameHint] | None = None,
    **kwargs: Any,
) -> RefactoringPlan:
    changes = compute_diff(working, baseline, renames=renames or [])
    return draft_plan(changes, working.conventions, **kwargs)


class TestEntityFields:
    def test_new_field_on_backed_entity(self, sample_model: DomainModel) -> None:
        incoming = Entity(name="User", fields=[FieldDef(name="last_login", type="datetime")])
        working, _ = merge.upsert_entity(sample_model, "Identity", incoming)

        plan = _plan(working, sample_model)

        note = "New field 'last_login' on 'User' — needs schema/storage migration"
        assert plan.change_count == 1
        assert len(plan.actions) == 1
        action = plan.actions[0]
        assert action.kind == ActionKind.MODIFY_FILE
        assert action.priority == Priority.HIGH
        assert action.target_path == "src/identity/domain/User.py"
        assert action.note == f"Entity 'User': {note}"
        assert action.change == "EntityModified"
        assert plan.migration_notes == [note]

    def test_new_field_on_unbacked_entity(self, sample_model: DomainModel) -> None:
        def add(data: dict[str, Any]) -> None:
            _context(data, "Billing")["entities"][0]["fields"].append({"name": "due_date"})

        plan = _plan(_variant(sample_model, add), sample_model)
        note = "New field 'due_date' on 'Invoice' — needs schema/storage migration"
        (action,) = plan.actions
        assert action.priority == Priority.HIGH
        assert action.note == f"Entity 'Invoice': {note}"
        assert action.target_path == "src/billing/domain/Invoice.py"
        assert plan.migration_notes == [note]

    def test_new_field_without_any_repository(self) -> None:
        def model(*fields: str) -> DomainModel:
            return DomainModel.model_validate(
                {
                    "name": "Accounts",
                    "bounded_contexts": [
                        {
                            "name": "Identity",
                            "entities": [
                                {"name": "User", "fields": [{"name": f} for f in fields]}
                            ],
                        }
                    ],
                    "conventions": {
                        "file_structure": {"pattern": "src/{context}/{layer}/{type}.py"}
                    },
                }
            )

        plan = _plan(model("id", "email", "last_login"), model("id", "email"))
        (action,) = plan.actions
        assert action.kind == ActionKind.MODIFY_FILE
        assert action.priority == Priority.HIGH
        assert plan.migration_notes == [
            "New field 'last_login' on 'User' — needs schema/storage migration"
        ]

    def test_field_type_change_is_critical(self, sample_model: DomainModel) -> None:
        def retype(data: dict[str, Any]) -> None:
            _context(data, "Identity")["entities"][0]["fields"][1]["type"] = "EmailStr"

        plan = _plan(_variant(sample_model, retype), sample_model)
        (action,) = plan.actions
        assert action.priority == Priority.CRITICAL
        assert "Change type of 'email' from str to EmailStr" in action.note
        assert plan.migration_notes == [
            "Field type change on 'User.email' — needs data migration"
        ]

    def test_removed_field_on_backed_entity(self, sample_model: DomainModel) -> None:
        def drop(data: dict[str, Any]) -> None:
            user = _context(data, "Identity")["entities"][0]
            user["fields"] = [f for f in user["fields"] if f["name"] != "email"]

        plan = _plan(_variant(sample_model, drop), sample_model)
        assert plan.actions[0].priority == Priority.HIGH
        assert plan.migration_notes == [
            "Removed field 'email' from 'User' — needs schema/storage migration"
        ]


class TestArtifacts:
    def test_new_aggregate_root_is_high(self, sample_model: DomainModel) -> None:
        def add(data: dict[str, Any]) -> None:
            _context(data, "Billing")["entities"].append(
                {"name": "Payment", "aggregate_root": True}
            )

        (action,) = _plan(_variant(sample_model, add), sample_model).actions
        assert action.kind == ActionKind.CREATE_FILE
        assert action.priority == Priority.HIGH
        assert action.note == "Create entity 'Payment'"

    def test_new_value_object_is_medium(self, sample_model: DomainModel) -> None:
        def add(data: dict[str, Any]) -> None:
            _context(data, "Billing")["value_objects"].append({"name": "Currency"})

        (action,) = _plan(_variant(sample_model, add), sample_model).actions
        assert action.priority == Priority.MEDIUM
        assert action.target_path == "src/billing/domain/currency.py"

    def test_removed_service(self, sample_model: DomainModel) -> None:
        def drop(data: dict[str, Any]) -> None:
            _context(data, "Billing")["services"] = []

        (action,) = _plan(_variant(sample_model, drop), sample_model).actions
        assert action.kind == ActionKind.DELETE_FILE
        assert action.target_path == "src/billing/application/BillingService.py"
        assert action.note == "Remove service 'BillingService' and all references"

    def test_service_layer_move(self, sample_model: DomainModel) -> None:
        def move(data: dict[str, Any]) -> None:
            _context(data, "Identity")["services"][1]["kind"] = "domain"

        (action,) = _plan(_variant(sample_model, move), sample_model).actions
        assert action.kind == ActionKind.MOVE_FILE
        assert action.priority == Priority.CRITICAL
        assert action.source_path == "src/identity/infrastructure/TokenStore.py"
        assert action.target_path == "src/identity/domain/TokenStore.py"

    def test_hinted_entity_rename(self, sample_model: DomainModel) -> None:
        def rename(data: dict[str, Any]) -> None:
            _context(data, "Billing")["entities"][0]["name"] = "Bill"

        hints = [RenameHint(element=ElementKind.ENTITY, old="Invoice", new="Bill")]
        (action,) = _plan(_variant(sample_model, rename), sample_model, hints).actions
        assert action.kind == ActionKind.MOVE_FILE
        assert action.source_path == "src/billing/domain/Invoice.py"
        assert action.target_path == "src/billing/domain/Bill.py"
        assert action.priority == Priority.CRITICAL

    def test_undeclared_layer_is_flagged(self, sample_model: DomainModel) -> None:
        def add(data: dict[str, Any]) -> None:
            _context(data, "Identity")["services"].append(
                {"name": "LoginView", "layer": "presentation"}
            )

        (action,) = _plan(_variant(sample_model, add), sample_model).actions
        assert action.target_path == "src/identity/presentation/LoginView.py"
        assert action.note.endswith("(layer 'presentation' is not declared in conventions)")


class TestContexts:
    def test_new_context_gets_a_module_per_layer(self, sample_model: DomainModel) -> None:
        def add(data: dict[str, Any]) -> None:
            data["bounded_contexts"].append({"name": "Shipping"})

        plan = _plan(_variant(sample_model, add), sample_model)
        assert [a.target_path for a in plan.actions] == [
            "src/shipping/domain/__init__.py",
            "src/shipping/application/__init__.py",
            "src/shipping/infrastructure/__init__.py",
        ]
        assert {a.kind for a in plan.actions} == {ActionKind.CREATE_FILE}

    def test_custom_module_index(self, sample_model: DomainModel) -> None:
        def add(data: dict[str, Any]) -> None:
            data["bounded_contexts"].append({"name": "Shipping"})

        plan = _plan(_variant(sample_model, add), sample_model, module_index="module")
        assert plan.actions[0].target_path == "src/shipping/domain/module.py"

    def test_dependency_change_is_low(self, sample_model: DomainModel) -> None:
        def drop(data: dict[str, Any]) -> None:
            _context(data, "Billing")["dependencies"] = []

        (action,) = _plan(_variant(sample_model, drop), sample_model).actions
        assert action.priority == Priority.LOW
        assert action.note == "Remove dependency 'Billing' -> 'Identity' and its imports"

    def test_rule_and_model_changes_need_no_files(self, sample_model: DomainModel) -> None:
        def edit(data: dict[str, Any]) -> None:
            data["description"] = "changed"
            data["rules"].pop()

        plan = _plan(_variant(sample_model, edit), sample_model)
        assert plan.change_count == 2
        assert plan.actions == []


class TestOrderingAndPatterns:
    @staticmethod
    def _busy(sample: DomainModel) -> DomainModel:
        def edit(data: dict[str, Any]) -> None:
            billing = _context(data, "Billing")
            billing["entities"][0]["name"] = "Bill"
            billing["dependencies"] = []
            billing["value_objects"].append({"name": "Currency"})
            data["bounded_contexts"].append({"name": "Shipping"})
            identity = _context(data, "Identity")
            identity["entities"][0]["fields"].append({"name": "last_login"})

        return _variant(sample, edit)

    def test_actions_are_sorted_by_priority(self, sample_model: DomainModel) -> None:
        hints = [RenameHint(element=ElementKind.ENTITY, old="Invoice", new="Bill")]
        plan = _plan(self._busy(sample_model), sample_model, hints)
        ranks = [PRIORITY_RANK[a.priority] for a in plan.actions]
        assert ranks == sorted(ranks)
        assert plan.actions[0].priority == Priority.CRITICAL
        assert plan.actions[-1].priority == Priority.LOW

    def test_plan_is_deterministic(self, sample_model: DomainModel) -> None:
        working = self._busy(sample_model)
        assert _plan(working, sample_model) == _plan(working, sample_model)

    def test_missing_pattern_raises(self, sample_model: DomainModel) -> None:
        def unpattern(data: dict[str, Any]) -> None:
            data["conventions"]["file_structure"]["pattern"] = ""
            data["bounded_contexts"].append({"name": "Shipping"})

        with pytest.raises(MissingPattern):
            _plan(_variant(sample_model, unpattern), sample_model)

    def test_fallback_pattern(self, sample_model: DomainModel) -> None:
        def unpattern(data: dict[str, Any]) -> None:
            data["conventions"]["file_structure"]["pattern"] = ""
            data["bounded_contexts"].append({"name": "Shipping"})

        plan = _plan(
            _variant(sample_model, unpattern),
            sample_model,
            fallback_pattern="app/{context}/{layer}/{type}.py",
        )
        assert plan.actions[0].target_path == "app/shipping/domain/__init__.py"

    def test_pattern_not_needed_without_file_actions(self, sample_model: DomainModel) -> None:
        def unpattern(data: dict[str, Any]) -> None:
            data["conventions"]["file_structure"]["pattern"] = ""

        plan = _plan(_variant(sample_model, unpattern), sample_model)
        assert plan.actions == []
        assert plan.change_count == 1
