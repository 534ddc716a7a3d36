"""Tests for UpdateService merge-on-update writes."""

from __future__ import annotations

from domcp.domain.model import DomainModel
from domcp.domain.registry import find_context, find_entity, find_service
from domcp.infrastructure.workspace import Workspace
from domcp.services.update import UpdateService


class TestContexts:
    def test_create_context(self, workspace: Workspace) -> None:
        result = UpdateService(workspace).upsert_context(
            {"name": "Identity", "description": "Users"}
        )
        assert result.ok
        assert result.op == "update_bounded_context"
        assert result.data == {"element": "context", "name": "Identity", "status": "created"}
        assert find_context(workspace.model, "Identity").description == "Users"

    def test_update_keeps_children(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_context({"name": "identity", "description": "IAM"})
        assert result.data["status"] == "updated"
        bc = find_context(seeded.model, "Identity")
        assert bc.name == "Identity"
        assert bc.description == "IAM"
        assert [e.name for e in bc.entities] == ["User"]

    def test_dependencies_are_replaced(self, seeded: Workspace) -> None:
        UpdateService(seeded).upsert_context({"name": "Billing", "dependencies": []})
        assert find_context(seeded.model, "Billing").dependencies == []

    def test_undefined_dependency_warns(self, workspace: Workspace) -> None:
        result = UpdateService(workspace).upsert_context(
            {"name": "Billing", "dependencies": ["Identity"]}
        )
        assert result.ok
        assert result.warnings == [
            "Dependency 'Identity' of 'Billing' is not a defined bounded context"
        ]

    def test_self_dependency_rejected(self, seeded: Workspace) -> None:
        before = seeded.model
        result = UpdateService(seeded).upsert_context(
            {"name": "Billing", "dependencies": ["billing"]}
        )
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert seeded.model is before

    def test_empty_name_rejected(self, workspace: Workspace) -> None:
        result = UpdateService(workspace).upsert_context({"name": ""})
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.detail == {"element": "BoundedContext"}
        assert workspace.model.bounded_contexts == []

    def test_remove_context_warns_about_dependents(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_context("identity")
        assert result.ok
        assert result.data == {"removed": "Identity", "element": "context"}
        assert result.warnings == ["'Billing' still depends on removed context 'Identity'"]

    def test_remove_unknown_context(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_context("Shipping")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestEntities:
    def test_add_field_keeps_everything_else(
        self, seeded: Workspace, sample_model: DomainModel
    ) -> None:
        result = UpdateService(seeded).upsert_entity(
            "Identity", {"name": "User", "fields": [{"name": "last_login", "type": "datetime"}]}
        )
        assert result.ok
        assert result.data == {
            "element": "entity",
            "name": "User",
            "status": "updated",
            "context": "Identity",
        }
        _, user = find_entity(seeded.model, "User")
        _, before = find_entity(sample_model, "User")
        assert [f.name for f in user.fields] == ["id", "email", "last_login"]
        assert user.methods == before.methods
        assert user.invariants == before.invariants
        assert user.aggregate_root is True

    def test_unknown_context(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_entity("Shipping", {"name": "Parcel"})
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_invalid_payload(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_entity(
            "Identity", {"name": "User", "fields": "not-a-list"}
        )
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert "fields" in result.error.message

    def test_extension_keys_are_kept(self, seeded: Workspace) -> None:
        UpdateService(seeded).upsert_entity("Billing", {"name": "Invoice", "table": "invoices"})
        _, invoice = find_entity(seeded.model, "Invoice")
        assert invoice.model_extra == {"table": "invoices"}

    def test_remove_entity_warns_about_references(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_entity("Identity", "user")
        assert result.ok
        assert result.data["removed"] == "User"
        assert result.warnings == [
            "Repository 'UserRepository' still manages removed entity 'User'",
            "Event 'UserRegistered' is still sourced from removed entity 'User'",
        ]

    def test_remove_missing_entity(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_entity("Billing", "Ghost")
        assert result.error is not None
        assert result.error.detail == {"element": "entity", "name": "Ghost", "context": "Billing"}


class TestOtherChildren:
    def test_service_created(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_service(
            "Billing", {"name": "TaxCalculator", "kind": "domain", "dependencies": ["Money"]}
        )
        assert result.data["status"] == "created"
        _, svc = find_service(seeded.model, "TaxCalculator")
        assert svc.effective_layer == "domain"

    def test_remove_service(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_service("Identity", "TokenStore")
        assert result.ok
        assert [s.name for s in find_context(seeded.model, "Identity").services] == [
            "AuthService"
        ]

    def test_value_object(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_value_object(
            "Billing", {"name": "Money", "validation_rules": ["amount >= 0"]}
        )
        assert result.data["status"] == "updated"
        vo = find_context(seeded.model, "Billing").value_objects[0]
        assert vo.validation_rules == ["amount >= 0"]
        assert [f.name for f in vo.fields] == ["amount"]

    def test_repository_with_unknown_aggregate_warns(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_repository(
            "Billing", {"name": "LedgerRepository", "aggregate": "Ledger"}
        )
        assert result.ok
        assert result.warnings == [
            "Repository 'LedgerRepository' manages 'Ledger', which is not an entity of 'Billing'"
        ]

    def test_repository_for_known_aggregate(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_repository(
            "Billing", {"name": "InvoiceRepository", "aggregate": "invoice"}
        )
        assert result.warnings == []

    def test_event_with_unknown_source_warns(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).upsert_event(
            "Billing", {"name": "InvoicePaid", "source": "Payment"}
        )
        assert result.ok
        assert len(result.warnings) == 1
        assert "'Payment', which is not an entity of 'Billing'" in result.warnings[0]


class TestModelLevel:
    def test_rule_create_then_update(self, seeded: Workspace) -> None:
        svc = UpdateService(seeded)
        created = svc.upsert_rule(
            {"id": "DDD-001", "description": "Small aggregates", "severity": "warning"}
        )
        updated = svc.upsert_rule({"id": "ddd-001", "scope": "Billing"})
        assert created.data == {"element": "rule", "name": "DDD-001", "status": "created"}
        assert updated.data["status"] == "updated"
        rule = seeded.model.rules[-1]
        assert (rule.id, rule.severity, rule.scope) == ("DDD-001", "warning", "Billing")

    def test_remove_rule(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_rule("dep-001")
        assert result.data == {"removed": "DEP-001", "element": "rule"}
        assert [r.id for r in seeded.model.rules] == ["LAYER-001"]

    def test_remove_missing_rule(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).remove_rule("NOPE")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_conventions_merge(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).update_conventions(
            {"naming": {"events": "PascalCase"}, "testing": "pytest"}
        )
        assert result.ok
        assert result.data["naming"]["entities"] == "PascalCase"
        assert result.data["naming"]["events"] == "PascalCase"
        assert result.data["testing"] == "pytest"
        assert result.data["file_structure"]["pattern"] == "src/{context}/{layer}/{type}.py"

    def test_model_info(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).update_model_info(
            {"description": "Marketplace", "tech_stack": {"messaging": "kafka"}}
        )
        assert result.data["name"] == "Shop"
        assert result.data["description"] == "Marketplace"
        assert result.data["tech_stack"]["framework"] == "fastapi"
        assert result.data["tech_stack"]["messaging"] == "kafka"

    def test_model_rename(self, seeded: Workspace) -> None:
        result = UpdateService(seeded).update_model_info({"name": "Bazaar", "ignored": 1})
        assert result.data["name"] == "Bazaar"
        assert seeded.model.description == "Online shop"
        assert seeded.model.model_extra == {}

    def test_writes_never_touch_the_baseline(
        self, seeded: Workspace, sample_model: DomainModel
    ) -> None:
        UpdateService(seeded).upsert_context({"name": "Shipping"})
        assert seeded.baseline() == sample_model
