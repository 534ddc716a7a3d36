"""Tests for CheckService: dependency checks and violation listing."""

from __future__ import annotations

from domcp.config.models import CheckConfig
from domcp.infrastructure.workspace import Workspace
from domcp.services.check import CheckService
from domcp.services.update import UpdateService


def _wire_layer_violation(ws: Workspace) -> None:
    result = UpdateService(ws).upsert_service(
        "Identity", {"name": "AuthService", "dependencies": ["TokenStore"]}
    )
    assert result.ok


class TestValidateDependency:
    def test_allowed(self, seeded: Workspace) -> None:
        result = CheckService(seeded).validate_dependency("Billing", "Identity")
        assert result.ok
        assert result.data["allowed"] is True
        assert "warnings" not in result.data

    def test_denied_is_still_ok(self, seeded: Workspace) -> None:
        result = CheckService(seeded).validate_dependency("Identity", "Billing")
        assert result.ok
        assert result.data["allowed"] is False
        assert result.data["rule_id"] == "LAYER-001"

    def test_strict_denial_fails(self, seeded: Workspace) -> None:
        result = CheckService(seeded).validate_dependency("Identity", "Billing", strict=True)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.detail == {
            "rule_id": "LAYER-001",
            "from_context": "Identity",
            "to_context": "Billing",
        }

    def test_strict_from_config(self, seeded: Workspace) -> None:
        service = CheckService(seeded, config=CheckConfig(strict=True))
        assert not service.validate_dependency("Identity", "Billing").ok

    def test_unknown_target_warning_is_surfaced(self, seeded: Workspace) -> None:
        result = CheckService(seeded).validate_dependency("Billing", "Shipping")
        assert result.warnings == ["Target context 'Shipping' is not defined in the model"]

    def test_unknown_source(self, seeded: Workspace) -> None:
        result = CheckService(seeded).validate_dependency("Shipping", "Billing")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestCheck:
    def test_clean_model_is_healthy(self, seeded: Workspace) -> None:
        result = CheckService(seeded).check()
        assert result.ok
        assert result.data["healthy"] is True
        assert result.data["count"] == 1
        assert result.data["info_count"] == 1
        assert result.data["violations"][0]["rule_id"] == "DEP-001"

    def test_min_severity_filters(self, seeded: Workspace) -> None:
        result = CheckService(seeded).check(min_severity="warning")
        assert result.data["count"] == 0
        assert result.data["violations"] == []

    def test_layer_violation_counts(self, seeded: Workspace) -> None:
        _wire_layer_violation(seeded)
        result = CheckService(seeded).check()
        assert result.ok
        assert result.data["healthy"] is False
        assert result.data["error_count"] == 1
        assert result.data["violations"][0]["category"] == "layering"

    def test_strict_fails_on_errors(self, seeded: Workspace) -> None:
        _wire_layer_violation(seeded)
        result = CheckService(seeded).check(strict=True)
        assert not result.ok
        assert result.error is not None
        assert result.error.message.startswith("1 error-level violation(s); first: Domain service")
        assert result.error.detail["rule_id"] == "LAYER-001"
        assert len(result.error.detail["violations"]) == 2

    def test_strict_passes_without_errors(self, seeded: Workspace) -> None:
        assert CheckService(seeded).check(strict=True).ok

    def test_ignore_list_from_config(self, seeded: Workspace) -> None:
        _wire_layer_violation(seeded)
        config = CheckConfig(ignore=["layer-001"], strict=True)
        result = CheckService(seeded, config=config).check()
        assert result.ok
        assert [v["rule_id"] for v in result.data["violations"]] == ["DEP-001"]

    def test_config_min_severity_is_the_default(self, seeded: Workspace) -> None:
        config = CheckConfig(min_severity="error")
        assert CheckService(seeded, config=config).check().data["count"] == 0
        assert CheckService(seeded, config=config).check(min_severity="info").data["count"] == 1
