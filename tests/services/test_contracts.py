"""Tests for payload contracts at the service boundary."""

import pytest
from pydantic import ValidationError

from domcp.services.contracts import (
    PlanData,
    ProjectListData,
    ViolationsData,
    dump_validated,
)


class TestDumpValidated:
    def test_normalizes_payload(self) -> None:
        data = dump_validated(
            ProjectListData,
            {
                "count": 1,
                "items": [
                    {
                        "workspace_id": "/w",
                        "project_name": "Shop",
                        "created_at": "t0",
                        "updated_at": "t1",
                    }
                ],
            },
        )
        assert data["items"][0]["project_name"] == "Shop"

    def test_plan_requires_actions(self) -> None:
        with pytest.raises(ValidationError):
            dump_validated(
                PlanData,
                {"workspace": "/w", "change_count": 0, "items": [], "migration_notes": []},
            )

    def test_violations_shape(self) -> None:
        data = dump_validated(
            ViolationsData,
            {
                "count": 0,
                "error_count": 0,
                "warning_count": 0,
                "info_count": 0,
                "healthy": True,
                "violations": [],
            },
        )
        assert data["healthy"] is True

    def test_change_items_keep_extra_keys(self) -> None:
        data = dump_validated(
            PlanData,
            {
                "workspace": "/w",
                "change_count": 1,
                "actions": [],
                "migration_notes": [],
                "changes": [
                    {
                        "label": "EntityAdded",
                        "kind": "added",
                        "element": "entity",
                        "name": "User",
                        "managed_by": ["UserRepository"],
                    }
                ],
            },
        )
        assert data["changes"][0]["managed_by"] == ["UserRepository"]
