"""Classification enums for model elements, changes and plan actions."""

from __future__ import annotations

from enum import StrEnum


class ServiceKind(StrEnum):
    """Which architectural layer a service belongs to by nature."""

    DOMAIN = "domain"
    APPLICATION = "application"
    INFRASTRUCTURE = "infrastructure"


class Severity(StrEnum):
    """Architectural rule severity."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SEVERITY_RANK: dict[Severity, int] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class ElementKind(StrEnum):
    """Model element addressed by a Change."""

    MODEL = "model"
    CONTEXT = "context"
    ENTITY = "entity"
    VALUE_OBJECT = "value_object"
    SERVICE = "service"
    REPOSITORY = "repository"
    EVENT = "event"
    DEPENDENCY = "dependency"
    RULE = "rule"


class ChangeKind(StrEnum):
    """Structural delta kinds."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"


class ActionKind(StrEnum):
    """File-level refactoring actions."""

    CREATE_FILE = "create_file"
    MODIFY_FILE = "modify_file"
    MOVE_FILE = "move_file"
    DELETE_FILE = "delete_file"


class Priority(StrEnum):
    """Refactoring action priority, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK: dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}

DEFAULT_LAYERS: tuple[str, ...] = ("domain", "application", "infrastructure")
