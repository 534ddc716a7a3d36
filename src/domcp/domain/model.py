"""Domain model schema: the architecture description of one workspace.

Known attributes are typed. Every record also keeps unrecognized keys in
``model_extra`` (``extra="allow"``), so models written by newer clients
survive a load/save round trip untouched.

Cross-element references (context dependencies, repository aggregates,
event sources, service dependencies) are plain names resolved by lookup,
never object handles.

Instances are frozen. Mutation goes through the reducers in
:mod:`domcp.domain.merge`, which always build a new model.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domcp.domain.types import ServiceKind, Severity

Name = Annotated[str, Field(min_length=1)]

_RECORD = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


def same_name(a: str, b: str) -> bool:
    """Case-insensitive identity used for every named element."""
    return a.casefold() == b.casefold()


class FieldDef(BaseModel):
    """A typed attribute of an entity, value object, event or method parameter."""

    model_config = _RECORD

    name: Name
    type: str = ""
    required: bool = False
    description: str = ""


class Method(BaseModel):
    model_config = _RECORD

    name: Name
    description: str = ""
    parameters: list[FieldDef] = Field(default_factory=list)
    return_type: str = ""
    signature: str = ""

    def render(self) -> str:
        """Return the declared signature, or one built from the parameters."""
        if self.signature:
            return self.signature
        params = ", ".join(f"{p.name}: {p.type}" if p.type else p.name for p in self.parameters)
        tail = f" -> {self.return_type}" if self.return_type else ""
        return f"{self.name}({params}){tail}"


class Entity(BaseModel):
    """An identity-bearing domain object owned by exactly one bounded context."""

    model_config = _RECORD

    name: Name
    description: str = ""
    aggregate_root: bool = False
    fields: list[FieldDef] = Field(default_factory=list)
    methods: list[Method] = Field(default_factory=list)
    invariants: list[str] = Field(default_factory=list)


class ValueObject(BaseModel):
    model_config = _RECORD

    name: Name
    description: str = ""
    fields: list[FieldDef] = Field(default_factory=list)
    validation_rules: list[str] = Field(default_factory=list)


class Service(BaseModel):
    model_config = _RECORD

    name: Name
    description: str = ""
    kind: ServiceKind = ServiceKind.DOMAIN
    methods: list[Method] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    layer: str = ""

    @property
    def effective_layer(self) -> str:
        """The owning layer: explicit ``layer`` if set, otherwise the kind's layer."""
        return self.layer or self.kind.value


class Repository(BaseModel):
    model_config = _RECORD

    name: Name
    aggregate: str = ""
    methods: list[Method] = Field(default_factory=list)
    layer: str = ""

    @property
    def effective_layer(self) -> str:
        return self.layer or ServiceKind.INFRASTRUCTURE.value


class DomainEvent(BaseModel):
    model_config = _RECORD

    name: Name
    description: str = ""
    fields: list[FieldDef] = Field(default_factory=list)
    source: str = ""


class ArchitecturalRule(BaseModel):
    """A declared constraint; ``scope`` is a context name, a layer, or ``global``."""

    model_config = _RECORD

    id: Name
    description: str = ""
    severity: Severity = Severity.ERROR
    scope: str = ""


class TechStack(BaseModel):
    model_config = _RECORD

    language: str = ""
    framework: str = ""
    database: str = ""
    messaging: str = ""
    additional: list[str] = Field(default_factory=list)


class NamingConventions(BaseModel):
    """Free-text naming convention per artifact category, e.g. ``PascalCase``."""

    model_config = _RECORD

    entities: str = ""
    value_objects: str = ""
    services: str = ""
    repositories: str = ""
    events: str = ""


class FileStructure(BaseModel):
    model_config = _RECORD

    pattern: str = ""
    layers: list[str] = Field(default_factory=list)


class Conventions(BaseModel):
    model_config = _RECORD

    naming: NamingConventions = Field(default_factory=NamingConventions)
    file_structure: FileStructure = Field(default_factory=FileStructure)
    error_handling: str = ""
    testing: str = ""


_CONTEXT_MEMBERS: tuple[tuple[str, str], ...] = (
    ("entities", "entity"),
    ("value_objects", "value object"),
    ("services", "service"),
    ("repositories", "repository"),
    ("events", "event"),
)


class BoundedContext(BaseModel):
    model_config = _RECORD

    name: Name
    description: str = ""
    module_path: str = ""
    entities: list[Entity] = Field(default_factory=list)
    value_objects: list[ValueObject] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)
    repositories: list[Repository] = Field(default_factory=list)
    events: list[DomainEvent] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_structure(self) -> BoundedContext:
        if any(same_name(dep, self.name) for dep in self.dependencies):
            msg = f"Bounded context '{self.name}' cannot depend on itself"
            raise ValueError(msg)
        for attr, label in _CONTEXT_MEMBERS:
            members = getattr(self, attr)
            _ensure_unique((m.name for m in members), f"{label} in context '{self.name}'")
        return self

    def repositories_for(self, entity: str) -> list[str]:
        """Names of repositories in this context that manage *entity*."""
        return [r.name for r in self.repositories if same_name(r.aggregate, entity)]


class DomainModel(BaseModel):
    """Root aggregate for one workspace's architecture description."""

    model_config = _RECORD

    name: Name
    description: str = ""
    bounded_contexts: list[BoundedContext] = Field(default_factory=list)
    rules: list[ArchitecturalRule] = Field(default_factory=list)
    tech_stack: TechStack = Field(default_factory=TechStack)
    conventions: Conventions = Field(default_factory=Conventions)

    @model_validator(mode="after")
    def _check_unique(self) -> DomainModel:
        _ensure_unique((c.name for c in self.bounded_contexts), "bounded context")
        _ensure_unique((r.id for r in self.rules), "rule id")
        return self

    @classmethod
    def empty(cls, workspace_id: str) -> DomainModel:
        """Fresh model named after the workspace directory."""
        name = PurePath(workspace_id.rstrip("/\\")).name if workspace_id else ""
        return cls(name=name or "Unnamed")

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, raw: str | bytes) -> DomainModel:
        return cls.model_validate_json(raw)

    def with_contexts(self, contexts: list[BoundedContext]) -> DomainModel:
        return self.model_copy(update={"bounded_contexts": contexts})


def _ensure_unique(names: Any, what: str) -> None:
    seen: set[str] = set()
    for name in names:
        key = name.casefold()
        if key in seen:
            msg = f"Duplicate {what} name '{name}'"
            raise ValueError(msg)
        seen.add(key)
