"""Rule engine: dependency checks and rule violation listing.

Rules are free text. The engine classifies them by id prefix and wording
and checks only the facts it can verify mechanically from the model:

- LAYER-class rules: domain-layer services must not depend on
  infrastructure services or repositories.
- DDD-class rules: echoed as declared obligations unless recorded facts
  contradict them (repositories bypassing aggregate roots).
- Everything else is echoed as an informational obligation.

Dangling references and context dependency cycles are always reported as
warnings. The engine never rejects anything; callers decide what to do
with a denial or an error-level violation.
"""

from __future__ import annotations

from collections.abc import Iterator

import networkx as nx
from pydantic import BaseModel, Field

from domcp.domain.model import ArchitecturalRule, BoundedContext, DomainModel, same_name
from domcp.domain.registry import find_context, has_context
from domcp.domain.types import DEFAULT_LAYERS, SEVERITY_RANK, Severity

type _Graph = nx.DiGraph

GLOBAL_SCOPES = frozenset({"", "global", "*", "all"})

_DEPENDENCY_WORDS = ("depend", "layer", "import", "coupl", "reference")
_LAYER_WORDS = ("layer",)
_DDD_WORDS = ("aggregate", "mutat", "invariant")

CAT_LAYERING = "layering"
CAT_DDD = "ddd"
CAT_DECLARED = "declared"
CAT_REFERENCE = "reference"
CAT_DEPENDENCY = "dependency"


class DependencyVerdict(BaseModel):
    """Outcome of a point dependency check."""

    model_config = {"frozen": True}

    allowed: bool
    from_context: str
    to_context: str
    reason: str
    rule_id: str | None = None
    warnings: list[str] = Field(default_factory=list)


class Violation(BaseModel):
    model_config = {"frozen": True}

    rule_id: str
    severity: Severity
    scope: str
    message: str
    category: str = CAT_DECLARED

    def sort_key(self) -> tuple[int, str, str, str]:
        return (SEVERITY_RANK[self.severity], self.rule_id, self.scope, self.message)


# ── Rule classification ────────────────────────────────────────────────


def _mentions(rule: ArchitecturalRule, words: tuple[str, ...]) -> bool:
    text = rule.description.casefold()
    return any(w in text for w in words)


def is_layer_rule(rule: ArchitecturalRule) -> bool:
    return rule.id.upper().startswith("LAYER") or _mentions(rule, _LAYER_WORDS)


def is_ddd_rule(rule: ArchitecturalRule) -> bool:
    return rule.id.upper().startswith("DDD") or _mentions(rule, _DDD_WORDS)


def _layer_names(model: DomainModel) -> list[str]:
    return list(model.conventions.file_structure.layers) or list(DEFAULT_LAYERS)


def rule_covers(model: DomainModel, rule: ArchitecturalRule, context: str) -> bool:
    """Whether *rule*'s scope applies to *context*.

    Global scopes and layer-name scopes cover every context; a context
    name covers only that context.
    """
    scope = rule.scope.strip()
    if scope.casefold() in GLOBAL_SCOPES:
        return True
    if any(same_name(scope, layer) for layer in _layer_names(model)):
        return True
    return same_name(scope, context)


def _covered_contexts(model: DomainModel, rule: ArchitecturalRule) -> Iterator[BoundedContext]:
    return (bc for bc in model.bounded_contexts if rule_covers(model, rule, bc.name))


def nearest_dependency_rule(model: DomainModel, context: str) -> ArchitecturalRule | None:
    """Closest rule about dependencies or layering covering *context*.

    A rule scoped exactly to the context beats any broader rule; ties
    keep declaration order.
    """
    candidates = [
        r
        for r in model.rules
        if _mentions(r, _DEPENDENCY_WORDS) and rule_covers(model, r, context)
    ]
    for rule in candidates:
        if same_name(rule.scope.strip(), context):
            return rule
    return candidates[0] if candidates else None


# ── Point query ────────────────────────────────────────────────────────


def validate_dependency(
    model: DomainModel, from_context: str, to_context: str
) -> DependencyVerdict:
    """Check whether *from_context* may depend on *to_context*.

    Raises:
        NotFoundError: *from_context* is not defined.
    """
    source = find_context(model, from_context)
    warnings: list[str] = []
    if not has_context(model, to_context):
        warnings.append(f"Target context '{to_context}' is not defined in the model")

    if same_name(source.name, to_context):
        return DependencyVerdict(
            allowed=True,
            from_context=source.name,
            to_context=to_context,
            reason=f"'{source.name}' may always depend on itself",
            warnings=warnings,
        )

    if any(same_name(dep, to_context) for dep in source.dependencies):
        return DependencyVerdict(
            allowed=True,
            from_context=source.name,
            to_context=to_context,
            reason=f"'{to_context}' is an allowed dependency of '{source.name}'",
            warnings=warnings,
        )

    allowed = ", ".join(source.dependencies) if source.dependencies else "none"
    reason = (
        f"'{source.name}' is NOT allowed to depend on '{to_context}'. "
        f"Allowed dependencies: {allowed}"
    )
    rule = nearest_dependency_rule(model, source.name)
    if rule is not None:
        reason += f". Rule {rule.id}: {rule.description}"
    return DependencyVerdict(
        allowed=False,
        from_context=source.name,
        to_context=to_context,
        reason=reason,
        rule_id=rule.id if rule else None,
        warnings=warnings,
    )


# ── Bulk query ─────────────────────────────────────────────────────────


def _split_qualified(ref: str) -> tuple[str | None, str]:
    for sep in ("::", "."):
        if sep in ref:
            ctx, _, name = ref.rpartition(sep)
            return ctx, name
    return None, ref


def _infrastructure_targets(model: DomainModel, ref: str) -> list[tuple[str, str, str]]:
    """Resolve *ref* to infrastructure-layer services or repositories.

    Returns ``(context, kind, name)`` triples.
    """
    ctx_name, name = _split_qualified(ref.strip())
    hits: list[tuple[str, str, str]] = []
    for bc in model.bounded_contexts:
        if ctx_name is not None and not same_name(bc.name, ctx_name):
            continue
        for svc in bc.services:
            if same_name(svc.name, name) and svc.effective_layer == "infrastructure":
                hits.append((bc.name, "service", svc.name))
        for repo in bc.repositories:
            if same_name(repo.name, name) and repo.effective_layer == "infrastructure":
                hits.append((bc.name, "repository", repo.name))
    return hits


def _layer_violations(model: DomainModel, rule: ArchitecturalRule) -> list[Violation]:
    found: list[Violation] = []
    for bc in _covered_contexts(model, rule):
        for svc in bc.services:
            if svc.effective_layer != "domain":
                continue
            for dep in svc.dependencies:
                for ctx, kind, name in _infrastructure_targets(model, dep):
                    found.append(
                        Violation(
                            rule_id=rule.id,
                            severity=Severity.ERROR,
                            scope=bc.name,
                            message=(
                                f"Domain service '{bc.name}.{svc.name}' depends on "
                                f"infrastructure {kind} '{ctx}.{name}'"
                            ),
                            category=CAT_LAYERING,
                        )
                    )
    return found


def _ddd_contradictions(model: DomainModel, rule: ArchitecturalRule) -> list[Violation]:
    found: list[Violation] = []

    def warn(scope: str, message: str) -> None:
        found.append(
            Violation(
                rule_id=rule.id,
                severity=Severity.WARNING,
                scope=scope,
                message=message,
                category=CAT_DDD,
            )
        )

    for bc in _covered_contexts(model, rule):
        for repo in bc.repositories:
            entity = next((e for e in bc.entities if same_name(e.name, repo.aggregate)), None)
            if entity is None:
                continue
            if not entity.aggregate_root:
                warn(
                    bc.name,
                    f"Repository '{repo.name}' manages '{entity.name}', which is not an "
                    "aggregate root; access should go through its aggregate root",
                )
            elif not entity.methods:
                warn(
                    bc.name,
                    f"Aggregate root '{entity.name}' declares no methods but is referenced "
                    f"directly by repository '{repo.name}'; mutations bypass the root",
                )
    return found


def _echo(rule: ArchitecturalRule) -> Violation:
    return Violation(
        rule_id=rule.id,
        severity=Severity.INFO,
        scope=rule.scope or "global",
        message=f"Declared obligation: {rule.description}",
        category=CAT_DECLARED,
    )


def _reference_violations(model: DomainModel) -> list[Violation]:
    found: list[Violation] = []
    entity_names = {e.name.casefold() for bc in model.bounded_contexts for e in bc.entities}
    for bc in model.bounded_contexts:
        for dep in bc.dependencies:
            if not has_context(model, dep):
                found.append(
                    Violation(
                        rule_id="REF-CONTEXT-DEPENDENCY",
                        severity=Severity.WARNING,
                        scope=bc.name,
                        message=f"Context '{bc.name}' depends on undefined context '{dep}'",
                        category=CAT_REFERENCE,
                    )
                )
        for repo in bc.repositories:
            if repo.aggregate and repo.aggregate.casefold() not in entity_names:
                found.append(
                    Violation(
                        rule_id="REF-REPOSITORY-AGGREGATE",
                        severity=Severity.WARNING,
                        scope=bc.name,
                        message=(
                            f"Repository '{repo.name}' manages undefined entity "
                            f"'{repo.aggregate}'"
                        ),
                        category=CAT_REFERENCE,
                    )
                )
        for event in bc.events:
            if event.source and event.source.casefold() not in entity_names:
                found.append(
                    Violation(
                        rule_id="REF-EVENT-SOURCE",
                        severity=Severity.WARNING,
                        scope=bc.name,
                        message=(
                            f"Event '{event.name}' has undefined source entity "
                            f"'{event.source}'"
                        ),
                        category=CAT_REFERENCE,
                    )
                )
    return found


def dependency_graph(model: DomainModel) -> _Graph:
    """Directed graph of declared context dependencies between defined contexts."""
    g: _Graph = nx.DiGraph()
    canonical = {bc.name.casefold(): bc.name for bc in model.bounded_contexts}
    for bc in model.bounded_contexts:
        g.add_node(bc.name)
    for bc in model.bounded_contexts:
        for dep in bc.dependencies:
            target = canonical.get(dep.casefold())
            if target is not None:
                g.add_edge(bc.name, target)
    return g


def _cycle_violations(model: DomainModel) -> list[Violation]:
    found: list[Violation] = []
    for cycle in nx.simple_cycles(dependency_graph(model)):
        start = min(range(len(cycle)), key=lambda i: cycle[i].casefold())
        ordered = cycle[start:] + cycle[:start]
        path = " -> ".join([*ordered, ordered[0]])
        found.append(
            Violation(
                rule_id="DEP-CYCLE",
                severity=Severity.WARNING,
                scope=ordered[0],
                message=f"Dependency cycle: {path}",
                category=CAT_DEPENDENCY,
            )
        )
    return found


def list_violations(model: DomainModel) -> list[Violation]:
    """Evaluate every rule plus built-in reference checks.

    Output order is deterministic: severity (error first), rule id, scope,
    message.
    """
    found: list[Violation] = []
    for rule in model.rules:
        if is_layer_rule(rule):
            found.extend(_layer_violations(model, rule))
        elif is_ddd_rule(rule):
            contradictions = _ddd_contradictions(model, rule)
            found.extend(contradictions or [_echo(rule)])
        else:
            found.append(_echo(rule))
    found.extend(_reference_violations(model))
    found.extend(_cycle_violations(model))
    return sorted(found, key=Violation.sort_key)


def blocking(violations: list[Violation]) -> list[Violation]:
    """Violations that should fail a strict check."""
    return [v for v in violations if v.severity == Severity.ERROR]


__all__ = [
    "DependencyVerdict",
    "Violation",
    "blocking",
    "dependency_graph",
    "list_violations",
    "nearest_dependency_rule",
    "rule_covers",
    "validate_dependency",
]
