"""Convention resolver: canonical file paths for code artifacts.

The file-structure pattern holds ``{context}``, ``{layer}`` and ``{type}``
placeholders, e.g. ``src/{context}/{layer}/{type}.py``. ``{context}`` is
snake_cased, ``{layer}`` is used verbatim, and ``{type}`` follows the
naming convention declared for the artifact's category.
"""

from __future__ import annotations

from domcp.domain.errors import MissingPattern, UnknownLayer
from domcp.domain.model import Conventions, same_name
from domcp.domain.naming import apply_case, detect_case, to_snake
from domcp.domain.types import DEFAULT_LAYERS, ServiceKind

# Artifact kind -> NamingConventions attribute.
_NAMING_CATEGORY: dict[str, str] = {
    "entity": "entities",
    "value_object": "value_objects",
    "service": "services",
    "repository": "repositories",
    "event": "events",
}

_KIND_LAYER: dict[str, str] = {
    "entity": "domain",
    "value_object": "domain",
    "event": "domain",
    "service": "application",
    "repository": "infrastructure",
}

ARTIFACT_KINDS: tuple[str, ...] = tuple(_KIND_LAYER)


def declared_layers(conventions: Conventions) -> list[str]:
    """Declared layers, or the default three when none are declared."""
    return list(conventions.file_structure.layers) or list(DEFAULT_LAYERS)


def layer_for_kind(kind: str, service_kind: ServiceKind | str | None = None) -> str:
    """Infer the owning layer for an artifact kind.

    Services go to their kind's layer when one is given, otherwise to
    ``application``.
    """
    if kind == "service" and service_kind:
        return ServiceKind(service_kind).value
    return _KIND_LAYER.get(kind, "domain")


def type_case(conventions: Conventions, kind: str | None) -> str | None:
    """Case style declared for *kind*'s naming category, if any."""
    if kind is None:
        return None
    category = _NAMING_CATEGORY.get(kind)
    if category is None:
        return None
    return detect_case(getattr(conventions.naming, category))


def render_pattern(pattern: str, context: str, layer: str, type_name: str) -> str:
    return (
        pattern.replace("{context}", to_snake(context))
        .replace("{layer}", layer)
        .replace("{type}", type_name)
    )


def suggest_path(
    conventions: Conventions,
    context: str,
    layer: str,
    type_name: str,
    *,
    kind: str | None = None,
    pattern: str | None = None,
) -> str:
    """Derive the canonical file path for *type_name*.

    *pattern* overrides the configured pattern (used for fallbacks).

    Raises:
        MissingPattern: No pattern is configured and none was supplied.
        UnknownLayer: *layer* is not among the declared layers.
    """
    chosen = pattern if pattern is not None else conventions.file_structure.pattern
    if not chosen.strip():
        raise MissingPattern
    layers = declared_layers(conventions)
    match = next((name for name in layers if same_name(name, layer)), None)
    if match is None:
        raise UnknownLayer(layer, layers)
    styled = apply_case(type_name, type_case(conventions, kind))
    return render_pattern(chosen, context, match, styled)


def module_path(
    conventions: Conventions,
    context: str,
    layer: str,
    index: str,
    *,
    pattern: str | None = None,
) -> str:
    """Path of a layer's module index file (``{type}`` replaced by *index*)."""
    chosen = pattern if pattern is not None else conventions.file_structure.pattern
    if not chosen.strip():
        raise MissingPattern
    return render_pattern(chosen, context, layer, index)
