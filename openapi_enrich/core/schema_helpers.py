from __future__ import annotations

from typing import Any, Mapping, NamedTuple

from openapi_enrich.schemas.schema_node import PRIMITIVE_TYPES, InlineSchema, Reference, RefKind

NULLABLE_EXTENSION = "nullable"
ENUM_VARNAMES_EXTENSION = "x-enum-varnames"
ENUM_DESCRIPTIONS_EXTENSION = "x-enum-descriptions"

_STRUCTURAL_FIELDS = (
    "format",
    "min_length",
    "max_length",
    "min_items",
    "max_items",
    "pattern",
    "minimum",
    "maximum",
    "exclusive_minimum",
    "exclusive_maximum",
    "items",
    "properties",
    "additional_properties",
    "one_of",
    "all_of",
    "any_of",
    "not_",
    "enum",
)


class Unwrapped(NamedTuple):
    node: Any
    nullable: bool
    wrapper: InlineSchema | None  # the outer oneOf/anyOf node, when there was one


def nullable_marker() -> InlineSchema:
    return InlineSchema(type="null")


def is_nullable_marker(node: Any) -> bool:
    if not isinstance(node, InlineSchema):
        return False
    if any(getattr(node, name) is not None for name in _STRUCTURAL_FIELDS):
        return False
    if node.type == "null":
        return True
    return node.type is None and node.extensions.get(NULLABLE_EXTENSION) is True


def unwrap_nullable(node: Any) -> Unwrapped:
    if not isinstance(node, InlineSchema):
        return Unwrapped(node, False, None)

    for branches in (node.one_of, node.any_of):
        if not branches or len(branches) != 2:
            continue
        first, second = branches
        if is_nullable_marker(first) and not is_nullable_marker(second):
            return Unwrapped(second, True, node)
        if is_nullable_marker(second) and not is_nullable_marker(first):
            return Unwrapped(first, True, node)

    if isinstance(node.type, list) and "null" in node.type and node.primary_type:
        return Unwrapped(node.model_copy(deep=True, update={"type": node.primary_type}), True, None)

    return Unwrapped(node, False, None)


def wrap_nullable(node: Any, extras: Mapping[str, Any] | None = None) -> InlineSchema:
    if isinstance(node, InlineSchema):
        node.extensions.pop(NULLABLE_EXTENSION, None)
    return InlineSchema(one_of=[nullable_marker(), node], **dict(extras or {}))


def copy_extras(node: Any, *, exclude: tuple[str, ...] = ()) -> dict[str, Any]:
    """Extra keywords of a node (title, default, x-*) minus nullability and `exclude`."""
    extras = (node.model_extra or {}) if node is not None else {}
    skipped = (NULLABLE_EXTENSION, "description") + exclude
    return {key: value for key, value in extras.items() if key not in skipped}


def resolve_schema(node: Any, schemas: Mapping[str, Any]) -> InlineSchema | None:
    """Follow schema refs to an inline node; None for dangling or circular refs."""
    seen: set[str] = set()
    while isinstance(node, Reference):
        name = node.schema_name
        if name is None or name in seen:
            return None
        seen.add(name)
        node = schemas.get(name)
    return node


def classify_reference(ref: Reference, schemas: Mapping[str, Any]) -> RefKind:
    if ref.kind_hint is not None:
        return ref.kind_hint

    target = resolve_schema(ref, schemas)
    if target is None:
        return "object"
    if unwrap_nullable(target).nullable:
        return "nullable"
    if target.enum:
        return "enum"

    kind = target.primary_type
    if kind in PRIMITIVE_TYPES:
        return "primitive"
    if kind == "array":
        return "collection"
    if target.additional_properties not in (None, False) and not target.properties:
        return "dictionary"
    return "object"


def child_nodes(node: Any) -> list[Any]:
    """Nodes one structural edge away from an inline node."""
    if not isinstance(node, InlineSchema):
        return []
    children: list[Any] = []
    if node.properties:
        children.extend(node.properties.values())
    if node.items is not None:
        children.append(node.items)
    if node.additional_properties is not None and not isinstance(node.additional_properties, bool):
        children.append(node.additional_properties)
    for branches in (node.one_of, node.all_of, node.any_of):
        if branches:
            children.extend(branches)
    if node.not_ is not None:
        children.append(node.not_)
    return children


def find_property(schema: InlineSchema, name: str) -> str | None:
    """Key of `name` among the schema's properties, falling back to a case-insensitive match."""
    if not schema.properties:
        return None
    if name in schema.properties:
        return name
    lowered = name.lower()
    for key in schema.properties:
        if key.lower() == lowered:
            return key
    return None
