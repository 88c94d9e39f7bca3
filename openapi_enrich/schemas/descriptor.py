from __future__ import annotations

import collections.abc
import enum
import re
import types
from functools import lru_cache
from typing import Annotated, Any, Union, get_args, get_origin

from annotated_types import GroupedMetadata
from pydantic import BaseModel, ConfigDict
from pydantic.fields import FieldInfo

ARRAY_MARKER = "[*]"

_COLLECTION_ORIGINS = (
    list,
    set,
    frozenset,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Iterable,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def is_model(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, enum.Enum)


def split_path(path: str) -> list[str]:
    return path.split(".")


def parent_and_leaf(path: str) -> tuple[str | None, str]:
    """`"a.b.c"` -> `("a.b", "c")`; top-level paths have no parent."""
    if "." not in path:
        return None, path
    parent, leaf = path.rsplit(".", 1)
    return parent, leaf


def strip_array_marker(segment: str) -> tuple[str, bool]:
    if segment.endswith(ARRAY_MARKER):
        return segment[: -len(ARRAY_MARKER)], True
    return segment, False


def expand_metadata(items) -> list[Any]:
    out: list[Any] = []
    for item in items:
        if isinstance(item, FieldInfo):
            out.extend(expand_metadata(item.metadata))
        elif isinstance(item, GroupedMetadata):
            out.extend(expand_metadata(list(item)))
        else:
            out.append(item)
    return out


class UnwrappedAnnotation(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    element_type: Any
    nullable: bool = False
    collection: bool = False
    dictionary: bool = False
    metadata: tuple[Any, ...] = ()
    element_metadata: tuple[Any, ...] = ()


def unwrap_annotation(annotation: Any) -> UnwrappedAnnotation:
    """
    Peel Optional, Annotated and one collection/mapping layer off an annotation.

    Annotated metadata found before the collection layer belongs to the
    property itself; metadata found inside it belongs to each element.
    """
    nullable = collection = dictionary = False
    metadata: list[Any] = []
    element_metadata: list[Any] = []
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            args = get_args(annotation)
            annotation = args[0]
            if collection or dictionary:
                element_metadata.extend(expand_metadata(args[1:]))
            else:
                metadata.extend(expand_metadata(args[1:]))
            continue
        if origin is Union or origin is types.UnionType:
            args = get_args(annotation)
            members = [a for a in args if a is not type(None)]
            if len(members) < len(args) and not (collection or dictionary):
                nullable = True
            if len(members) == 1:
                annotation = members[0]
                continue
            break
        if collection or dictionary:
            break
        if origin in _MAPPING_ORIGINS:
            args = get_args(annotation)
            dictionary = True
            annotation = args[1] if len(args) == 2 else Any
            continue
        if origin in _COLLECTION_ORIGINS:
            args = get_args(annotation)
            collection = True
            if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
                annotation = args[0] if args and len(set(args)) == 1 else Any
            else:
                annotation = args[0] if args else Any
            continue
        break
    return UnwrappedAnnotation(
        element_type=annotation,
        nullable=nullable,
        collection=collection,
        dictionary=dictionary,
        metadata=tuple(metadata),
        element_metadata=tuple(element_metadata),
    )


class PropertyDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    wire_name: str
    annotation: Any
    element_type: Any
    required: bool
    nullable: bool = False
    collection: bool = False
    dictionary: bool = False
    metadata: tuple[Any, ...] = ()
    element_metadata: tuple[Any, ...] = ()
    field: FieldInfo | None = None

    @property
    def nested(self) -> type[BaseModel] | None:
        return self.element_type if is_model(self.element_type) else None

    @property
    def enum_type(self) -> type[enum.Enum] | None:
        return self.element_type if is_enum(self.element_type) else None


class TypeDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    model: Any
    name: str
    properties: tuple[PropertyDescriptor, ...] = ()

    def find_property(self, name: str) -> PropertyDescriptor | None:
        for prop in self.properties:
            if prop.name == name or prop.wire_name == name:
                return prop
        return None

    @property
    def component_names(self) -> list[str]:
        """Names the type may carry in `components.schemas`."""
        base = component_name(self.name)
        return [base, f"{base}-Input", f"{base}-Output"]

    @property
    def related_types(self) -> list[type[BaseModel]]:
        seen: list[type[BaseModel]] = []
        for prop in self.properties:
            if prop.nested is not None and prop.nested not in seen:
                seen.append(prop.nested)
        return seen

    @property
    def enum_types(self) -> list[type[enum.Enum]]:
        return [prop.enum_type for prop in self.properties if prop.enum_type is not None]


def component_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.\-_]", "_", name)


def enum_component_name(enum_cls: type[enum.Enum]) -> str:
    return component_name(enum_cls.__name__)


def _wire_name(name: str, field: FieldInfo) -> str:
    if field.alias:
        return field.alias
    if isinstance(field.validation_alias, str):
        return field.validation_alias
    return name


@lru_cache(maxsize=None)
def describe_model(model: type) -> TypeDescriptor:
    if not is_model(model):
        raise TypeError(f"{model!r} is not a pydantic model")

    properties = []
    for name, field in model.model_fields.items():
        unwrapped = unwrap_annotation(field.annotation)
        properties.append(
            PropertyDescriptor(
                name=name,
                wire_name=_wire_name(name, field),
                annotation=field.annotation,
                element_type=unwrapped.element_type,
                required=field.is_required(),
                nullable=unwrapped.nullable,
                collection=unwrapped.collection,
                dictionary=unwrapped.dictionary,
                metadata=tuple(expand_metadata(field.metadata)) + unwrapped.metadata,
                element_metadata=unwrapped.element_metadata,
                field=field,
            )
        )
    return TypeDescriptor(model=model, name=model.__name__, properties=tuple(properties))


def wire_path(model: Any, path: str) -> str:
    """Translate a path of attribute names into the names used on the wire."""
    current = model
    segments = []
    for segment in split_path(path):
        name, is_array = strip_array_marker(segment)
        prop = describe_model(current).find_property(name) if is_model(current) else None
        segments.append((prop.wire_name if prop else name) + (ARRAY_MARKER if is_array else ""))
        current = prop.nested if prop else None
    return ".".join(segments)
