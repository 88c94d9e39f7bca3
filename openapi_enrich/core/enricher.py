from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Iterable, Mapping

from openapi_enrich.core.aggregator import RuleAggregator, TypeRules
from openapi_enrich.core.config import Settings, settings as default_settings
from openapi_enrich.core.errors import BuildCancelled
from openapi_enrich.core.pruner import prune
from openapi_enrich.core.schema_helpers import find_property, resolve_schema, unwrap_nullable
from openapi_enrich.core.synthesizer import annotate_enum_component, synthesize
from openapi_enrich.schemas.descriptor import (
    ARRAY_MARKER,
    describe_model,
    enum_component_name,
    is_enum,
    parent_and_leaf,
    split_path,
    strip_array_marker,
)
from openapi_enrich.schemas.document import Document, Parameter
from openapi_enrich.schemas.rule import EnumConstraintRule, RequiredRule
from openapi_enrich.schemas.schema_node import InlineSchema, Reference

logger = logging.getLogger(__name__)

# (path template, lower-case method) -> model whose fields are the operation's parameters
ParameterBindings = Mapping[tuple[str, str], Any]


def _check(cancel: threading.Event | None, phase: str) -> None:
    if cancel is not None and cancel.is_set():
        raise BuildCancelled(f"Document build cancelled before {phase}")


class DocumentEnricher:
    """Discovery, synthesis and pruning for one document at a time."""

    def __init__(self, aggregator: RuleAggregator, settings: Settings | None = None):
        self.aggregator = aggregator
        self.settings = settings or default_settings

    def enrich(
        self,
        document: Document,
        request_types: Iterable[Any] = (),
        parameter_bindings: ParameterBindings | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> Document:
        bindings = dict(parameter_bindings or {})

        _check(cancel, "discovery")
        discovered = self.aggregator.closure(list(request_types) + list(bindings.values()))

        _check(cancel, "synthesis")
        enum_types = self._enum_types(discovered)
        plan = self._plan(discovered)
        touched = self.apply_to_enum_components(document, enum_types.values())
        for type_rules in discovered:
            rules = plan.get(type_rules.model)
            if rules:
                touched += self.apply_to_components(document, type_rules, rules=rules, enum_types=enum_types)
        for (path, method), model in bindings.items():
            touched += self.apply_to_parameters(document, path, method, self.aggregator.aggregate(model), enum_types=enum_types)

        _check(cancel, "pruning")
        removed = prune(document) if self.settings.PRUNE_UNUSED_COMPONENTS else []

        logger.info(
            "Enriched document: %d types, %d schema nodes rewritten, %d components pruned",
            len(discovered),
            touched,
            len(removed),
        )
        return document

    def _plan(self, discovered: list[TypeRules]) -> dict[Any, dict[str, list]]:
        """
        Final rules per model and property path.

        Rules declared through a nested path (`address.postcode`) are moved
        to the nested model so every type's component is rewritten once,
        after its own rules.
        """
        known = {type_rules.model for type_rules in discovered}
        own: dict[Any, dict[str, list]] = {model: {} for model in known}
        moved: list[tuple[Any, str, tuple]] = []
        for type_rules in discovered:
            for path, rules in type_rules.rules.items():
                owner, relative = _owner(type_rules, path)
                if owner is type_rules.model or owner not in known:
                    own[type_rules.model].setdefault(path, []).extend(rules)
                else:
                    moved.append((owner, relative, rules))
        for owner, relative, rules in moved:
            own[owner].setdefault(relative, []).extend(rules)
        return own

    def _enum_types(self, discovered: list[TypeRules]) -> dict[str, type[enum.Enum]]:
        found: dict[str, type[enum.Enum]] = {}
        for type_rules in discovered:
            if type_rules.descriptor is not None:
                for enum_cls in type_rules.descriptor.enum_types:
                    found.setdefault(enum_cls.__name__, enum_cls)
            for rules in type_rules.rules.values():
                for rule in rules:
                    if isinstance(rule, EnumConstraintRule) and is_enum(rule.enum_type):
                        found.setdefault(rule.enum_type.__name__, rule.enum_type)
        return found

    def apply_to_enum_components(self, document: Document, enum_types: Iterable[type[enum.Enum]]) -> int:
        """Annotate the components generated for enums with member names and descriptions."""
        if document.components is None or not document.components.schemas:
            return 0
        schemas = document.components.schemas
        touched = 0
        for enum_cls in enum_types:
            component = resolve_schema(schemas.get(enum_component_name(enum_cls)), schemas)
            if component is not None and annotate_enum_component(component, enum_cls):
                logger.debug("Annotated enum component %s", enum_cls.__name__)
                touched += 1
        return touched

    def _synthesize(self, original, rules, type_rules: TypeRules, path: str, schemas, enum_types):
        return synthesize(
            original,
            rules,
            type_rules.append_default,
            type_rules.append_overrides.get(path),
            components=schemas,
            append_rules=self.settings.APPEND_RULES_TO_DESCRIPTION,
            enum_types=enum_types,
        )

    def apply_to_components(
        self,
        document: Document,
        type_rules: TypeRules,
        *,
        rules: Mapping[str, Any] | None = None,
        enum_types: Mapping[str, type[enum.Enum]] | None = None,
    ) -> int:
        """Rewrite the property nodes of every component generated for the type."""
        rules = type_rules.rules if rules is None else rules
        if document.components is None or not document.components.schemas:
            return 0
        schemas = document.components.schemas
        touched = 0
        for name in type_rules.component_names:
            component = resolve_schema(schemas.get(name), schemas)
            if component is None:
                continue
            for path, path_rules in rules.items():
                touched += self._apply_path(component, path, list(path_rules), type_rules, schemas, enum_types)
        return touched

    def _apply_path(self, component: InlineSchema, path: str, rules, type_rules, schemas, enum_types) -> int:
        parent_path, leaf = parent_and_leaf(path)
        holder = self._walk(component, parent_path, schemas) if parent_path else component
        if holder is None:
            logger.debug("No schema found for parent of '%s' in %s", path, type_rules.descriptor.name)
            return 0

        name, is_array = strip_array_marker(leaf)
        key = find_property(holder, name)
        if key is None:
            logger.debug("Property '%s' not present in the schema of %s", name, type_rules.descriptor.name)
            return 0

        if is_array:
            array = holder.properties[key]
            if not (isinstance(array, InlineSchema) and array.items is not None):
                array = _as_object(array, schemas, want_array=True)
            if array is None:
                return 0
            array.items = self._synthesize(array.items, rules, type_rules, path, schemas, enum_types)
            return 1

        if any(isinstance(rule, RequiredRule) for rule in rules):
            holder.required = holder.required or []
            if key not in holder.required:
                holder.required.append(key)
        holder.properties[key] = self._synthesize(holder.properties[key], rules, type_rules, path, schemas, enum_types)
        logger.debug("Synthesized %s.%s from %d rules", type_rules.descriptor.name, path, len(rules))
        return 1

    def _walk(self, schema: InlineSchema, path: str, schemas) -> InlineSchema | None:
        """Find the object schema a nested path points into."""
        current: Any = schema
        for segment in split_path(path):
            name, is_array = strip_array_marker(segment)
            current = _as_object(current, schemas)
            if current is None:
                return None
            key = find_property(current, name)
            if key is None:
                return None
            current = current.properties[key]
            if is_array:
                container = _as_object(current, schemas, want_array=True)
                if container is None or container.items is None:
                    return None
                current = container.items
        return _as_object(current, schemas)

    def apply_to_parameters(
        self,
        document: Document,
        path: str,
        method: str,
        type_rules: TypeRules,
        *,
        enum_types: Mapping[str, type[enum.Enum]] | None = None,
    ) -> int:
        """Enrich query/path/header parameters of one operation from the model's top-level rules."""
        item = document.paths.get(path)
        operation = getattr(item, method, None) if item is not None else None
        if operation is None or not operation.parameters or not type_rules.rules:
            return 0

        schemas = document.components.schemas if document.components and document.components.schemas else {}
        by_name = {key.lower(): (key, rules) for key, rules in type_rules.rules.items() if "." not in key and ARRAY_MARKER not in key}
        touched = 0
        for parameter in operation.parameters:
            if not isinstance(parameter, Parameter) or parameter.schema_ is None:
                continue
            match = by_name.get(parameter.name.lower())
            if match is None:
                continue
            key, rules = match
            if any(isinstance(rule, RequiredRule) for rule in rules):
                parameter.required = True
            parameter.schema_ = self._synthesize(parameter.schema_, list(rules), type_rules, key, schemas, enum_types)
            touched += 1
        return touched


def _owner(type_rules: TypeRules, path: str) -> tuple[Any, str]:
    """The model owning the leaf of `path`, and the path relative to that model."""
    if type_rules.descriptor is None:
        return type_rules.model, path
    segments = split_path(path)
    model = type_rules.model
    consumed = 0
    for segment in segments[:-1]:
        name, _ = strip_array_marker(segment)
        prop = describe_model(model).find_property(name)
        if prop is None or prop.nested is None:
            break
        model = prop.nested
        consumed += 1
    if consumed < len(segments) - 1:
        return type_rules.model, path
    return model, ".".join(segments[consumed:])


def _as_object(node: Any, schemas, *, want_array: bool = False) -> InlineSchema | None:
    """Look through nullable wrappers, refs and single-ref allOf to the schema that holds structure."""
    visited: set[int] = set()
    while id(node) not in visited:
        visited.add(id(node))
        node = unwrap_nullable(node).node
        if isinstance(node, Reference):
            node = resolve_schema(node, schemas)
        elif isinstance(node, InlineSchema) and node.all_of and len(node.all_of) == 1 and not node.properties:
            node = node.all_of[0]
        else:
            break
    if not isinstance(node, InlineSchema):
        return None
    if want_array:
        return node if node.items is not None else None
    return node if node.properties is not None else None
