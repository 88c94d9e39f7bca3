"""
Rebuild a property's schema node from its final rule list.

The original node decides the shape of the result:

- nullable wrappers (`oneOf`/`anyOf` with a null branch) are unwrapped and
  the result is wrapped again, unless the wrapped ref already points at a
  nullable definition;
- refs to object or enum components stay refs, wrapped in a single-entry
  `allOf` so a description can sit next to them;
- inline objects and unions keep their structure, only the description
  changes;
- everything else (primitives, arrays, refs to primitive/array/map
  components) is inlined and the rules are applied to it.
"""
from __future__ import annotations

import enum
from typing import Any, Mapping, Sequence

from openapi_enrich.annotations import member_descriptions
from openapi_enrich.core.errors import ConfigurationError
from openapi_enrich.core.schema_helpers import (
    ENUM_DESCRIPTIONS_EXTENSION,
    ENUM_VARNAMES_EXTENSION,
    classify_reference,
    copy_extras,
    resolve_schema,
    unwrap_nullable,
    wrap_nullable,
)
from openapi_enrich.schemas.descriptor import is_enum, unwrap_annotation
from openapi_enrich.schemas.rule import (
    RANGE_SCHEMA_TYPES,
    DescriptionRule,
    EmailRule,
    EnumConstraintRule,
    PatternRule,
    RangeRule,
    RequiredRule,
    StringLengthRule,
    UrlRule,
    ValidationRule,
)
from openapi_enrich.schemas.schema_node import InlineSchema, Reference


RULES_HEADER = "Validation rules:"
ENUM_PREFIX = "Enum:"
REQUIRED_LINE = "Is required"
COMPLEX_REQUIRED_LINE = "Required"

_CARRIED_CONSTRAINTS = (
    "min_length",
    "max_length",
    "min_items",
    "max_items",
    "pattern",
    "minimum",
    "maximum",
    "exclusive_minimum",
    "exclusive_maximum",
)


def effective_append(
    rules: Sequence[ValidationRule],
    type_append_default: bool | None,
    property_append_override: bool | None,
    global_default: bool = True,
) -> bool:
    """Property override, then the first per-rule flag, then the type default, then the global one."""
    if property_append_override is not None:
        return property_append_override
    for rule in rules:
        if rule.append_to_description is not None:
            return rule.append_to_description
    if type_append_default is not None:
        return type_append_default
    return global_default


def synthesize(
    original: Any,
    rules: Sequence[ValidationRule],
    type_append_default: bool | None = None,
    property_append_override: bool | None = None,
    *,
    components: Mapping[str, Any] | None = None,
    append_rules: bool = True,
    enum_types: Mapping[str, type[enum.Enum]] | None = None,
) -> Any:
    """
    Return the replacement for `original` carrying `rules`.

    `components` is the document's schemas map, used to look through refs;
    `append_rules` is the global default for listing rule messages;
    `enum_types` resolves enum constraints declared by name.
    """
    schemas = components or {}
    append = effective_append(rules, type_append_default, property_append_override, append_rules)

    unwrapped = unwrap_nullable(original)
    inner = unwrapped.node
    rewrap = unwrapped.nullable
    resolved: InlineSchema | None = None

    if isinstance(inner, Reference):
        kind = classify_reference(inner, schemas)
        if kind in ("object", "enum"):
            node = _custom_type(inner, rules, append, enum_types=enum_types)
            return _finish(node, rewrap, unwrapped.wrapper)
        if kind == "nullable":
            # the component already says null is allowed
            rewrap = False
            target = resolve_schema(inner, schemas)
            resolved = resolve_schema(unwrap_nullable(target).node, schemas) if target is not None else None
        else:
            resolved = resolve_schema(inner, schemas)
    elif isinstance(inner, InlineSchema):
        single_ref = _single_all_of_ref(inner)
        if single_ref is not None:
            node = _custom_type(
                single_ref, rules, append, extras=copy_extras(inner), fallback=inner.description, enum_types=enum_types
            )
            return _finish(node, rewrap, unwrapped.wrapper)
        if _is_complex(inner):
            node = _complex_object(inner, rules, append)
            return _finish(node, rewrap, unwrapped.wrapper)

    original_inline = inner if isinstance(inner, InlineSchema) else None
    node = _inline(original_inline, resolved, rules)
    if isinstance(inner, Reference):
        node.extensions.update(copy_extras(inner))

    enum_summary = None
    for rule in rules:
        enum_summary = _apply(node, rule, enum_types) or enum_summary

    fallback = original_inline.description if original_inline is not None else None
    node.description = _describe(rules, append, enum_summary=enum_summary, fallback=fallback)
    return _finish(node, rewrap, unwrapped.wrapper)


def _finish(node: InlineSchema, rewrap: bool, wrapper: InlineSchema | None) -> InlineSchema:
    if not rewrap:
        return node
    return wrap_nullable(node, copy_extras(wrapper))


def _single_all_of_ref(inline: InlineSchema) -> Reference | None:
    if inline.properties or not inline.all_of or len(inline.all_of) != 1:
        return None
    only = inline.all_of[0]
    return only if isinstance(only, Reference) else None


def _is_complex(inline: InlineSchema) -> bool:
    if inline.all_of or inline.one_of or inline.any_of:
        return True
    return bool(inline.properties) and inline.primary_type == "object"


def _custom_type(
    ref: Reference,
    rules: Sequence[ValidationRule],
    append: bool,
    *,
    extras: Mapping[str, Any] | None = None,
    fallback: str | None = None,
    enum_types: Mapping[str, type[enum.Enum]] | None = None,
) -> InlineSchema:
    node = InlineSchema(all_of=[Reference(ref=ref.ref, kind_hint=ref.kind_hint)], **{**copy_extras(ref), **(extras or {})})
    lines = [REQUIRED_LINE] if any(isinstance(r, RequiredRule) for r in rules) else []
    # the values stay on the referenced component, only the summary is repeated here
    enum_rule = next((r for r in rules if isinstance(r, EnumConstraintRule)), None)
    summary = _enum_summary(resolve_enum(enum_rule.enum_type, enum_types)) if enum_rule is not None else None
    node.description = _describe_passthrough(rules, lines if append else [], fallback, enum_summary=summary)
    return node


def _complex_object(inline: InlineSchema, rules: Sequence[ValidationRule], append: bool) -> InlineSchema:
    node = inline.model_copy(deep=True)
    lines = [COMPLEX_REQUIRED_LINE] if any(isinstance(r, RequiredRule) for r in rules) else []
    node.description = _describe_passthrough(rules, lines if append else [], inline.description)
    return node


def _describe_passthrough(
    rules: Sequence[ValidationRule],
    lines: list[str],
    fallback: str | None,
    *,
    enum_summary: str | None = None,
) -> str | None:
    parts = []
    custom = _custom_description(rules)
    if enum_summary:
        parts.append(enum_summary)
    elif custom:
        parts.append(custom)
    elif fallback and not fallback.startswith((RULES_HEADER, ENUM_PREFIX)):
        parts.append(fallback.split("\n\n" + RULES_HEADER)[0])
    if lines:
        parts.append(_rules_block(lines))
    return "\n\n".join(parts) or None


def _implied_type(rules: Sequence[ValidationRule]) -> tuple[str | None, str | None]:
    for rule in rules:
        if isinstance(rule, (PatternRule, EmailRule, UrlRule)):
            return "string", None
        if isinstance(rule, RangeRule):
            return RANGE_SCHEMA_TYPES[rule.value_type]
        if isinstance(rule, EnumConstraintRule) and is_enum(rule.enum_type):
            _, textual = enum_literals(rule.enum_type, rule.declared_type)
            return ("string" if textual else "integer"), None
    return None, None


def _inline(
    original: InlineSchema | None,
    resolved: InlineSchema | None,
    rules: Sequence[ValidationRule],
) -> InlineSchema:
    node = InlineSchema()
    sources = [s for s in (original, resolved) if s is not None]

    array_source = next((s for s in sources if s.primary_type == "array"), None)
    if array_source is not None:
        node.type = "array"
        node.format = array_source.format
        items = next((s.items for s in sources if s.items is not None), None)
        if items is not None:
            node.items = items.model_copy(deep=True)
    else:
        implied_type, implied_format = _implied_type(rules)
        # rule-implied type, then the referenced schema, then the original node
        node.type = implied_type or next((s.primary_type for s in reversed(sources) if s.primary_type), None)
        node.format = implied_format or next(
            (s.format for s in reversed(sources) if s.format and s.primary_type == node.type), None
        )
        if node.type == "object":
            extra = next((s.additional_properties for s in sources if s.additional_properties is not None), None)
            node.additional_properties = extra.model_copy(deep=True) if hasattr(extra, "model_copy") else extra

    enum_values = next((s.enum for s in sources if s.enum), None)
    if enum_values:
        node.enum = list(enum_values)

    # the original node wins over the referenced one
    for source in (resolved, original):
        if source is not None and source.primary_type in (None, node.type):
            for name in _CARRIED_CONSTRAINTS:
                value = getattr(source, name)
                if value is not None:
                    setattr(node, name, value)
    if original is not None:
        node.extensions.update(copy_extras(original))
    return node


def _apply(node: InlineSchema, rule: ValidationRule, enum_types) -> str | None:
    """Apply one rule; returns the enum summary line when the rule is an enum constraint."""
    if isinstance(rule, StringLengthRule):
        if node.type == "array":
            if rule.min_length is not None:
                node.min_items = rule.min_length
            if rule.max_length is not None:
                node.max_items = rule.max_length
        else:
            if rule.min_length is not None:
                node.min_length = rule.min_length
            if rule.max_length is not None:
                node.max_length = rule.max_length
    elif isinstance(rule, PatternRule):
        node.pattern = rule.pattern
    elif isinstance(rule, EmailRule):
        node.format = "email"
    elif isinstance(rule, UrlRule):
        node.format = "uri"
    elif isinstance(rule, RangeRule):
        _apply_range(node, rule)
    elif isinstance(rule, EnumConstraintRule):
        return _apply_enum(node, rule, enum_types)
    return None


def _apply_range(node: InlineSchema, rule: RangeRule) -> None:
    if rule.minimum is not None:
        if rule.exclusive_minimum:
            node.exclusive_minimum, node.minimum = str(rule.minimum), None
        else:
            node.minimum, node.exclusive_minimum = str(rule.minimum), None
    if rule.maximum is not None:
        if rule.exclusive_maximum:
            node.exclusive_maximum, node.maximum = str(rule.maximum), None
        else:
            node.maximum, node.exclusive_maximum = str(rule.maximum), None


def resolve_enum(enum_type: Any, enum_types: Mapping[str, type[enum.Enum]] | None = None) -> type[enum.Enum]:
    if is_enum(enum_type):
        return enum_type
    if isinstance(enum_type, str) and enum_types and enum_type in enum_types:
        return enum_types[enum_type]
    raise ConfigurationError(f"Cannot resolve enum type {enum_type!r} to a known set of values")


def _is_text(declared_type: Any) -> bool:
    element = unwrap_annotation(declared_type).element_type if declared_type is not None else None
    if element is None or is_enum(element):
        return False
    return isinstance(element, type) and issubclass(element, str)


def enum_literals(enum_cls: type[enum.Enum], declared_type: Any = None) -> tuple[list[Any], bool]:
    """Literal list for the schema and whether it is textual."""
    members = list(enum_cls)
    if _is_text(declared_type):
        return [member.name for member in members], True
    values = [member.value for member in members]
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return [int(v) for v in values], False
    return [str(v) for v in values], True


def _apply_enum(node: InlineSchema, rule: EnumConstraintRule, enum_types) -> str:
    enum_cls = resolve_enum(rule.enum_type, enum_types)
    literals, textual = enum_literals(enum_cls, rule.declared_type)
    names = [member.name for member in enum_cls]

    node.type = "string" if textual else "integer"
    node.enum = literals
    if names != literals:
        node.extensions[ENUM_VARNAMES_EXTENSION] = names
    descriptions = member_descriptions(enum_cls)
    if descriptions:
        node.extensions[ENUM_DESCRIPTIONS_EXTENSION] = descriptions
    return _enum_summary(enum_cls)


def _enum_summary(enum_cls: type[enum.Enum]) -> str:
    return f"{ENUM_PREFIX} {', '.join(member.name for member in enum_cls)}"


def annotate_enum_component(node: InlineSchema, enum_cls: type[enum.Enum]) -> bool:
    """
    Add member names and descriptions to the component generated for an enum.

    The component keeps its own literals; it is only annotated when they
    line up one to one with the members.
    """
    members = list(enum_cls)
    if not node.enum or len(node.enum) != len(members):
        return False
    names = [member.name for member in members]
    values = [member.value for member in members]
    if node.enum != values and node.enum != names:
        return False
    if node.enum != names:
        node.extensions[ENUM_VARNAMES_EXTENSION] = names
    descriptions = member_descriptions(enum_cls)
    if descriptions:
        node.extensions[ENUM_DESCRIPTIONS_EXTENSION] = descriptions
    return True


def _custom_description(rules: Sequence[ValidationRule]) -> str | None:
    for rule in rules:
        if isinstance(rule, DescriptionRule):
            return rule.text
    return None


def _rules_block(lines: list[str]) -> str:
    return RULES_HEADER + "\n" + "\n".join(f"- {line}" for line in lines)


def rule_lines(rules: Sequence[ValidationRule], *, description: str | None = None) -> list[str]:
    """Messages worth listing: no descriptions or enum rules, no blanks, no repeats."""
    lines: list[str] = []
    for rule in rules:
        if isinstance(rule, (DescriptionRule, EnumConstraintRule)):
            continue
        message = rule.message.strip()
        if not message or message in lines or message == description:
            continue
        lines.append(message)
    return lines


def _describe(
    rules: Sequence[ValidationRule],
    append: bool,
    *,
    enum_summary: str | None,
    fallback: str | None,
) -> str | None:
    custom = _custom_description(rules)
    parts = []
    if enum_summary:
        parts.append(enum_summary)
    elif custom:
        parts.append(custom)
    elif fallback and not fallback.startswith((RULES_HEADER, ENUM_PREFIX)):
        parts.append(fallback.split("\n\n" + RULES_HEADER)[0])

    if append:
        lines = rule_lines(rules, description=custom)
        if lines:
            parts.append(_rules_block(lines))
    return "\n\n".join(parts) or None


