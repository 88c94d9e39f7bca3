from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from openapi_enrich.schemas.descriptor import TypeDescriptor, wire_path
from openapi_enrich.schemas.operation import AlterOperation, RemoveAllOperation, RemoveOperation, RuleOperation
from openapi_enrich.schemas.rule import (
    CustomRule,
    DescriptionRule,
    EmailRule,
    EnumConstraintRule,
    PatternRule,
    RangeRule,
    RequiredRule,
    Rule,
    StringLengthRule,
    UrlRule,
    ValidationRule,
    range_value_type,
)
from openapi_enrich.sources.base import RuleSource


class PropertyRules:
    """Rules, operations and the append flag declared for one property path."""

    def __init__(self, path: str):
        self.path = path
        self.rules: list[ValidationRule] = []
        self.operations: list[RuleOperation] = []
        self.append: bool | None = None

    def _add(self, rule: ValidationRule) -> PropertyRules:
        self.rules.append(rule)
        return self

    def required(self, message: str = "Is required") -> PropertyRules:
        return self._add(RequiredRule(property_path=self.path, message=message))

    def min_length(self, min_length: int, message: str | None = None) -> PropertyRules:
        return self._add(
            StringLengthRule(
                property_path=self.path,
                message=message or f"Must be at least {min_length} characters",
                min_length=min_length,
            )
        )

    def max_length(self, max_length: int, message: str | None = None) -> PropertyRules:
        return self._add(
            StringLengthRule(
                property_path=self.path,
                message=message or f"Must not exceed {max_length} characters",
                max_length=max_length,
            )
        )

    def length(self, min_length: int, max_length: int, message: str | None = None) -> PropertyRules:
        return self._add(
            StringLengthRule(
                property_path=self.path,
                message=message or f"Must be between {min_length} and {max_length} characters",
                min_length=min_length,
                max_length=max_length,
            )
        )

    def pattern(self, regex: str, message: str | None = None) -> PropertyRules:
        return self._add(
            PatternRule(property_path=self.path, message=message or f"Must match the pattern - {regex}", pattern=regex)
        )

    def email(self, message: str = "Must be a valid email address") -> PropertyRules:
        return self._add(EmailRule(property_path=self.path, message=message))

    def url(self, message: str = "Must be a valid URL") -> PropertyRules:
        return self._add(UrlRule(property_path=self.path, message=message))

    def _range(self, message: str, **bounds) -> PropertyRules:
        value_type = bounds.pop("value_type", None) or range_value_type(bounds.get("minimum"), bounds.get("maximum"))
        return self._add(RangeRule(property_path=self.path, message=message, value_type=value_type, **bounds))

    def greater_than(self, value, message: str | None = None, *, value_type=None) -> PropertyRules:
        return self._range(
            message or f"Must be greater than {value}",
            minimum=value,
            exclusive_minimum=True,
            value_type=value_type,
        )

    def greater_than_or_equal(self, value, message: str | None = None, *, value_type=None) -> PropertyRules:
        return self._range(message or f"Must be greater than or equal to {value}", minimum=value, value_type=value_type)

    def less_than(self, value, message: str | None = None, *, value_type=None) -> PropertyRules:
        return self._range(
            message or f"Must be less than {value}",
            maximum=value,
            exclusive_maximum=True,
            value_type=value_type,
        )

    def less_than_or_equal(self, value, message: str | None = None, *, value_type=None) -> PropertyRules:
        return self._range(message or f"Must be less than or equal to {value}", maximum=value, value_type=value_type)

    def between(self, minimum, maximum, message: str | None = None, *, value_type=None) -> PropertyRules:
        return self._range(
            message or f"Must be between {minimum} and {maximum}",
            minimum=minimum,
            maximum=maximum,
            value_type=value_type,
        )

    def enum(self, enum_type: Any, declared_type: Any = None, message: str | None = None) -> PropertyRules:
        name = getattr(enum_type, "__name__", enum_type)
        return self._add(
            EnumConstraintRule(
                property_path=self.path,
                message=message or f"Must be a valid {name} value",
                enum_type=enum_type,
                declared_type=declared_type,
            )
        )

    def custom(self, description: str, predicate: Callable[..., Any] | None = None) -> PropertyRules:
        return self._add(
            CustomRule(
                property_path=self.path,
                message=description,
                predicate_description=description,
                predicate=predicate,
            )
        )

    def description(self, text: str) -> PropertyRules:
        return self._add(DescriptionRule(property_path=self.path, text=text))

    def append_rules_to_property_description(self, append: bool = True) -> PropertyRules:
        self.append = append
        return self

    def alter(self, old_message: str, new_message: str) -> PropertyRules:
        self.operations.append(AlterOperation(old_message=old_message, new_message=new_message))
        return self

    def remove(self, message: str) -> PropertyRules:
        self.operations.append(RemoveOperation(message=message))
        return self

    def remove_all(self) -> PropertyRules:
        self.operations.append(RemoveAllOperation())
        return self


class ValidationConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    model: Any
    rules: dict[str, tuple[Rule, ...]] = Field(default_factory=dict)
    operations: dict[str, tuple[RuleOperation, ...]] = Field(default_factory=dict)
    append_overrides: dict[str, bool] = Field(default_factory=dict)
    append_default: bool | None = None


class ValidationBuilder:
    """Explicit rule declarations for one model, keyed by attribute path."""

    def __init__(self, model: Any):
        self.model = model
        self._properties: dict[str, PropertyRules] = {}
        self._append_default: bool | None = None

    def append_rules_to_property_description(self, append: bool = True) -> ValidationBuilder:
        self._append_default = append
        return self

    def property(self, path: str) -> PropertyRules:
        if path not in self._properties:
            self._properties[path] = PropertyRules(path)
        return self._properties[path]

    def build(self) -> ValidationConfiguration:
        rules = {}
        for path, prop in self._properties.items():
            if not prop.rules:
                continue
            if prop.append is None:
                rules[path] = tuple(prop.rules)
            else:
                rules[path] = tuple(rule.model_copy(update={"append_to_description": prop.append}) for rule in prop.rules)
        return ValidationConfiguration(
            model=self.model,
            rules=rules,
            operations={path: tuple(p.operations) for path, p in self._properties.items() if p.operations},
            append_overrides={path: p.append for path, p in self._properties.items() if p.append is not None},
            append_default=self._append_default,
        )


def with_validation(model: Any, configure: Callable[[ValidationBuilder], Any]) -> ValidationConfiguration:
    builder = ValidationBuilder(model)
    configure(builder)
    return builder.build()


class BuilderSource(RuleSource):
    name = "builder"

    def __init__(self):
        self._configurations: list[ValidationConfiguration] = []

    def add(self, configuration: ValidationConfiguration) -> ValidationConfiguration:
        self._configurations.append(configuration)
        return configuration

    def with_validation(self, model: Any, configure: Callable[[ValidationBuilder], Any]) -> ValidationConfiguration:
        return self.add(with_validation(model, configure))

    def _for(self, descriptor: TypeDescriptor) -> list[ValidationConfiguration]:
        return [c for c in self._configurations if c.model is descriptor.model]

    def emit_rules(self, descriptor: TypeDescriptor) -> dict[str, list]:
        out: dict[str, list] = {}
        for configuration in self._for(descriptor):
            for path, rules in configuration.rules.items():
                target = wire_path(descriptor.model, path)
                out.setdefault(target, []).extend(rule.model_copy(update={"property_path": target}) for rule in rules)
        return out

    def operations(self, descriptor: TypeDescriptor) -> dict[str, list]:
        out: dict[str, list] = {}
        for configuration in self._for(descriptor):
            for path, ops in configuration.operations.items():
                out.setdefault(wire_path(descriptor.model, path), []).extend(ops)
        return out

    def append_overrides(self, descriptor: TypeDescriptor) -> dict[str, bool]:
        out: dict[str, bool] = {}
        for configuration in self._for(descriptor):
            for path, append in configuration.append_overrides.items():
                out[wire_path(descriptor.model, path)] = append
        return out

    def type_append_default(self, descriptor: TypeDescriptor) -> bool | None:
        default = None
        for configuration in self._for(descriptor):
            if configuration.append_default is not None:
                default = configuration.append_default
        return default
