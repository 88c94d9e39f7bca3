"""
Fluent validators: rules declared as chains against a model's attributes.

    class TodoValidator(Validator):
        model = TodoCreate

        def __init__(self):
            super().__init__()
            self.rule_for("title").not_empty().max_length(200)
            self.rule_for("priority").is_in_enum(Priority)

A validator both documents its model (through `ValidatorSource`) and checks
instances (`validate`).
"""
from __future__ import annotations

import enum
import re
from typing import Any, Callable, Iterable, Iterator

from pydantic import BaseModel, EmailStr, HttpUrl, TypeAdapter, ValidationError

from openapi_enrich.core.errors import ConfigurationError
from openapi_enrich.schemas.descriptor import (
    TypeDescriptor,
    split_path,
    strip_array_marker,
    wire_path,
)
from openapi_enrich.schemas.rule import (
    CustomRule,
    EmailRule,
    EnumConstraintRule,
    PatternRule,
    RangeRule,
    RequiredRule,
    StringLengthRule,
    UrlRule,
    ValidationRule,
    range_value_type,
)
from openapi_enrich.sources.base import RuleSource

_MISSING = object()


class ValidationFailure(BaseModel):
    field: str
    code: str
    message: str


class _Check:
    def __init__(self, rule: ValidationRule, code: str, predicate: Callable[[Any], bool], *, skip_none: bool = True):
        self.rule = rule
        self.code = code
        self.predicate = predicate
        self.skip_none = skip_none

    def passes(self, value: Any) -> bool:
        if value is None and self.skip_none:
            return True
        return bool(self.predicate(value))


def _length(value: Any) -> int | None:
    try:
        return len(value)
    except TypeError:
        return None


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return _length(value) == 0


_EMAIL = TypeAdapter(EmailStr)
_HTTP_URL = TypeAdapter(HttpUrl)


def _accepted_by(adapter: TypeAdapter) -> Callable[[Any], bool]:
    """Predicate checking a value the same way a field of the adapter's type would."""

    def check(value: Any) -> bool:
        try:
            adapter.validate_python(str(value))
        except ValidationError:
            return False
        return True

    return check


class RuleChain:
    """Checks declared for one property path; every method returns the chain."""

    def __init__(self, path: str):
        self.path = path
        self.checks: list[_Check] = []

    def _add(self, rule: ValidationRule, code: str, predicate: Callable[[Any], bool], *, skip_none: bool = True) -> RuleChain:
        self.checks.append(_Check(rule, code, predicate, skip_none=skip_none))
        return self

    def not_null(self) -> RuleChain:
        rule = RequiredRule(property_path=self.path, message="Must not be null")
        return self._add(rule, "required", lambda v: v is not None, skip_none=False)

    def not_empty(self) -> RuleChain:
        rule = RequiredRule(property_path=self.path, message="Must not be empty")
        return self._add(rule, "required", lambda v: not _is_empty(v), skip_none=False)

    def length(self, min_length: int, max_length: int) -> RuleChain:
        rule = StringLengthRule(
            property_path=self.path,
            message=f"Must be between {min_length} and {max_length} characters",
            min_length=min_length,
            max_length=max_length,
        )
        return self._add(rule, "length", lambda v: min_length <= (_length(v) or 0) <= max_length)

    def min_length(self, min_length: int) -> RuleChain:
        rule = StringLengthRule(
            property_path=self.path,
            message=f"Must be at least {min_length} characters",
            min_length=min_length,
        )
        return self._add(rule, "min", lambda v: (_length(v) or 0) >= min_length)

    def max_length(self, max_length: int) -> RuleChain:
        rule = StringLengthRule(
            property_path=self.path,
            message=f"Must not exceed {max_length} characters",
            max_length=max_length,
        )
        return self._add(rule, "max", lambda v: (_length(v) or 0) <= max_length)

    def matches(self, pattern: str) -> RuleChain:
        rule = PatternRule(property_path=self.path, message=f"Must match the pattern '{pattern}'", pattern=pattern)
        compiled = re.compile(pattern)
        return self._add(rule, "pattern", lambda v: compiled.search(str(v)) is not None)

    def email_address(self) -> RuleChain:
        rule = EmailRule(property_path=self.path, message="Must be a valid email address")
        return self._add(rule, "email", _accepted_by(_EMAIL))

    def url(self) -> RuleChain:
        rule = UrlRule(property_path=self.path, message="Must be a valid URL")
        return self._add(rule, "url", _accepted_by(_HTTP_URL))

    def _range(self, code: str, message: str, predicate, **bounds) -> RuleChain:
        rule = RangeRule(
            property_path=self.path,
            message=message,
            value_type=range_value_type(bounds.get("minimum"), bounds.get("maximum")),
            **bounds,
        )
        return self._add(rule, code, predicate)

    def greater_than(self, value) -> RuleChain:
        return self._range("min", f"Must be greater than {value}", lambda v: v > value, minimum=value, exclusive_minimum=True)

    def greater_than_or_equal_to(self, value) -> RuleChain:
        return self._range("min", f"Must be greater than or equal to {value}", lambda v: v >= value, minimum=value)

    def less_than(self, value) -> RuleChain:
        return self._range("max", f"Must be less than {value}", lambda v: v < value, maximum=value, exclusive_maximum=True)

    def less_than_or_equal_to(self, value) -> RuleChain:
        return self._range("max", f"Must be less than or equal to {value}", lambda v: v <= value, maximum=value)

    def inclusive_between(self, lower, upper) -> RuleChain:
        return self._range(
            "range",
            f"Must be between {lower} and {upper}",
            lambda v: lower <= v <= upper,
            minimum=lower,
            maximum=upper,
        )

    def exclusive_between(self, lower, upper) -> RuleChain:
        return self._range(
            "range",
            f"Must be between {lower} and {upper} (exclusive)",
            lambda v: lower < v < upper,
            minimum=lower,
            maximum=upper,
            exclusive_minimum=True,
            exclusive_maximum=True,
        )

    def is_in_enum(self, enum_type: type[enum.Enum], declared_type: Any = int) -> RuleChain:
        rule = EnumConstraintRule(
            property_path=self.path,
            message=f"Must be a valid {enum_type.__name__} value",
            enum_type=enum_type,
            declared_type=declared_type,
        )
        values = {member.value for member in enum_type} | set(enum_type)
        return self._add(rule, "choice", lambda v: v in values)

    def is_enum_name(self, enum_type: type[enum.Enum]) -> RuleChain:
        rule = EnumConstraintRule(
            property_path=self.path,
            message=f"Must be a valid {enum_type.__name__} name",
            enum_type=enum_type,
            declared_type=str,
        )
        return self._add(rule, "choice", lambda v: v in enum_type.__members__)

    def must(self, predicate: Callable[[Any], bool], description: str) -> RuleChain:
        rule = CustomRule(
            property_path=self.path,
            message=description,
            predicate_description=description,
            predicate=predicate,
        )
        return self._add(rule, "custom", predicate)

    def with_message(self, message: str) -> RuleChain:
        """Replace the message of the last declared check."""
        if not self.checks:
            raise ConfigurationError(f"with_message() on '{self.path}' needs a check before it")
        if not message.strip():
            raise ConfigurationError(f"with_message() on '{self.path}' needs a non-blank message")
        last = self.checks[-1]
        last.rule = last.rule.with_message(message)
        return self


def _values_at(instance: Any, path: str) -> Iterator[tuple[str, Any]]:
    """Yield (display path, value) for every value a path addresses."""
    current: list[tuple[str, Any]] = [("", instance)]
    for segment in split_path(path):
        name, is_array = strip_array_marker(segment)
        step: list[tuple[str, Any]] = []
        for prefix, obj in current:
            if obj is None:
                continue
            value = obj.get(name, _MISSING) if isinstance(obj, dict) else getattr(obj, name, _MISSING)
            if value is _MISSING:
                continue
            label = f"{prefix}.{name}" if prefix else name
            if is_array:
                for index, element in enumerate(value or []):
                    step.append((f"{label}[{index}]", element))
            else:
                step.append((label, value))
        current = step
    yield from current


class Validator:
    """Base class for fluent validators; set `model` on the subclass."""

    model: Any = None

    def __init__(self):
        self.chains: list[RuleChain] = []

    def rule_for(self, path: str) -> RuleChain:
        chain = RuleChain(path)
        self.chains.append(chain)
        return chain

    def rules(self) -> Iterator[ValidationRule]:
        for chain in self.chains:
            for check in chain.checks:
                yield check.rule

    def validate(self, instance: Any) -> list[ValidationFailure]:
        failures = []
        for chain in self.chains:
            for label, value in _values_at(instance, chain.path):
                for check in chain.checks:
                    if not check.passes(value):
                        failures.append(ValidationFailure(field=label, code=check.code, message=check.rule.message))
        return failures


class ValidatorSource(RuleSource):
    """Documents every registered fluent validator against its model."""

    name = "fluent-validators"

    def __init__(self, validators: Iterable[Validator] = ()):
        self._validators: list[Validator] = []
        for validator in validators:
            self.register(validator)

    def register(self, validator: Validator) -> Validator:
        if validator.model is None:
            raise ConfigurationError(f"{type(validator).__name__} does not declare the model it validates")
        self._validators.append(validator)
        return validator

    def validators_for(self, model: Any) -> list[Validator]:
        return [v for v in self._validators if v.model is model]

    def emit_rules(self, descriptor: TypeDescriptor) -> dict[str, list]:
        rules: dict[str, list] = {}
        for validator in self.validators_for(descriptor.model):
            for rule in validator.rules():
                path = wire_path(descriptor.model, rule.property_path)
                rules.setdefault(path, []).append(rule.model_copy(update={"property_path": path}))
        return rules
