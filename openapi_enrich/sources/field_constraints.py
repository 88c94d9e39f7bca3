import inspect
import logging
from decimal import Decimal
from typing import Any, Iterator

import annotated_types
from pydantic import AnyUrl, EmailStr
from pydantic.functional_validators import AfterValidator, BeforeValidator, PlainValidator, WrapValidator

from openapi_enrich.annotations import EnumValues, Note
from openapi_enrich.schemas.descriptor import ARRAY_MARKER, PropertyDescriptor, TypeDescriptor
from openapi_enrich.schemas.rule import (
    CustomRule,
    DescriptionRule,
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

logger = logging.getLogger(__name__)

_VALIDATOR_TYPES = (AfterValidator, BeforeValidator, PlainValidator, WrapValidator)


def length_message(min_length: int | None, max_length: int | None, *, collection: bool = False) -> str:
    unit = "items" if collection else "characters"
    if min_length is not None and max_length is not None:
        return f"Must be between {min_length} and {max_length} {unit}"
    if min_length is not None:
        return f"Must be {min_length} {unit} or more"
    return f"Must be {max_length} {unit} or fewer"


def range_message(lower: Any, upper: Any, *, lower_exclusive: bool = False, upper_exclusive: bool = False) -> str:
    if lower is not None and upper is not None and not (lower_exclusive or upper_exclusive):
        return f"Must be between {lower} and {upper}"
    parts = []
    if lower is not None:
        parts.append(f"greater than {lower}" if lower_exclusive else f"greater than or equal to {lower}")
    if upper is not None:
        parts.append(f"less than {upper}" if upper_exclusive else f"less than or equal to {upper}")
    return "Must be " + " and ".join(parts)


def _range_value_type(element_type: Any, lower: Any, upper: Any):
    if element_type is Decimal:
        return "decimal"
    if element_type is float:
        return "double"
    if element_type is int:
        return "int64"
    return range_value_type(lower, upper)


class FieldConstraintSource(RuleSource):
    """
    Rules read off pydantic field declarations: requiredness, `Field(...)`
    constraints, `Annotated` metadata, EmailStr/URL types and descriptions.
    """

    name = "field-constraints"

    def emit_rules(self, descriptor: TypeDescriptor) -> dict[str, list]:
        rules: dict[str, list] = {}
        for prop in descriptor.properties:
            for rule in self._property_rules(prop):
                rules.setdefault(rule.property_path, []).append(rule)
        return rules

    def _property_rules(self, prop: PropertyDescriptor) -> Iterator[ValidationRule]:
        path = prop.wire_name
        if prop.required:
            yield RequiredRule(property_path=path, message="Is required")

        yield from self._constraint_rules(path, prop.metadata, prop.element_type, prop.annotation, collection=prop.collection)

        element_path = f"{path}{ARRAY_MARKER}" if prop.collection else path
        if prop.collection and prop.element_metadata:
            yield from self._constraint_rules(element_path, prop.element_metadata, prop.element_type, prop.element_type)

        element = prop.element_type
        if element is EmailStr:
            yield EmailRule(property_path=element_path, message="Must be a valid email address")
        elif isinstance(element, type) and issubclass(element, AnyUrl):
            yield UrlRule(property_path=element_path, message="Must be a valid URL")

        if prop.field is not None and prop.field.description:
            yield DescriptionRule(property_path=path, text=prop.field.description)

    def _constraint_rules(
        self,
        path: str,
        metadata: tuple[Any, ...],
        element_type: Any,
        declared_type: Any,
        *,
        collection: bool = False,
    ) -> Iterator[ValidationRule]:
        min_length = max_length = lower = upper = None
        lower_exclusive = upper_exclusive = False

        for item in metadata:
            if isinstance(item, annotated_types.MinLen):
                min_length = item.min_length
            elif isinstance(item, annotated_types.MaxLen):
                max_length = item.max_length
            elif isinstance(item, annotated_types.Gt):
                lower, lower_exclusive = item.gt, True
            elif isinstance(item, annotated_types.Ge):
                lower, lower_exclusive = item.ge, False
            elif isinstance(item, annotated_types.Lt):
                upper, upper_exclusive = item.lt, True
            elif isinstance(item, annotated_types.Le):
                upper, upper_exclusive = item.le, False
            elif isinstance(item, annotated_types.MultipleOf):
                text = f"Must be a multiple of {item.multiple_of}"
                yield CustomRule(property_path=path, message=text, predicate_description=text)
            elif isinstance(item, EnumValues):
                name = getattr(item.enum_type, "__name__", item.enum_type)
                yield EnumConstraintRule(
                    property_path=path,
                    message=f"Must be a valid {name} value",
                    enum_type=item.enum_type,
                    declared_type=declared_type,
                )
            elif isinstance(item, Note):
                yield CustomRule(
                    property_path=path,
                    message=item.text,
                    predicate_description=item.text,
                    predicate=item.predicate,
                )
            elif isinstance(item, _VALIDATOR_TYPES):
                yield self._validator_rule(path, item.func)
            elif getattr(item, "pattern", None):
                pattern = getattr(item.pattern, "pattern", item.pattern)
                yield PatternRule(property_path=path, message=f"Must match the pattern - {pattern}", pattern=pattern)

        if min_length is not None or max_length is not None:
            yield StringLengthRule(
                property_path=path,
                message=length_message(min_length, max_length, collection=collection),
                min_length=min_length,
                max_length=max_length,
            )

        if lower is not None or upper is not None:
            yield RangeRule(
                property_path=path,
                message=range_message(lower, upper, lower_exclusive=lower_exclusive, upper_exclusive=upper_exclusive),
                value_type=_range_value_type(element_type, lower, upper),
                minimum=lower,
                maximum=upper,
                exclusive_minimum=lower_exclusive,
                exclusive_maximum=upper_exclusive,
            )

    def _validator_rule(self, path: str, func: Any) -> CustomRule:
        doc = inspect.getdoc(func)
        if doc:
            message = doc.strip().splitlines()[0]
        else:
            func_name = getattr(func, "__name__", type(func).__name__)
            message = f"{path} must satisfy {func_name}"
            logger.warning("Validator on '%s' has no docstring, documenting it as %r", path, message)
        return CustomRule(property_path=path, message=message, predicate_description=message, predicate=func)
