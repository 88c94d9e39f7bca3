from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from openapi_enrich.core.errors import ConfigurationError

RangeValueType = Literal["int32", "int64", "float", "double", "decimal"]

# Range value type -> (schema type, schema format)
RANGE_SCHEMA_TYPES: dict[str, tuple[str, str | None]] = {
    "int32": ("integer", "int32"),
    "int64": ("integer", "int64"),
    "float": ("number", "float"),
    "double": ("number", "double"),
    "decimal": ("number", None),
}


def range_value_type(*values: Any) -> RangeValueType:
    """Pick the Range variant for Python bound values."""
    present = [v for v in values if v is not None]
    if any(isinstance(v, Decimal) for v in present):
        return "decimal"
    if any(isinstance(v, float) for v in present):
        return "double"
    return "int64"


class ValidationRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    property_path: str
    message: str
    append_to_description: bool | None = None

    def with_message(self, message: str) -> ValidationRule:
        return self.model_copy(update={"message": message})


class RequiredRule(ValidationRule):
    kind: Literal["required"] = "required"


class StringLengthRule(ValidationRule):
    kind: Literal["string_length"] = "string_length"
    min_length: int | None = None
    max_length: int | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> StringLengthRule:
        if self.min_length is None and self.max_length is None:
            raise ConfigurationError(f"String length rule for '{self.property_path}' needs a minimum or a maximum")
        for bound in (self.min_length, self.max_length):
            if bound is not None and bound < 0:
                raise ConfigurationError(f"String length bounds for '{self.property_path}' must not be negative")
        return self


class PatternRule(ValidationRule):
    kind: Literal["pattern"] = "pattern"
    pattern: str

    @model_validator(mode="after")
    def _check_pattern(self) -> PatternRule:
        if not self.pattern:
            raise ConfigurationError(f"Pattern rule for '{self.property_path}' has an empty pattern")
        return self


class EmailRule(ValidationRule):
    kind: Literal["email"] = "email"


class UrlRule(ValidationRule):
    kind: Literal["url"] = "url"


class RangeRule(ValidationRule):
    kind: Literal["range"] = "range"
    value_type: RangeValueType = "int64"
    minimum: int | float | Decimal | None = None
    maximum: int | float | Decimal | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> RangeRule:
        if self.minimum is None and self.maximum is None:
            raise ConfigurationError(f"Range rule for '{self.property_path}' needs a minimum or a maximum")
        return self


class EnumConstraintRule(ValidationRule):
    """
    Value must be a member of `enum_type`.

    `enum_type` is an Enum class or the name of one known to the document
    build; `declared_type` is the property's own annotation and decides
    whether names or numeric values are documented.
    """

    kind: Literal["enum"] = "enum"
    enum_type: Any
    declared_type: Any = None


class CustomRule(ValidationRule):
    kind: Literal["custom"] = "custom"
    predicate_description: str
    # documentation only, never executed while building the document
    predicate: Callable[..., Any] | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _check_description(self) -> CustomRule:
        if not self.predicate_description.strip():
            raise ConfigurationError(f"Custom rule for '{self.property_path}' has an empty description")
        return self


class DescriptionRule(ValidationRule):
    kind: Literal["description"] = "description"
    message: str = ""
    text: str

    @model_validator(mode="after")
    def _check_text(self) -> DescriptionRule:
        if not self.text.strip():
            raise ConfigurationError(f"Description for '{self.property_path}' is empty")
        return self


Rule = Annotated[
    Union[
        RequiredRule,
        StringLengthRule,
        PatternRule,
        EmailRule,
        UrlRule,
        RangeRule,
        EnumConstraintRule,
        CustomRule,
        DescriptionRule,
    ],
    Field(discriminator="kind"),
]
