from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_serializer, field_validator, model_serializer

COMPONENTS_PREFIX = "#/components/"
SCHEMAS_PREFIX = "#/components/schemas/"

PRIMITIVE_TYPES = ("string", "integer", "number", "boolean")

# What a reference points at, derived from the target's own shape.
RefKind = Literal["primitive", "collection", "dictionary", "nullable", "enum", "object"]


def _decode_pointer(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _encode_pointer(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def number_from_text(text: str) -> int | float:
    """Integral bounds come back as exact ints, whatever their size."""
    value = Decimal(text)
    if value.is_finite() and value == value.to_integral_value() and "e" not in text.lower():
        return int(value)
    return float(value)


class OpenApiNode(BaseModel):
    """
    Base for document objects. Modelled keywords left at `None` are not
    written; extras are written as they came in, explicit nulls included.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @model_serializer(mode="wrap")
    def _omit_unset_keywords(self, handler) -> dict[str, Any]:
        data = handler(self)
        extras = self.model_extra or {}
        return {key: value for key, value in data.items() if value is not None or key in extras}


class Reference(OpenApiNode):
    """`$ref` node; sibling keywords such as `default` are kept as extras."""

    ref: str = Field(alias="$ref")
    kind_hint: RefKind | None = Field(default=None, exclude=True)

    @classmethod
    def to_schema(cls, name: str, kind_hint: RefKind | None = None) -> Reference:
        return cls(ref=SCHEMAS_PREFIX + _encode_pointer(name), kind_hint=kind_hint)

    @property
    def component(self) -> tuple[str, str] | None:
        """(section, name) for refs into the local components object."""
        if not self.ref.startswith(COMPONENTS_PREFIX):
            return None
        section, _, name = self.ref[len(COMPONENTS_PREFIX):].partition("/")
        if not section or not name or "/" in name:
            return None
        return section, _decode_pointer(name)

    @property
    def schema_name(self) -> str | None:
        component = self.component
        if component is not None and component[0] == "schemas":
            return component[1]
        return None


class InlineSchema(OpenApiNode):
    """
    Anonymous schema object.

    Keywords without a dedicated field (title, default, examples, x-*)
    are pydantic extras and round-trip untouched; `extensions` exposes them.
    """

    type: str | list[str] | None = None
    format: str | None = None
    description: str | None = None

    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    min_items: int | None = Field(default=None, alias="minItems")
    max_items: int | None = Field(default=None, alias="maxItems")
    pattern: str | None = None

    # string-encoded so Decimal bounds keep their precision
    minimum: str | None = None
    maximum: str | None = None
    exclusive_minimum: str | bool | None = Field(default=None, alias="exclusiveMinimum")
    exclusive_maximum: str | bool | None = Field(default=None, alias="exclusiveMaximum")

    items: SchemaNode | None = None
    properties: dict[str, SchemaNode] | None = None
    additional_properties: bool | SchemaNode | None = Field(default=None, alias="additionalProperties")
    required: list[str] | None = None

    one_of: list[SchemaNode] | None = Field(default=None, alias="oneOf")
    all_of: list[SchemaNode] | None = Field(default=None, alias="allOf")
    any_of: list[SchemaNode] | None = Field(default=None, alias="anyOf")
    not_: SchemaNode | None = Field(default=None, alias="not")

    enum: list[Any] | None = None

    @field_validator("minimum", "maximum", "exclusive_minimum", "exclusive_maximum", mode="before")
    @classmethod
    def _bound_as_text(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return value

    @field_serializer("minimum", "maximum", "exclusive_minimum", "exclusive_maximum")
    def _bound_as_number(self, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        return number_from_text(value)

    @property
    def extensions(self) -> dict[str, Any]:
        return self.model_extra if self.model_extra is not None else {}

    @property
    def primary_type(self) -> str | None:
        """The declared type, ignoring a `null` member of a type list."""
        if isinstance(self.type, list):
            concrete = [t for t in self.type if t != "null"]
            return concrete[0] if len(concrete) == 1 else None
        return self.type


def node_kind(value: Any) -> str:
    if isinstance(value, Reference):
        return "ref"
    if isinstance(value, dict) and "$ref" in value:
        return "ref"
    return "inline"


SchemaNode = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[InlineSchema, Tag("inline")]],
    Discriminator(node_kind),
]

InlineSchema.model_rebuild()
