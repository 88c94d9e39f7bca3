from __future__ import annotations

from typing import Annotated, Any, Iterator, Union

from pydantic import Discriminator, Field, Tag

from openapi_enrich.schemas.schema_node import OpenApiNode, Reference, SchemaNode, node_kind

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class Header(OpenApiNode):
    description: str | None = None
    required: bool | None = None
    schema_: SchemaNode | None = Field(default=None, alias="schema")


HeaderOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Header, Tag("inline")]],
    Discriminator(node_kind),
]


class Encoding(OpenApiNode):
    content_type: str | None = Field(default=None, alias="contentType")
    headers: dict[str, HeaderOrRef] | None = None


class MediaType(OpenApiNode):
    schema_: SchemaNode | None = Field(default=None, alias="schema")
    encoding: dict[str, Encoding] | None = None


class Parameter(OpenApiNode):
    name: str
    in_: str = Field(alias="in")
    description: str | None = None
    required: bool | None = None
    schema_: SchemaNode | None = Field(default=None, alias="schema")
    content: dict[str, MediaType] | None = None


ParameterOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Parameter, Tag("inline")]],
    Discriminator(node_kind),
]


class RequestBody(OpenApiNode):
    description: str | None = None
    required: bool | None = None
    content: dict[str, MediaType] | None = None


RequestBodyOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[RequestBody, Tag("inline")]],
    Discriminator(node_kind),
]


class Response(OpenApiNode):
    description: str | None = None
    headers: dict[str, HeaderOrRef] | None = None
    content: dict[str, MediaType] | None = None


ResponseOrRef = Annotated[
    Union[Annotated[Reference, Tag("ref")], Annotated[Response, Tag("inline")]],
    Discriminator(node_kind),
]


class Operation(OpenApiNode):
    operation_id: str | None = Field(default=None, alias="operationId")
    parameters: list[ParameterOrRef] | None = None
    request_body: RequestBodyOrRef | None = Field(default=None, alias="requestBody")
    responses: dict[str, ResponseOrRef] | None = None


class PathItem(OpenApiNode):
    parameters: list[ParameterOrRef] | None = None
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None
    trace: Operation | None = None

    def operations(self) -> Iterator[tuple[str, Operation]]:
        for method in HTTP_METHODS:
            operation = getattr(self, method)
            if operation is not None:
                yield method, operation


class Components(OpenApiNode):
    schemas: dict[str, SchemaNode] | None = None
    parameters: dict[str, ParameterOrRef] | None = None
    request_bodies: dict[str, RequestBodyOrRef] | None = Field(default=None, alias="requestBodies")
    responses: dict[str, ResponseOrRef] | None = None
    headers: dict[str, HeaderOrRef] | None = None


class Document(OpenApiNode):
    """An OpenAPI 3.x document; everything not modelled here rides along as extras."""

    openapi: str | None = None
    paths: dict[str, PathItem] = Field(default_factory=dict)
    components: Components | None = None

    @classmethod
    def from_openapi(cls, data: dict[str, Any]) -> Document:
        return cls.model_validate(data)

    def to_openapi(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @property
    def schemas(self) -> dict[str, SchemaNode]:
        """The component schemas map, created on first access."""
        if self.components is None:
            self.components = Components()
        if self.components.schemas is None:
            self.components.schemas = {}
        return self.components.schemas

    def operations(self) -> Iterator[tuple[str, str, PathItem, Operation]]:
        for path, item in self.paths.items():
            for method, operation in item.operations():
                yield path, method, item, operation

    def resolve(self, node: Any, section: str) -> Any:
        """Follow a `$ref` into `components.<section>`; non-refs come back unchanged."""
        seen: set[str] = set()
        while isinstance(node, Reference):
            component = node.component
            if component is None or component[0] != section or node.ref in seen:
                return None
            seen.add(node.ref)
            bucket = getattr(self.components, _SECTION_FIELDS[section], None) if self.components else None
            node = bucket.get(component[1]) if bucket else None
        return node


_SECTION_FIELDS = {
    "schemas": "schemas",
    "parameters": "parameters",
    "requestBodies": "request_bodies",
    "responses": "responses",
    "headers": "headers",
}
