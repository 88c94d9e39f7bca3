from openapi_enrich.schemas.document import Document
from openapi_enrich.schemas.schema_node import InlineSchema, Reference


def ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


def nullable(node: dict) -> dict:
    return {"anyOf": [node, {"type": "null"}]}


def json_body(schema: dict) -> dict:
    return {"content": {"application/json": {"schema": schema}}}


def make_document(paths: dict | None = None, schemas: dict | None = None, **components) -> Document:
    raw = {"openapi": "3.1.0", "info": {"title": "Test", "version": "1"}, "paths": paths or {}}
    if schemas is not None or components:
        raw["components"] = {"schemas": schemas or {}, **components}
    return Document.from_openapi(raw)


def post_operation(body: dict | None = None, response: dict | None = None) -> dict:
    operation = {"responses": {"200": {"description": "OK"}}}
    if body is not None:
        operation["requestBody"] = json_body(body)
    if response is not None:
        operation["responses"]["200"].update(json_body(response))
    return {"post": operation}


def inline(**fields) -> InlineSchema:
    return InlineSchema.model_validate(fields)


def schema_ref(name: str) -> Reference:
    return Reference.to_schema(name)


def dump(node) -> dict:
    return node.model_dump(by_alias=True, mode="json")
