from decimal import Decimal

from openapi_enrich.schemas.document import Document, Parameter, RequestBody
from openapi_enrich.schemas.schema_node import InlineSchema, Reference
from tests.helpers import dump, make_document, ref


RAW = {
    "openapi": "3.1.0",
    "info": {"title": "Shop", "version": "2"},
    "x-internal-id": "shop",
    "tags": [{"name": "orders"}],
    "paths": {
        "/orders/{order_id}": {
            "summary": "One order",
            "parameters": [{"name": "order_id", "in": "path", "required": True, "schema": {"type": "string", "format": "uuid"}}],
            "post": {
                "operationId": "update_order",
                "tags": ["orders"],
                "requestBody": {"required": True, "content": {"application/json": {"schema": ref("Order")}}},
                "responses": {
                    "200": {"description": "OK", "content": {"application/json": {"schema": ref("Order")}}},
                },
            },
        }
    },
    "components": {
        "schemas": {
            "Order": {
                "type": "object",
                "title": "Order",
                "required": ["total"],
                "properties": {
                    "total": {"type": "number", "minimum": 0, "maximum": 99.5, "exclusiveMaximum": True},
                    "note": {"anyOf": [{"type": "string", "maxLength": 10}, {"type": "null"}], "title": "Note"},
                    "status": {"$ref": "#/components/schemas/Status", "default": "open"},
                    "lines": {"type": "array", "items": {"type": "string"}, "minItems": 1},
                    "meta": {"type": "object", "additionalProperties": {"type": "integer"}},
                    "legacy": {"not": {"type": "boolean"}, "x-deprecated-by": "status"},
                },
            },
            "Status": {"type": "string", "enum": ["open", "closed"]},
        }
    },
}


def test_round_trip_preserves_unknown_keys():
    document = Document.from_openapi(RAW)
    assert document.to_openapi() == RAW


def test_nodes_are_typed():
    document = Document.from_openapi(RAW)
    order = document.components.schemas["Order"]
    assert isinstance(order, InlineSchema)
    assert isinstance(order.properties["status"], Reference)
    assert order.properties["status"].schema_name == "Status"
    assert order.properties["status"].model_extra == {"default": "open"}
    assert order.properties["total"].maximum == "99.5"
    assert order.properties["total"].exclusive_maximum is True
    assert order.properties["legacy"].extensions == {"x-deprecated-by": "status"}

    item = document.paths["/orders/{order_id}"]
    assert isinstance(item.parameters[0], Parameter)
    assert isinstance(item.post.request_body, RequestBody)
    assert [method for method, _ in item.operations()] == ["post"]


def test_schemas_map_is_created_on_demand():
    document = make_document()
    assert document.components is None
    document.schemas["Fresh"] = InlineSchema(type="string")
    assert document.to_openapi()["components"]["schemas"] == {"Fresh": {"type": "string"}}


def test_resolve_follows_component_refs():
    document = make_document(
        schemas={},
        parameters={
            "Limit": {"name": "limit", "in": "query"},
            "Alias": {"$ref": "#/components/parameters/Limit"},
            "Loop": {"$ref": "#/components/parameters/Loop"},
        },
    )
    resolved = document.resolve(Reference(ref="#/components/parameters/Alias"), "parameters")
    assert resolved.name == "limit"
    assert document.resolve(Reference(ref="#/components/parameters/Loop"), "parameters") is None
    assert document.resolve(Reference(ref="#/components/schemas/Limit"), "parameters") is None


def test_pointer_escapes_in_names():
    node = Reference.to_schema("a/b~c")
    assert node.ref == "#/components/schemas/a~1b~0c"
    assert node.schema_name == "a/b~c"


def test_explicit_nulls_survive_the_round_trip():
    raw = {
        "openapi": "3.1.0",
        "paths": {},
        "components": {
            "schemas": {
                "Draft": {
                    "type": "object",
                    "properties": {
                        "note": {"anyOf": [{"type": "string"}, {"type": "null"}], "default": None, "title": "Note"},
                        "owner": {"$ref": "#/components/schemas/Owner", "default": None},
                    },
                },
                "Owner": {"type": "object", "properties": {}},
            }
        },
    }
    out = Document.from_openapi(raw).to_openapi()
    assert out == raw
    assert out["components"]["schemas"]["Draft"]["properties"]["note"]["default"] is None


def test_unset_keywords_are_not_written():
    node = InlineSchema(type="string")
    node.description = None
    assert dump(node) == {"type": "string"}


def test_integral_bounds_keep_full_precision():
    node = InlineSchema(type="integer", minimum=-9223372036854775808, maximum=Decimal("9223372036854775807"))
    out = dump(node)
    assert out["minimum"] == -9223372036854775808
    assert out["maximum"] == 9223372036854775807
    assert isinstance(out["maximum"], int)
    assert dump(InlineSchema(type="number", maximum=Decimal("99.50")))["maximum"] == 99.5
