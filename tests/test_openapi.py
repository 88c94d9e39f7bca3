import threading
from enum import Enum
from typing import Annotated

import pytest
from fastapi import Depends, FastAPI, Query
from fastapi.openapi.utils import get_openapi
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from openapi_enrich import BuildCancelled, ConfigurationError, OpenApiValidation, Validator, enum_descriptions
from openapi_enrich.core.config import Settings
from openapi_enrich.core.pruner import live_schema_names
from openapi_enrich.integration import collect_request_types
from openapi_enrich.schemas.document import Document
from example.main import app


@pytest.fixture(scope="module")
def document():
    client = TestClient(app)
    r = client.get("/openapi.json")
    assert r.status_code == 200
    return r.json()


def _props(document, name):
    return document["components"]["schemas"][name]["properties"]


def _non_null(node):
    branches = [b for b in node["oneOf"] if b != {"type": "null"}]
    assert len(branches) == 1
    return branches[0]


def test_field_constraints_are_documented(document):
    title = _props(document, "TodoCreate")["title"]
    assert title["minLength"] == 1
    assert title["maxLength"] == 200
    assert title["description"] == (
        "What needs doing\n\nValidation rules:\n- Is required\n- Must be between 1 and 200 characters"
    )

    hours = _non_null(_props(document, "TodoCreate")["estimate_hours"])
    assert hours["type"] == "number"
    assert hours["minimum"] == 0
    assert hours["maximum"] == 1000
    assert hours["description"] == "Validation rules:\n- Must be between 0 and 1000"


def test_builder_operations_and_enums(document):
    props = _props(document, "TodoUpdate")
    assert props["title"]["description"] == "Validation rules:\n- Is required\n- Must be 1 to 200 characters"
    assert "anyOf" in props["description"]
    assert props["is_complete"]["description"] == "Set once the work is done"

    priority = props["priority"]
    assert priority["type"] == "integer"
    assert priority["enum"] == [0, 1, 2, 3]
    assert priority["x-enum-varnames"] == ["Low", "Medium", "High", "Critical"]
    assert priority["x-enum-descriptions"] == {
        "Low": "Low priority task",
        "High": "Needs attention this week",
        "Critical": "Drop everything",
    }
    assert priority["description"] == "Enum: Low, Medium, High, Critical"


def test_fluent_rules_keep_nullability(document):
    props = _props(document, "TodoPatch")
    title = _non_null(props["title"])
    assert (title["minLength"], title["maxLength"]) == (1, 200)
    assert props["title"]["title"] == "Title"

    priority = _non_null(props["priority"])
    assert priority["enum"] == [0, 1, 2, 3]

    due = _non_null(props["due_date"])
    assert due["format"] == "date"
    assert due["description"] == "Validation rules:\n- Must not be in the past"


def test_nested_paths_and_array_elements(document):
    props = _props(document, "BuilderShowcase")
    assert props["code"]["pattern"] == r"^[A-Z]{3}-\d{3}$"
    assert props["code"]["description"] == (
        "Stock keeping code\n\nValidation rules:\n- Is required\n- Must look like ABC-123"
    )
    assert props["address"] == {
        "allOf": [{"$ref": "#/components/schemas/Address"}],
        "description": "Validation rules:\n- Is required",
    }
    assert props["tags"]["items"]["maxLength"] == 20
    assert "description" not in _non_null(props["notes"])
    assert _non_null(props["notes"])["maxLength"] == 500

    postcode = _props(document, "Address")["postcode"]
    assert postcode["description"].endswith("- Must be a postcode the carrier serves")
    assert "- Is required" in postcode["description"]
    assert "countryCode" in _props(document, "Address")


def test_annotated_markers(document):
    props = _props(document, "ConstraintShowcase")
    lines = props["username"]["description"].split("\n")
    assert lines[0] == "Public handle"
    assert "- Must contain at least one non-space character" in lines
    assert "- Must be between 3 and 30 characters" in lines
    assert props["slug"]["description"].endswith("- Must be unique across all showcases")
    assert props["priority"]["x-enum-varnames"] == ["Low", "Medium", "High", "Critical"]
    assert _non_null(props["priority_name"])["enum"] == ["Low", "Medium", "High", "Critical"]
    assert props["email"]["format"] == "email"


def test_enum_components_carry_member_names(document):
    priority = document["components"]["schemas"]["Priority"]
    assert priority["enum"] == [0, 1, 2, 3]
    assert priority["x-enum-varnames"] == ["Low", "Medium", "High", "Critical"]
    assert priority["x-enum-descriptions"] == {
        "Low": "Low priority task",
        "High": "Needs attention this week",
        "Critical": "Drop everything",
    }


def test_collection_element_constraints(document):
    tags = _props(document, "ConstraintShowcase")["tags"]
    assert tags["maxItems"] == 5
    assert tags["items"]["maxLength"] == 20
    assert tags["items"]["description"] == "Validation rules:\n- Must be 20 characters or fewer"


def test_query_model_parameters(document):
    parameters = {p["name"]: p for p in document["paths"]["/validation/search"]["get"]["parameters"]}
    q = parameters["q"]
    assert q["required"] is True
    assert q["schema"]["minLength"] == 2
    assert q["schema"]["description"].startswith("Text to look for\n\nValidation rules:")
    assert parameters["page_size"]["schema"]["maximum"] == 100
    assert _non_null(parameters["priority"]["schema"])["enum"] == [0, 1, 2, 3]


def test_every_component_is_reachable(document):
    parsed = Document.from_openapi(document)
    assert set(parsed.components.schemas) == live_schema_names(parsed)


def test_document_is_built_once(document):
    assert app.openapi() is app.openapi()


def test_request_types_and_bindings():
    bodies, bindings = collect_request_types(app.routes)
    names = {m.__name__ for m in bodies}
    assert {"TodoCreate", "TodoUpdate", "TodoPatch", "ConstraintShowcase", "FluentShowcase", "BuilderShowcase"} <= names
    assert bindings[("/validation/search", "get")].__name__ == "SearchParams"


class Item(BaseModel):
    name: str = Field(max_length=5)


def _small_app(validation: OpenApiValidation) -> FastAPI:
    small = FastAPI(title="Small")

    @small.post("/items")
    def create(item: Item):
        return item

    return validation.install(small)


def test_global_append_flag():
    validation = OpenApiValidation(settings=Settings(APPEND_RULES_TO_DESCRIPTION=False))
    props = _small_app(validation).openapi()["components"]["schemas"]["Item"]["properties"]
    assert props["name"]["maxLength"] == 5
    assert "description" not in props["name"]


def test_configuration_error_aborts_the_build():
    validation = OpenApiValidation()
    validation.with_validation(Item, lambda b: b.property("name").remove("No such message"))
    with pytest.raises(ConfigurationError):
        _small_app(validation).openapi()


def test_unreachable_components_are_pruned():
    validation = OpenApiValidation()
    small = _small_app(validation)
    raw = get_openapi(title=small.title, version=small.version, routes=small.routes)
    raw["components"]["schemas"]["Stale"] = {"type": "string"}
    document = Document.from_openapi(raw)
    validation.enricher.enrich(document, [Item])
    assert "Stale" not in document.components.schemas
    assert "Item" in document.components.schemas


def test_pruning_can_be_disabled():
    validation = OpenApiValidation(settings=Settings(PRUNE_UNUSED_COMPONENTS=False))
    document = Document.from_openapi({"openapi": "3.1.0", "paths": {}, "components": {"schemas": {"Stale": {"type": "string"}}}})
    validation.enricher.enrich(document)
    assert "Stale" in document.components.schemas


def test_cancelled_build():
    validation = OpenApiValidation()
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(BuildCancelled):
        validation.build_document(_small_app(validation), cancel=cancel)


def test_concurrent_first_requests_share_one_document():
    small = _small_app(OpenApiValidation())
    results = []
    barrier = threading.Barrier(6)

    def fetch():
        barrier.wait()
        results.append(small.openapi())

    threads = [threading.Thread(target=fetch) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert all(r is results[0] for r in results)


@enum_descriptions(Air="Next day")
class Shipping(str, Enum):
    Air = "air"
    Ground = "ground"


class Parcel(BaseModel):
    shipping: Shipping


class ParcelValidator(Validator):
    model = Parcel

    def __init__(self):
        super().__init__()
        self.rule_for("shipping").is_in_enum(Shipping, declared_type=str)


def test_enum_reference_keeps_its_component():
    validation = OpenApiValidation()
    validation.add_validator(ParcelValidator())
    small = FastAPI(title="Parcels")

    @small.post("/parcels")
    def send(parcel: Parcel):
        return parcel

    schemas = validation.install(small).openapi()["components"]["schemas"]
    assert schemas["Parcel"]["properties"]["shipping"] == {
        "allOf": [{"$ref": "#/components/schemas/Shipping"}],
        "description": "Enum: Air, Ground\n\nValidation rules:\n- Is required",
    }
    assert schemas["Shipping"]["enum"] == ["air", "ground"]
    assert schemas["Shipping"]["x-enum-varnames"] == ["Air", "Ground"]
    assert schemas["Shipping"]["x-enum-descriptions"] == {"Air": "Next day"}


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1)


def _paging(params: Annotated[PageParams, Query()]) -> PageParams:
    return params


def test_parameter_models_inside_dependencies_are_bound():
    validation = OpenApiValidation()
    small = FastAPI(title="Paged")

    @small.get("/things")
    def things(params: PageParams = Depends(_paging)):
        return {"page": params.page}

    _, bindings = collect_request_types(small.routes)
    assert bindings[("/things", "get")] is PageParams

    parameters = validation.install(small).openapi()["paths"]["/things"]["get"]["parameters"]
    page = next(p for p in parameters if p["name"] == "page")
    assert page["schema"]["minimum"] == 1
    assert page["schema"]["description"] == "Validation rules:\n- Must be greater than or equal to 1"
