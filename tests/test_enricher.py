import threading

import pytest
from pydantic import BaseModel, Field

from openapi_enrich import BuildCancelled
from openapi_enrich.core.aggregator import RuleAggregator
from openapi_enrich.core.config import Settings
from openapi_enrich.core.enricher import DocumentEnricher
from openapi_enrich.sources.builder import BuilderSource
from openapi_enrich.sources.field_constraints import FieldConstraintSource
from tests.helpers import make_document, post_operation, ref


class Customer(BaseModel):
    email: str = Field(max_length=80)


class Invoice(BaseModel):
    number: str
    customer: Customer
    lines: list[str] = Field(default_factory=list)


class Filters(BaseModel):
    status: str = Field(min_length=2)
    limit: int = Field(default=10, le=50)


def _enricher(configure=None, **settings):
    builders = BuilderSource()
    if configure is not None:
        builders.with_validation(Invoice, configure)
    aggregator = RuleAggregator([FieldConstraintSource(), builders])
    return DocumentEnricher(aggregator, Settings(**settings))


def _document():
    return make_document(
        paths={"/invoices": post_operation(body=ref("Invoice-Input"))},
        schemas={
            "Invoice-Input": {
                "type": "object",
                "properties": {
                    "number": {"type": "string"},
                    "customer": ref("Customer"),
                    "lines": {"type": "array", "items": {"type": "string"}},
                },
            },
            "Customer": {"type": "object", "properties": {"email": {"type": "string"}}},
            "Leftover": {"type": "string"},
        },
    )


def test_components_are_rewritten_and_pruned():
    document = _enricher().enrich(_document(), [Invoice])
    schemas = document.components.schemas
    invoice = schemas["Invoice-Input"]
    assert invoice.required == ["number", "customer"]
    assert invoice.properties["number"].description == "Validation rules:\n- Is required"
    assert invoice.properties["customer"].all_of[0].schema_name == "Customer"
    assert schemas["Customer"].properties["email"].max_length == 80
    assert "Leftover" not in schemas


def test_nested_and_array_paths():
    def configure(b):
        b.property("customer.email").email()
        b.property("lines[*]").pattern("^[A-Z]")

    document = _enricher(configure).enrich(_document(), [Invoice])
    email = document.components.schemas["Customer"].properties["email"]
    assert email.format == "email"
    assert email.description == (
        "Validation rules:\n- Is required\n- Must be 80 characters or fewer\n- Must be a valid email address"
    )
    lines = document.components.schemas["Invoice-Input"].properties["lines"]
    assert lines.items.pattern == "^[A-Z]"


def test_parameters_are_matched_by_name():
    document = make_document(
        paths={
            "/invoices": {
                "get": {
                    "parameters": [
                        {"name": "Status", "in": "query", "schema": {"type": "string"}},
                        {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                        {"name": "other", "in": "query", "schema": {"type": "string"}},
                    ],
                    "responses": {"200": {"description": "OK"}},
                }
            }
        }
    )
    _enricher().enrich(document, parameter_bindings={("/invoices", "get"): Filters})
    status, limit, other = document.paths["/invoices"].get.parameters
    assert status.required is True
    assert status.schema_.min_length == 2
    assert limit.required is None
    assert limit.schema_.maximum == "50"
    assert other.schema_.description is None


def test_pruning_follows_settings():
    document = _enricher(PRUNE_UNUSED_COMPONENTS=False).enrich(_document(), [Invoice])
    assert "Leftover" in document.components.schemas


def test_cancellation_is_checked_between_phases():
    cancel = threading.Event()
    cancel.set()
    document = _document()
    with pytest.raises(BuildCancelled, match="discovery"):
        _enricher().enrich(document, [Invoice], cancel=cancel)
    assert document.components.schemas["Invoice-Input"].required is None
