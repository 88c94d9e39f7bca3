from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Iterator

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.routing import APIRoute

from openapi_enrich.core.aggregator import RuleAggregator
from openapi_enrich.core.config import Settings, settings as default_settings
from openapi_enrich.core.enricher import DocumentEnricher
from openapi_enrich.schemas.descriptor import is_model, unwrap_annotation
from openapi_enrich.schemas.document import Document
from openapi_enrich.sources.base import RuleSource
from openapi_enrich.sources.builder import BuilderSource, ValidationBuilder, ValidationConfiguration
from openapi_enrich.sources.field_constraints import FieldConstraintSource
from openapi_enrich.sources.fluent import Validator, ValidatorSource

logger = logging.getLogger(__name__)


def _model_of(field: Any) -> Any:
    annotation = getattr(field, "type_", None)
    if annotation is None:
        field_info = getattr(field, "field_info", None)
        annotation = getattr(field_info, "annotation", None)
    if annotation is None:
        return None
    element = unwrap_annotation(annotation).element_type
    return element if is_model(element) else None


def _parameter_fields(dependant: Any) -> Iterator[Any]:
    """Path, query, header and cookie fields of a route and of every sub-dependency."""
    yield from dependant.path_params
    yield from dependant.query_params
    yield from dependant.header_params
    yield from dependant.cookie_params
    for sub in dependant.dependencies:
        yield from _parameter_fields(sub)


def collect_request_types(routes: Iterable[Any]) -> tuple[list[Any], dict[tuple[str, str], Any]]:
    """
    Request body models of every API route, plus parameter models
    (`Annotated[Model, Query()]` and friends) bound to their operation.
    """
    bodies: list[Any] = []
    bindings: dict[tuple[str, str], Any] = {}
    for route in routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        if route.body_field is not None:
            model = _model_of(route.body_field)
            if model is not None and model not in bodies:
                bodies.append(model)

        for field in _parameter_fields(route.dependant):
            model = _model_of(field)
            if model is None:
                continue
            for method in route.methods or ():
                bindings[(route.path_format, method.lower())] = model
    return bodies, bindings


class OpenApiValidation:
    """
    Owns the rule sources for one app and plugs the enrichment into its
    OpenAPI generation.

        validation = OpenApiValidation()
        validation.add_validator(TodoValidator())
        validation.with_validation(TodoUpdate, lambda b: b.property("title").required())
        validation.install(app)
    """

    def __init__(self, settings: Settings | None = None, extra_sources: Iterable[RuleSource] = ()):
        self.settings = settings or default_settings
        self.builders = BuilderSource()
        self.validators = ValidatorSource()

        sources: list[RuleSource] = []
        if self.settings.AUTO_DOCUMENT_FIELD_CONSTRAINTS:
            sources.append(FieldConstraintSource())
        if self.settings.AUTO_DOCUMENT_VALIDATORS:
            sources.append(self.validators)
        sources.extend(extra_sources)
        sources.append(self.builders)

        self.aggregator = RuleAggregator(sources)
        self.enricher = DocumentEnricher(self.aggregator, self.settings)
        self._lock = threading.Lock()

    def add_validator(self, validator: Validator) -> Validator:
        return self.validators.register(validator)

    def with_validation(self, model: Any, configure: Callable[[ValidationBuilder], Any]) -> ValidationConfiguration:
        return self.builders.with_validation(model, configure)

    def build_document(self, app: FastAPI, *, cancel: threading.Event | None = None) -> dict[str, Any]:
        raw = get_openapi(
            title=app.title,
            version=app.version,
            openapi_version=app.openapi_version,
            summary=app.summary,
            description=app.description,
            routes=app.routes,
            tags=app.openapi_tags,
            servers=app.servers,
            separate_input_output_schemas=app.separate_input_output_schemas,
        )
        document = Document.from_openapi(raw)
        request_types, bindings = collect_request_types(app.routes)
        self.enricher.enrich(document, request_types, bindings, cancel=cancel)
        return document.to_openapi()

    def install(self, app: FastAPI) -> FastAPI:
        def openapi() -> dict[str, Any]:
            if app.openapi_schema:
                return app.openapi_schema
            with self._lock:
                if not app.openapi_schema:
                    app.openapi_schema = self.build_document(app)
            return app.openapi_schema

        app.openapi = openapi
        logger.debug("OpenAPI enrichment installed on %s", app.title)
        return app
