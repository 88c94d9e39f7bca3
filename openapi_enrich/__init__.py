from openapi_enrich.annotations import EnumValues, Note, enum_descriptions
from openapi_enrich.core.errors import BuildCancelled, ConfigurationError
from openapi_enrich.integration import OpenApiValidation
from openapi_enrich.sources.builder import with_validation
from openapi_enrich.sources.fluent import Validator

__all__ = [
    "BuildCancelled",
    "ConfigurationError",
    "EnumValues",
    "Note",
    "OpenApiValidation",
    "Validator",
    "enum_descriptions",
    "with_validation",
]
