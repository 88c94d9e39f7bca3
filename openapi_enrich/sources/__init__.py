from openapi_enrich.sources.base import RuleSource
from openapi_enrich.sources.builder import BuilderSource, ValidationBuilder, with_validation
from openapi_enrich.sources.field_constraints import FieldConstraintSource
from openapi_enrich.sources.fluent import Validator, ValidatorSource

# priority order: earlier sources contribute their rules first
__all__ = [
    "FieldConstraintSource",
    "ValidatorSource",
    "BuilderSource",
    "RuleSource",
    "ValidationBuilder",
    "Validator",
    "with_validation",
]
