from typing import Annotated

from fastapi import APIRouter, Query

from example.core.validation import raise_if_invalid
from example.schemas.showcase import (
    BuilderShowcase,
    ConstraintShowcase,
    FluentShowcase,
    SearchParams,
    ShowcaseEcho,
)
from example.schemas.validation import ValidationProblem
from example.validators import fluent_showcase_validator

router = APIRouter(prefix="/validation", tags=["validation"])


@router.post("/constraints", response_model=ShowcaseEcho)
def constraints(payload: ConstraintShowcase):
    """Rules declared on the model fields."""
    return ShowcaseEcho(kind="constraints", payload=payload.model_dump(mode="json", by_alias=True))


@router.post(
    "/fluent",
    response_model=ShowcaseEcho,
    responses={400: {"model": ValidationProblem, "description": "Validation failed"}},
)
def fluent(payload: FluentShowcase):
    """Rules declared by a fluent validator, checked here and documented in the schema."""
    raise_if_invalid(fluent_showcase_validator, payload)
    return ShowcaseEcho(kind="fluent", payload=payload.model_dump(mode="json"))


@router.post("/builder", response_model=ShowcaseEcho)
def builder(payload: BuilderShowcase):
    """Rules declared only for the documentation."""
    return ShowcaseEcho(kind="builder", payload=payload.model_dump(mode="json", by_alias=True))


@router.get("/search", response_model=ShowcaseEcho)
def search(params: Annotated[SearchParams, Query()]):
    """Query parameters described by a model."""
    return ShowcaseEcho(kind="search", payload=params.model_dump(mode="json"))
