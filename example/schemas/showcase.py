"""
Models that exist to show each way of declaring rules, one per endpoint
under /validation.
"""
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, Field, HttpUrl, StringConstraints

from openapi_enrich import EnumValues, Note
from example.schemas.todo import Priority


class Role(str, Enum):
    admin = "admin"
    editor = "editor"
    viewer = "viewer"


def not_blank(value: str) -> str:
    """Must contain at least one non-space character"""
    if not value.strip():
        raise ValueError("must not be blank")
    return value


class Address(BaseModel):
    street: str = Field(min_length=1, max_length=100)
    postcode: str = Field(pattern=r"^\d{4,5}$")
    country_code: str = Field(default="US", min_length=2, max_length=2, alias="countryCode")


# Field declarations only
class ConstraintShowcase(BaseModel):
    username: Annotated[str, AfterValidator(not_blank)] = Field(
        min_length=3, max_length=30, pattern=r"^[a-z0-9_]+$", description="Public handle"
    )
    email: EmailStr
    website: HttpUrl | None = None
    slug: Annotated[str, Note("Must be unique across all showcases")]
    budget: Decimal = Field(ge=Decimal("0.01"), le=Decimal("99999.99"))
    rating: float = Field(gt=0, lt=5)
    quantity: int = Field(default=1, ge=1, multiple_of=2)
    priority: Annotated[int, EnumValues(Priority)] = 0
    priority_name: Annotated[str, EnumValues(Priority)] | None = None
    address: Address
    tags: list[Annotated[str, StringConstraints(max_length=20)]] = Field(default_factory=list, max_length=5)
    contacts: list[EmailStr] = Field(default_factory=list)


# Documented by FluentShowcaseValidator
class FluentShowcase(BaseModel):
    name: str | None = None
    age: int | None = None
    email: str | None = None
    homepage: str | None = None
    role: str | None = None
    level: int | None = None
    score: float | None = None


# Documented by the explicit builder
class BuilderShowcase(BaseModel):
    code: str
    quantity: int
    address: Address
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None


class SearchParams(BaseModel):
    q: str = Field(min_length=2, max_length=50, description="Text to look for")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    priority: Annotated[int, EnumValues(Priority)] | None = None


class ShowcaseEcho(BaseModel):
    kind: str
    payload: dict
