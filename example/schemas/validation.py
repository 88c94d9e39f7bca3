from pydantic import BaseModel


class FieldError(BaseModel):
    """Individual validation error"""
    field: str
    code: str  # required, min, max, length, pattern, choice, custom, etc.
    message: str


class ValidationProblem(BaseModel):
    """Body of a 400 answer from a fluent validator"""
    message: str
    errors: list[FieldError]
