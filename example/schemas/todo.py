import uuid
from datetime import date, datetime
from enum import IntEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from openapi_enrich import enum_descriptions


@enum_descriptions(Low="Low priority task", High="Needs attention this week", Critical="Drop everything")
class Priority(IntEnum):
    Low = 0
    Medium = 1
    High = 2
    Critical = 3


TagText = Annotated[str, StringConstraints(min_length=1, max_length=30)]


class TodoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200, description="What needs doing")
    description: str | None = Field(default=None, max_length=1000)
    priority: Priority = Priority.Low
    due_date: date | None = None
    estimate_hours: float | None = Field(default=None, ge=0, le=1000)
    tags: list[TagText] = Field(default_factory=list, max_length=10)


class TodoUpdate(BaseModel):
    """Full replacement, documented through the explicit builder."""
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    priority: int = 0
    is_complete: bool = False
    due_date: date | None = None
    estimate_hours: float | None = None
    tags: list[str] = Field(default_factory=list)


class TodoPatch(BaseModel):
    """Partial update, checked by TodoPatchValidator."""
    title: str | None = None
    description: str | None = None
    priority: int | None = None
    is_complete: bool | None = None
    due_date: date | None = None
    estimate_hours: float | None = None


class TodoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None
    priority: Priority
    is_complete: bool
    due_date: date | None
    estimate_hours: float | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime
