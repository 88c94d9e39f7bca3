"""
Markers for declaring documentation-only constraints next to a field.

    class TaskIn(BaseModel):
        priority: Annotated[int, EnumValues(Priority)]
        slug: Annotated[str, Note("Must be unique per project")]
"""
import enum
from typing import Any, Callable


class EnumValues:
    """The value must be one of the members of `enum_type`."""

    def __init__(self, enum_type: Any):
        self.enum_type = enum_type

    def __repr__(self) -> str:
        return f"EnumValues({getattr(self.enum_type, '__name__', self.enum_type)!r})"


class Note:
    """A rule checked elsewhere, documented by its text."""

    def __init__(self, text: str, predicate: Callable[..., Any] | None = None):
        self.text = text
        self.predicate = predicate

    def __repr__(self) -> str:
        return f"Note({self.text!r})"


DESCRIPTIONS_ATTRIBUTE = "__enum_descriptions__"


def enum_descriptions(**texts: str):
    """
    Class decorator attaching human-readable descriptions to enum members:

        @enum_descriptions(Low="Low priority task")
        class Priority(IntEnum):
            Low = 0
            Medium = 1
    """

    def decorate(enum_cls):
        unknown = set(texts) - set(enum_cls.__members__)
        if unknown:
            raise ValueError(f"{enum_cls.__name__} has no members named {sorted(unknown)}")
        setattr(enum_cls, DESCRIPTIONS_ATTRIBUTE, dict(texts))
        return enum_cls

    return decorate


def member_descriptions(enum_cls: type[enum.Enum]) -> dict[str, str]:
    """Described members only, in member order."""
    texts = getattr(enum_cls, DESCRIPTIONS_ATTRIBUTE, None) or {}
    return {member.name: texts[member.name] for member in enum_cls if texts.get(member.name)}
