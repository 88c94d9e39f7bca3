from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from openapi_enrich.core.errors import ConfigurationError


class AlterOperation(BaseModel):
    """Rewrite the message of the one rule currently carrying `old_message`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["alter"] = "alter"
    old_message: str
    new_message: str

    @model_validator(mode="after")
    def _check_messages(self) -> "AlterOperation":
        if not self.old_message.strip():
            raise ConfigurationError("Message to alter must not be blank")
        if not self.new_message.strip():
            raise ConfigurationError("Replacement message must not be blank")
        return self


class RemoveOperation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["remove"] = "remove"
    message: str

    @model_validator(mode="after")
    def _check_message(self) -> "RemoveOperation":
        if not self.message.strip():
            raise ConfigurationError("Message to remove must not be blank")
        return self


class RemoveAllOperation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["remove_all"] = "remove_all"


RuleOperation = Annotated[
    Union[AlterOperation, RemoveOperation, RemoveAllOperation],
    Field(discriminator="kind"),
]
