"""Inbound participant messages.

All messages are JSON objects with a ``type`` field:

- create-session: { type, name?, opponent?: weak|medium|strong|perfect }
- join-session:   { type, code, name? }
- submit-move:    { type, cellIndex, generation }
- rematch:        { type }
- leave:          { type }
"""

from __future__ import annotations

from typing import Annotated, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .ai import TIERS
from .errors import InvalidMessage

MAX_NAME_LENGTH = 32


class _Inbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreateSession(_Inbound):
    type: Literal["create-session"]
    name: str = Field(default="", max_length=MAX_NAME_LENGTH)
    opponent: Optional[str] = Field(
        default=None, description="Difficulty tier of a scripted opponent"
    )

    @field_validator("opponent")
    @classmethod
    def ensure_supported_tier(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in TIERS:
            raise ValueError(
                f"Unsupported difficulty tier {value}. "
                f"Choose one of {', '.join(TIERS)}."
            )
        return value


class JoinSession(_Inbound):
    type: Literal["join-session"]
    code: str = Field(min_length=1)
    name: str = Field(default="", max_length=MAX_NAME_LENGTH)


class SubmitMove(_Inbound):
    type: Literal["submit-move"]
    cell_index: int = Field(alias="cellIndex")
    generation: int


class Rematch(_Inbound):
    type: Literal["rematch"]


class Leave(_Inbound):
    type: Literal["leave"]


InboundMessage = Annotated[
    Union[CreateSession, JoinSession, SubmitMove, Rematch, Leave],
    Field(discriminator="type"),
]

_ADAPTER: TypeAdapter = TypeAdapter(InboundMessage)


def parse_inbound(payload: Mapping[str, object]) -> BaseModel:
    try:
        return _ADAPTER.validate_python(payload)
    except ValidationError as exc:
        errors = exc.errors()
        detail = errors[0]["msg"] if errors else str(exc)
        raise InvalidMessage(detail) from exc
