"""
Pydantic-схемы входящих сообщений WebSocket.
Тип сообщения выбирается по полю `type`.
"""
import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .exceptions import MalformedMessage

NonEmpty = Annotated[str, Field(min_length=1)]


class JoinMessage(BaseModel):
    type: Literal["join"]
    roomName: NonEmpty
    playerId: NonEmpty
    name: str = Field("Anonymous", description="Display name shown to the table")


class StartRoundMessage(BaseModel):
    type: Literal["start_round"]
    roomName: NonEmpty


class BetMessage(BaseModel):
    type: Literal["bet"]
    roomName: NonEmpty
    playerId: NonEmpty
    betAmount: int


class HitMessage(BaseModel):
    type: Literal["hit"]
    roomName: NonEmpty
    playerId: NonEmpty


class StandMessage(BaseModel):
    type: Literal["stand"]
    roomName: NonEmpty
    playerId: NonEmpty


InboundMessage = Annotated[
    Union[JoinMessage, StartRoundMessage, BetMessage, HitMessage, StandMessage],
    Field(discriminator="type"),
]

_inbound_adapter = TypeAdapter(InboundMessage)


def parse_inbound(raw: str | bytes) -> InboundMessage:
    """Разбирает кадр JSON; любую ошибку превращает в MalformedMessage."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMessage(f"binary frame is not UTF-8: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedMessage(f"invalid JSON: {e}") from e
    try:
        return _inbound_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedMessage(f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e
