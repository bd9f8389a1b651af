"""Schemas for the frames exchanged over the presence websocket."""
from __future__ import annotations

import json
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models import ParticipantState, format_timestamp

UPDATE_LOCATION = "UPDATE_LOCATION"
INIT = "INIT"
USER_UPDATED = "USER_UPDATED"
USER_LEFT = "USER_LEFT"


class InvalidFrameError(ValueError):
    """Raised when an inbound frame cannot be decoded into a known message."""


# Inbound (client -> server)


class UpdateLocationMessage(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    type: Literal["UPDATE_LOCATION"]
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)


class UnknownInboundMessage(BaseModel):
    """A well-formed frame whose ``type`` this server does not handle."""

    model_config = ConfigDict(frozen=True)

    type: str


InboundMessage = Union[UpdateLocationMessage, UnknownInboundMessage]

_INBOUND_MODELS: dict[str, type[UpdateLocationMessage]] = {
    UPDATE_LOCATION: UpdateLocationMessage,
}


def parse_inbound_frame(raw: str | bytes) -> InboundMessage:
    """Decode one inbound frame.

    Unrecognised ``type`` values yield :class:`UnknownInboundMessage` so newer
    clients keep working; anything that is not a JSON object carrying a string
    ``type`` (or a known type with missing or ill-typed fields) raises
    :class:`InvalidFrameError`.
    """

    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise InvalidFrameError("frame is not valid JSON") from exc

    if not isinstance(payload, dict):
        raise InvalidFrameError("frame must be a JSON object")

    message_type = payload.get("type")
    if not isinstance(message_type, str):
        raise InvalidFrameError("frame has no string 'type' field")

    model = _INBOUND_MODELS.get(message_type)
    if model is None:
        return UnknownInboundMessage(type=message_type)

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) or "<root>" for error in exc.errors())
        raise InvalidFrameError(f"invalid {message_type} frame ({fields})") from exc


# Outbound (server -> client)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ParticipantPayload(_WireModel):
    id: str
    lat: float | None = None
    lng: float | None = None
    connected_at: str = Field(..., alias="connectedAt")

    @classmethod
    def from_state(cls, state: ParticipantState) -> ParticipantPayload:
        return cls(
            id=state.id,
            lat=state.lat,
            lng=state.lng,
            connected_at=format_timestamp(state.connected_at),
        )


class InitMessage(_WireModel):
    type: Literal["INIT"] = INIT
    user_id: str = Field(..., alias="userId")
    users: list[ParticipantPayload] = Field(default_factory=list)


class UserUpdatedMessage(_WireModel):
    type: Literal["USER_UPDATED"] = USER_UPDATED
    user: ParticipantPayload


class UserLeftMessage(_WireModel):
    type: Literal["USER_LEFT"] = USER_LEFT
    user_id: str = Field(..., alias="userId")


OutboundMessage = Union[InitMessage, UserUpdatedMessage, UserLeftMessage]


def encode_outbound(message: OutboundMessage) -> str:
    return message.model_dump_json(by_alias=True)


__all__ = [
    "INIT",
    "InboundMessage",
    "InitMessage",
    "InvalidFrameError",
    "OutboundMessage",
    "ParticipantPayload",
    "UPDATE_LOCATION",
    "USER_LEFT",
    "USER_UPDATED",
    "UnknownInboundMessage",
    "UpdateLocationMessage",
    "UserLeftMessage",
    "UserUpdatedMessage",
    "encode_outbound",
    "parse_inbound_frame",
]
