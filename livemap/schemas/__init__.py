"""Pydantic schemas for websocket frames and HTTP responses."""
from .presence import (
    InboundMessage,
    InitMessage,
    InvalidFrameError,
    OutboundMessage,
    ParticipantPayload,
    UnknownInboundMessage,
    UpdateLocationMessage,
    UserLeftMessage,
    UserUpdatedMessage,
    encode_outbound,
    parse_inbound_frame,
)
from .system import ApiInfoResponse, HealthResponse

__all__ = [
    "ApiInfoResponse",
    "HealthResponse",
    "InboundMessage",
    "InitMessage",
    "InvalidFrameError",
    "OutboundMessage",
    "ParticipantPayload",
    "UnknownInboundMessage",
    "UpdateLocationMessage",
    "UserLeftMessage",
    "UserUpdatedMessage",
    "encode_outbound",
    "parse_inbound_frame",
]
