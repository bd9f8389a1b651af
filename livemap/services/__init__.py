"""Convenience exports for service layer."""
from .broadcaster import DEFAULT_SEND_TIMEOUT, PresenceBroadcaster
from .hub import PresenceHub
from .protocol_router import ProtocolRouter
from .registry import DuplicateParticipantError, ParticipantChannel, ParticipantRegistry
from .session import (
    Closed,
    Connected,
    ConnectionState,
    Frame,
    ParticipantSession,
    SessionEvent,
    TransportError,
)

__all__ = [
    "Closed",
    "Connected",
    "ConnectionState",
    "DEFAULT_SEND_TIMEOUT",
    "DuplicateParticipantError",
    "Frame",
    "ParticipantChannel",
    "ParticipantRegistry",
    "ParticipantSession",
    "PresenceBroadcaster",
    "PresenceHub",
    "ProtocolRouter",
    "SessionEvent",
    "TransportError",
]
