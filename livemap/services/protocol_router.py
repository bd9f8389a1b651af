"""Dispatch of inbound websocket frames to registry and broadcast actions."""
from __future__ import annotations

import logging

from ..models import ParticipantState
from ..schemas.presence import (
    InvalidFrameError,
    UnknownInboundMessage,
    UpdateLocationMessage,
    parse_inbound_frame,
)
from .broadcaster import PresenceBroadcaster
from .registry import ParticipantRegistry

logger = logging.getLogger(__name__)


class ProtocolRouter:
    """Turns raw frames from one participant into presence updates."""

    def __init__(self, registry: ParticipantRegistry, broadcaster: PresenceBroadcaster) -> None:
        self._registry = registry
        self._broadcaster = broadcaster

    async def handle_frame(self, participant_id: str, raw: str | bytes) -> ParticipantState | None:
        """Process one frame; returns the updated state when a broadcast went out.

        Malformed frames are logged and dropped without touching the registry.
        """

        try:
            message = parse_inbound_frame(raw)
        except InvalidFrameError as exc:
            logger.warning("Dropping malformed frame from %s: %s", participant_id, exc)
            return None

        if isinstance(message, UpdateLocationMessage):
            return await self._update_location(participant_id, message)
        if isinstance(message, UnknownInboundMessage):
            logger.debug("Ignoring unsupported %r frame from %s", message.type, participant_id)
            return None
        raise TypeError(f"unhandled inbound message {type(message).__name__}")

    async def _update_location(self, participant_id: str, message: UpdateLocationMessage) -> ParticipantState | None:
        state = await self._registry.update_position(participant_id, message.lat, message.lng)
        if state is None:
            return None
        await self._broadcaster.participant_updated(state)
        return state


__all__ = ["ProtocolRouter"]
