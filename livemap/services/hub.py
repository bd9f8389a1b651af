"""Wiring of registry, broadcaster and router for one server instance."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable

from .broadcaster import CLOSE_GOING_AWAY, DEFAULT_SEND_TIMEOUT, PresenceBroadcaster
from .protocol_router import ProtocolRouter
from .registry import ParticipantChannel, ParticipantRegistry
from .session import ParticipantSession

logger = logging.getLogger(__name__)


def _new_connection_id() -> str:
    return str(uuid.uuid4())


class PresenceHub:
    """Owns the presence state of one server and hands out connection sessions."""

    def __init__(
        self,
        *,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.registry = ParticipantRegistry(clock=clock)
        self.broadcaster = PresenceBroadcaster(self.registry, send_timeout=send_timeout)
        self.router = ProtocolRouter(self.registry, self.broadcaster)
        self._id_factory = id_factory or _new_connection_id

    @property
    def participant_count(self) -> int:
        return len(self.registry)

    def open_session(self, channel: ParticipantChannel) -> ParticipantSession:
        return ParticipantSession(
            self._id_factory(),
            channel,
            registry=self.registry,
            broadcaster=self.broadcaster,
            router=self.router,
        )

    async def close_all(self, code: int = CLOSE_GOING_AWAY) -> None:
        """Close every open channel at once, each bounded by the send timeout.

        Sessions clean up as the closes arrive.
        """

        targets = await self.registry.recipients()
        logger.info("Closing %d participant connection(s)", len(targets))
        await asyncio.gather(
            *(self.broadcaster.close_quietly(participant_id, channel, code) for participant_id, channel in targets)
        )


__all__ = ["PresenceHub"]
