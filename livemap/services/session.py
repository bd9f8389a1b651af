"""Per-connection lifecycle: transport events in, registry and broadcast actions out."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Union

from .broadcaster import PresenceBroadcaster
from .protocol_router import ProtocolRouter
from .registry import DuplicateParticipantError, ParticipantChannel, ParticipantRegistry

logger = logging.getLogger(__name__)

_CLOSE_INTERNAL_ERROR = 1011


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class Connected:
    """The transport accepted the connection."""


@dataclass(frozen=True, slots=True)
class Frame:
    data: str | bytes


@dataclass(frozen=True, slots=True)
class Closed:
    code: int = 1000


@dataclass(frozen=True, slots=True)
class TransportError:
    error: BaseException


SessionEvent = Union[Connected, Frame, Closed, TransportError]


class ParticipantSession:
    """Drives one connection through ``CONNECTING -> OPEN -> CLOSED``.

    Events are handled strictly one at a time, so frames from a participant are
    applied (and fanned out) in the order they arrived. Close and transport
    errors are handled identically and announce the departure exactly once.
    """

    def __init__(
        self,
        participant_id: str,
        channel: ParticipantChannel,
        *,
        registry: ParticipantRegistry,
        broadcaster: PresenceBroadcaster,
        router: ProtocolRouter,
    ) -> None:
        self.participant_id = participant_id
        self._channel = channel
        self._registry = registry
        self._broadcaster = broadcaster
        self._router = router
        self._state = ConnectionState.CONNECTING
        self._registered = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def run(self, events: AsyncIterator[SessionEvent]) -> None:
        """Consume ``events`` until the connection closes.

        Cleanup runs even if the event source raises or the task is cancelled.
        """

        try:
            async for event in events:
                await self.dispatch(event)
                if self._state is ConnectionState.CLOSED:
                    break
        except Exception as exc:
            await self.dispatch(TransportError(exc))
        finally:
            if self._state is not ConnectionState.CLOSED:
                await self._close()

    async def dispatch(self, event: SessionEvent) -> None:
        if isinstance(event, Connected):
            await self._open()
        elif isinstance(event, Frame):
            if self._state is ConnectionState.OPEN:
                await self._router.handle_frame(self.participant_id, event.data)
            else:
                logger.debug("Ignoring frame for %s session %s", self._state.value, self.participant_id)
        elif isinstance(event, Closed):
            await self._close()
        elif isinstance(event, TransportError):
            if self._state is not ConnectionState.CLOSED:
                logger.warning("WS error for %s: %s", self.participant_id, event.error)
            await self._close()
        else:
            raise TypeError(f"unknown session event {event!r}")

    async def _open(self) -> None:
        if self._state is not ConnectionState.CONNECTING:
            logger.warning("Session %s cannot open from state %s", self.participant_id, self._state.value)
            return

        try:
            await self._registry.register(self.participant_id, self._channel)
        except DuplicateParticipantError:
            logger.exception("Aborting connection setup for %s", self.participant_id)
            self._state = ConnectionState.CLOSED
            try:
                await self._channel.close(code=_CLOSE_INTERNAL_ERROR)
            except Exception as exc:
                logger.debug("Closing rejected channel %s failed: %s", self.participant_id, exc)
            return

        self._registered = True
        self._state = ConnectionState.OPEN
        logger.info("User connected: %s. Total: %d", self.participant_id, len(self._registry))

        try:
            await self._broadcaster.send_init(self.participant_id, self._channel)
        except Exception as exc:
            logger.warning("INIT delivery to %s failed: %s", self.participant_id, exc)
            await self._close()

    async def _close(self) -> None:
        if self._state is ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        if not self._registered:
            return

        # A failed broadcast may already have removed and announced this participant.
        if await self._registry.remove(self.participant_id) is None:
            return
        logger.info("User disconnected: %s. Total: %d", self.participant_id, len(self._registry))
        await asyncio.shield(self._broadcaster.announce_departure(self.participant_id))


__all__ = [
    "Closed",
    "Connected",
    "ConnectionState",
    "Frame",
    "ParticipantSession",
    "SessionEvent",
    "TransportError",
]
