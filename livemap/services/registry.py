"""Authoritative in-memory registry of connected participants."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from ..models import ParticipantState, utcnow

logger = logging.getLogger(__name__)


class ParticipantChannel(Protocol):
    """Outbound side of a participant connection (satisfied by ``fastapi.WebSocket``)."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class DuplicateParticipantError(RuntimeError):
    """Raised when a connection id is registered twice."""


@dataclass(slots=True)
class _Entry:
    state: ParticipantState
    channel: ParticipantChannel


class ParticipantRegistry:
    """Maps connection ids to participant state and their outbound channel.

    Every operation runs under one lock and never awaits while holding it, so
    callers only ever see whole entries. States are immutable, which makes the
    lists returned by :meth:`snapshot` and :meth:`recipients` point-in-time
    copies.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock or utcnow

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._entries

    def get(self, participant_id: str) -> ParticipantState | None:
        entry = self._entries.get(participant_id)
        return entry.state if entry is not None else None

    async def register(self, participant_id: str, channel: ParticipantChannel) -> ParticipantState:
        async with self._lock:
            if participant_id in self._entries:
                raise DuplicateParticipantError(f"participant {participant_id} is already registered")
            state = ParticipantState(id=participant_id, connected_at=self._clock())
            self._entries[participant_id] = _Entry(state=state, channel=channel)
            return state

    async def update_position(self, participant_id: str, lat: float, lng: float) -> ParticipantState | None:
        async with self._lock:
            entry = self._entries.get(participant_id)
            if entry is None:
                # The connection closed while this frame was still in flight.
                logger.info("Ignoring position update for departed participant %s", participant_id)
                return None
            entry.state = entry.state.with_position(lat, lng)
            return entry.state

    async def remove(self, participant_id: str) -> ParticipantState | None:
        async with self._lock:
            entry = self._entries.pop(participant_id, None)
        if entry is None:
            logger.debug("Participant %s already removed", participant_id)
            return None
        return entry.state

    async def snapshot(self, excluding: str | None = None) -> list[ParticipantState]:
        async with self._lock:
            return [entry.state for key, entry in self._entries.items() if key != excluding]

    async def recipients(self, excluding: str | None = None) -> list[tuple[str, ParticipantChannel]]:
        async with self._lock:
            return [(key, entry.channel) for key, entry in self._entries.items() if key != excluding]


__all__ = ["DuplicateParticipantError", "ParticipantChannel", "ParticipantRegistry"]
