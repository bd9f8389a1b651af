"""Fan-out of presence events to connected participants."""
from __future__ import annotations

import asyncio
import logging
from collections import deque

from ..models import ParticipantState
from ..schemas.presence import (
    InitMessage,
    OutboundMessage,
    ParticipantPayload,
    UserLeftMessage,
    UserUpdatedMessage,
    encode_outbound,
)
from .registry import ParticipantChannel, ParticipantRegistry

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIMEOUT = 5.0

# Close code used when a recipient is dropped or the server shuts down.
CLOSE_GOING_AWAY = 1001


class PresenceBroadcaster:
    """Serialises presence events once and delivers them best-effort.

    Each fan-out works on the registry's recipient list as it was when the
    fan-out started. Sends run concurrently and every send is bounded by
    ``send_timeout``; a recipient that errors or times out is removed from the
    registry and announced as departed to everyone else.
    """

    def __init__(self, registry: ParticipantRegistry, *, send_timeout: float = DEFAULT_SEND_TIMEOUT) -> None:
        self._registry = registry
        self._send_timeout = send_timeout
        self._departures: set[asyncio.Task[None]] = set()

    async def send_init(self, participant_id: str, channel: ParticipantChannel) -> None:
        """Send INIT to a freshly registered participant only.

        Delivery errors propagate so the caller can tear the connection down.
        """

        others = await self._registry.snapshot(excluding=participant_id)
        message = InitMessage(
            user_id=participant_id,
            users=[ParticipantPayload.from_state(state) for state in others],
        )
        await asyncio.wait_for(channel.send_text(encode_outbound(message)), timeout=self._send_timeout)

    async def participant_updated(self, state: ParticipantState) -> None:
        message = UserUpdatedMessage(user=ParticipantPayload.from_state(state))
        await self._fan_out(message, origin=state.id)

    async def participant_left(self, participant_id: str) -> None:
        await self._fan_out(UserLeftMessage(user_id=participant_id), origin=participant_id)

    def announce_departure(self, participant_id: str) -> asyncio.Task[None]:
        """Schedule USER_LEFT on its own task so it survives cancellation of the caller."""

        task = asyncio.create_task(self.participant_left(participant_id))
        self._departures.add(task)
        task.add_done_callback(self._departures.discard)
        return task

    async def drain(self) -> None:
        """Wait for departure announcements that are still in flight."""

        if self._departures:
            await asyncio.gather(*self._departures, return_exceptions=True)

    async def _fan_out(self, message: OutboundMessage, *, origin: str) -> None:
        pending: deque[tuple[OutboundMessage, str]] = deque([(message, origin)])
        while pending:
            current, excluded = pending.popleft()
            for departed in await self._deliver(current, excluded):
                pending.append((UserLeftMessage(user_id=departed), departed))

    async def _deliver(self, message: OutboundMessage, excluded: str) -> list[str]:
        """Deliver one frame and return the ids dropped because their send failed."""

        targets = await self._registry.recipients(excluding=excluded)
        if not targets:
            return []

        payload = encode_outbound(message)
        results = await asyncio.gather(
            *(self._send(participant_id, channel, payload) for participant_id, channel in targets)
        )

        dropped: list[tuple[str, ParticipantChannel]] = []
        for (participant_id, channel), delivered in zip(targets, results):
            if delivered:
                continue
            # Whoever removes the entry first owns the departure announcement.
            if await self._registry.remove(participant_id) is None:
                continue
            logger.info(
                "Dropped participant %s after failed delivery. Total: %d",
                participant_id,
                len(self._registry),
            )
            dropped.append((participant_id, channel))

        await asyncio.gather(*(self.close_quietly(participant_id, channel) for participant_id, channel in dropped))
        return [participant_id for participant_id, _ in dropped]

    async def _send(self, participant_id: str, channel: ParticipantChannel, payload: str) -> bool:
        try:
            await asyncio.wait_for(channel.send_text(payload), timeout=self._send_timeout)
        except asyncio.TimeoutError:
            logger.warning("Send to participant %s timed out after %.1fs", participant_id, self._send_timeout)
            return False
        except Exception as exc:
            logger.warning("Send to participant %s failed: %s", participant_id, exc)
            return False
        return True

    async def close_quietly(
        self,
        participant_id: str,
        channel: ParticipantChannel,
        code: int = CLOSE_GOING_AWAY,
    ) -> None:
        """Close ``channel`` within the send timeout, logging instead of raising."""

        try:
            await asyncio.wait_for(channel.close(code=code), timeout=self._send_timeout)
        except Exception as exc:
            logger.debug("Closing channel for participant %s failed: %s", participant_id, exc)


__all__ = ["CLOSE_GOING_AWAY", "DEFAULT_SEND_TIMEOUT", "PresenceBroadcaster"]
