"""WebSocket endpoint that streams participant positions."""
from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services import Closed, Connected, Frame, PresenceHub, SessionEvent, TransportError

logger = logging.getLogger(__name__)


async def _transport_events(websocket: WebSocket) -> AsyncIterator[SessionEvent]:
    """Translate ASGI websocket messages into session events."""

    yield Connected()
    while True:
        try:
            message = await websocket.receive()
        except WebSocketDisconnect as exc:
            yield Closed(code=exc.code)
            return
        except Exception as exc:
            yield TransportError(exc)
            return

        if message["type"] == "websocket.disconnect":
            yield Closed(code=message.get("code", 1000))
            return

        if message.get("text") is not None:
            yield Frame(message["text"])
        elif message.get("bytes") is not None:
            yield Frame(message["bytes"])


async def presence_socket(websocket: WebSocket) -> None:
    """Register the caller, stream its updates out and everyone else's in."""

    hub: PresenceHub = websocket.app.state.presence_hub
    await websocket.accept()
    session = hub.open_session(websocket)
    logger.debug("Presence socket %s accepted from %s", session.participant_id, websocket.client)
    await session.run(_transport_events(websocket))


def create_realtime_router(path: str = "/") -> APIRouter:
    router = APIRouter()
    router.add_api_websocket_route(path, presence_socket, name="presence_socket")
    return router


__all__ = ["create_realtime_router", "presence_socket"]
