import asyncio
import logging

import pytest

from livemap.services import PresenceHub
from tests.fakes import FakeChannel


async def _register_pair(hub: PresenceHub) -> tuple[FakeChannel, FakeChannel]:
    sender, watcher = FakeChannel(), FakeChannel()
    await hub.registry.register("user-1", sender)
    await hub.registry.register("user-2", watcher)
    return sender, watcher


def test_update_location_is_stored_and_broadcast(hub: PresenceHub):
    async def scenario():
        sender, watcher = await _register_pair(hub)
        state = await hub.router.handle_frame("user-1", '{"type":"UPDATE_LOCATION","lat":38.7,"lng":-9.1}')
        return sender, watcher, state

    sender, watcher, state = asyncio.run(scenario())
    assert (state.lat, state.lng) == (38.7, -9.1)
    assert hub.registry.get("user-1") == state
    assert sender.sent == []
    assert watcher.messages[0]["type"] == "USER_UPDATED"
    assert watcher.messages[0]["user"]["id"] == "user-1"


@pytest.mark.parametrize(
    "raw",
    [
        '{"type":"UPDATE_LOCATION"}',
        '{"type":"UPDATE_LOCATION","lat":"north","lng":1}',
        "definitely not json",
    ],
)
def test_malformed_frame_produces_no_broadcast(hub: PresenceHub, raw: str, caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.WARNING)

    async def scenario():
        sender, watcher = await _register_pair(hub)
        await hub.router.handle_frame("user-1", '{"type":"UPDATE_LOCATION","lat":1.5,"lng":2.5}')
        watcher.sent.clear()
        result = await hub.router.handle_frame("user-1", raw)
        return sender, watcher, result

    sender, watcher, result = asyncio.run(scenario())
    assert result is None
    assert watcher.sent == []
    assert sender.sent == []
    state = hub.registry.get("user-1")
    assert (state.lat, state.lng) == (1.5, 2.5)
    assert "Dropping malformed frame from user-1" in caplog.text


def test_unknown_message_type_is_ignored(hub: PresenceHub):
    async def scenario():
        _, watcher = await _register_pair(hub)
        result = await hub.router.handle_frame("user-1", '{"type":"PING"}')
        return watcher, result

    watcher, result = asyncio.run(scenario())
    assert result is None
    assert watcher.sent == []
    assert hub.registry.get("user-1").lat is None


def test_update_from_departed_participant_is_dropped(hub: PresenceHub):
    async def scenario():
        _, watcher = await _register_pair(hub)
        await hub.registry.remove("user-1")
        result = await hub.router.handle_frame("user-1", '{"type":"UPDATE_LOCATION","lat":1,"lng":2}')
        return watcher, result

    watcher, result = asyncio.run(scenario())
    assert result is None
    assert watcher.sent == []
