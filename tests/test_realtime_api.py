"""End-to-end tests for the presence websocket and system routes."""
from __future__ import annotations

import itertools
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from livemap.config import Settings
from livemap.main import create_app
from livemap.services import PresenceHub


@pytest.fixture
def client() -> Iterator[TestClient]:
    counter = itertools.count(1)
    hub = PresenceHub(send_timeout=1.0, id_factory=lambda: f"U{next(counter)}")
    app = create_app(Settings(app_name="Presence Test", api_version="9.9.9"), hub=hub)
    with TestClient(app) as test_client:
        yield test_client


def test_health_reports_connected_participants(client: TestClient):
    assert client.get("/health").json() == {"status": "ok", "users": 0}

    with client.websocket_connect("/") as socket:
        assert socket.receive_json()["type"] == "INIT"
        assert client.get("/health").json() == {"status": "ok", "users": 1}

    assert client.get("/health").json() == {"status": "ok", "users": 0}


def test_api_info_uses_configured_metadata(client: TestClient):
    assert client.get("/api").json() == {"service": "Presence Test", "version": "9.9.9"}


def test_presence_flow_between_two_clients(client: TestClient):
    with client.websocket_connect("/") as first:
        init_first = first.receive_json()
        assert init_first == {"type": "INIT", "userId": "U1", "users": []}

        with client.websocket_connect("/") as second:
            init_second = second.receive_json()
            assert init_second["userId"] == "U2"
            assert len(init_second["users"]) == 1
            assert init_second["users"][0]["id"] == "U1"
            assert init_second["users"][0]["lat"] is None
            assert init_second["users"][0]["lng"] is None
            assert init_second["users"][0]["connectedAt"].endswith("Z")

            first.send_json({"type": "UPDATE_LOCATION", "lat": 38.7, "lng": -9.1})
            updated = second.receive_json()
            assert updated["type"] == "USER_UPDATED"
            assert updated["user"]["id"] == "U1"
            assert (updated["user"]["lat"], updated["user"]["lng"]) == (38.7, -9.1)
            assert updated["user"]["connectedAt"] == init_second["users"][0]["connectedAt"]

        # The next frame U1 sees is U2 leaving, so its own update was never echoed.
        assert first.receive_json() == {"type": "USER_LEFT", "userId": "U2"}
        assert client.get("/health").json()["users"] == 1


def test_malformed_frames_keep_the_connection_open(client: TestClient):
    with client.websocket_connect("/") as first:
        first.receive_json()
        with client.websocket_connect("/") as second:
            second.receive_json()

            first.send_text("{not json")
            first.send_json({"type": "UPDATE_LOCATION"})
            first.send_json({"type": "WAVE"})
            first.send_bytes(b'{"type": "UPDATE_LOCATION", "lat": 51.5, "lng": -0.12}')

            updated = second.receive_json()
            assert updated["type"] == "USER_UPDATED"
            assert (updated["user"]["lat"], updated["user"]["lng"]) == (51.5, -0.12)


def test_new_connection_sees_existing_positions(client: TestClient):
    with client.websocket_connect("/") as first:
        first.receive_json()
        with client.websocket_connect("/") as second:
            second.receive_json()
            first.send_json({"type": "UPDATE_LOCATION", "lat": 10, "lng": 20})
            second.receive_json()

            with client.websocket_connect("/") as third:
                init = third.receive_json()
                positions = {user["id"]: (user["lat"], user["lng"]) for user in init["users"]}
                assert positions == {"U1": (10.0, 20.0), "U2": (None, None)}
