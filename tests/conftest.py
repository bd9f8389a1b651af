"""Shared fixtures for presence server tests."""
from __future__ import annotations

import itertools

import pytest

from livemap.services import PresenceHub
from tests.fakes import FIXED_CONNECTED_AT


@pytest.fixture
def hub() -> PresenceHub:
    counter = itertools.count(1)
    return PresenceHub(
        send_timeout=0.05,
        id_factory=lambda: f"user-{next(counter)}",
        clock=lambda: FIXED_CONNECTED_AT,
    )
