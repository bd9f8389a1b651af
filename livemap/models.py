"""In-memory participant state shared by the registry and the wire schemas."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ISO 8601 UTC with millisecond precision and a ``Z`` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class ParticipantState:
    """Position of one connected participant.

    ``lat`` and ``lng`` stay ``None`` until the first location update and are
    always replaced together.
    """

    id: str
    connected_at: datetime
    lat: float | None = None
    lng: float | None = None

    @property
    def has_position(self) -> bool:
        return self.lat is not None and self.lng is not None

    def with_position(self, lat: float, lng: float) -> ParticipantState:
        return replace(self, lat=lat, lng=lng)


__all__ = ["ParticipantState", "format_timestamp", "utcnow"]
