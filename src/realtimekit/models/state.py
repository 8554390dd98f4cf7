"""Connection state and outbound telemetry models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum, unique
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@unique
class RealtimeConnectionStatus(StrEnum):
    """Lifecycle of a realtime client's connection."""

    INIT = "init"
    CONNECTING = "connecting"
    OPEN = "open"
    ACTIVE = "active"
    """Open, and the initial session configuration has been sent."""
    CLOSED = "closed"


class OutboundEventRecord(BaseModel):
    """A redacted summary of one event sent to the provider."""

    model_config = {"frozen": True}

    type: str
    at: datetime = Field(default_factory=_utcnow)
    payload: dict[str, Any] | None = None


class RealtimeClientState(BaseModel):
    """Point-in-time snapshot of a client's connection and outbound telemetry."""

    connected: bool = False
    status: RealtimeConnectionStatus = RealtimeConnectionStatus.INIT
    connected_at: datetime | None = None
    last_event_at: datetime | None = None
    session_id: str | None = None
    last_error: str | None = None
    last_close_code: int | None = None
    last_close_reason: str | None = None
    last_outbound_event_type: str | None = None
    last_outbound_event_at: datetime | None = None
    last_outbound_event: OutboundEventRecord | None = None
    recent_outbound_events: list[OutboundEventRecord] = Field(default_factory=list)
