"""Notifications emitted by realtime clients."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from realtimekit.models.state import OutboundEventRecord


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class RealtimeSessionUpdatedEvent:
    """The provider created or updated the session."""

    session_id: str | None
    """Provider-assigned session id, if the provider sent one."""

    event_type: str
    """``session.created`` or ``session.updated``."""

    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class RealtimeErrorEvent:
    """In-band error reported by the provider while the session is open.

    Carries the most recent outbound events so a failure can be matched to
    whatever was sent just before it.
    """

    message: str
    """Human-readable error description."""

    code: str | None = None
    """Error code from the provider."""

    param: str | None = None
    """Name of the offending parameter, when the provider reports one."""

    event: dict[str, Any] = field(default_factory=dict)
    """The raw inbound error event."""

    last_outbound_event_type: str | None = None
    last_outbound_event: OutboundEventRecord | None = None
    recent_outbound_events: list[OutboundEventRecord] = field(default_factory=list)

    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class RealtimeAudioDeltaEvent:
    """A chunk of synthesized output audio."""

    audio_base64: str
    """Base64-encoded PCM16 audio as received."""

    event_type: str
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def audio(self) -> bytes:
        """Decoded PCM bytes."""
        return base64.b64decode(self.audio_base64)


@dataclass(frozen=True)
class RealtimeTranscriptEvent:
    """Recognized or generated text."""

    text: str
    """Trimmed, non-empty transcript text."""

    event_type: str
    is_final: bool
    """True for the provider's confirmed result, False for an interim delta."""

    role: Literal["user", "assistant"] = "assistant"
    """'user' for input-audio transcription, 'assistant' for model output."""

    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class RealtimeResponseDoneEvent:
    """The provider finished a response."""

    event: dict[str, Any]
    """The raw ``response.done`` event."""

    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class RealtimeSocketErrorEvent:
    """Transport-level error after the socket opened."""

    message: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class RealtimeSocketClosedEvent:
    """The socket closed, locally or remotely."""

    code: int | None
    reason: str | None
    timestamp: datetime = field(default_factory=_utcnow)
