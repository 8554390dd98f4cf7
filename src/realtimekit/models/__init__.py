"""Data models for realtime sessions."""

from realtimekit.models.diagnostics import ConnectErrorDiagnostics, ConnectFailureSource
from realtimekit.models.events import (
    RealtimeAudioDeltaEvent,
    RealtimeErrorEvent,
    RealtimeResponseDoneEvent,
    RealtimeSessionUpdatedEvent,
    RealtimeSocketClosedEvent,
    RealtimeSocketErrorEvent,
    RealtimeTranscriptEvent,
)
from realtimekit.models.session import SessionConfig, normalize_language, normalize_prompt
from realtimekit.models.state import (
    OutboundEventRecord,
    RealtimeClientState,
    RealtimeConnectionStatus,
)

__all__ = [
    "ConnectErrorDiagnostics",
    "ConnectFailureSource",
    "OutboundEventRecord",
    "RealtimeAudioDeltaEvent",
    "RealtimeClientState",
    "RealtimeConnectionStatus",
    "RealtimeErrorEvent",
    "RealtimeResponseDoneEvent",
    "RealtimeSessionUpdatedEvent",
    "RealtimeSocketClosedEvent",
    "RealtimeSocketErrorEvent",
    "RealtimeTranscriptEvent",
    "SessionConfig",
    "normalize_language",
    "normalize_prompt",
]
