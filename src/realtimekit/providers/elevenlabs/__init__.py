"""ElevenLabs conversational realtime provider."""

from realtimekit.providers.elevenlabs.config import ElevenLabsRealtimeConfig
from realtimekit.providers.elevenlabs.realtime import (
    ElevenLabsRealtimeClient,
    ElevenLabsRealtimeClientState,
)

__all__ = [
    "ElevenLabsRealtimeClient",
    "ElevenLabsRealtimeClientState",
    "ElevenLabsRealtimeConfig",
]
