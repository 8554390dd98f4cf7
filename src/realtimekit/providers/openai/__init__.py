"""OpenAI realtime provider."""

from realtimekit.providers.openai.config import OpenAIRealtimeConfig
from realtimekit.providers.openai.realtime import OpenAIRealtimeClient, OpenAIRealtimeClientState
from realtimekit.providers.openai.transcription import OpenAIRealtimeTranscriptionClient

__all__ = [
    "OpenAIRealtimeClient",
    "OpenAIRealtimeClientState",
    "OpenAIRealtimeConfig",
    "OpenAIRealtimeTranscriptionClient",
]
