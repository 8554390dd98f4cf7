"""Realtime provider clients."""

from realtimekit.providers.base import RealtimeClient
from realtimekit.providers.config import RealtimeClientConfig
from realtimekit.providers.elevenlabs import ElevenLabsRealtimeClient, ElevenLabsRealtimeConfig
from realtimekit.providers.gemini import GeminiLiveClient, GeminiLiveConfig
from realtimekit.providers.openai import (
    OpenAIRealtimeClient,
    OpenAIRealtimeConfig,
    OpenAIRealtimeTranscriptionClient,
)
from realtimekit.providers.xai import XAIRealtimeClient, XAIRealtimeConfig

__all__ = [
    "ElevenLabsRealtimeClient",
    "ElevenLabsRealtimeConfig",
    "GeminiLiveClient",
    "GeminiLiveConfig",
    "OpenAIRealtimeClient",
    "OpenAIRealtimeConfig",
    "OpenAIRealtimeTranscriptionClient",
    "RealtimeClient",
    "RealtimeClientConfig",
    "XAIRealtimeClient",
    "XAIRealtimeConfig",
]
