"""Gemini Live API provider."""

from realtimekit.providers.gemini.config import GeminiLiveConfig
from realtimekit.providers.gemini.live import GeminiLiveClient, GeminiLiveClientState

__all__ = ["GeminiLiveClient", "GeminiLiveClientState", "GeminiLiveConfig"]
