"""xAI realtime provider."""

from realtimekit.providers.xai.config import XAIRealtimeConfig
from realtimekit.providers.xai.realtime import XAIRealtimeClient

__all__ = ["XAIRealtimeClient", "XAIRealtimeConfig"]
