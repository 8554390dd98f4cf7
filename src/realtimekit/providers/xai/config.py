"""xAI realtime configuration."""

from __future__ import annotations

from realtimekit.providers.config import RealtimeClientConfig

DEFAULT_XAI_BASE_URL = "https://api.x.ai/v1"


class XAIRealtimeConfig(RealtimeClientConfig):
    """xAI realtime voice client configuration."""

    base_url: str = DEFAULT_XAI_BASE_URL
