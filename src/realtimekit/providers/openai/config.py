"""OpenAI realtime configuration."""

from __future__ import annotations

from realtimekit.providers.config import RealtimeClientConfig

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIRealtimeConfig(RealtimeClientConfig):
    """OpenAI realtime client configuration.

    ``base_url`` may point at any OpenAI-compatible deployment; the
    realtime endpoint is ``<base_url>/realtime``.
    """

    base_url: str = DEFAULT_OPENAI_BASE_URL
