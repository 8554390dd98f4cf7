"""ElevenLabs conversational realtime configuration."""

from __future__ import annotations

from pydantic import Field

from realtimekit.providers.config import RealtimeClientConfig

DEFAULT_ELEVENLABS_BASE_URL = "https://api.elevenlabs.io"


class ElevenLabsRealtimeConfig(RealtimeClientConfig):
    """ElevenLabs conversational agent client configuration.

    Attributes:
        base_url: REST origin used to request a signed socket URL. Only its
            scheme and host are used.
        http_timeout: Seconds allowed for the signed-URL request.
    """

    base_url: str = DEFAULT_ELEVENLABS_BASE_URL
    http_timeout: float = Field(default=10.0, gt=0)
