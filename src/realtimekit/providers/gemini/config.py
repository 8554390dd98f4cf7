"""Gemini Live API configuration."""

from __future__ import annotations

from realtimekit.providers.config import RealtimeClientConfig

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"


class GeminiLiveConfig(RealtimeClientConfig):
    """Gemini Live API client configuration.

    Only the scheme and host of ``base_url`` are used; the Live API socket
    path is fixed.
    """

    base_url: str = DEFAULT_GEMINI_BASE_URL
