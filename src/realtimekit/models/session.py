"""Session configuration sent to realtime providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from realtimekit.redaction import compact_whitespace

MAX_LANGUAGE_CHARS = 24
MAX_PROMPT_CHARS = 280
MIN_SAMPLE_RATE = 8000
MAX_SAMPLE_RATE = 48000

AudioFormat = str | dict[str, Any]


def normalize_language(value: str | None) -> str:
    """Normalize a language hint: ``"EN_us "`` -> ``"en-us"``."""
    return str(value or "").strip().lower().replace("_", "-")[:MAX_LANGUAGE_CHARS]


def normalize_prompt(value: str | None) -> str:
    """Collapse whitespace in a guidance prompt and cap its length."""
    return compact_whitespace(value)[:MAX_PROMPT_CHARS]


def clamp_sample_rate(value: Any, default: int) -> int:
    """Coerce *value* to a PCM sample rate within 8-48 kHz.

    Zero, negative or non-numeric input falls back to *default*.
    """
    try:
        rate = int(value)
    except (TypeError, ValueError):
        return default
    if rate <= 0:
        return default
    return max(MIN_SAMPLE_RATE, min(MAX_SAMPLE_RATE, rate))


@dataclass(frozen=True)
class SessionConfig:
    """Provider-agnostic session configuration.

    Each provider maps the fields it understands into its own
    configuration-update event; unused fields are ignored.
    """

    model: str
    input_audio_format: AudioFormat = "pcm16"
    output_audio_format: AudioFormat = "pcm16"
    transcription_model: str | None = None
    language: str = ""
    """Transcription language hint (transcription provider)."""
    prompt: str = ""
    """Transcription guidance prompt (transcription provider)."""
    voice: str | None = None
    """Output voice id (voice-capable providers only)."""
    instructions: str = ""
    input_sample_rate: int = 24000
    output_sample_rate: int = 24000
    region: str | None = None
    agent_id: str | None = None
    """Conversational agent id (agent-hosted providers only)."""
