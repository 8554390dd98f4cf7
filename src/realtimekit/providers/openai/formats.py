"""OpenAI Realtime audio format descriptors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

PCM_SAMPLE_RATE = 24000

_G711_ALIASES = {
    "g711_ulaw": "audio/pcmu",
    "audio/pcmu": "audio/pcmu",
    "g711_alaw": "audio/pcma",
    "audio/pcma": "audio/pcma",
}


def _pcm_rate(value: Any) -> int:
    try:
        rate = int(float(value))
    except (TypeError, ValueError):
        return PCM_SAMPLE_RATE
    return rate if rate > 0 else PCM_SAMPLE_RATE


def normalize_pcm_audio_format(value: str | Mapping[str, Any] | None) -> dict[str, Any]:
    """Map any input format to an ``audio/pcm`` descriptor.

    A ``{"type": "audio/pcm", "rate": ...}`` mapping keeps its rate; every
    string alias (``"pcm16"``, ``"audio/pcm"``, ...) resolves to 24 kHz.
    """
    if isinstance(value, Mapping) and str(value.get("type") or "").strip().lower() == "audio/pcm":
        return {"type": "audio/pcm", "rate": _pcm_rate(value.get("rate"))}
    return {"type": "audio/pcm", "rate": PCM_SAMPLE_RATE}


def normalize_audio_format(value: str | Mapping[str, Any] | None) -> dict[str, Any]:
    """Map a legacy or descriptor format to a GA Realtime descriptor.

    G.711 aliases map to ``audio/pcmu`` / ``audio/pcma``; everything else to PCM.
    """
    if isinstance(value, Mapping):
        kind = str(value.get("type") or "").strip().lower()
    else:
        kind = str(value or "").strip().lower()
    if kind in _G711_ALIASES:
        return {"type": _G711_ALIASES[kind]}
    return normalize_pcm_audio_format(value)
