"""xAI realtime voice client."""

from __future__ import annotations

import logging
from typing import Any

from realtimekit.core.classifier import ProviderEventSchema
from realtimekit.core.outbound import (
    AUDIO_APPEND_EVENT,
    list_head,
    summarize_audio_append,
    summarize_conversation_item,
    summarize_generic,
)
from realtimekit.models.session import SessionConfig
from realtimekit.models.state import RealtimeClientState
from realtimekit.providers.base import RealtimeClient
from realtimekit.providers.xai.config import XAIRealtimeConfig
from realtimekit.redaction import compact_dict

logger = logging.getLogger("realtimekit.providers.xai.realtime")

DEFAULT_VOICE = "Rex"
DEFAULT_REGION = "us-east-1"
DEFAULT_SAMPLE_RATE = 24000
RESPONSE_MODALITIES = ["audio", "text"]

AUDIO_DELTA_TYPES = frozenset(
    {
        "response.audio.delta",
        "response.output_audio.delta",
        "output_audio.delta",
        "audio.delta",
        "response.audio.chunk",
        "response.output_audio.chunk",
    }
)
TRANSCRIPT_DELTA_TYPES = frozenset(
    {
        "response.output_audio_transcript.delta",
        "response.text.delta",
        "response.output_text.delta",
    }
)
TRANSCRIPT_FINAL_TYPES = frozenset(
    {
        "conversation.item.input_audio_transcription.completed",
        "response.output_audio_transcript.done",
        "response.audio_transcript.done",
        "response.audio_transcript.completed",
        "response.text.done",
        "response.output_text.done",
        "transcript.completed",
    }
)

XAI_REALTIME_SCHEMA = ProviderEventSchema(
    name="xAI",
    audio_delta_types=AUDIO_DELTA_TYPES,
    transcript_delta_types=TRANSCRIPT_DELTA_TYPES,
    transcript_final_types=TRANSCRIPT_FINAL_TYPES,
)


def _sample_rate(value: Any) -> int:
    try:
        rate = int(value)
    except (TypeError, ValueError):
        return DEFAULT_SAMPLE_RATE
    return rate if rate > 0 else DEFAULT_SAMPLE_RATE


class XAIRealtimeClient(RealtimeClient):
    """Voice and text session against the xAI realtime API.

    Server-side turn detection is disabled: the caller decides when a turn
    ends (:meth:`commit_input_audio_buffer`) and when the model should
    answer (:meth:`create_audio_response`, :meth:`request_utterance`).
    """

    def __init__(self, config: XAIRealtimeConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or XAIRealtimeConfig(), **kwargs)

    @property
    def name(self) -> str:
        return "xAI realtime"

    @property
    def event_schema(self) -> ProviderEventSchema:
        return XAI_REALTIME_SCHEMA

    async def connect(
        self,
        *,
        model: str | None = None,
        voice: str = DEFAULT_VOICE,
        instructions: str = "",
        region: str = DEFAULT_REGION,
        input_audio_format: str = "audio/pcm",
        output_audio_format: str = "audio/pcm",
        input_sample_rate: int = DEFAULT_SAMPLE_RATE,
        output_sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> RealtimeClientState:
        """Open the session and send its configuration.

        Args:
            model: Optional model selector, appended to the socket URL.
        """
        session_config = SessionConfig(
            model=str(model or "").strip(),
            voice=str(voice or "").strip() or DEFAULT_VOICE,
            instructions=str(instructions or ""),
            region=str(region or "").strip() or None,
            input_audio_format=input_audio_format,
            output_audio_format=output_audio_format,
            input_sample_rate=_sample_rate(input_sample_rate),
            output_sample_rate=_sample_rate(output_sample_rate),
        )
        return await self._connect(session_config)

    async def create_audio_response(self) -> None:
        await self.send(
            {"type": "response.create", "response": {"modalities": list(RESPONSE_MODALITIES)}}
        )

    async def request_utterance(self, text: str) -> None:
        """Add *text* as a user message and request an audio+text response."""
        prompt = str(text or "").strip()
        if not prompt:
            return
        logger.debug("Requesting utterance (%d chars)", len(prompt))
        await self.send(
            {
                "type": "conversation.item.create",
                "item": {
                    "type": "message",
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                },
            }
        )
        await self.create_audio_response()

    def build_session_update(self, config: SessionConfig) -> dict[str, Any]:
        return {
            "type": "session.update",
            "session": compact_dict(
                {
                    "voice": config.voice,
                    "instructions": config.instructions,
                    "audio": {
                        "input": {
                            "format": {
                                "type": config.input_audio_format,
                                "rate": _sample_rate(config.input_sample_rate),
                            }
                        },
                        "output": {
                            "format": {
                                "type": config.output_audio_format,
                                "rate": _sample_rate(config.output_sample_rate),
                            }
                        },
                    },
                    "turn_detection": {"type": None},
                    "region": config.region,
                    "modalities": list(RESPONSE_MODALITIES),
                }
            ),
        }

    def summarize_outbound(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        event_type = str(payload.get("type") or "unknown")
        if event_type == AUDIO_APPEND_EVENT:
            return summarize_audio_append(payload)
        if event_type in ("input_audio_buffer.commit", "input_audio_buffer.clear"):
            return {"type": event_type}
        if event_type == "response.create":
            response = payload.get("response")
            if not isinstance(response, dict):
                return {"type": event_type}
            return {
                "type": event_type,
                "response": compact_dict({"modalities": list_head(response.get("modalities"))}),
            }
        if event_type == "conversation.item.create":
            return summarize_conversation_item(payload)
        if event_type == "session.update":
            session = payload.get("session")
            session = session if isinstance(session, dict) else {}
            audio = session.get("audio") or {}
            input_format = (audio.get("input") or {}).get("format") or {}
            output_format = (audio.get("output") or {}).get("format") or {}
            turn_detection = session.get("turn_detection")
            return compact_dict(
                {
                    "type": event_type,
                    "voice": session.get("voice"),
                    "region": session.get("region"),
                    "modalities": list_head(session.get("modalities")),
                    "input_audio_type": input_format.get("type"),
                    "input_audio_rate": input_format.get("rate"),
                    "output_audio_type": output_format.get("type"),
                    "output_audio_rate": output_format.get("rate"),
                    "turn_detection_type": str(turn_detection.get("type") or "")
                    if isinstance(turn_detection, dict)
                    else None,
                    "instructions_chars": len(str(session.get("instructions") or "")),
                }
            )
        return summarize_generic(payload)
