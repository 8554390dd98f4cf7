"""OpenAI Realtime API client for streaming transcription."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from realtimekit.core.classifier import ProviderEventSchema
from realtimekit.core.outbound import AUDIO_APPEND_EVENT, list_head, summarize_audio_append
from realtimekit.errors import RealtimeSessionNotConfiguredError
from realtimekit.models.session import SessionConfig, normalize_language, normalize_prompt
from realtimekit.models.state import RealtimeClientState
from realtimekit.providers.base import RealtimeClient
from realtimekit.providers.openai.config import OpenAIRealtimeConfig
from realtimekit.providers.openai.formats import normalize_pcm_audio_format
from realtimekit.redaction import compact_dict

logger = logging.getLogger("realtimekit.providers.openai.transcription")

DEFAULT_TRANSCRIPTION_MODEL = "gpt-4o-mini-transcribe"

TRANSCRIPT_DELTA_TYPES = frozenset({"conversation.item.input_audio_transcription.delta"})
TRANSCRIPT_FINAL_TYPES = frozenset({"conversation.item.input_audio_transcription.completed"})

OPENAI_TRANSCRIPTION_SCHEMA = ProviderEventSchema(
    name="OpenAI realtime ASR",
    transcript_delta_types=TRANSCRIPT_DELTA_TYPES,
    transcript_final_types=TRANSCRIPT_FINAL_TYPES,
)


class OpenAIRealtimeTranscriptionClient(RealtimeClient):
    """Transcription-only session against the OpenAI Realtime API.

    Streams input audio and emits interim and final transcripts of it;
    the model never speaks. Language and prompt guidance can be changed
    mid-session with :meth:`update_guidance`.

    Example:
        client = OpenAIRealtimeTranscriptionClient(OpenAIRealtimeConfig(api_key="sk-..."))
        client.on_transcript(lambda ev: print(ev.is_final, ev.text))

        await client.connect(language="en")
        await client.append_input_audio(pcm_bytes)
        await client.commit_input_audio_buffer()
    """

    def __init__(self, config: OpenAIRealtimeConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or OpenAIRealtimeConfig(), **kwargs)

    @property
    def name(self) -> str:
        return "OpenAI realtime ASR"

    @property
    def event_schema(self) -> ProviderEventSchema:
        return OPENAI_TRANSCRIPTION_SCHEMA

    async def connect(
        self,
        *,
        model: str = DEFAULT_TRANSCRIPTION_MODEL,
        input_audio_format: str | dict[str, Any] = "pcm16",
        transcription_model: str = DEFAULT_TRANSCRIPTION_MODEL,
        language: str = "",
        prompt: str = "",
    ) -> RealtimeClientState:
        """Open the session and send its configuration.

        Returns the current state without reconnecting if already open.
        """
        session_config = SessionConfig(
            model=str(model or "").strip() or DEFAULT_TRANSCRIPTION_MODEL,
            input_audio_format=input_audio_format,
            transcription_model=str(transcription_model or "").strip()
            or DEFAULT_TRANSCRIPTION_MODEL,
            language=normalize_language(language),
            prompt=normalize_prompt(prompt),
        )
        return await self._connect(session_config)

    async def update_guidance(self, *, language: str = "", prompt: str = "") -> None:
        """Replace the transcription language hint and prompt, then resend the session."""
        if self._session_config is None:
            raise RealtimeSessionNotConfiguredError(
                f"{self.name} session config is not initialized."
            )
        self._session_config = replace(
            self._session_config,
            language=normalize_language(language),
            prompt=normalize_prompt(prompt),
        )
        logger.info(
            "Transcription guidance updated: language=%s prompt_chars=%d",
            self._session_config.language or None,
            len(self._session_config.prompt),
        )
        await self.send_session_update()

    def build_session_update(self, config: SessionConfig) -> dict[str, Any]:
        transcription = compact_dict(
            {
                "model": str(config.transcription_model or "").strip()
                or DEFAULT_TRANSCRIPTION_MODEL,
                "language": config.language.strip() or None,
                "prompt": config.prompt.strip() or None,
            }
        )
        return {
            "type": "session.update",
            "session": {
                "type": "realtime",
                "model": str(config.model or "").strip() or DEFAULT_TRANSCRIPTION_MODEL,
                "output_modalities": ["text"],
                "audio": {
                    "input": {
                        "format": normalize_pcm_audio_format(config.input_audio_format),
                        "transcription": transcription,
                    }
                },
            },
        }

    def summarize_outbound(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        event_type = str(payload.get("type") or "unknown")
        if event_type == AUDIO_APPEND_EVENT:
            return summarize_audio_append(payload)
        if event_type == "session.update":
            session = payload.get("session")
            session = session if isinstance(session, dict) else {}
            audio_input = (session.get("audio") or {}).get("input") or {}
            return compact_dict(
                {
                    "type": event_type,
                    "session_type": session.get("type"),
                    "model": session.get("model"),
                    "output_modalities": list_head(session.get("output_modalities")),
                    "input_format": audio_input.get("format"),
                    "input_transcription_model": (audio_input.get("transcription") or {}).get(
                        "model"
                    ),
                }
            )
        return {"type": event_type}
