"""OpenAI Realtime API client for speech-to-speech sessions."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any

from realtimekit.core.classifier import ClassifiedEvent, InboundEventKind, ProviderEventSchema
from realtimekit.core.outbound import (
    AUDIO_APPEND_EVENT,
    input_text_chars,
    list_head,
    summarize_audio_append,
    summarize_conversation_item,
    summarize_generic,
)
from realtimekit.errors import RealtimeConfigurationError, RealtimeSessionNotConfiguredError
from realtimekit.models.session import SessionConfig
from realtimekit.models.state import RealtimeClientState
from realtimekit.providers.base import RealtimeClient
from realtimekit.providers.openai.config import OpenAIRealtimeConfig
from realtimekit.providers.openai.formats import normalize_audio_format
from realtimekit.providers.openai.transcription import DEFAULT_TRANSCRIPTION_MODEL
from realtimekit.redaction import compact_dict

logger = logging.getLogger("realtimekit.providers.openai.realtime")

DEFAULT_REALTIME_MODEL = "gpt-realtime"

AUDIO_DELTA_TYPES = frozenset({"response.output_audio.delta"})
TRANSCRIPT_DELTA_TYPES = frozenset(
    {
        "conversation.item.input_audio_transcription.delta",
        "response.output_audio_transcript.delta",
        "response.output_text.delta",
    }
)
TRANSCRIPT_FINAL_TYPES = frozenset(
    {
        "conversation.item.input_audio_transcription.completed",
        "response.output_audio_transcript.done",
        "response.output_text.done",
    }
)

OPENAI_REALTIME_SCHEMA = ProviderEventSchema(
    name="OpenAI realtime",
    audio_delta_types=AUDIO_DELTA_TYPES,
    transcript_delta_types=TRANSCRIPT_DELTA_TYPES,
    transcript_final_types=TRANSCRIPT_FINAL_TYPES,
)

TERMINAL_RESPONSE_STATUSES = frozenset({"completed", "cancelled", "failed", "incomplete"})
ACTIVE_RESPONSE_ERROR_CODE = "conversation_already_has_active_response"
_RESPONSE_ID_RE = re.compile(r"\bresp_[a-z0-9]+\b", re.IGNORECASE)


class OpenAIRealtimeClientState(RealtimeClientState):
    """State snapshot including the response currently being generated."""

    active_response_id: str | None = None
    active_response_status: str | None = None


class OpenAIRealtimeClient(RealtimeClient):
    """Speech-to-speech session against the OpenAI Realtime API.

    Besides streaming audio both ways, tracks which response is in flight
    so callers can avoid requesting a second one while the model speaks.

    Example:
        client = OpenAIRealtimeClient(OpenAIRealtimeConfig(api_key="sk-..."))
        client.on_audio_delta(lambda ev: playback.feed(ev.audio))

        await client.connect(voice="alloy", instructions="Be brief.")
        await client.request_utterance("Say hello to everyone.")
    """

    state_model = OpenAIRealtimeClientState

    def __init__(self, config: OpenAIRealtimeConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or OpenAIRealtimeConfig(), **kwargs)
        self.active_response_id: str | None = None
        self.active_response_status: str | None = None

    @property
    def name(self) -> str:
        return "OpenAI realtime"

    @property
    def event_schema(self) -> ProviderEventSchema:
        return OPENAI_REALTIME_SCHEMA

    async def connect(
        self,
        *,
        voice: str,
        model: str = DEFAULT_REALTIME_MODEL,
        instructions: str = "",
        input_audio_format: str | dict[str, Any] = "pcm16",
        output_audio_format: str | dict[str, Any] = "pcm16",
        transcription_model: str = DEFAULT_TRANSCRIPTION_MODEL,
    ) -> RealtimeClientState:
        """Open the session and send its configuration.

        Raises:
            RealtimeConfigurationError: No API key, or no voice.
        """
        self._require_api_key()
        if self.is_connected:
            return self.get_state()
        resolved_voice = str(voice or "").strip()
        if not resolved_voice:
            raise RealtimeConfigurationError(f"{self.name} voice is required.")
        session_config = SessionConfig(
            model=str(model or "").strip() or DEFAULT_REALTIME_MODEL,
            voice=resolved_voice,
            instructions=str(instructions or ""),
            input_audio_format=input_audio_format,
            output_audio_format=output_audio_format,
            transcription_model=str(transcription_model or "").strip()
            or DEFAULT_TRANSCRIPTION_MODEL,
        )
        return await self._connect(session_config)

    async def close(self) -> None:
        await super().close()
        self._clear_active_response()

    async def create_audio_response(self) -> None:
        await self.send({"type": "response.create", "response": {"output_modalities": ["audio"]}})

    async def request_utterance(self, text: str) -> None:
        """Add *text* as a user message and ask the model to answer aloud."""
        prompt = str(text or "").strip()
        if not prompt:
            return
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

    async def update_instructions(self, instructions: str = "") -> None:
        """Replace the system instructions and resend the session."""
        if self._session_config is None:
            raise RealtimeSessionNotConfiguredError(
                f"{self.name} session config is not initialized."
            )
        self._session_config = replace(self._session_config, instructions=str(instructions or ""))
        await self.send_session_update()

    def build_session_update(self, config: SessionConfig) -> dict[str, Any]:
        voice = str(config.voice or "").strip()
        if not voice:
            raise RealtimeConfigurationError(f"{self.name} voice is required.")
        return {
            "type": "session.update",
            "session": {
                "type": "realtime",
                "model": str(config.model or "").strip() or DEFAULT_REALTIME_MODEL,
                "instructions": str(config.instructions or ""),
                "output_modalities": ["audio"],
                "audio": {
                    "input": {
                        "format": normalize_audio_format(config.input_audio_format),
                        "transcription": {
                            "model": str(config.transcription_model or "").strip()
                            or DEFAULT_TRANSCRIPTION_MODEL
                        },
                    },
                    "output": {
                        "format": normalize_audio_format(config.output_audio_format),
                        "voice": voice,
                    },
                },
            },
        }

    def summarize_outbound(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        event_type = str(payload.get("type") or "unknown")
        if event_type == AUDIO_APPEND_EVENT:
            return summarize_audio_append(payload)
        if event_type in ("input_audio_buffer.commit", "input_audio_buffer.clear"):
            return {"type": event_type}
        if event_type == "conversation.item.create":
            return summarize_conversation_item(payload)
        if event_type == "response.create":
            response = payload.get("response")
            if not isinstance(response, dict):
                return {"type": event_type}
            items = response.get("input")
            items = items if isinstance(items, list) else []
            return {
                "type": event_type,
                "response": compact_dict(
                    {
                        "conversation": response.get("conversation"),
                        "output_modalities": list_head(response.get("output_modalities")),
                        "input_items": len(items),
                        "input_text_chars": input_text_chars(items),
                    }
                ),
            }
        if event_type == "session.update":
            session = payload.get("session")
            session = session if isinstance(session, dict) else {}
            audio = session.get("audio") or {}
            audio_input = audio.get("input") or {}
            audio_output = audio.get("output") or {}
            return compact_dict(
                {
                    "type": event_type,
                    "session_type": session.get("type"),
                    "model": session.get("model"),
                    "output_modalities": list_head(session.get("output_modalities")),
                    "input_audio_format": audio_input.get("format"),
                    "output_audio_format": audio_output.get("format"),
                    "output_voice": audio_output.get("voice"),
                    "input_transcription_model": (audio_input.get("transcription") or {}).get(
                        "model"
                    ),
                    "instructions_chars": len(str(session.get("instructions") or "")),
                }
            )
        return summarize_generic(payload)

    # -- Active response tracking --

    def is_response_in_progress(self) -> bool:
        status = str(self.active_response_status or "").strip().lower()
        if status in TERMINAL_RESPONSE_STATUSES:
            return False
        if status == "in_progress":
            return True
        return bool(self.active_response_id)

    async def _observe(self, classified: ClassifiedEvent) -> None:
        event = classified.event
        response = event.get("response")
        response = response if isinstance(response, dict) else {}

        if classified.event_type == "response.created":
            self._set_active_response(
                response.get("id") or event.get("response_id"),
                response.get("status") or event.get("status") or "in_progress",
            )
        elif classified.kind is InboundEventKind.RESPONSE_DONE:
            self._finish_active_response(
                response.get("id") or event.get("response_id"),
                response.get("status") or event.get("status") or "completed",
            )
        elif (
            classified.kind is InboundEventKind.ERROR
            and str(classified.error_code or "").strip().lower() == ACTIVE_RESPONSE_ERROR_CODE
        ):
            match = _RESPONSE_ID_RE.search(classified.error_message or "")
            if match:
                self._set_active_response(match.group(0), "in_progress")

    def _set_active_response(self, response_id: Any, status: Any = "in_progress") -> None:
        normalized_id = str(response_id or "").strip()
        if normalized_id:
            self.active_response_id = normalized_id
        self.active_response_status = str(status or "").strip() or "in_progress"
        logger.debug(
            "Active response %s (%s)", self.active_response_id, self.active_response_status
        )

    def _finish_active_response(self, response_id: Any, status: Any = "completed") -> None:
        normalized_status = str(status or "").strip().lower() or "completed"
        normalized_id = str(response_id or "").strip()
        if (
            not normalized_id
            or not self.active_response_id
            or normalized_id == self.active_response_id
            or normalized_status in TERMINAL_RESPONSE_STATUSES
        ):
            self._clear_active_response(normalized_status)

    def _clear_active_response(self, status: str | None = None) -> None:
        self.active_response_id = None
        self.active_response_status = status or None

    def _on_socket_closed(self) -> None:
        self._clear_active_response()

    def _extra_state(self) -> dict[str, Any]:
        return {
            "active_response_id": self.active_response_id,
            "active_response_status": self.active_response_status,
        }
