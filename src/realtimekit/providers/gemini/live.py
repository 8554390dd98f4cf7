"""Gemini Live API client for native-audio voice sessions.

The Live API speaks its own protocol rather than the ``type``-tagged events
of the OpenAI family: the session is configured by a single ``setup``
message, audio goes up as ``realtimeInput`` media chunks, and one
``serverContent`` message may carry audio, text, both transcriptions and
the end of the turn at once.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import replace
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit

from websockets.asyncio.client import ClientConnection

from realtimekit.core.classifier import (
    ClassifiedEvent,
    InboundEventKind,
    ProviderEventSchema,
    field_path,
)
from realtimekit.core.outbound import summarize_generic
from realtimekit.errors import RealtimeSessionNotConfiguredError
from realtimekit.models.session import SessionConfig, clamp_sample_rate
from realtimekit.models.state import RealtimeClientState
from realtimekit.providers.base import RealtimeClient
from realtimekit.providers.config import http_origin
from realtimekit.providers.gemini.config import DEFAULT_GEMINI_BASE_URL, GeminiLiveConfig
from realtimekit.redaction import compact_dict

logger = logging.getLogger("realtimekit.providers.gemini.live")

DEFAULT_LIVE_MODEL = "gemini-2.5-flash-native-audio-preview-12-2025"
DEFAULT_VOICE = "Aoede"
DEFAULT_INPUT_SAMPLE_RATE = 16000
DEFAULT_OUTPUT_SAMPLE_RATE = 24000
LIVE_PATH = "/ws/google.ai.generativelanguage.v1beta.GenerativeService.BidiGenerateContent"

MEDIA_CHUNKS_EVENT = "realtimeInput.mediaChunks"

GEMINI_LIVE_SCHEMA = ProviderEventSchema(name="Gemini")

_inline_audio = field_path("inlineData", "data")
_input_transcription = field_path("inputTranscription", "text")
_output_transcription = field_path("outputTranscription", "text")


def ensure_model_prefix(model: str | None) -> str:
    """``"gemini-x"`` -> ``"models/gemini-x"``; blank input gets the default model."""
    normalized = str(model or "").strip() or DEFAULT_LIVE_MODEL
    if normalized.startswith("models/"):
        return normalized
    return f"models/{normalized}"


def pcm_mime_type(sample_rate: int) -> str:
    return f"audio/pcm;rate={sample_rate}"


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class GeminiLiveClientState(RealtimeClientState):
    """State snapshot including setup and response progress."""

    setup_complete: bool = False
    pending_response_active: bool = False


class GeminiLiveClient(RealtimeClient):
    """Voice session against the Gemini Live API.

    Automatic activity detection is disabled, so the client brackets each
    user turn itself: the first appended chunk opens the activity and
    :meth:`commit_input_audio_buffer` closes it.

    Example:
        client = GeminiLiveClient(GeminiLiveConfig(api_key="AIza..."))
        client.on_audio_delta(lambda ev: playback.feed(ev.audio))

        await client.connect(voice="Aoede", instructions="Be brief.")
        await client.append_input_audio(pcm_bytes)
        await client.commit_input_audio_buffer()
    """

    state_model = GeminiLiveClientState
    history_excluded_types = frozenset({MEDIA_CHUNKS_EVENT})
    default_log_suppressed_types = frozenset({MEDIA_CHUNKS_EVENT})

    def __init__(self, config: GeminiLiveConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or GeminiLiveConfig(), **kwargs)
        self.setup_complete = False
        self.pending_response_active = False
        self._audio_activity_open = False

    @property
    def name(self) -> str:
        return "Gemini Live API"

    @property
    def event_schema(self) -> ProviderEventSchema:
        return GEMINI_LIVE_SCHEMA

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self._config.api_key.get_secret_value().strip(),
        }

    def build_realtime_url(self, model: str | None = None) -> str:
        """Live API socket URL. The model is chosen by ``setup``, not the URL."""
        parts = urlsplit(http_origin(self._config.base_url, DEFAULT_GEMINI_BASE_URL))
        scheme = "ws" if parts.scheme == "http" else "wss"
        query = urlencode({"key": self._config.api_key.get_secret_value().strip()})
        return urlunsplit((scheme, parts.netloc, LIVE_PATH, query, ""))

    async def connect(
        self,
        *,
        model: str = DEFAULT_LIVE_MODEL,
        voice: str = DEFAULT_VOICE,
        instructions: str = "",
        input_sample_rate: int = DEFAULT_INPUT_SAMPLE_RATE,
        output_sample_rate: int = DEFAULT_OUTPUT_SAMPLE_RATE,
    ) -> RealtimeClientState:
        """Open the session and send ``setup``.

        Sample rates are clamped to 8-48 kHz.
        """
        input_rate = clamp_sample_rate(input_sample_rate, DEFAULT_INPUT_SAMPLE_RATE)
        output_rate = clamp_sample_rate(output_sample_rate, DEFAULT_OUTPUT_SAMPLE_RATE)
        session_config = SessionConfig(
            model=ensure_model_prefix(model),
            voice=str(voice or "").strip() or DEFAULT_VOICE,
            instructions=str(instructions or ""),
            input_audio_format=pcm_mime_type(input_rate),
            output_audio_format=pcm_mime_type(output_rate),
            input_sample_rate=input_rate,
            output_sample_rate=output_rate,
        )
        return await self._connect(session_config)

    def _mark_connected(self, ws: ClientConnection) -> None:
        super()._mark_connected(ws)
        self.setup_complete = False
        self._reset_turn_state()

    async def close(self) -> None:
        await super().close()
        self._reset_turn_state()

    def _reset_turn_state(self) -> None:
        self.pending_response_active = False
        self._audio_activity_open = False

    # -- Outbound --

    def build_session_update(self, config: SessionConfig) -> dict[str, Any]:
        return {
            "setup": compact_dict(
                {
                    "model": ensure_model_prefix(config.model),
                    "generationConfig": {
                        "responseModalities": ["AUDIO"],
                        "speechConfig": {
                            "voiceConfig": {
                                "prebuiltVoiceConfig": {
                                    "voiceName": str(config.voice or DEFAULT_VOICE)
                                }
                            }
                        },
                    },
                    "systemInstruction": {
                        "role": "system",
                        "parts": [{"text": str(config.instructions or "")}],
                    },
                    "realtimeInputConfig": {"automaticActivityDetection": {"disabled": True}},
                    "inputAudioTranscription": {},
                    "outputAudioTranscription": {},
                }
            )
        }

    def outbound_event_type(self, payload: dict[str, Any]) -> str:
        if payload.get("setup"):
            return "setup"
        if payload.get("clientContent"):
            return "clientContent"
        realtime_input = payload.get("realtimeInput")
        if isinstance(realtime_input, dict):
            if "mediaChunks" in realtime_input:
                return MEDIA_CHUNKS_EVENT
            if "activityStart" in realtime_input:
                return "realtimeInput.activityStart"
            if "activityEnd" in realtime_input:
                return "realtimeInput.activityEnd"
            return "realtimeInput"
        return "unknown"

    def summarize_outbound(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        event_type = self.outbound_event_type(payload)
        if event_type == MEDIA_CHUNKS_EVENT:
            chunks = payload["realtimeInput"]["mediaChunks"]
            chunks = chunks if isinstance(chunks, list) else []
            first = chunks[0] if chunks and isinstance(chunks[0], dict) else {}
            data = first.get("data")
            return compact_dict(
                {
                    "type": event_type,
                    "chunk_count": len(chunks),
                    "mime_type": first.get("mimeType"),
                    "data_chars": len(data) if isinstance(data, str) else 0,
                }
            )
        if event_type == "setup":
            setup = payload["setup"]
            parts = field_path("systemInstruction", "parts")(setup)
            parts = parts if isinstance(parts, list) else []
            return compact_dict(
                {
                    "type": event_type,
                    "model": setup.get("model"),
                    "instructions_chars": sum(
                        len(part["text"])
                        for part in parts
                        if isinstance(part, dict) and isinstance(part.get("text"), str)
                    ),
                }
            )
        if event_type == "clientContent":
            content = payload["clientContent"]
            turns = content.get("turns") if isinstance(content, dict) else None
            turns = turns if isinstance(turns, list) else []
            first_text = field_path(0, "parts", 0, "text")(turns)
            return {
                "type": event_type,
                "turn_count": len(turns),
                "turn_complete": isinstance(content, dict) and content.get("turnComplete") is True,
                "first_part_text_chars": len(first_text) if isinstance(first_text, str) else 0,
            }
        return summarize_generic(payload, event_type)

    async def send_realtime_input(self, realtime_input: dict[str, Any]) -> None:
        await self.send({"realtimeInput": realtime_input})

    async def append_input_audio(self, audio: bytes | bytearray | str) -> None:
        """Stream one PCM16 chunk, opening a user activity first if needed."""
        if not audio:
            return
        encoded = (
            audio if isinstance(audio, str) else base64.b64encode(bytes(audio)).decode("ascii")
        )
        if not self._audio_activity_open:
            await self.send_realtime_input({"activityStart": {}})
            self._audio_activity_open = True
        config = self._session_config
        mime_type = (
            str(config.input_audio_format)
            if config is not None
            else pcm_mime_type(DEFAULT_INPUT_SAMPLE_RATE)
        )
        await self.send_realtime_input({"mediaChunks": [{"mimeType": mime_type, "data": encoded}]})

    async def append_input_video_frame(
        self, data_base64: str, mime_type: str = "image/jpeg"
    ) -> None:
        """Stream one encoded video frame (JPEG by default)."""
        data = str(data_base64 or "").strip()
        if not data:
            return
        await self.send_realtime_input(
            {
                "mediaChunks": [
                    {"mimeType": str(mime_type or "").strip() or "image/jpeg", "data": data}
                ]
            }
        )

    async def commit_input_audio_buffer(self) -> None:
        """End the open user activity. Nothing is sent if none is open."""
        if not self._audio_activity_open:
            return
        await self.send_realtime_input({"activityEnd": {}})
        self._audio_activity_open = False

    async def clear_input_audio_buffer(self) -> None:
        """No-op: streamed chunks are not buffered server-side."""

    async def create_audio_response(self) -> None:
        # The model answers when the activity ends; only track the expectation.
        self.pending_response_active = True

    async def request_utterance(self, text: str) -> None:
        """Send *text* as a complete user turn."""
        prompt = str(text or "").strip()
        if not prompt:
            return
        self.pending_response_active = True
        await self.send(
            {
                "clientContent": {
                    "turns": [{"role": "user", "parts": [{"text": prompt}]}],
                    "turnComplete": True,
                }
            }
        )

    async def update_instructions(self, instructions: str = "") -> None:
        """Replace the system instructions used by the next ``setup``.

        The Live API accepts ``setup`` once per connection, so the running
        session keeps its instructions until reconnect.
        """
        if self._session_config is None:
            raise RealtimeSessionNotConfiguredError(
                f"{self.name} session config is not initialized."
            )
        self._session_config = replace(self._session_config, instructions=str(instructions or ""))
        logger.debug("[%s] instructions updated; applied on next connect", self.name)

    def is_response_in_progress(self) -> bool:
        return self.pending_response_active

    # -- Inbound --

    def classify_event(self, event: dict[str, Any]) -> list[ClassifiedEvent]:
        if isinstance(event.get("setupComplete"), dict):
            return [ClassifiedEvent(InboundEventKind.SESSION, "setupComplete", event)]
        if event.get("error"):
            return [self._classify_error(event)]

        server_content = event.get("serverContent")
        if not isinstance(server_content, dict):
            return []

        classified: list[ClassifiedEvent] = []
        parts = field_path("modelTurn", "parts")(server_content)
        for part in parts if isinstance(parts, list) else []:
            audio = _text(_inline_audio(part))
            if audio:
                classified.append(
                    ClassifiedEvent(
                        kind=InboundEventKind.AUDIO_DELTA,
                        event_type="server_content_audio",
                        event=event,
                        audio_base64=audio,
                    )
                )
            text = _text(part.get("text")) if isinstance(part, dict) else ""
            if text:
                classified.append(
                    ClassifiedEvent(
                        kind=InboundEventKind.TRANSCRIPT,
                        event_type="server_content_text",
                        event=event,
                        text=text,
                    )
                )

        user_text = _text(_input_transcription(server_content))
        if user_text:
            classified.append(
                ClassifiedEvent(
                    kind=InboundEventKind.TRANSCRIPT,
                    event_type="input_audio_transcription",
                    event=event,
                    text=user_text,
                    role="user",
                )
            )
        assistant_text = _text(_output_transcription(server_content))
        if assistant_text:
            classified.append(
                ClassifiedEvent(
                    kind=InboundEventKind.TRANSCRIPT,
                    event_type="output_audio_transcription",
                    event=event,
                    text=assistant_text,
                )
            )

        interrupted = bool(server_content.get("interrupted"))
        if (
            server_content.get("turnComplete")
            or server_content.get("generationComplete")
            or interrupted
        ):
            classified.append(
                ClassifiedEvent(
                    kind=InboundEventKind.RESPONSE_DONE,
                    event_type="response.done",
                    event={
                        "type": "response.done",
                        "response": {
                            "id": None,
                            "status": "interrupted" if interrupted else "completed",
                        },
                        "serverContent": server_content,
                    },
                )
            )
        return classified

    def _classify_error(self, event: dict[str, Any]) -> ClassifiedEvent:
        error = event.get("error")
        details: dict[str, Any] = error if isinstance(error, dict) else {}
        message = (
            details.get("message")
            or details.get("status")
            or details.get("code")
            or event.get("message")
            or f"Unknown {GEMINI_LIVE_SCHEMA.name} realtime error"
        )
        code = details.get("code")
        return ClassifiedEvent(
            kind=InboundEventKind.ERROR,
            event_type="error",
            event=event,
            error_message=str(message),
            error_code=str(code) if code else None,
        )

    async def _observe(self, classified: ClassifiedEvent) -> None:
        if classified.kind is InboundEventKind.SESSION:
            self.setup_complete = True
        elif classified.kind is InboundEventKind.RESPONSE_DONE:
            self.pending_response_active = False

    def _on_socket_closed(self) -> None:
        self._reset_turn_state()

    def _extra_state(self) -> dict[str, Any]:
        return {
            "setup_complete": self.setup_complete,
            "pending_response_active": self.pending_response_active,
        }
