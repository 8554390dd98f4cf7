"""ElevenLabs conversational agent client.

Sessions are opened against a signed socket URL fetched over REST for a
configured agent. Audio appended by the caller is held locally and only
streamed on commit, one ``user_audio_chunk`` message per chunk.
"""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection

from realtimekit.core.classifier import (
    ClassifiedEvent,
    InboundEventKind,
    ProviderEventSchema,
    field_path,
)
from realtimekit.core.diagnostics import body_preview, sanitize_response_headers
from realtimekit.core.outbound import summarize_generic
from realtimekit.errors import (
    RealtimeConfigurationError,
    RealtimeConnectError,
    RealtimeConnectTimeoutError,
    RealtimeSocketNotOpenError,
)
from realtimekit.models.diagnostics import ConnectErrorDiagnostics
from realtimekit.models.session import SessionConfig, clamp_sample_rate
from realtimekit.models.state import RealtimeClientState
from realtimekit.providers.base import RealtimeClient
from realtimekit.providers.config import http_origin
from realtimekit.providers.elevenlabs.config import (
    DEFAULT_ELEVENLABS_BASE_URL,
    ElevenLabsRealtimeConfig,
)
from realtimekit.redaction import compact_dict, redact_url

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger("realtimekit.providers.elevenlabs.realtime")

SIGNED_URL_PATH = "/v1/convai/conversation/get-signed-url"
DEFAULT_SAMPLE_RATE = 16000
USER_AUDIO_CHUNK_EVENT = "user_audio_chunk"
MAX_TEXT_PREVIEW_CHARS = 180
MAX_PAYLOAD_PREVIEW_CHARS = 220

_PCM_FORMAT_RE = re.compile(r"^pcm_(\d{4,6})$")

ELEVENLABS_SCHEMA = ProviderEventSchema(
    name="ElevenLabs",
    audio_delta_types=frozenset({"audio"}),
    transcript_final_types=frozenset(
        {"user_transcript", "agent_response", "agent_response_correction"}
    ),
    user_transcript_types=frozenset({"user_transcript"}),
    session_types=frozenset({"conversation_initiation_metadata"}),
    response_done_types=frozenset(),
    audio_accessors=(field_path("audio_event", "audio_base_64"),),
    transcript_accessors=(
        field_path("user_transcription_event", "user_transcript"),
        field_path("agent_response_event", "agent_response"),
        field_path("agent_response_correction_event", "corrected_agent_response"),
    ),
    session_id_accessors=(
        field_path("conversation_initiation_metadata", "conversation_id"),
    ),
)


def parse_pcm_rate(audio_format: Any) -> int | None:
    """Sample rate of an ElevenLabs ``pcm_<rate>`` format name, clamped to 8-48 kHz."""
    match = _PCM_FORMAT_RE.match(str(audio_format or "").strip().lower())
    if not match:
        return None
    return clamp_sample_rate(match.group(1), DEFAULT_SAMPLE_RATE)


class ElevenLabsRealtimeClientState(RealtimeClientState):
    """State snapshot including the agent and locally held audio."""

    agent_id: str | None = None
    input_sample_rate: int | None = None
    output_sample_rate: int | None = None
    pending_input_chunks: int = 0


class ElevenLabsRealtimeClient(RealtimeClient):
    """Voice session with an ElevenLabs conversational agent.

    Requires ``httpx`` for the signed-URL request
    (``pip install realtimekit[httpx]``).

    Example:
        client = ElevenLabsRealtimeClient(ElevenLabsRealtimeConfig(api_key="..."))
        client.on_transcript(handle_transcript)

        await client.connect(agent_id="agent_123")
        await client.append_input_audio(pcm_bytes)
        await client.commit_input_audio_buffer()
        await client.aclose()
    """

    state_model = ElevenLabsRealtimeClientState
    history_excluded_types = frozenset({USER_AUDIO_CHUNK_EVENT})
    default_log_suppressed_types = frozenset({USER_AUDIO_CHUNK_EVENT})

    def __init__(self, config: ElevenLabsRealtimeConfig | None = None, **kwargs: Any) -> None:
        try:
            import httpx as _httpx
        except ImportError as exc:
            raise ImportError(
                "httpx is required for ElevenLabsRealtimeClient. "
                "Install it with: pip install realtimekit[httpx]"
            ) from exc
        config = config or ElevenLabsRealtimeConfig()
        super().__init__(config, **kwargs)
        self._httpx = _httpx
        self._client: httpx.AsyncClient = _httpx.AsyncClient(timeout=config.http_timeout)
        self._pending_audio: list[str] = []

    @property
    def name(self) -> str:
        return "ElevenLabs realtime"

    @property
    def event_schema(self) -> ProviderEventSchema:
        return ELEVENLABS_SCHEMA

    def build_headers(self) -> dict[str, str]:
        # Credentials travel in the signed URL.
        return {"Content-Type": "application/json"}

    async def connect(
        self,
        *,
        agent_id: str,
        instructions: str = "",
        input_sample_rate: int = DEFAULT_SAMPLE_RATE,
        output_sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> RealtimeClientState:
        """Fetch a signed URL for *agent_id*, open the session and initiate it.

        Raises:
            RealtimeConfigurationError: No API key, or no agent id.
            RealtimeConnectError: The signed URL could not be obtained or
                the socket could not be opened.
        """
        self._require_api_key()
        resolved_agent_id = str(agent_id or "").strip()
        if not resolved_agent_id:
            raise RealtimeConfigurationError(f"{self.name} agent id is required.")
        session_config = SessionConfig(
            model="",
            agent_id=resolved_agent_id,
            instructions=str(instructions or "").strip(),
            input_sample_rate=clamp_sample_rate(input_sample_rate, DEFAULT_SAMPLE_RATE),
            output_sample_rate=clamp_sample_rate(output_sample_rate, DEFAULT_SAMPLE_RATE),
        )
        return await self._connect(session_config)

    async def _resolve_url(self, session_config: SessionConfig) -> str:
        return await self.fetch_signed_url(session_config.agent_id or "")

    async def fetch_signed_url(self, agent_id: str) -> str:
        """Request a signed conversation socket URL for *agent_id*.

        Raises:
            RealtimeConnectError: The request failed, was rejected, or the
                response carried no ``signed_url``.
        """
        url = f"{http_origin(self._config.base_url, DEFAULT_ELEVENLABS_BASE_URL)}{SIGNED_URL_PATH}"
        headers = {
            "Content-Type": "application/json",
            "xi-api-key": self._config.api_key.get_secret_value().strip(),
        }
        try:
            resp = await self._client.get(url, params={"agent_id": agent_id}, headers=headers)
            resp.raise_for_status()
        except self._httpx.TimeoutException as exc:
            raise RealtimeConnectTimeoutError(
                f"Timed out fetching {self.name} signed URL.",
                timeout=self._config.http_timeout,
                diagnostics=ConnectErrorDiagnostics(source="timeout", url=redact_url(url)),
            ) from exc
        except self._httpx.HTTPStatusError as exc:
            response = exc.response
            detail = body_preview(response.text) or response.reason_phrase or "unknown error"
            raise RealtimeConnectError(
                f"{self.name} signed URL request failed ({response.status_code}): {detail}",
                diagnostics=ConnectErrorDiagnostics(
                    source="unexpected_response",
                    url=redact_url(str(response.request.url)),
                    status_code=response.status_code,
                    status_message=response.reason_phrase or None,
                    headers=sanitize_response_headers(response.headers),
                    body_preview=body_preview(response.text),
                ),
            ) from exc
        except self._httpx.HTTPError as exc:
            raise RealtimeConnectError(
                f"Failed to fetch {self.name} signed URL: {exc}",
                diagnostics=ConnectErrorDiagnostics(source="socket_error", url=redact_url(url)),
            ) from exc

        try:
            payload = resp.json()
        except ValueError:
            payload = None
        signed_url = payload.get("signed_url") if isinstance(payload, dict) else None
        signed_url = str(signed_url or "").strip()
        if not signed_url:
            raise RealtimeConnectError(
                f"{self.name} signed URL response did not include signed_url."
            )
        logger.debug("Fetched signed URL: %s", redact_url(signed_url))
        return signed_url

    def _mark_connected(self, ws: ClientConnection) -> None:
        super()._mark_connected(ws)
        self._pending_audio = []

    async def aclose(self) -> None:
        """Close the session and release the HTTP client."""
        await self.close()
        await self._client.aclose()

    # -- Outbound --

    def build_session_update(self, config: SessionConfig) -> dict[str, Any]:
        instructions = str(config.instructions or "").strip()
        return compact_dict(
            {
                "type": "conversation_initiation_client_data",
                "conversation_config_override": (
                    {"agent": {"prompt": {"prompt": instructions}}} if instructions else None
                ),
            }
        )

    def outbound_event_type(self, payload: dict[str, Any]) -> str:
        event_type = payload.get("type")
        if isinstance(event_type, str) and event_type.strip():
            return event_type.strip()
        if isinstance(payload.get(USER_AUDIO_CHUNK_EVENT), str):
            return USER_AUDIO_CHUNK_EVENT
        if isinstance(payload.get("text"), str):
            return "user_message"
        return "unknown"

    def summarize_outbound(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        event_type = self.outbound_event_type(payload)
        if event_type == USER_AUDIO_CHUNK_EVENT:
            audio = payload.get(USER_AUDIO_CHUNK_EVENT)
            return compact_dict(
                {"type": event_type, "audio_chars": len(audio) if isinstance(audio, str) else None}
            )
        if event_type == "user_message":
            text = str(payload.get("text") or "").strip()
            return compact_dict(
                {
                    "type": event_type,
                    "text_chars": len(text) or None,
                    "text_preview": text[:MAX_TEXT_PREVIEW_CHARS] or None,
                }
            )
        if event_type == "conversation_initiation_client_data":
            prompt = field_path("conversation_config_override", "agent", "prompt", "prompt")(
                payload
            )
            prompt = str(prompt or "").strip()
            return compact_dict(
                {
                    "type": event_type,
                    "has_prompt_override": bool(prompt),
                    "prompt_chars": len(prompt) or None,
                }
            )
        if event_type in ("pong", "user_activity"):
            return {"type": event_type}
        return summarize_generic(payload, event_type, MAX_PAYLOAD_PREVIEW_CHARS)

    async def append_input_audio(self, audio: bytes | bytearray | str) -> None:
        """Hold one PCM16 chunk until the next commit."""
        if not audio:
            return
        encoded = (
            audio.strip()
            if isinstance(audio, str)
            else base64.b64encode(bytes(audio)).decode("ascii")
        )
        if encoded:
            self._pending_audio.append(encoded)

    async def commit_input_audio_buffer(self) -> None:
        """Stream every held chunk to the agent, oldest first."""
        chunks, self._pending_audio = self._pending_audio, []
        for chunk in chunks:
            await self.send({USER_AUDIO_CHUNK_EVENT: chunk})

    async def clear_input_audio_buffer(self) -> None:
        """Drop held chunks without sending them."""
        self._pending_audio = []

    async def create_audio_response(self) -> None:
        await self.send({"type": "user_activity"})

    async def request_utterance(self, text: str) -> None:
        """Send *text* to the agent as a user message."""
        prompt = str(text or "").strip()
        if not prompt:
            return
        await self.send({"type": "user_message", "text": prompt})

    # -- Inbound --

    def classify_event(self, event: dict[str, Any]) -> list[ClassifiedEvent]:
        event_type = str(event.get("type") or "").strip().lower()
        if event_type == "interruption":
            return [
                ClassifiedEvent(
                    kind=InboundEventKind.RESPONSE_DONE,
                    event_type=event_type,
                    event={
                        "type": "response.done",
                        "response": {"id": None, "status": "interrupted"},
                    },
                )
            ]
        classified = self._classifier.classify_event(event)
        if classified.kind is InboundEventKind.IGNORED and event.get("error"):
            classified = self._classifier.classify_error(event)
        return [classified]

    async def _observe(self, classified: ClassifiedEvent) -> None:
        if classified.kind is InboundEventKind.SESSION:
            self._apply_initiation_metadata(classified.event)
        elif classified.event_type == "ping":
            event_id = str(field_path("ping_event", "event_id")(classified.event) or "").strip()
            if event_id:
                try:
                    await self.send({"type": "pong", "event_id": event_id})
                except RealtimeSocketNotOpenError:
                    logger.debug("[%s] socket closed before pong %s", self.name, event_id)

    def _apply_initiation_metadata(self, event: dict[str, Any]) -> None:
        metadata = event.get("conversation_initiation_metadata")
        metadata = metadata if isinstance(metadata, dict) else {}
        input_rate = parse_pcm_rate(metadata.get("user_input_audio_format"))
        output_rate = parse_pcm_rate(metadata.get("agent_output_audio_format"))
        if self._session_config is not None:
            self._session_config = replace(
                self._session_config,
                input_sample_rate=input_rate or self._session_config.input_sample_rate,
                output_sample_rate=output_rate or self._session_config.output_sample_rate,
            )
        logger.info(
            "[%s] conversation initiated: input_format=%s output_format=%s",
            self.name,
            metadata.get("user_input_audio_format"),
            metadata.get("agent_output_audio_format"),
        )

    def _extra_state(self) -> dict[str, Any]:
        config = self._session_config
        return {
            "agent_id": config.agent_id if config else None,
            "input_sample_rate": config.input_sample_rate if config else None,
            "output_sample_rate": config.output_sample_rate if config else None,
            "pending_input_chunks": len(self._pending_audio),
        }
