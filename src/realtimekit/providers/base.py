"""RealtimeClient abstract base class."""

from __future__ import annotations

import asyncio
import base64
import contextlib
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, ClassVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosedError, WebSocketException

from realtimekit.core.classifier import (
    ClassifiedEvent,
    EventClassifier,
    InboundEventKind,
    ProviderEventSchema,
)
from realtimekit.core.outbound import (
    AUDIO_APPEND_EVENT,
    STATE_OUTBOUND_EVENT_COUNT,
    OutboundEventLog,
)
from realtimekit.core.socket import close_realtime_socket, is_socket_open, open_realtime_socket
from realtimekit.errors import (
    RealtimeConfigurationError,
    RealtimeConnectError,
    RealtimeSessionNotConfiguredError,
    RealtimeSocketNotOpenError,
)
from realtimekit.models.events import (
    RealtimeAudioDeltaEvent,
    RealtimeErrorEvent,
    RealtimeResponseDoneEvent,
    RealtimeSessionUpdatedEvent,
    RealtimeSocketClosedEvent,
    RealtimeSocketErrorEvent,
    RealtimeTranscriptEvent,
)
from realtimekit.models.session import SessionConfig
from realtimekit.models.state import RealtimeClientState, RealtimeConnectionStatus
from realtimekit.providers.config import RealtimeClientConfig

logger = logging.getLogger("realtimekit.providers.base")

# Callback type aliases
RawEventCallback = Callable[[dict[str, Any]], Any]
SessionUpdatedCallback = Callable[[RealtimeSessionUpdatedEvent], Any]
ErrorCallback = Callable[[RealtimeErrorEvent], Any]
AudioDeltaCallback = Callable[[RealtimeAudioDeltaEvent], Any]
TranscriptCallback = Callable[[RealtimeTranscriptEvent], Any]
ResponseDoneCallback = Callable[[RealtimeResponseDoneEvent], Any]
SocketErrorCallback = Callable[[RealtimeSocketErrorEvent], Any]
SocketClosedCallback = Callable[[RealtimeSocketClosedEvent], Any]


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class RealtimeClient(ABC):
    """One realtime session with one provider over one WebSocket.

    Owns the socket, the connection state, the session configuration and
    the outbound telemetry. Subclasses supply the provider specifics: the
    configuration-update event, the outbound summaries and the inbound
    event vocabulary.

    Inbound frames are handled sequentially on a single receive task, so
    callbacks fire in arrival order and state is never mutated concurrently.
    Callbacks may be plain functions or coroutine functions.

    Example:
        client = OpenAIRealtimeTranscriptionClient(OpenAIRealtimeConfig(api_key="sk-..."))
        client.on_transcript(handle_transcript)

        await client.connect(language="en")
        await client.append_input_audio(pcm_bytes)
        await client.commit_input_audio_buffer()
        await client.close()
    """

    state_model: ClassVar[type[RealtimeClientState]] = RealtimeClientState
    history_excluded_types: ClassVar[frozenset[str]] = frozenset({AUDIO_APPEND_EVENT})
    default_log_suppressed_types: ClassVar[frozenset[str]] = frozenset({AUDIO_APPEND_EVENT})

    def __init__(
        self,
        config: RealtimeClientConfig,
        *,
        log_suppressed_types: Iterable[str] | None = None,
    ) -> None:
        self._config = config
        self._ws: ClientConnection | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._connect_lock = asyncio.Lock()
        self._status = RealtimeConnectionStatus.INIT
        self._session_config: SessionConfig | None = None
        self._classifier = EventClassifier(self.event_schema)
        self._outbound = OutboundEventLog(
            max_history=config.max_outbound_history,
            history_excluded_types=self.history_excluded_types,
        )
        self._log_suppressed_types = frozenset(
            self.default_log_suppressed_types
            if log_suppressed_types is None
            else log_suppressed_types
        )

        self.connected_at: datetime | None = None
        self.last_event_at: datetime | None = None
        self.last_error: str | None = None
        self.session_id: str | None = None
        self.last_close_code: int | None = None
        self.last_close_reason: str | None = None

        # Callbacks
        self._event_callbacks: list[RawEventCallback] = []
        self._session_updated_callbacks: list[SessionUpdatedCallback] = []
        self._error_callbacks: list[ErrorCallback] = []
        self._audio_delta_callbacks: list[AudioDeltaCallback] = []
        self._transcript_callbacks: list[TranscriptCallback] = []
        self._response_done_callbacks: list[ResponseDoneCallback] = []
        self._socket_error_callbacks: list[SocketErrorCallback] = []
        self._socket_closed_callbacks: list[SocketClosedCallback] = []

    # -- Provider specifics --

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name used in log lines and error messages."""
        ...

    @property
    @abstractmethod
    def event_schema(self) -> ProviderEventSchema:
        """Inbound event vocabulary of the provider."""
        ...

    @abstractmethod
    def build_session_update(self, config: SessionConfig) -> dict[str, Any]:
        """Map *config* into the provider's configuration-update event."""
        ...

    @abstractmethod
    def summarize_outbound(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Redacted summary of an outbound event, safe to store and log."""
        ...

    def outbound_event_type(self, payload: dict[str, Any]) -> str:
        """Name an outbound event for telemetry. Defaults to its ``type`` field."""
        return str(payload.get("type") or "unknown")

    def build_headers(self) -> dict[str, str]:
        """Handshake headers. Defaults to bearer authorization."""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.api_key.get_secret_value().strip()}",
        }

    def build_realtime_url(self, model: str | None) -> str:
        """Derive the socket URL from the configured HTTP(S) base URL.

        ``http`` maps to ``ws``, everything else to ``wss``; ``/realtime``
        is appended to the path and ``model`` set as a query parameter.
        """
        parts = urlsplit(self._config.base_url.strip().rstrip("/"))
        scheme = "ws" if parts.scheme == "http" else "wss"
        path = f"{parts.path.rstrip('/')}/realtime"
        query = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key != "model"
        ]
        if model:
            query.append(("model", model))
        return urlunsplit((scheme, parts.netloc, path, urlencode(query), ""))

    # -- Properties --

    @property
    def config(self) -> RealtimeClientConfig:
        return self._config

    @property
    def status(self) -> RealtimeConnectionStatus:
        return self._status

    @property
    def session_config(self) -> SessionConfig | None:
        return self._session_config

    @property
    def outbound(self) -> OutboundEventLog:
        return self._outbound

    @property
    def is_connected(self) -> bool:
        return is_socket_open(self._ws)

    # -- Lifecycle --

    def _require_api_key(self) -> None:
        if not self._config.api_key.get_secret_value().strip():
            raise RealtimeConfigurationError(f"Missing API key for {self.name}.")

    async def _connect(self, session_config: SessionConfig) -> RealtimeClientState:
        """Open the socket and send the initial session configuration.

        Idempotent: if the socket is already open the current state is
        returned and nothing else happens. Overlapping calls are serialized;
        a caller that waited on another's attempt gets the resulting state.
        """
        self._require_api_key()
        async with self._connect_lock:
            if is_socket_open(self._ws):
                return self.get_state()

            # A previous socket may have closed remotely; retire its receive task.
            await self._stop_receive_task()

            self._status = RealtimeConnectionStatus.CONNECTING
            try:
                url = await self._resolve_url(session_config)
                ws = await self._open_socket(url)
            except RealtimeConnectError as exc:
                self._status = RealtimeConnectionStatus.CLOSED
                self.last_error = str(exc)
                raise

            self._mark_connected(ws)
            self._session_config = session_config
            try:
                await self.send_session_update()
            except Exception as exc:
                await self._abandon_socket(exc)
                raise
            self._status = RealtimeConnectionStatus.ACTIVE
            logger.info("%s session connected", self.name)
            return self.get_state()

    async def _resolve_url(self, session_config: SessionConfig) -> str:
        """Socket URL for *session_config*. Defaults to :meth:`build_realtime_url`."""
        return self.build_realtime_url(session_config.model)

    async def _open_socket(self, url: str) -> ClientConnection:
        timeout = self._config.connect_timeout
        return await open_realtime_socket(
            url,
            headers=self.build_headers(),
            timeout=timeout,
            grace=self._config.connect_grace,
            close_timeout=self._config.close_timeout,
            timeout_message=f"Timed out connecting to {self.name} after {int(timeout * 1000)}ms.",
            connect_error_prefix=f"{self.name} connection failed",
        )

    async def _abandon_socket(self, exc: BaseException) -> None:
        """Tear down a socket whose session could not be configured."""
        logger.warning("[%s] session setup failed, closing socket: %s", self.name, exc)
        try:
            await close_realtime_socket(self._ws, timeout=self._config.close_timeout)
            await self._stop_receive_task()
        finally:
            self._status = RealtimeConnectionStatus.CLOSED
            self._ws = None
            self.last_error = str(exc) or exc.__class__.__name__

    def _mark_connected(self, ws: ClientConnection) -> None:
        now = _utcnow()
        self._ws = ws
        self.connected_at = now
        self.last_event_at = now
        self.last_error = None
        self._status = RealtimeConnectionStatus.OPEN
        self._receive_task = asyncio.create_task(
            self._receive_loop(ws),
            name=f"realtime_recv:{self.name}",
        )

    async def close(self) -> None:
        """Close the socket. Safe to call repeatedly, or before connecting."""
        ws = self._ws
        if ws is None:
            return
        try:
            await close_realtime_socket(ws, timeout=self._config.close_timeout)
            await self._stop_receive_task()
        finally:
            self._status = RealtimeConnectionStatus.CLOSED
            self._ws = None

    async def _stop_receive_task(self) -> None:
        task = self._receive_task
        if task is None or task is asyncio.current_task():
            return
        self._receive_task = None
        if not task.done():
            # Give the loop a chance to observe the close frame first.
            await asyncio.wait({task}, timeout=self._config.close_timeout)
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # -- Outbound --

    async def send(self, payload: dict[str, Any]) -> None:
        """Record and transmit one outbound event.

        Raises:
            RealtimeSocketNotOpenError: The socket is missing or not open.
                Nothing is buffered for later delivery.
        """
        ws = self._ws
        if ws is None or not is_socket_open(ws):
            raise RealtimeSocketNotOpenError(f"{self.name} socket is not open.")

        event_type = self.outbound_event_type(payload)
        record = self._outbound.record(event_type, self.summarize_outbound(payload))
        if event_type not in self._log_suppressed_types:
            logger.info(
                "[%s] event sent: %s",
                self.name,
                record.model_dump(mode="json", exclude_none=True),
            )
        await ws.send(json.dumps(payload))

    async def send_session_update(self) -> None:
        """(Re-)send the stored session configuration."""
        if self._session_config is None:
            raise RealtimeSessionNotConfiguredError(
                f"{self.name} session config is not initialized."
            )
        await self.send(self.build_session_update(self._session_config))

    async def append_input_audio(self, audio: bytes | bytearray | str) -> None:
        """Append one chunk to the input audio buffer.

        Args:
            audio: Raw PCM16 bytes, or an already base64-encoded string.
                Empty input is ignored.
        """
        if not audio:
            return
        encoded = (
            audio if isinstance(audio, str) else base64.b64encode(bytes(audio)).decode("ascii")
        )
        await self.send({"type": AUDIO_APPEND_EVENT, "audio": encoded})

    async def commit_input_audio_buffer(self) -> None:
        await self.send({"type": "input_audio_buffer.commit"})

    async def clear_input_audio_buffer(self) -> None:
        await self.send({"type": "input_audio_buffer.clear"})

    # -- State --

    def _extra_state(self) -> dict[str, Any]:
        """Provider-specific fields merged into :meth:`get_state`."""
        return {}

    def get_state(self) -> RealtimeClientState:
        """Snapshot of connection state and outbound telemetry."""
        outbound = self._outbound
        return self.state_model(
            connected=is_socket_open(self._ws),
            status=self._status,
            connected_at=self.connected_at,
            last_event_at=self.last_event_at,
            session_id=self.session_id,
            last_error=self.last_error,
            last_close_code=self.last_close_code,
            last_close_reason=self.last_close_reason,
            last_outbound_event_type=outbound.last_event_type,
            last_outbound_event_at=outbound.last_event_at,
            last_outbound_event=outbound.last_event,
            recent_outbound_events=outbound.recent(STATE_OUTBOUND_EVENT_COUNT),
            **self._extra_state(),
        )

    # -- Inbound --

    async def _receive_loop(self, ws: ClientConnection) -> None:
        """Feed every inbound frame to :meth:`handle_incoming` until close."""
        try:
            async for message in ws:
                await self.handle_incoming(message)
        except ConnectionClosedError as exc:
            if exc.rcvd is None and ws is self._ws:
                # No close frame: the transport failed underneath us.
                await self._handle_socket_error(exc)
        except (WebSocketException, OSError) as exc:
            if ws is self._ws:
                await self._handle_socket_error(exc)
        await self._handle_socket_close(ws, ws.close_code, ws.close_reason)

    async def handle_incoming(self, raw: str | bytes) -> None:
        """Classify one inbound frame and notify callbacks.

        Malformed or unrecognized frames are dropped without error.
        """
        self.last_event_at = _utcnow()
        event = self._classifier.parse(raw)
        if event is None:
            logger.debug("[%s] dropping non-object realtime frame", self.name)
            return

        await self._fire(self._event_callbacks, event)
        for classified in self.classify_event(event):
            await self._observe(classified)
            await self._dispatch(classified)

    def classify_event(self, event: dict[str, Any]) -> list[ClassifiedEvent]:
        """Notifications carried by one parsed frame, in delivery order.

        Most providers send one notification per frame; override for
        providers that batch several into a single message.
        """
        return [self._classifier.classify_event(event)]

    async def _dispatch(self, classified: ClassifiedEvent) -> None:
        kind = classified.kind
        if kind is InboundEventKind.SESSION:
            self.session_id = classified.session_id or self.session_id
            logger.info(
                "[%s] %s: session_id=%s", self.name, classified.event_type, self.session_id
            )
            await self._fire(
                self._session_updated_callbacks,
                RealtimeSessionUpdatedEvent(
                    session_id=self.session_id, event_type=classified.event_type
                ),
            )
        elif kind is InboundEventKind.ERROR:
            await self._dispatch_error(classified)
        elif kind is InboundEventKind.AUDIO_DELTA:
            await self._fire(
                self._audio_delta_callbacks,
                RealtimeAudioDeltaEvent(
                    audio_base64=classified.audio_base64 or "",
                    event_type=classified.event_type,
                ),
            )
        elif kind is InboundEventKind.TRANSCRIPT:
            await self._fire(
                self._transcript_callbacks,
                RealtimeTranscriptEvent(
                    text=classified.text or "",
                    event_type=classified.event_type,
                    is_final=classified.is_final,
                    role=classified.role,
                ),
            )
        elif kind is InboundEventKind.RESPONSE_DONE:
            await self._fire(
                self._response_done_callbacks,
                RealtimeResponseDoneEvent(event=classified.event),
            )

    async def _dispatch_error(self, classified: ClassifiedEvent) -> None:
        outbound = self._outbound
        recent = outbound.recent(STATE_OUTBOUND_EVENT_COUNT)
        self.last_error = classified.error_message
        logger.warning(
            "[%s] error event [%s] %s (param=%s, last_outbound=%s, recent=%s)",
            self.name,
            classified.error_code,
            classified.error_message,
            classified.error_param,
            outbound.last_event_type,
            [record.type for record in recent],
        )
        await self._fire(
            self._error_callbacks,
            RealtimeErrorEvent(
                message=classified.error_message or "",
                code=classified.error_code,
                param=classified.error_param,
                event=classified.event,
                last_outbound_event_type=outbound.last_event_type,
                last_outbound_event=outbound.last_event,
                recent_outbound_events=recent,
            ),
        )

    async def _observe(self, classified: ClassifiedEvent) -> None:
        """Hook for provider state tracking, called for every classified event."""

    async def _handle_socket_error(self, exc: BaseException) -> None:
        self.last_event_at = _utcnow()
        self.last_error = str(exc) or exc.__class__.__name__
        logger.warning("[%s] socket error: %s", self.name, self.last_error)
        await self._fire(
            self._socket_error_callbacks, RealtimeSocketErrorEvent(message=self.last_error)
        )

    async def _handle_socket_close(
        self, ws: ClientConnection, code: int | None, reason: str | None
    ) -> None:
        if ws is not self._ws:
            # A replaced socket finishing late must not touch the current session.
            logger.debug("[%s] ignoring close of a stale socket: code=%s", self.name, code)
            return
        self.last_event_at = _utcnow()
        self.last_close_code = code or None
        self.last_close_reason = reason or None
        self._status = RealtimeConnectionStatus.CLOSED
        self._on_socket_closed()
        logger.info(
            "[%s] socket closed: code=%s reason=%s",
            self.name,
            self.last_close_code,
            self.last_close_reason,
        )
        await self._fire(
            self._socket_closed_callbacks,
            RealtimeSocketClosedEvent(code=self.last_close_code, reason=self.last_close_reason),
        )

    def _on_socket_closed(self) -> None:
        """Hook for provider state reset when the socket closes."""

    # -- Callback registration --

    def on_event(self, callback: RawEventCallback) -> None:
        """Register callback for every parsed inbound event, before routing."""
        self._event_callbacks.append(callback)

    def on_session_updated(self, callback: SessionUpdatedCallback) -> None:
        self._session_updated_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        """Register callback for in-band provider errors."""
        self._error_callbacks.append(callback)

    def on_audio_delta(self, callback: AudioDeltaCallback) -> None:
        self._audio_delta_callbacks.append(callback)

    def on_transcript(self, callback: TranscriptCallback) -> None:
        self._transcript_callbacks.append(callback)

    def on_response_done(self, callback: ResponseDoneCallback) -> None:
        self._response_done_callbacks.append(callback)

    def on_socket_error(self, callback: SocketErrorCallback) -> None:
        """Register callback for transport errors after the socket opened."""
        self._socket_error_callbacks.append(callback)

    def on_socket_closed(self, callback: SocketClosedCallback) -> None:
        self._socket_closed_callbacks.append(callback)

    # -- Callback helpers --

    async def _fire(self, callbacks: list[Callable[[Any], Any]], payload: Any) -> None:
        for cb in callbacks:
            try:
                result = cb(payload)
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.exception("Error in %s callback", self.name)
