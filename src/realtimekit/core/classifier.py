"""Classification of inbound realtime provider events.

Providers disagree about event names and about where a payload lives inside
an event, so both are configuration: a :class:`ProviderEventSchema` names the
event-type sets and the ordered field lists, and :class:`EventClassifier`
applies them in a fixed priority order:

1. session lifecycle (``session.created`` / ``session.updated``)
2. ``error``
3. audio delta
4. transcript (delta or final)
5. ``response.done``
6. anything else is ignored

Within a category the first non-empty field wins.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum, unique
from typing import Any, Literal

logger = logging.getLogger("realtimekit.core.classifier")

Accessor = Callable[[Mapping[str, Any]], Any]


def field_path(*path: str | int) -> Accessor:
    """Accessor returning the value at *path*, or ``None`` if any step is missing.

    String steps index mappings, integer steps index lists.
    """

    def accessor(event: Mapping[str, Any]) -> Any:
        value: Any = event
        for step in path:
            if isinstance(step, int):
                if not isinstance(value, list) or not -len(value) <= step < len(value):
                    return None
                value = value[step]
            else:
                if not isinstance(value, Mapping):
                    return None
                value = value.get(step)
        return value

    accessor.__name__ = "field_path(" + ".".join(str(step) for step in path) + ")"
    return accessor


DEFAULT_AUDIO_ACCESSORS: tuple[Accessor, ...] = (
    field_path("delta"),
    field_path("audio"),
    field_path("chunk"),
    field_path("audio", "delta"),
    field_path("audio", "chunk"),
    field_path("data", "audio"),
    field_path("data", "delta"),
    field_path("response", "audio", "delta"),
)

DEFAULT_TRANSCRIPT_ACCESSORS: tuple[Accessor, ...] = (
    field_path("transcript"),
    field_path("text"),
    field_path("delta"),
    field_path("item", "content", 0, "transcript"),
)

SESSION_EVENT_TYPES = frozenset({"session.created", "session.updated"})
ERROR_EVENT_TYPES = frozenset({"error"})
RESPONSE_DONE_EVENT_TYPES = frozenset({"response.done"})
USER_TRANSCRIPT_EVENT_TYPES = frozenset(
    {
        "conversation.item.input_audio_transcription.delta",
        "conversation.item.input_audio_transcription.completed",
    }
)


def extract_audio_base64(
    event: Mapping[str, Any],
    accessors: tuple[Accessor, ...] = DEFAULT_AUDIO_ACCESSORS,
) -> str | None:
    """First non-blank string among *accessors*, trimmed."""
    for accessor in accessors:
        value = accessor(event)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_present(event: Mapping[str, Any], accessors: tuple[Accessor, ...]) -> Any:
    for accessor in accessors:
        value = accessor(event)
        if value:
            return value
    return None


def extract_transcript(
    event: Mapping[str, Any],
    accessors: tuple[Accessor, ...] = DEFAULT_TRANSCRIPT_ACCESSORS,
) -> str:
    """First non-empty string among *accessors*, trimmed.

    The first non-empty field is authoritative even if it trims to nothing.
    """
    for accessor in accessors:
        value = accessor(event)
        if isinstance(value, str) and value:
            return value.strip()
    return ""


@dataclass(frozen=True)
class ProviderEventSchema:
    """Event vocabulary of one realtime provider."""

    name: str
    """Display name used in fallback error messages."""

    audio_delta_types: frozenset[str] = frozenset()
    transcript_delta_types: frozenset[str] = frozenset()
    transcript_final_types: frozenset[str] = frozenset()
    user_transcript_types: frozenset[str] = USER_TRANSCRIPT_EVENT_TYPES
    session_types: frozenset[str] = SESSION_EVENT_TYPES
    error_types: frozenset[str] = ERROR_EVENT_TYPES
    response_done_types: frozenset[str] = RESPONSE_DONE_EVENT_TYPES
    audio_accessors: tuple[Accessor, ...] = DEFAULT_AUDIO_ACCESSORS
    transcript_accessors: tuple[Accessor, ...] = DEFAULT_TRANSCRIPT_ACCESSORS
    session_id_accessors: tuple[Accessor, ...] = (field_path("session", "id"),)


@unique
class InboundEventKind(StrEnum):
    """Category an inbound event was routed into."""

    SESSION = "session"
    ERROR = "error"
    AUDIO_DELTA = "audio_delta"
    TRANSCRIPT = "transcript"
    RESPONSE_DONE = "response_done"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ClassifiedEvent:
    """An inbound event together with what was extracted from it."""

    kind: InboundEventKind
    event_type: str
    event: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None
    error_message: str | None = None
    error_code: str | None = None
    error_param: str | None = None
    audio_base64: str | None = None
    text: str | None = None
    is_final: bool = False
    role: Literal["user", "assistant"] = "assistant"


class EventClassifier:
    """Routes raw inbound frames according to a :class:`ProviderEventSchema`."""

    def __init__(self, schema: ProviderEventSchema) -> None:
        self._schema = schema

    @property
    def schema(self) -> ProviderEventSchema:
        return self._schema

    @staticmethod
    def parse(raw: str | bytes) -> dict[str, Any] | None:
        """Decode a frame as a JSON object; ``None`` for anything else."""
        try:
            if isinstance(raw, bytes | bytearray):
                raw = raw.decode("utf-8")
            event = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError):
            return None
        return event if isinstance(event, dict) else None

    def classify(self, raw: str | bytes) -> ClassifiedEvent | None:
        """Parse and classify one frame. Malformed frames yield ``None``."""
        event = self.parse(raw)
        if event is None:
            logger.debug("Dropping non-object realtime frame")
            return None
        return self.classify_event(event)

    def classify_event(self, event: dict[str, Any]) -> ClassifiedEvent:
        schema = self._schema
        event_type = str(event.get("type") or "")

        if event_type in schema.session_types:
            session_id = _first_present(event, schema.session_id_accessors)
            return ClassifiedEvent(
                kind=InboundEventKind.SESSION,
                event_type=event_type,
                event=event,
                session_id=str(session_id) if session_id else None,
            )

        if event_type in schema.error_types:
            return self.classify_error(event)

        if event_type in schema.audio_delta_types:
            audio = extract_audio_base64(event, schema.audio_accessors)
            if audio is None:
                return ClassifiedEvent(InboundEventKind.IGNORED, event_type, event)
            return ClassifiedEvent(
                kind=InboundEventKind.AUDIO_DELTA,
                event_type=event_type,
                event=event,
                audio_base64=audio,
            )

        is_final = event_type in schema.transcript_final_types
        if is_final or event_type in schema.transcript_delta_types:
            text = extract_transcript(event, schema.transcript_accessors)
            if not text:
                return ClassifiedEvent(InboundEventKind.IGNORED, event_type, event)
            return ClassifiedEvent(
                kind=InboundEventKind.TRANSCRIPT,
                event_type=event_type,
                event=event,
                text=text,
                is_final=is_final,
                role="user" if event_type in schema.user_transcript_types else "assistant",
            )

        if event_type in schema.response_done_types:
            return ClassifiedEvent(InboundEventKind.RESPONSE_DONE, event_type, event)

        return ClassifiedEvent(InboundEventKind.IGNORED, event_type, event)

    def classify_error(self, event: dict[str, Any]) -> ClassifiedEvent:
        """Classify *event* as an in-band provider error."""
        error = event.get("error")
        payload: Mapping[str, Any] = error if isinstance(error, Mapping) else {}
        message = (
            payload.get("message")
            or payload.get("code")
            or event.get("message")
            or f"Unknown {self._schema.name} realtime error"
        )
        code = payload.get("code")
        param = payload.get("param")
        return ClassifiedEvent(
            kind=InboundEventKind.ERROR,
            event_type=str(event.get("type") or "error"),
            event=event,
            error_message=str(message),
            error_code=str(code) if code else None,
            error_param=str(param) if param else None,
        )
