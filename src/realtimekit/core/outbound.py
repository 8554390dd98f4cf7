"""Bounded, redacted history of events sent to a realtime provider."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from realtimekit.models.state import OutboundEventRecord
from realtimekit.redaction import (
    DEFAULT_PREVIEW_CHARS,
    compact_dict,
    redact_payload,
    safe_json_preview,
)

MAX_OUTBOUND_EVENT_HISTORY = 8
STATE_OUTBOUND_EVENT_COUNT = 4
"""How many recent records snapshots and error notifications carry."""

AUDIO_APPEND_EVENT = "input_audio_buffer.append"


class OutboundEventLog:
    """Ring buffer of outbound event summaries plus a last-outbound pointer.

    Event types in *history_excluded_types* (high-volume audio appends by
    default) update only the last-outbound pointer and never enter the
    buffer, so a burst of audio cannot evict the events worth inspecting.
    """

    def __init__(
        self,
        *,
        max_history: int = MAX_OUTBOUND_EVENT_HISTORY,
        history_excluded_types: Iterable[str] = (AUDIO_APPEND_EVENT,),
    ) -> None:
        self._history: deque[OutboundEventRecord] = deque(maxlen=max_history)
        self._excluded = frozenset(history_excluded_types)
        self.last_event_type: str | None = None
        self.last_event_at: datetime | None = None
        self.last_event: OutboundEventRecord | None = None

    def record(self, event_type: str, summary: dict[str, Any] | None) -> OutboundEventRecord:
        """Track an outbound event. *summary* must already be redacted."""
        now = datetime.now(UTC)
        self.last_event_type = event_type
        self.last_event_at = now
        record = OutboundEventRecord(type=event_type, at=now, payload=summary)
        self.last_event = record
        if event_type not in self._excluded:
            self._history.append(record)
        return record

    def recent(self, limit: int | None = None) -> list[OutboundEventRecord]:
        """Most recent records, oldest first."""
        history = list(self._history)
        if limit is None:
            return history
        return history[-limit:] if limit > 0 else []

    def __len__(self) -> int:
        return len(self._history)


def summarize_audio_append(payload: dict[str, Any]) -> dict[str, Any]:
    """Report the encoded length of an audio chunk, never its content."""
    audio = payload.get("audio")
    return compact_dict(
        {
            "type": payload.get("type"),
            "audio_chars": len(audio) if isinstance(audio, str) else None,
        }
    )


def input_text_chars(items: Any) -> int:
    """Total length of ``input_text`` parts across message items."""
    total = 0
    for item in items if isinstance(items, list) else []:
        content = item.get("content") if isinstance(item, dict) else None
        for part in content if isinstance(content, list) else []:
            if isinstance(part, dict) and part.get("type") == "input_text":
                total += len(str(part.get("text") or ""))
    return total


def summarize_conversation_item(payload: dict[str, Any]) -> dict[str, Any]:
    """Item kind, role and text length of a ``conversation.item.create``."""
    item = payload.get("item")
    item = item if isinstance(item, dict) else {}
    return compact_dict(
        {
            "type": payload.get("type"),
            "item_type": item.get("type"),
            "role": item.get("role"),
            "input_text_chars": input_text_chars([item]),
        }
    )


def summarize_generic(
    payload: dict[str, Any],
    event_type: str | None = None,
    max_chars: int = DEFAULT_PREVIEW_CHARS,
) -> dict[str, Any]:
    """Fallback summary: a truncated preview of the payload, secrets redacted."""
    return compact_dict(
        {
            "type": event_type or str(payload.get("type") or "unknown"),
            "preview": safe_json_preview(redact_payload(payload), max_chars),
        }
    )


def list_head(value: Any, limit: int = 4) -> list[Any] | None:
    """First *limit* entries of *value* if it is a list, else ``None``."""
    return list(value[:limit]) if isinstance(value, list) else None
