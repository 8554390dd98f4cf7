"""Tests for inbound event classification."""

from __future__ import annotations

import json

import pytest

from realtimekit.core.classifier import (
    EventClassifier,
    InboundEventKind,
    ProviderEventSchema,
    extract_audio_base64,
    extract_transcript,
    field_path,
)

SCHEMA = ProviderEventSchema(
    name="Test",
    audio_delta_types=frozenset({"response.output_audio.delta", "session.updated"}),
    transcript_delta_types=frozenset(
        {"conversation.item.input_audio_transcription.delta", "response.output_text.delta"}
    ),
    transcript_final_types=frozenset({"conversation.item.input_audio_transcription.completed"}),
    response_done_types=frozenset({"response.done", "response.output_text.delta"}),
)


@pytest.fixture
def classifier() -> EventClassifier:
    return EventClassifier(SCHEMA)


def _raw(event: dict) -> str:
    return json.dumps(event)


class TestParsing:
    @pytest.mark.parametrize("raw", ["not json {", "[1, 2]", '"text"', "42", b"\xff\xfe"])
    def test_malformed_frames_are_dropped(self, classifier: EventClassifier, raw) -> None:
        assert classifier.classify(raw) is None

    def test_bytes_frames_are_decoded(self, classifier: EventClassifier) -> None:
        result = classifier.classify(b'{"type": "response.done"}')

        assert result is not None
        assert result.kind is InboundEventKind.RESPONSE_DONE


class TestPriority:
    def test_session_wins_over_audio(self, classifier: EventClassifier) -> None:
        result = classifier.classify(
            _raw({"type": "session.updated", "session": {"id": "sess_1"}, "delta": "AAAA"})
        )

        assert result is not None
        assert result.kind is InboundEventKind.SESSION
        assert result.session_id == "sess_1"

    def test_transcript_wins_over_response_done(self, classifier: EventClassifier) -> None:
        result = classifier.classify(_raw({"type": "response.output_text.delta", "delta": "Hi"}))

        assert result is not None
        assert result.kind is InboundEventKind.TRANSCRIPT
        assert result.role == "assistant"

    def test_unknown_type_is_ignored(self, classifier: EventClassifier) -> None:
        result = classifier.classify(_raw({"type": "rate_limits.updated"}))

        assert result is not None
        assert result.kind is InboundEventKind.IGNORED


class TestErrors:
    def test_error_fields(self, classifier: EventClassifier) -> None:
        result = classifier.classify(
            _raw(
                {
                    "type": "error",
                    "error": {
                        "message": "Invalid value",
                        "code": "invalid_value",
                        "param": "session.audio",
                    },
                }
            )
        )

        assert result is not None
        assert result.kind is InboundEventKind.ERROR
        assert result.error_message == "Invalid value"
        assert result.error_code == "invalid_value"
        assert result.error_param == "session.audio"

    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            ({"type": "error", "error": {"code": "rate_limited"}}, "rate_limited"),
            ({"type": "error", "message": "top level"}, "top level"),
            ({"type": "error"}, "Unknown Test realtime error"),
        ],
    )
    def test_message_fallbacks(self, classifier: EventClassifier, event, expected) -> None:
        result = classifier.classify_event(event)

        assert result.error_message == expected


class TestAudio:
    def test_field_order(self) -> None:
        event = {"audio": {"delta": "SECOND"}, "data": {"audio": "THIRD"}}

        assert extract_audio_base64(event) == "SECOND"
        assert extract_audio_base64({"delta": "  ", "chunk": " FIRST "}) == "FIRST"
        assert extract_audio_base64({"response": {"audio": {"delta": "DEEP"}}}) == "DEEP"
        assert extract_audio_base64({"delta": 5}) is None

    def test_audio_delta(self, classifier: EventClassifier) -> None:
        result = classifier.classify(
            _raw({"type": "response.output_audio.delta", "delta": "AAEC"})
        )

        assert result is not None
        assert result.kind is InboundEventKind.AUDIO_DELTA
        assert result.audio_base64 == "AAEC"

    def test_empty_audio_is_ignored(self, classifier: EventClassifier) -> None:
        result = classifier.classify(_raw({"type": "response.output_audio.delta", "delta": ""}))

        assert result is not None
        assert result.kind is InboundEventKind.IGNORED


class TestTranscripts:
    def test_delta_then_final(self, classifier: EventClassifier) -> None:
        delta = classifier.classify(
            _raw({"type": "conversation.item.input_audio_transcription.delta", "delta": "hello"})
        )
        final = classifier.classify(
            _raw(
                {
                    "type": "conversation.item.input_audio_transcription.completed",
                    "transcript": " hello there ",
                }
            )
        )

        assert delta is not None and final is not None
        assert (delta.kind, delta.text, delta.is_final) == (
            InboundEventKind.TRANSCRIPT,
            "hello",
            False,
        )
        assert (final.kind, final.text, final.is_final) == (
            InboundEventKind.TRANSCRIPT,
            "hello there",
            True,
        )
        assert delta.role == final.role == "user"

    def test_blank_text_is_dropped(self, classifier: EventClassifier) -> None:
        result = classifier.classify(
            _raw({"type": "conversation.item.input_audio_transcription.delta", "delta": "   "})
        )

        assert result is not None
        assert result.kind is InboundEventKind.IGNORED

    def test_first_non_empty_field_is_authoritative(self) -> None:
        assert extract_transcript({"transcript": "  ", "text": "later"}) == ""
        assert extract_transcript({"transcript": "", "text": "later"}) == "later"
        assert (
            extract_transcript({"item": {"content": [{"transcript": "nested"}]}}) == "nested"
        )


def test_field_path_handles_missing_steps() -> None:
    accessor = field_path("item", "content", 0, "transcript")

    assert accessor({"item": {"content": []}}) is None
    assert accessor({"item": "flat"}) is None
    assert accessor({"item": {"content": [{"transcript": "x"}]}}) == "x"
