"""Tests for the xAI realtime voice client."""

from __future__ import annotations

import json

import pytest

from realtimekit import (
    RealtimeAudioDeltaEvent,
    RealtimeErrorEvent,
    RealtimeTranscriptEvent,
    XAIRealtimeClient,
    XAIRealtimeConfig,
)
from realtimekit.errors import RealtimeSocketNotOpenError
from tests.conftest import attach_fake_socket

DEFAULT_SESSION = {
    "voice": "Rex",
    "audio": {
        "input": {"format": {"type": "audio/pcm", "rate": 24000}},
        "output": {"format": {"type": "audio/pcm", "rate": 24000}},
    },
    "turn_detection": {"type": None},
    "region": "us-east-1",
    "modalities": ["audio", "text"],
}


@pytest.fixture
async def connected(xai_client: XAIRealtimeClient):
    ws = attach_fake_socket(xai_client)
    await xai_client.connect()
    yield xai_client, ws
    await xai_client.close()


class TestUrl:
    def test_without_model(self, xai_client: XAIRealtimeClient) -> None:
        assert xai_client.build_realtime_url(None) == "wss://api.x.ai/v1/realtime"

    def test_with_model(self, xai_client: XAIRealtimeClient) -> None:
        assert xai_client.build_realtime_url("grok-voice") == (
            "wss://api.x.ai/v1/realtime?model=grok-voice"
        )

    def test_trailing_slashes_stripped(self) -> None:
        client = XAIRealtimeClient(XAIRealtimeConfig(api_key="k", base_url="https://x.test/v1//"))

        assert client.build_realtime_url(None) == "wss://x.test/v1/realtime"


class TestSession:
    async def test_default_session_update(self, connected) -> None:
        client, ws = connected

        client._open_socket.assert_awaited_once_with("wss://api.x.ai/v1/realtime")
        assert ws.sent == [{"type": "session.update", "session": DEFAULT_SESSION}]
        assert client.get_state().recent_outbound_events[0].payload == {
            "type": "session.update",
            "voice": "Rex",
            "region": "us-east-1",
            "modalities": ["audio", "text"],
            "input_audio_type": "audio/pcm",
            "input_audio_rate": 24000,
            "output_audio_type": "audio/pcm",
            "output_audio_rate": 24000,
            "instructions_chars": 0,
        }

    async def test_custom_session(self, xai_client: XAIRealtimeClient) -> None:
        ws = attach_fake_socket(xai_client)

        await xai_client.connect(
            model="grok-voice",
            voice="Ara",
            instructions="You are a radio host.",
            region="",
            input_sample_rate=16000,
            output_sample_rate=0,
        )

        xai_client._open_socket.assert_awaited_once_with(
            "wss://api.x.ai/v1/realtime?model=grok-voice"
        )
        session = ws.sent[0]["session"]
        assert session["voice"] == "Ara"
        assert session["instructions"] == "You are a radio host."
        assert "region" not in session
        assert session["audio"]["input"]["format"]["rate"] == 16000
        assert session["audio"]["output"]["format"]["rate"] == 24000
        assert xai_client.get_state().recent_outbound_events[0].payload["instructions_chars"] == 21

        await xai_client.close()


class TestRequests:
    async def test_request_utterance(self, connected) -> None:
        client, ws = connected

        await client.request_utterance("Tell me a joke.")

        assert [event["type"] for event in ws.sent] == [
            "session.update",
            "conversation.item.create",
            "response.create",
        ]
        assert ws.sent[1]["item"]["content"] == [{"type": "input_text", "text": "Tell me a joke."}]
        assert ws.sent[2] == {
            "type": "response.create",
            "response": {"modalities": ["audio", "text"]},
        }
        assert client.get_state().last_outbound_event.payload == {
            "type": "response.create",
            "response": {"modalities": ["audio", "text"]},
        }

    async def test_request_utterance_requires_socket(self, xai_client: XAIRealtimeClient) -> None:
        with pytest.raises(RealtimeSocketNotOpenError, match="xAI realtime socket is not open"):
            await xai_client.request_utterance("hi")


class TestInbound:
    @pytest.mark.parametrize(
        "event",
        [
            {"type": "response.output_audio.delta", "delta": "AAEC"},
            {"type": "response.audio.delta", "audio": {"delta": "AAEC"}},
            {"type": "response.output_audio.chunk", "data": {"audio": "AAEC"}},
            {"type": "audio.delta", "chunk": " AAEC "},
        ],
    )
    async def test_audio_delta_variants(self, xai_client: XAIRealtimeClient, event) -> None:
        audio: list[RealtimeAudioDeltaEvent] = []
        xai_client.on_audio_delta(audio.append)

        await xai_client.handle_incoming(json.dumps(event))

        assert [a.audio_base64 for a in audio] == ["AAEC"]
        assert audio[0].event_type == event["type"]

    async def test_transcripts(self, xai_client: XAIRealtimeClient) -> None:
        transcripts: list[RealtimeTranscriptEvent] = []
        xai_client.on_transcript(transcripts.append)

        for event in (
            {"type": "response.output_audio_transcript.delta", "delta": " Why did "},
            {"type": "response.text.done", "text": "Why did the chicken cross the road?"},
            {"type": "response.output_audio_transcript.delta", "delta": ""},
        ):
            await xai_client.handle_incoming(json.dumps(event))

        assert [(t.text, t.is_final, t.role) for t in transcripts] == [
            ("Why did", False, "assistant"),
            ("Why did the chicken cross the road?", True, "assistant"),
        ]

    async def test_error_fallback_message(self, xai_client: XAIRealtimeClient) -> None:
        errors: list[RealtimeErrorEvent] = []
        xai_client.on_error(errors.append)

        await xai_client.handle_incoming(json.dumps({"type": "error", "error": {}}))

        assert errors[0].message == "Unknown xAI realtime error"
        assert errors[0].recent_outbound_events == []
