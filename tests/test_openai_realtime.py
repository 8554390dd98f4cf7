"""Tests for the OpenAI realtime voice client."""

from __future__ import annotations

import json

import pytest

from realtimekit import (
    OpenAIRealtimeClient,
    RealtimeAudioDeltaEvent,
    RealtimeResponseDoneEvent,
    RealtimeTranscriptEvent,
)
from realtimekit.errors import RealtimeConfigurationError, RealtimeSessionNotConfiguredError
from realtimekit.providers.openai.formats import normalize_audio_format
from tests.conftest import attach_fake_socket


@pytest.fixture
async def connected(voice_client: OpenAIRealtimeClient):
    ws = attach_fake_socket(voice_client)
    await voice_client.connect(voice="alloy", instructions="Be brief.")
    yield voice_client, ws
    await voice_client.close()


async def _feed(client: OpenAIRealtimeClient, event: dict) -> None:
    await client.handle_incoming(json.dumps(event))


class TestConnect:
    async def test_voice_is_required(self, voice_client: OpenAIRealtimeClient) -> None:
        attach_fake_socket(voice_client)

        with pytest.raises(RealtimeConfigurationError, match="voice is required"):
            await voice_client.connect(voice="  ")

        voice_client._open_socket.assert_not_awaited()

    async def test_session_update(self, voice_client: OpenAIRealtimeClient) -> None:
        ws = attach_fake_socket(voice_client)

        state = await voice_client.connect(
            voice="alloy", instructions="Be brief.", output_audio_format="g711_ulaw"
        )

        voice_client._open_socket.assert_awaited_once_with(
            "wss://api.openai.com/v1/realtime?model=gpt-realtime"
        )
        assert ws.sent == [
            {
                "type": "session.update",
                "session": {
                    "type": "realtime",
                    "model": "gpt-realtime",
                    "instructions": "Be brief.",
                    "output_modalities": ["audio"],
                    "audio": {
                        "input": {
                            "format": {"type": "audio/pcm", "rate": 24000},
                            "transcription": {"model": "gpt-4o-mini-transcribe"},
                        },
                        "output": {"format": {"type": "audio/pcmu"}, "voice": "alloy"},
                    },
                },
            }
        ]
        summary = state.recent_outbound_events[0].payload
        assert summary is not None
        assert summary["output_voice"] == "alloy"
        assert summary["instructions_chars"] == 9
        assert "Be brief." not in json.dumps(summary)

        await voice_client.close()

    async def test_update_instructions(self, connected) -> None:
        client, ws = connected

        await client.update_instructions("Speak slowly.")

        assert ws.sent[-1]["session"]["instructions"] == "Speak slowly."
        assert ws.sent[-1]["session"]["audio"]["output"]["voice"] == "alloy"

    async def test_update_instructions_before_connect(
        self, voice_client: OpenAIRealtimeClient
    ) -> None:
        with pytest.raises(RealtimeSessionNotConfiguredError):
            await voice_client.update_instructions("x")


class TestRequests:
    async def test_request_utterance(self, connected) -> None:
        client, ws = connected

        await client.request_utterance("  Say hello.  ")

        assert ws.sent[1:] == [
            {
                "type": "conversation.item.create",
                "item": {
                    "type": "message",
                    "role": "user",
                    "content": [{"type": "input_text", "text": "Say hello."}],
                },
            },
            {"type": "response.create", "response": {"output_modalities": ["audio"]}},
        ]
        recent = client.get_state().recent_outbound_events
        assert recent[-2].payload == {
            "type": "conversation.item.create",
            "item_type": "message",
            "role": "user",
            "input_text_chars": 10,
        }
        assert recent[-1].payload == {
            "type": "response.create",
            "response": {"output_modalities": ["audio"], "input_items": 0, "input_text_chars": 0},
        }

    async def test_blank_utterance_is_skipped(self, connected) -> None:
        client, ws = connected

        await client.request_utterance("   ")

        assert len(ws.sent) == 1


class TestActiveResponse:
    async def test_created_then_done(self, voice_client: OpenAIRealtimeClient) -> None:
        done: list[RealtimeResponseDoneEvent] = []
        voice_client.on_response_done(done.append)

        await _feed(
            voice_client,
            {"type": "response.created", "response": {"id": "resp_abc", "status": "in_progress"}},
        )
        assert voice_client.is_response_in_progress()
        assert voice_client.get_state().active_response_id == "resp_abc"

        await _feed(
            voice_client,
            {"type": "response.done", "response": {"id": "resp_abc", "status": "completed"}},
        )
        assert not voice_client.is_response_in_progress()
        state = voice_client.get_state()
        assert state.active_response_id is None
        assert state.active_response_status == "completed"
        assert len(done) == 1
        assert done[0].event["response"]["id"] == "resp_abc"

    async def test_active_response_error_recovers_id(
        self, voice_client: OpenAIRealtimeClient
    ) -> None:
        await _feed(
            voice_client,
            {
                "type": "error",
                "error": {
                    "code": "conversation_already_has_active_response",
                    "message": "Conversation already has an active response in progress: "
                    "resp_Xy12. Wait until the response is finished.",
                },
            },
        )

        assert voice_client.active_response_id == "resp_Xy12"
        assert voice_client.is_response_in_progress()

    async def test_remote_close_clears_response(self, connected, advance) -> None:
        client, ws = connected
        await _feed(client, {"type": "response.created", "response": {"id": "resp_1"}})

        ws.remote_close(1000, "")
        await advance()

        assert client.active_response_id is None
        assert not client.is_response_in_progress()


class TestInbound:
    async def test_audio_delta(self, voice_client: OpenAIRealtimeClient) -> None:
        audio: list[RealtimeAudioDeltaEvent] = []
        voice_client.on_audio_delta(audio.append)

        await _feed(voice_client, {"type": "response.output_audio.delta", "delta": "AAEC"})

        assert len(audio) == 1
        assert audio[0].audio == b"\x00\x01\x02"

    async def test_assistant_and_user_transcripts(
        self, voice_client: OpenAIRealtimeClient
    ) -> None:
        transcripts: list[RealtimeTranscriptEvent] = []
        voice_client.on_transcript(transcripts.append)

        await _feed(
            voice_client,
            {"type": "conversation.item.input_audio_transcription.completed", "transcript": "Hi"},
        )
        await _feed(
            voice_client,
            {"type": "response.output_audio_transcript.done", "transcript": "Hello! "},
        )

        assert [(t.role, t.text, t.is_final) for t in transcripts] == [
            ("user", "Hi", True),
            ("assistant", "Hello!", True),
        ]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("pcm16", {"type": "audio/pcm", "rate": 24000}),
        ("g711_alaw", {"type": "audio/pcma"}),
        ({"type": "audio/pcmu"}, {"type": "audio/pcmu"}),
        ({"type": "audio/pcm", "rate": "16000"}, {"type": "audio/pcm", "rate": 16000}),
        (None, {"type": "audio/pcm", "rate": 24000}),
    ],
)
def test_normalize_audio_format(value, expected) -> None:
    assert normalize_audio_format(value) == expected
