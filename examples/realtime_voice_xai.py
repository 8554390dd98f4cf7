"""realtimekit — Ask xAI realtime voice for a spoken answer.

Sends one text prompt, collects the streamed audio into a WAV file and
prints the text transcript of the answer.

Requirements:
    pip install realtimekit

Run with:
    XAI_API_KEY=... python examples/realtime_voice_xai.py "Tell me a short joke."

Environment variables:
    XAI_API_KEY     (required) xAI API key
    XAI_VOICE       Voice preset (default: Rex)
    OUTPUT_WAV      Output file (default: answer.wav)
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import wave

from realtimekit import (
    RealtimeAudioDeltaEvent,
    RealtimeResponseDoneEvent,
    RealtimeSocketClosedEvent,
    RealtimeTranscriptEvent,
    XAIRealtimeClient,
    XAIRealtimeConfig,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-40s %(levelname)-7s %(message)s",
)
logger = logging.getLogger("realtime_voice_xai")

SAMPLE_RATE = 24000


async def main(prompt: str) -> None:
    api_key = os.environ.get("XAI_API_KEY")
    if not api_key:
        print("Set XAI_API_KEY to run this example.")
        return

    client = XAIRealtimeClient(XAIRealtimeConfig(api_key=api_key))
    audio = bytearray()
    done = asyncio.Event()

    def on_audio(event: RealtimeAudioDeltaEvent) -> None:
        audio.extend(event.audio)

    def on_transcript(event: RealtimeTranscriptEvent) -> None:
        if event.is_final:
            print(f"{event.role}: {event.text}")

    def on_done(event: RealtimeResponseDoneEvent) -> None:
        done.set()

    def on_closed(event: RealtimeSocketClosedEvent) -> None:
        logger.info("Socket closed (code=%s reason=%s)", event.code, event.reason)
        done.set()

    client.on_audio_delta(on_audio)
    client.on_transcript(on_transcript)
    client.on_response_done(on_done)
    client.on_socket_closed(on_closed)

    await client.connect(
        voice=os.environ.get("XAI_VOICE", "Rex"),
        instructions="Answer in one or two sentences.",
        output_sample_rate=SAMPLE_RATE,
    )
    await client.request_utterance(prompt)

    try:
        await asyncio.wait_for(done.wait(), timeout=30.0)
    finally:
        await client.close()

    output = os.environ.get("OUTPUT_WAV", "answer.wav")
    with wave.open(output, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(bytes(audio))
    logger.info("Wrote %d bytes of audio to %s", len(audio), output)


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print('Usage: python examples/realtime_voice_xai.py "<prompt>"')
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
