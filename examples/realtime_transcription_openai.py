"""realtimekit — Stream a WAV file to OpenAI realtime transcription.

Reads a 16-bit mono WAV file, streams it in 100 ms chunks and prints the
interim and final transcripts as they arrive.

Requirements:
    pip install realtimekit

Run with:
    OPENAI_API_KEY=... python examples/realtime_transcription_openai.py speech.wav

Environment variables:
    OPENAI_API_KEY          (required) OpenAI API key
    TRANSCRIPTION_MODEL     Model name (default: gpt-4o-mini-transcribe)
    LANGUAGE                Language hint, e.g. en (default: none)

The WAV file should be 24 kHz PCM16 mono, the rate the session declares.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import wave

from realtimekit import (
    OpenAIRealtimeConfig,
    OpenAIRealtimeTranscriptionClient,
    RealtimeConnectError,
    RealtimeErrorEvent,
    RealtimeTranscriptEvent,
    get_connect_error_diagnostics,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-40s %(levelname)-7s %(message)s",
)
logger = logging.getLogger("realtime_transcription")

CHUNK_MS = 100


async def main(path: str) -> None:
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        print("Set OPENAI_API_KEY to run this example.")
        return

    client = OpenAIRealtimeTranscriptionClient(OpenAIRealtimeConfig(api_key=api_key))
    finished = asyncio.Event()

    def on_transcript(event: RealtimeTranscriptEvent) -> None:
        marker = "final" if event.is_final else "delta"
        print(f"[{marker}] {event.text}")
        if event.is_final:
            finished.set()

    def on_error(event: RealtimeErrorEvent) -> None:
        logger.error("Provider error %s: %s", event.code, event.message)
        finished.set()

    client.on_transcript(on_transcript)
    client.on_error(on_error)

    model = os.environ.get("TRANSCRIPTION_MODEL", "gpt-4o-mini-transcribe")
    try:
        await client.connect(
            model=model,
            transcription_model=model,
            language=os.environ.get("LANGUAGE", ""),
        )
    except RealtimeConnectError as exc:
        logger.error("Connect failed: %s", exc)
        diagnostics = get_connect_error_diagnostics(exc)
        if diagnostics is not None:
            logger.error("Diagnostics: %s", diagnostics.model_dump(exclude_none=True))
        return

    with wave.open(path, "rb") as wav:
        frames_per_chunk = wav.getframerate() * CHUNK_MS // 1000
        while chunk := wav.readframes(frames_per_chunk):
            await client.append_input_audio(chunk)
            await asyncio.sleep(CHUNK_MS / 1000)

    await client.commit_input_audio_buffer()

    # --- Wait for the final transcript ---
    try:
        await asyncio.wait_for(finished.wait(), timeout=15.0)
    except TimeoutError:
        logger.warning("No final transcript within 15s")

    logger.info("State: %s", client.get_state().model_dump(mode="json", exclude_none=True))
    await client.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python examples/realtime_transcription_openai.py <file.wav>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
