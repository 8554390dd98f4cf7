"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Coroutine
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from websockets.protocol import State

from realtimekit.providers.gemini import GeminiLiveClient, GeminiLiveConfig
from realtimekit.providers.openai import (
    OpenAIRealtimeClient,
    OpenAIRealtimeConfig,
    OpenAIRealtimeTranscriptionClient,
)
from realtimekit.providers.xai import XAIRealtimeClient, XAIRealtimeConfig


class FakeWebSocket:
    """In-memory stand-in for ``websockets.asyncio.client.ClientConnection``.

    Frames queued with :meth:`feed` are yielded by async iteration; anything
    passed to :meth:`send` is decoded into :attr:`sent`.
    """

    def __init__(self) -> None:
        self.state = State.OPEN
        self.sent: list[dict[str, Any]] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.close_calls: list[tuple[int, str]] = []
        self.transport = MagicMock()
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    def feed(self, frame: dict[str, Any] | str | bytes) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, str | bytes) else json.dumps(frame))

    def fail(self, exc: BaseException) -> None:
        """Make the receive loop raise *exc*."""
        self._inbox.put_nowait(exc)

    def remote_close(self, code: int, reason: str) -> None:
        self.state = State.CLOSED
        self.close_code = code
        self.close_reason = reason
        self._inbox.put_nowait(None)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls.append((code, reason))
        if self.state is State.CLOSED:
            return
        self.state = State.CLOSED
        self.close_code = code
        self.close_reason = reason
        self._inbox.put_nowait(None)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._inbox.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self.state = State.CLOSED
            raise item
        return item


def attach_fake_socket(client: Any) -> FakeWebSocket:
    """Route the client's socket opening to a fresh :class:`FakeWebSocket`."""
    ws = FakeWebSocket()
    client._open_socket = AsyncMock(return_value=ws)
    return ws


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control so the receive task can drain queued frames."""

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def transcription_client() -> OpenAIRealtimeTranscriptionClient:
    return OpenAIRealtimeTranscriptionClient(OpenAIRealtimeConfig(api_key="sk-test"))


@pytest.fixture
def voice_client() -> OpenAIRealtimeClient:
    return OpenAIRealtimeClient(OpenAIRealtimeConfig(api_key="sk-test"))


@pytest.fixture
def xai_client() -> XAIRealtimeClient:
    return XAIRealtimeClient(XAIRealtimeConfig(api_key="xai-test"))


@pytest.fixture
def gemini_client() -> GeminiLiveClient:
    return GeminiLiveClient(GeminiLiveConfig(api_key="g-test"))
