"""Opening and closing realtime WebSocket connections."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import WebSocketException
from websockets.protocol import State

from realtimekit.core.diagnostics import build_connect_diagnostics, format_connect_error_message
from realtimekit.errors import RealtimeConnectError, RealtimeConnectTimeoutError
from realtimekit.models.diagnostics import ConnectErrorDiagnostics
from realtimekit.redaction import REDACTED, redact_url

logger = logging.getLogger("realtimekit.core.socket")

CONNECT_TIMEOUT_SECONDS = 10.0
CONNECT_GRACE_SECONDS = 1.0
"""Extra time past the handshake timeout before the attempt is abandoned."""
CLOSE_TIMEOUT_SECONDS = 1.5
NORMAL_CLOSURE = 1000
CLOSE_REASON = "session_ended"


def is_socket_open(ws: Any) -> bool:
    """Whether *ws* exists and is in the OPEN state."""
    return ws is not None and ws.state is State.OPEN


def _scrub_urls(message: str, url: str, exc: BaseException) -> str:
    """Replace raw URLs in *message* with their redacted form.

    ``InvalidURI`` and some ``OSError`` texts embed the target URL, query
    credentials included.
    """
    for raw in (getattr(exc, "uri", None), url):
        if isinstance(raw, str) and raw and raw in message:
            message = message.replace(raw, redact_url(raw) or REDACTED)
    return message


async def open_realtime_socket(
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    timeout: float = CONNECT_TIMEOUT_SECONDS,
    grace: float = CONNECT_GRACE_SECONDS,
    close_timeout: float = CLOSE_TIMEOUT_SECONDS,
    timeout_message: str | None = None,
    connect_error_prefix: str = "Realtime connection failed",
) -> ClientConnection:
    """Open a realtime socket, bounded by *timeout* plus *grace* seconds.

    Args:
        url: ``ws://`` or ``wss://`` target. Only its redacted form is ever
            logged or attached to errors.
        headers: Handshake headers (credentials included).
        timeout: Handshake window handed to ``websockets``.
        grace: Extra time before the attempt is cancelled outright.
        close_timeout: Closing-handshake window for the opened connection.
        timeout_message: Message for the timeout error. Defaults to one
            naming the timeout duration.
        connect_error_prefix: Prefix for wrapped failure messages.

    Raises:
        RealtimeConnectTimeoutError: No open event within the window. The
            half-open connection is torn down.
        RealtimeConnectError: The handshake failed; ``diagnostics`` holds
            whatever could be captured from the response.
    """
    redacted_url = redact_url(url)
    try:
        # Cancellation by wait_for aborts the half-open transport.
        ws = await asyncio.wait_for(
            websockets.connect(
                url,
                additional_headers=dict(headers or {}),
                open_timeout=timeout,
                close_timeout=close_timeout,
            ),
            timeout=timeout + grace,
        )
    except TimeoutError as exc:
        diagnostics = ConnectErrorDiagnostics(source="timeout", url=redacted_url)
        message = format_connect_error_message(
            connect_error_prefix,
            diagnostics,
            timeout_message or f"Timed out connecting after {int(timeout * 1000)}ms.",
        )
        logger.warning("Realtime connect timed out after %.1fs: %s", timeout, redacted_url)
        raise RealtimeConnectTimeoutError(
            message, timeout=timeout, diagnostics=diagnostics
        ) from exc
    except (WebSocketException, OSError) as exc:
        diagnostics = build_connect_diagnostics(exc, url=url)
        if diagnostics is None:
            diagnostics = ConnectErrorDiagnostics(source="socket_error", url=redacted_url)
        base_message = (
            "" if diagnostics.source == "unexpected_response" else _scrub_urls(str(exc), url, exc)
        )
        message = format_connect_error_message(connect_error_prefix, diagnostics, base_message)
        logger.warning("%s", message)
        raise RealtimeConnectError(message, diagnostics=diagnostics) from exc

    logger.debug("Realtime socket open: %s", redacted_url)
    return ws


async def close_realtime_socket(
    ws: ClientConnection | None,
    *,
    timeout: float = CLOSE_TIMEOUT_SECONDS,
) -> None:
    """Close *ws* gracefully, force-terminating it after *timeout* seconds."""
    if ws is None or ws.state is State.CLOSED:
        return
    try:
        await asyncio.wait_for(ws.close(code=NORMAL_CLOSURE, reason=CLOSE_REASON), timeout)
    except TimeoutError:
        logger.debug("Close handshake timed out after %.1fs; terminating", timeout)
        ws.transport.abort()
    except (WebSocketException, OSError) as exc:
        logger.debug("Close handshake failed (%s); terminating", exc)
        ws.transport.abort()
