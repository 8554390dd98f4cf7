"""Structured, redacted diagnostics for failed realtime handshakes."""

from __future__ import annotations

from typing import Any

from websockets.exceptions import InvalidStatus, WebSocketException

from realtimekit.models.diagnostics import ConnectErrorDiagnostics
from realtimekit.redaction import (
    compact_whitespace,
    redact_headers,
    redact_url,
    safe_json_preview,
    truncate,
)

MAX_BODY_PREVIEW_CHARS = 600
MAX_HEADER_VALUE_CHARS = 320
MAX_HEADERS_PREVIEW_CHARS = 620
MAX_CONNECT_ERROR_MESSAGE_CHARS = 1800


def sanitize_response_headers(headers: Any) -> dict[str, str | list[str]] | None:
    """Redact and compact handshake response headers; ``None`` if nothing is left."""
    out: dict[str, str | list[str]] = {}
    for name, value in redact_headers(headers).items():
        if isinstance(value, list):
            values = [compact_whitespace(v) for v in value]
            values = [truncate(v, MAX_HEADER_VALUE_CHARS) for v in values if v]
            if values:
                out[name] = values
            continue
        compact = compact_whitespace(value)
        if compact:
            out[name] = truncate(compact, MAX_HEADER_VALUE_CHARS)
    return out or None


def body_preview(body: bytes | str | None) -> str | None:
    """Whitespace-compacted response body, truncated to the preview budget."""
    if isinstance(body, bytes):
        body = body[: MAX_BODY_PREVIEW_CHARS * 4].decode("utf-8", errors="replace")
    compact = compact_whitespace(body)
    if not compact:
        return None
    return truncate(compact, MAX_BODY_PREVIEW_CHARS)


def build_connect_diagnostics(exc: BaseException, *, url: str) -> ConnectErrorDiagnostics | None:
    """Normalize a failed-connect exception into a diagnostics record.

    Returns ``None`` when the exception carries nothing worth recording,
    as with a plain :class:`TimeoutError`.
    """
    if isinstance(exc, InvalidStatus):
        response = exc.response
        return ConnectErrorDiagnostics(
            source="unexpected_response",
            url=redact_url(url),
            status_code=int(response.status_code) or None,
            status_message=compact_whitespace(response.reason_phrase) or None,
            headers=sanitize_response_headers(response.headers),
            body_preview=body_preview(response.body),
        )
    # TimeoutError subclasses OSError
    if isinstance(exc, TimeoutError):
        return None
    if isinstance(exc, WebSocketException | OSError):
        return ConnectErrorDiagnostics(source="socket_error", url=redact_url(url))
    return None


def get_connect_error_diagnostics(error: BaseException | None) -> ConnectErrorDiagnostics | None:
    """Return the diagnostics attached to a connect error, if any."""
    diagnostics = getattr(error, "diagnostics", None)
    if isinstance(diagnostics, ConnectErrorDiagnostics):
        return diagnostics
    return None


def format_connect_error_message(
    prefix: str,
    diagnostics: ConnectErrorDiagnostics,
    base_message: str = "",
) -> str:
    """Build the message of a wrapped connect error.

    Example:
        ``"OpenAI realtime connection failed: unexpected handshake response
        HTTP 401 Unauthorized; url=wss://...; headers={...}; body=..."``
    """
    details: list[str] = []
    base = compact_whitespace(base_message)
    if base:
        details.append(base)
    elif diagnostics.source == "timeout":
        details.append("socket connect timed out")
    elif diagnostics.source == "unexpected_response":
        summary = "unexpected handshake response"
        if diagnostics.status_code:
            summary = f"{summary} HTTP {diagnostics.status_code}"
            if diagnostics.status_message:
                summary = f"{summary} {diagnostics.status_message}"
        details.append(summary)
    else:
        details.append("socket error during websocket connect")

    if diagnostics.url:
        details.append(f"url={diagnostics.url}")
    if diagnostics.headers:
        details.append(
            f"headers={safe_json_preview(diagnostics.headers, MAX_HEADERS_PREVIEW_CHARS)}"
        )
    if diagnostics.body_preview:
        details.append(f"body={diagnostics.body_preview}")

    message = f"{prefix}: {'; '.join(details)}".strip()
    return truncate(message, MAX_CONNECT_ERROR_MESSAGE_CHARS)
