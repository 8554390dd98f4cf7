"""Handshake failure diagnostics."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

ConnectFailureSource = Literal["unexpected_response", "socket_error", "timeout"]


class ConnectErrorDiagnostics(BaseModel):
    """Redacted description of a connection attempt that never reached OPEN.

    Attributes:
        source: Failure class: an HTTP response other than 101, a socket-level
            error, or the handshake window expiring.
        url: Target URL with query values redacted.
        status_code: HTTP status of the rejected upgrade, if any.
        status_message: HTTP reason phrase of the rejected upgrade, if any.
        headers: Response headers with credential values redacted.
        body_preview: Whitespace-compacted, truncated response body.
    """

    model_config = {"frozen": True}

    source: ConnectFailureSource
    url: str | None = None
    status_code: int | None = None
    status_message: str | None = None
    headers: dict[str, str | list[str]] | None = None
    body_preview: str | None = None
