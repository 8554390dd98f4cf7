"""Configuration shared by realtime provider clients."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, Field, SecretStr


class RealtimeClientConfig(BaseModel):
    """Realtime client configuration.

    Attributes:
        api_key: API key for authentication. May be left empty at
            construction time; ``connect()`` refuses to run without one.
        base_url: HTTP(S) API base URL. The realtime socket URL is derived
            from it (``https`` -> ``wss``, ``/realtime`` appended).
        connect_timeout: Handshake window in seconds.
        connect_grace: Extra seconds before a stuck handshake is abandoned.
        close_timeout: Seconds to wait for a close acknowledgment before
            terminating the socket.
        max_outbound_history: Capacity of the outbound event ring buffer.
    """

    api_key: SecretStr = SecretStr("")
    base_url: str = ""
    connect_timeout: float = Field(default=10.0, gt=0)
    connect_grace: float = Field(default=1.0, ge=0)
    close_timeout: float = Field(default=1.5, gt=0)
    max_outbound_history: int = Field(default=8, ge=1)


def http_origin(base_url: str | None, default: str) -> str:
    """``scheme://host[:port]`` of an HTTP(S) *base_url*.

    Anything that is not an absolute ``http``/``https`` URL yields *default*.
    Path, query and userinfo are dropped.
    """
    parts = urlsplit(str(base_url or "").strip())
    host = parts.netloc.rpartition("@")[2]
    if parts.scheme not in ("http", "https") or not host:
        return default
    return f"{parts.scheme}://{host}"
