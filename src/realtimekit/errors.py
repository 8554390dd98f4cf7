"""Exceptions raised by realtime clients."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from realtimekit.models.diagnostics import ConnectErrorDiagnostics


class RealtimeKitError(Exception):
    """Base exception for all realtimekit errors."""


class RealtimeConfigurationError(RealtimeKitError):
    """A required setting (API key, voice, ...) is missing."""


class RealtimeConnectError(RealtimeKitError):
    """The realtime socket could not be opened.

    Attributes:
        diagnostics: Redacted handshake details, when they could be captured.
    """

    def __init__(
        self,
        message: str,
        *,
        diagnostics: ConnectErrorDiagnostics | None = None,
    ) -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class RealtimeConnectTimeoutError(RealtimeConnectError):
    """No open event arrived within the handshake window."""

    def __init__(
        self,
        message: str,
        *,
        timeout: float,
        diagnostics: ConnectErrorDiagnostics | None = None,
    ) -> None:
        super().__init__(message, diagnostics=diagnostics)
        self.timeout = timeout


class RealtimeSocketNotOpenError(RealtimeKitError):
    """An event was sent while the socket was missing or not open."""


class RealtimeSessionNotConfiguredError(RealtimeKitError):
    """A session update was requested before ``connect()`` configured one."""
