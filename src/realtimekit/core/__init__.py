"""Building blocks shared by realtime provider clients."""

from realtimekit.core.classifier import (
    ClassifiedEvent,
    EventClassifier,
    InboundEventKind,
    ProviderEventSchema,
    extract_audio_base64,
    extract_transcript,
    field_path,
)
from realtimekit.core.diagnostics import (
    build_connect_diagnostics,
    format_connect_error_message,
    get_connect_error_diagnostics,
)
from realtimekit.core.outbound import OutboundEventLog
from realtimekit.core.socket import close_realtime_socket, is_socket_open, open_realtime_socket

__all__ = [
    "ClassifiedEvent",
    "EventClassifier",
    "InboundEventKind",
    "OutboundEventLog",
    "ProviderEventSchema",
    "build_connect_diagnostics",
    "close_realtime_socket",
    "extract_audio_base64",
    "extract_transcript",
    "field_path",
    "format_connect_error_message",
    "get_connect_error_diagnostics",
    "is_socket_open",
    "open_realtime_socket",
]
