"""realtimekit - Async clients for realtime speech and transcription providers."""

from realtimekit._version import __version__
from realtimekit.core.classifier import (
    ClassifiedEvent,
    EventClassifier,
    InboundEventKind,
    ProviderEventSchema,
)
from realtimekit.core.diagnostics import get_connect_error_diagnostics
from realtimekit.core.outbound import OutboundEventLog
from realtimekit.errors import (
    RealtimeConfigurationError,
    RealtimeConnectError,
    RealtimeConnectTimeoutError,
    RealtimeKitError,
    RealtimeSessionNotConfiguredError,
    RealtimeSocketNotOpenError,
)
from realtimekit.models import (
    ConnectErrorDiagnostics,
    OutboundEventRecord,
    RealtimeAudioDeltaEvent,
    RealtimeClientState,
    RealtimeConnectionStatus,
    RealtimeErrorEvent,
    RealtimeResponseDoneEvent,
    RealtimeSessionUpdatedEvent,
    RealtimeSocketClosedEvent,
    RealtimeSocketErrorEvent,
    RealtimeTranscriptEvent,
    SessionConfig,
)
from realtimekit.providers import (
    ElevenLabsRealtimeClient,
    ElevenLabsRealtimeConfig,
    GeminiLiveClient,
    GeminiLiveConfig,
    OpenAIRealtimeClient,
    OpenAIRealtimeConfig,
    OpenAIRealtimeTranscriptionClient,
    RealtimeClient,
    RealtimeClientConfig,
    XAIRealtimeClient,
    XAIRealtimeConfig,
)
from realtimekit.redaction import REDACTED, redact_headers, redact_url

__all__ = [
    # Clients
    "ElevenLabsRealtimeClient",
    "GeminiLiveClient",
    "OpenAIRealtimeClient",
    "OpenAIRealtimeTranscriptionClient",
    "RealtimeClient",
    "XAIRealtimeClient",
    # Configuration
    "ElevenLabsRealtimeConfig",
    "GeminiLiveConfig",
    "OpenAIRealtimeConfig",
    "RealtimeClientConfig",
    "SessionConfig",
    "XAIRealtimeConfig",
    # Classification
    "ClassifiedEvent",
    "EventClassifier",
    "InboundEventKind",
    "ProviderEventSchema",
    # State and telemetry
    "OutboundEventLog",
    "OutboundEventRecord",
    "RealtimeClientState",
    "RealtimeConnectionStatus",
    # Notifications
    "RealtimeAudioDeltaEvent",
    "RealtimeErrorEvent",
    "RealtimeResponseDoneEvent",
    "RealtimeSessionUpdatedEvent",
    "RealtimeSocketClosedEvent",
    "RealtimeSocketErrorEvent",
    "RealtimeTranscriptEvent",
    # Errors and diagnostics
    "ConnectErrorDiagnostics",
    "RealtimeConfigurationError",
    "RealtimeConnectError",
    "RealtimeConnectTimeoutError",
    "RealtimeKitError",
    "RealtimeSessionNotConfiguredError",
    "RealtimeSocketNotOpenError",
    "get_connect_error_diagnostics",
    # Redaction
    "REDACTED",
    "redact_headers",
    "redact_url",
    "__version__",
]
