"""Safe-to-log representations of URLs, headers and payloads."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, quote, urlsplit

REDACTED = "[redacted]"

SENSITIVE_HEADER_NAMES = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-goog-api-key",
        "xi-api-key",
    }
)

_SENSITIVE_PAYLOAD_KEY_RE = re.compile(
    r"(?:api[_-]?key|authorization|token|secret|password|cookie|credential)", re.IGNORECASE
)
_WHITESPACE_RE = re.compile(r"\s+")

_MAX_UNPARSED_URL_CHARS = 240
DEFAULT_PREVIEW_CHARS = 280

HeaderValue = str | list[str]


def compact_whitespace(value: object) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", str(value or "")).strip()


def truncate(value: str, max_chars: int) -> str:
    """Cut *value* to *max_chars*, marking the cut with ``...``."""
    if len(value) <= max_chars:
        return value
    return f"{value[:max_chars]}..."


def compact_dict(value: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop entries whose value is ``None`` or an empty string."""
    return {k: v for k, v in (value or {}).items() if v is not None and v != ""}


def redact_url(url: str | None) -> str | None:
    """Return *url* with every query-parameter value replaced by a placeholder.

    Scheme, host, port and path are kept verbatim so the target stays
    identifiable; parameter keys are kept so the shape of the request is
    still visible. Userinfo (``user:password@``) is dropped.

    Example:
        >>> redact_url("wss://api.example.com/v1/realtime?key=SECRET&model=M")
        'wss://api.example.com/v1/realtime?key=[redacted]&model=[redacted]'
    """
    source = str(url or "").strip()
    if not source:
        return None
    try:
        parts = urlsplit(source)
        _ = parts.port  # bad ports only surface on access
    except ValueError:
        return truncate(compact_whitespace(source), _MAX_UNPARSED_URL_CHARS)

    if not parts.scheme or not parts.netloc:
        return truncate(compact_whitespace(source), _MAX_UNPARSED_URL_CHARS)

    keys = [key for key, _ in parse_qsl(parts.query, keep_blank_values=True) if key.strip()]
    query = "&".join(f"{quote(key, safe='')}={REDACTED}" for key in keys)
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    redacted = f"{parts.scheme}://{host}{parts.path}"
    return f"{redacted}?{query}" if query else redacted


def _header_items(headers: Any) -> Iterable[tuple[str, Any]]:
    # websockets.datastructures.Headers keeps repeated names in raw_items()
    raw_items = getattr(headers, "raw_items", None)
    if callable(raw_items):
        return raw_items()
    if isinstance(headers, Mapping):
        return headers.items()
    return headers or ()


def redact_headers(headers: Any) -> dict[str, HeaderValue]:
    """Return a copy of *headers* with credential-bearing values redacted.

    Names are lower-cased. Values of :data:`SENSITIVE_HEADER_NAMES` become
    :data:`REDACTED`, every value of a repeated sensitive header included.
    Everything else passes through unchanged; repeated names collect into a
    list.

    Args:
        headers: A mapping (values may be lists), an iterable of pairs, or a
            ``websockets`` ``Headers`` instance.
    """
    out: dict[str, HeaderValue] = {}
    for raw_name, raw_value in _header_items(headers):
        name = str(raw_name or "").strip().lower()
        if not name:
            continue
        if name in SENSITIVE_HEADER_NAMES:
            out[name] = REDACTED
        elif isinstance(raw_value, list | tuple):
            out[name] = _as_list(out.get(name)) + [str(v) for v in raw_value]
        elif name in out:
            out[name] = _as_list(out[name]) + [str(raw_value)]
        else:
            out[name] = str(raw_value)
    return out


def _as_list(value: HeaderValue | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def redact_payload(value: Any) -> Any:
    """Recursively copy a JSON-like value, redacting secret-looking keys."""
    if isinstance(value, Mapping):
        return {
            key: REDACTED
            if isinstance(key, str) and _SENSITIVE_PAYLOAD_KEY_RE.search(key)
            else redact_payload(entry)
            for key, entry in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact_payload(entry) for entry in value]
    return value


def safe_json_preview(value: Any, max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    """Serialize *value* to JSON, truncated to *max_chars*."""
    try:
        serialized = json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return "[unserializable_payload]"
    return truncate(serialized, max_chars)
