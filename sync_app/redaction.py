"""Redaction rules applied to every value that reaches a log line."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Pattern

REDACTED = "[REDACTED]"


class _Undefined:
    """Marker for a value that was never provided, rendered as ``undefined``."""

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()

# Order matters: structured key/value fragments are matched after bare tokens.
SENSITIVE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    re.compile(r"\b[A-Fa-f0-9]{8}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{12}\b"),
    re.compile(r"\b(?:sk|pk|sb)_[A-Za-z0-9_-]{10,}"),
    re.compile(r"\beyJ[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}"),
    re.compile(r"\bpassword['\":\s]*['\"]\s*[^'\"]+['\"]", re.IGNORECASE),
    re.compile(r"\btoken['\":\s]*['\"]\s*[^'\"]+['\"]", re.IGNORECASE),
    re.compile(r"\bapi[_-]?key['\":\s]*['\"]\s*[^'\"]+['\"]", re.IGNORECASE),
]

SENSITIVE_KEYS = {
    "email",
    "user_email",
    "admin_user_email",
    "user_id",
    "password",
    "token",
    "api_key",
    "service_role_key",
    "supabase_key",
}


def _stringify(value: Any) -> str:
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, default=str)
    except Exception:  # noqa: BLE001
        pass
    try:
        return repr(value)
    except Exception:  # noqa: BLE001
        return f"<{type(value).__name__}>"


def sanitize(value: Any) -> str:
    """Render ``value`` as a string with every sensitive substring replaced.

    Emails, UUIDs, service-key shaped tokens, JWTs and quoted
    ``password``/``token``/``api_key`` pairs become ``[REDACTED]``; the rest of
    the text is preserved verbatim. Never raises.
    """

    sanitized = _stringify(value)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(REDACTED, sanitized)
    return sanitized


def redact_for_log(payload: Any) -> Any:
    """Recursively scrub structured log fields."""

    if payload is None:
        return None
    if isinstance(payload, str):
        return sanitize(payload)
    if isinstance(payload, (int, float, bool)):
        return payload
    if isinstance(payload, (list, tuple, set)):
        return [redact_for_log(item) for item in payload]
    if isinstance(payload, dict):
        scrubbed: Dict[str, Any] = {}
        for key, value in payload.items():
            if str(key).lower() in SENSITIVE_KEYS and value is not None:
                scrubbed[str(key)] = REDACTED
            else:
                scrubbed[str(key)] = redact_for_log(value)
        return scrubbed
    return sanitize(payload)


__all__ = ["REDACTED", "SENSITIVE_PATTERNS", "UNDEFINED", "redact_for_log", "sanitize"]
