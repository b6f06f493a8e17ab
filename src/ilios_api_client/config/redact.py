"""Secret redaction for config dumps and log events.

Ilios credentials are JWTs, sent as ``X-JWT-Authorization: Token <jwt>``.
They are scrubbed wherever they show up: under token-like keys, inside
`SecretStr` values, and embedded in free-form text.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import SecretStr

REDACTED_VALUE = "[redacted]"

_SENSITIVE_KEY_RE = re.compile(r"(?i)(token|secret|password|passwd|authorization|api[_-]?key)")

_TextScrubber = tuple[re.Pattern[str], Callable[[re.Match[str]], str]]

_TEXT_SCRUBBERS: tuple[_TextScrubber, ...] = (
    # "X-JWT-Authorization: Token x", "Authorization: Bearer x"
    (
        re.compile(r"(?i)\b((?:x-jwt-)?authorization)\s*[:=]\s*(bearer|token|basic)\s+[^\s,;]+"),
        lambda m: f"{m.group(1)}: {m.group(2)} {REDACTED_VALUE}",
    ),
    # Bare JWTs: header and payload segments both start with an encoded "{".
    (
        re.compile(r"\beyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*"),
        lambda m: REDACTED_VALUE,
    ),
    # api_token=..., access_token: ..., secret=...
    (
        re.compile(
            r"(?i)\b((?:api|access|refresh)?[_-]?token|secret|password|passwd)\s*[:=]\s*[^\s,;&]+"
        ),
        lambda m: f"{m.group(1)}={REDACTED_VALUE}",
    ),
)


def scrub_secrets_in_text(text: str) -> str:
    """Best-effort removal of credentials from exception text and log messages."""
    if not text:
        return text
    for pattern, replace in _TEXT_SCRUBBERS:
        text = pattern.sub(replace, text)
    return text


def _redact(value: Any) -> Any:
    match value:
        case SecretStr():
            return REDACTED_VALUE
        case str():
            return scrub_secrets_in_text(value)
        case Mapping():
            return redact_settings_dict(value)
        case list() | tuple():
            return type(value)(_redact(item) for item in value)
        case _:
            return value


def redact_settings_dict(data: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-redacted copy of `data`; the input is left untouched."""
    return {
        str(key): REDACTED_VALUE if _SENSITIVE_KEY_RE.search(str(key)) else _redact(value)
        for key, value in data.items()
    }
