"""Local, stateless sanity checks for Ilios JWT access tokens.

Only the payload segment is decoded and only its expiry is inspected. The
signature is NOT verified; the API does that. These checks exist to fail
fast before any request is sent with a token that cannot possibly work.
"""
from __future__ import annotations

import base64
import binascii
import json
import time
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, FiniteFloat, ValidationError

from ilios_api_client.domain.errors import (
    EmptyTokenError,
    ExpiredTokenError,
    MalformedTokenError,
    UndecodableTokenError,
)

_SEGMENT_COUNT = 3


class TokenPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    exp: FiniteFloat | None = None

    @property
    def expires_at(self) -> datetime | None:
        if self.exp is None:
            return None
        return datetime.fromtimestamp(self.exp, tz=UTC)

    def is_expired(self, now: float) -> bool:
        # No usable expiry claim counts as expired.
        return self.exp is None or self.exp < now


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite JSON constant {name}")


def _urlsafe_b64decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def decode_token_payload(token: str) -> TokenPayload:
    """Decode (without verifying) the payload segment of a JWT."""
    parts = token.strip().split(".")
    if len(parts) != _SEGMENT_COUNT:
        raise MalformedTokenError(segments=len(parts))

    try:
        raw = json.loads(_urlsafe_b64decode(parts[1]), parse_constant=_reject_constant)
    except (binascii.Error, ValueError) as exc:
        raise UndecodableTokenError() from exc

    if not raw or not isinstance(raw, dict):
        raise UndecodableTokenError()

    try:
        return TokenPayload.model_validate(raw)
    except ValidationError as exc:
        raise UndecodableTokenError() from exc


def validate_access_token(token: str, *, now: float | None = None) -> None:
    if token is None or token.strip() == "":
        raise EmptyTokenError()

    payload = decode_token_payload(token)

    current = time.time() if now is None else now
    if payload.is_expired(current):
        raise ExpiredTokenError(exp=payload.exp)
