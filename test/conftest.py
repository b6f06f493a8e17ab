from __future__ import annotations

import base64
import json
import os
import socket
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_path = repo_root / "src"
    sys.path.insert(0, str(src_path))

    # Set required env vars for Settings validation during test collection
    os.environ["ILIOS_BASE_URL"] = "https://ilios.example"


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Prevent accidental real network calls in unit tests.

    Respx mocks should still work because they intercept at the HTTP client layer.
    """
    if (os.environ.get("ALLOW_NETWORK_TESTS") or "").strip().lower() in {"1", "true", "yes"}:
        return

    def _blocked(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError(
            "Network access is disabled in tests (set ALLOW_NETWORK_TESTS=1 to override)."
        )

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked, raising=True)


@pytest.fixture(autouse=True)
def _stderr_logging() -> None:
    """Route structlog output to stderr so commands printing JSON keep stdout clean."""
    from ilios_api_client.observability.logger import configure_logging

    configure_logging(log_level="DEBUG", json_logs=False, log_format="human")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def encode_jwt(payload: Any) -> str:
    """HS256-shaped JWT with a dummy signature; the client never checks it."""
    header = _b64url(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    body = _b64url(json.dumps(payload).encode())
    return f"{header}.{body}.{_b64url(b'doesnotmatterhere')}"


@pytest.fixture
def jwt_encoder() -> Callable[[Any], str]:
    return encode_jwt


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(*, expires_in: float = 10 * 86400, **claims: Any) -> str:
        return encode_jwt({"exp": int(time.time() + expires_in), **claims})

    return _make


@pytest.fixture
def access_token(make_token: Callable[..., str]) -> str:
    return make_token()


@pytest.fixture
def expired_token(make_token: Callable[..., str]) -> str:
    return make_token(expires_in=-2 * 86400)


class RecordingTransport:
    """In-memory transport: replays canned bodies and records every call."""

    def __init__(self, responses: list[str] | None = None) -> None:
        self.responses: list[str] = list(responses or [])
        self.calls: list[tuple[str, Any]] = []
        self.urls: list[str] = []

    def queue_json(self, *payloads: Any) -> None:
        self.responses.extend(json.dumps(payload) for payload in payloads)

    def reset_headers(self) -> None:
        self.calls.append(("reset_headers", None))

    def set_headers(self, headers: list[str]) -> None:
        self.calls.append(("set_headers", list(headers)))

    def get(self, url: str) -> str:
        self.calls.append(("get", url))
        self.urls.append(url)
        if not self.responses:
            raise AssertionError(f"unexpected request: {url}")
        return self.responses.pop(0)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()
