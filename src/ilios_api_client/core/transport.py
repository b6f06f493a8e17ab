from __future__ import annotations

from typing import Protocol, runtime_checkable

AUTH_HEADER_NAME = "X-JWT-Authorization"


@runtime_checkable
class Transport(Protocol):
    """Minimal blocking HTTP collaborator used by `IliosClient`.

    Headers are plain ``"Name: value"`` lines. `get` returns the response
    body as text regardless of HTTP status; error envelopes are classified
    by the response parser.
    """

    def reset_headers(self) -> None: ...

    def set_headers(self, headers: list[str]) -> None: ...

    def get(self, url: str) -> str: ...


def auth_header(token: str) -> str:
    return f"{AUTH_HEADER_NAME}: Token {token}"
