from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from ilios_api_client.adapters.http_util import parse_header_lines, timeouts_for
from ilios_api_client.domain.error_messages import ErrorMessages
from ilios_api_client.domain.errors import TransportError

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    # "retry up to 2 times" => 1 initial attempt + 2 retries = 3 total attempts.
    max_retries: int = 2
    backoff_base_seconds: float = 0.2

    def backoff_seconds(self, attempt: int) -> float:
        # attempt is 0-based for *retry count* (i.e., after the first failure).
        return self.backoff_base_seconds * (2**attempt)


class HttpxTransport:
    """Blocking transport backed by `httpx.Client`.

    Only network-level failures (timeouts, connection errors) are retried.
    Any HTTP response, whatever its status, is returned as text so that the
    API's error envelopes reach the response parser.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        verify_tls: bool = True,
        trust_env: bool = False,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._headers: list[str] = []
        self._sleep = sleep
        self._retry = retry_policy or RetryPolicy()

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(
            headers={"Accept": "application/json"},
            timeout=timeouts_for(timeout_seconds),
            limits=httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5,
                keepalive_expiry=30.0,
            ),
            verify=verify_tls,
            trust_env=trust_env,
            follow_redirects=False,
        )

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> None:
        self.close()

    @property
    def headers(self) -> list[str]:
        return list(self._headers)

    def reset_headers(self) -> None:
        self._headers = []

    def set_headers(self, headers: list[str]) -> None:
        self._headers = list(headers)

    def get(self, url: str) -> str:
        # Total attempts = 1 initial + max_retries
        max_attempts = self._retry.max_retries + 1
        retry_count = 0
        headers = parse_header_lines(self._headers)

        while True:
            try:
                response = self._http.get(url, headers=headers)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if retry_count >= self._retry.max_retries:
                    template = (
                        ErrorMessages.HTTP_TIMEOUT
                        if isinstance(exc, httpx.TimeoutException)
                        else ErrorMessages.HTTP_REQUEST_ERROR
                    )
                    raise TransportError(
                        template.format(attempts=max_attempts, url=_strip_query(url)),
                        url=_strip_query(url),
                        attempts=max_attempts,
                    ) from exc
                delay = self._retry.backoff_seconds(retry_count)
                log.info(
                    "ilios.transport_retry",
                    error=exc.__class__.__name__,
                    retry=retry_count + 1,
                    delay_seconds=delay,
                )
                self._sleep(delay)
                retry_count += 1
                continue

            if response.status_code >= 400:
                log.debug("ilios.http_status", status=response.status_code)
            return response.text


def _strip_query(url: str) -> str:
    # Error messages carry the path only, never filter values.
    return url.split("?", 1)[0]
