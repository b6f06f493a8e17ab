from __future__ import annotations

from ilios_api_client.adapters.httpx_transport import HttpxTransport, RetryPolicy
from ilios_api_client.config.settings import Settings
from ilios_api_client.core.fetcher import IliosClient


def build_transport(settings: Settings) -> HttpxTransport:
    return HttpxTransport(
        timeout_seconds=settings.ilios.timeout_seconds,
        verify_tls=settings.ilios.verify_tls,
        trust_env=settings.hardening.transport.trust_env,
        retry_policy=RetryPolicy(max_retries=settings.ilios.max_retries),
    )


def build_client(
    settings: Settings, *, transport: HttpxTransport | None = None
) -> tuple[IliosClient, HttpxTransport]:
    """Wire an `IliosClient` for `settings`; the caller closes the returned transport."""
    transport = transport or build_transport(settings)
    client = IliosClient(
        str(settings.ilios.base_url),
        transport,
        api_path=settings.ilios.api_path,
    )
    return client, transport
