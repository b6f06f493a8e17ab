from __future__ import annotations

from ilios_api_client._version import __version__
from ilios_api_client.adapters.httpx_transport import HttpxTransport, RetryPolicy
from ilios_api_client.core.fetcher import DEFAULT_BATCH_SIZE, IliosClient
from ilios_api_client.core.response import parse_response
from ilios_api_client.core.token import decode_token_payload, validate_access_token
from ilios_api_client.core.transport import Transport
from ilios_api_client.domain.errors import (
    ApiError,
    ApiErrorWithCode,
    EmptyResponseError,
    EmptyTokenError,
    EntityNotFoundInResponseError,
    ExpiredTokenError,
    IliosClientError,
    MalformedTokenError,
    ResponseError,
    TokenError,
    TransportError,
    UndecodableResponseError,
    UndecodableTokenError,
)
from ilios_api_client.domain.kinds import ErrorKind

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "ApiError",
    "ApiErrorWithCode",
    "EmptyResponseError",
    "EmptyTokenError",
    "EntityNotFoundInResponseError",
    "ErrorKind",
    "ExpiredTokenError",
    "HttpxTransport",
    "IliosClient",
    "IliosClientError",
    "MalformedTokenError",
    "ResponseError",
    "RetryPolicy",
    "TokenError",
    "Transport",
    "TransportError",
    "UndecodableResponseError",
    "UndecodableTokenError",
    "__version__",
    "decode_token_payload",
    "parse_response",
    "validate_access_token",
]
