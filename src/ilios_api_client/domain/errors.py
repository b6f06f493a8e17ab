from __future__ import annotations

from typing import Any

from ilios_api_client.domain.error_messages import format_error
from ilios_api_client.domain.kinds import ErrorKind


class IliosClientError(Exception):
    """Base class for all errors raised by the Ilios API client.

    Every error carries a machine-readable `kind` and a `details` mapping with
    the structured payload of the failure (e.g. the entity type, or the API's
    code and message), so callers can branch on `err.kind` without parsing
    the message.
    """

    kind: ErrorKind

    def __init__(self, message: str | None = None, /, **details: Any) -> None:
        self.details: dict[str, Any] = details
        super().__init__(message or format_error(self.kind, **details))


class TokenError(IliosClientError):
    """The supplied access token failed local validation."""


class EmptyTokenError(TokenError):
    kind = ErrorKind.EMPTY_TOKEN


class MalformedTokenError(TokenError):
    kind = ErrorKind.MALFORMED_TOKEN


class UndecodableTokenError(TokenError):
    kind = ErrorKind.UNDECODABLE_TOKEN


class ExpiredTokenError(TokenError):
    kind = ErrorKind.EXPIRED_TOKEN


class ResponseError(IliosClientError):
    """The API response could not be turned into records."""


class EmptyResponseError(ResponseError):
    kind = ErrorKind.EMPTY_RESPONSE


class UndecodableResponseError(ResponseError):
    kind = ErrorKind.UNDECODABLE_RESPONSE


class ApiError(ResponseError):
    """The API answered with an `errors` list; carries its first element."""

    kind = ErrorKind.API_ERROR

    def __init__(self, error: str) -> None:
        super().__init__(error=error)
        self.error = error


class ApiErrorWithCode(ResponseError):
    """The API answered with a `code`/`message` error envelope."""

    kind = ErrorKind.API_ERROR_WITH_CODE

    def __init__(self, code: Any, message: Any) -> None:
        super().__init__(code=code, message=message)
        self.code = code
        self.message = message


class EntityNotFoundInResponseError(ResponseError):
    kind = ErrorKind.ENTITY_NOT_FOUND_IN_RESPONSE

    def __init__(self, entity_type: str) -> None:
        super().__init__(entity_type=entity_type)
        self.entity_type = entity_type


class TransportError(IliosClientError):
    """Network failure (timeout, connection error) after transport retries."""

    kind = ErrorKind.TRANSPORT_ERROR


_ERRORS_BY_KIND: dict[ErrorKind, type[IliosClientError]] = {
    cls.kind: cls
    for cls in (
        EmptyTokenError,
        MalformedTokenError,
        UndecodableTokenError,
        ExpiredTokenError,
        EmptyResponseError,
        UndecodableResponseError,
        ApiError,
        ApiErrorWithCode,
        EntityNotFoundInResponseError,
        TransportError,
    )
}


def error_for(kind: ErrorKind, **details: Any) -> IliosClientError:
    """Build the exception matching `kind`, passing `details` as its payload."""
    return _ERRORS_BY_KIND[kind](**details)
