"""Error message constants for consistent error handling.

This module centralizes the default (English) messages so callers that
render errors themselves can key off `ErrorKind` instead.
"""
from __future__ import annotations

from ilios_api_client.domain.kinds import ErrorKind


class ErrorMessages:
    """Centralized error message constants."""

    # Token errors
    EMPTY_TOKEN = "API token is empty."
    MALFORMED_TOKEN = "API token has an incorrect number of segments."
    UNDECODABLE_TOKEN = "Failed to decode API token."
    EXPIRED_TOKEN = "API token is expired."

    # Response errors
    EMPTY_RESPONSE = "Empty response."
    UNDECODABLE_RESPONSE = "Failed to decode response."
    API_ERROR = "Request failed. The API responded with the following error: {error}."
    API_ERROR_WITH_CODE = (
        "Request failed. The API responded with the code: {code} and message: {message}."
    )
    ENTITY_NOT_FOUND_IN_RESPONSE = "Cannot find {entity_type} in response."

    # Transport errors
    HTTP_TIMEOUT = "HTTP timeout after {attempts} attempts at {url}"
    HTTP_REQUEST_ERROR = "HTTP connection/request error after {attempts} attempts at {url}"


_TEMPLATES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_TOKEN: ErrorMessages.EMPTY_TOKEN,
    ErrorKind.MALFORMED_TOKEN: ErrorMessages.MALFORMED_TOKEN,
    ErrorKind.UNDECODABLE_TOKEN: ErrorMessages.UNDECODABLE_TOKEN,
    ErrorKind.EXPIRED_TOKEN: ErrorMessages.EXPIRED_TOKEN,
    ErrorKind.EMPTY_RESPONSE: ErrorMessages.EMPTY_RESPONSE,
    ErrorKind.UNDECODABLE_RESPONSE: ErrorMessages.UNDECODABLE_RESPONSE,
    ErrorKind.API_ERROR: ErrorMessages.API_ERROR,
    ErrorKind.API_ERROR_WITH_CODE: ErrorMessages.API_ERROR_WITH_CODE,
    ErrorKind.ENTITY_NOT_FOUND_IN_RESPONSE: ErrorMessages.ENTITY_NOT_FOUND_IN_RESPONSE,
}


def format_error(kind: ErrorKind, **details: object) -> str:
    """Render the default message for an error kind.

    Args:
        kind: The classified error kind.
        **details: Placeholder values for the message template.

    Returns:
        Formatted error message; the kind's value when no template exists.
    """
    template = _TEMPLATES.get(kind)
    if template is None:
        return kind.value
    return template.format(**details)
