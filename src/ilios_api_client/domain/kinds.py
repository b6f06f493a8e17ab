from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    # Token validation
    EMPTY_TOKEN = "empty_token"
    MALFORMED_TOKEN = "malformed_token"
    UNDECODABLE_TOKEN = "undecodable_token"
    EXPIRED_TOKEN = "expired_token"

    # Response handling
    EMPTY_RESPONSE = "empty_response"
    UNDECODABLE_RESPONSE = "undecodable_response"
    API_ERROR = "api_error"
    API_ERROR_WITH_CODE = "api_error_with_code"
    ENTITY_NOT_FOUND_IN_RESPONSE = "entity_not_found_in_response"

    # Bundled HTTP transport
    TRANSPORT_ERROR = "transport_error"
