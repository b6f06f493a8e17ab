from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ilios_api_client.domain.errors import (
    ApiError,
    EmptyResponseError,
    IliosClientError,
    UndecodableResponseError,
    error_for,
)
from ilios_api_client.domain.kinds import ErrorKind


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite JSON constant {name}")


def parse_response(raw: str | bytes | None) -> dict[str, Any]:
    """Decode a raw response body into an envelope.

    Raises:
        EmptyResponseError: the body is empty or blank.
        UndecodableResponseError: the body is not UTF-8 JSON, or not a non-empty object.
        ApiError: the envelope carries an `errors` list (first entry is reported).
    """
    if raw is None:
        raise EmptyResponseError()
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise UndecodableResponseError() from exc
    else:
        text = raw
    if not text.strip():
        raise EmptyResponseError()

    try:
        envelope = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise UndecodableResponseError() from exc

    if not envelope or not isinstance(envelope, dict):
        raise UndecodableResponseError()

    # A null field counts as absent throughout.
    errors = envelope.get("errors")
    if errors is not None:
        if isinstance(errors, (list, tuple)):
            first = errors[0] if errors else ""
        else:
            first = errors
        raise ApiError(str(first))

    return envelope


@dataclass(frozen=True, slots=True)
class EnvelopeFailure:
    kind: ErrorKind
    details: dict[str, Any] = field(default_factory=dict)

    def to_exception(self) -> IliosClientError:
        return error_for(self.kind, **self.details)


def classify_envelope(
    envelope: dict[str, Any], entity_type: str
) -> list[dict[str, Any]] | EnvelopeFailure:
    """Return the entity collection, or describe why the envelope has none.

    The collection key is the entity type as given (Ilios answers
    ``/learnergroups`` with a ``learnerGroups`` key), falling back to its
    lowercased form.
    """
    collection = envelope.get(entity_type)
    if collection is None:
        collection = envelope.get(entity_type.lower())
    if collection is not None:
        if not isinstance(collection, list):
            return EnvelopeFailure(ErrorKind.UNDECODABLE_RESPONSE)
        return collection

    if envelope.get("code") is not None and envelope.get("message") is not None:
        return EnvelopeFailure(
            ErrorKind.API_ERROR_WITH_CODE,
            {"code": envelope["code"], "message": envelope["message"]},
        )
    return EnvelopeFailure(ErrorKind.ENTITY_NOT_FOUND_IN_RESPONSE, {"entity_type": entity_type})


def extract_records(envelope: dict[str, Any], entity_type: str) -> list[dict[str, Any]]:
    result = classify_envelope(envelope, entity_type)
    match result:
        case EnvelopeFailure():
            raise result.to_exception()
        case _:
            return result
