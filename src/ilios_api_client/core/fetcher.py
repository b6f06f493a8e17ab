from __future__ import annotations

import time
from typing import Any

import structlog

from ilios_api_client.core.query import (
    Filters,
    IdBatch,
    NoIds,
    SingleId,
    SortOrder,
    build_filter_string,
    build_id_batch_query,
    build_list_query,
    build_single_id_query,
    is_numeric,
    iter_id_slices,
    resolve_id_lookup,
)
from ilios_api_client.core.response import extract_records, parse_response
from ilios_api_client.core.token import validate_access_token
from ilios_api_client.core.transport import Transport, auth_header
from ilios_api_client.domain.errors import IliosClientError
from ilios_api_client.observability import metrics

log = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000
DEFAULT_API_PATH = "/api/v3"

Record = dict[str, Any]


class IliosClient:
    """Reads entities from the Ilios API over a caller-supplied transport.

    The access token is passed to every call and never stored. Each call is
    independent: pages and batches are fetched strictly one after another,
    and any failure aborts the call without returning partial results.
    """

    def __init__(
        self,
        base_url: str,
        transport: Transport,
        *,
        api_path: str = DEFAULT_API_PATH,
    ) -> None:
        self._api_base_url = base_url.rstrip("/") + "/" + api_path.strip("/")
        self._transport = transport

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def get(
        self,
        access_token: str,
        entity_type: str,
        filters: Filters | None = None,
        sort: SortOrder | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> list[Record]:
        """Fetch every entity of `entity_type` matching `filters`, page by page.

        Pages of `batch_size` records are requested until the API returns an
        empty page or a page shorter than `batch_size`.
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        validate_access_token(access_token)

        url = self._entity_url(entity_type)
        filter_string = build_filter_string(filters, sort)

        records: list[Record] = []
        offset = 0
        while True:
            query = build_list_query(limit=batch_size, offset=offset, filter_string=filter_string)
            page = self._fetch(access_token, entity_type, url + query, offset=offset)
            if not page:
                break
            records.extend(page)
            if len(page) < batch_size:
                break
            offset += batch_size

        return records

    list_entities = get

    def get_by_id(self, access_token: str, entity_type: str, entity_id: Any) -> Record | None:
        if not is_numeric(entity_id):
            return None
        result = self.get_by_ids(access_token, entity_type, entity_id, batch_size=1)
        return result[0] if result else None

    def get_by_ids(
        self,
        access_token: str,
        entity_type: str,
        ids: Any,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> list[Record]:
        """Fetch entities by id.

        `ids` may be a single numeric id or a list/tuple of ids; lists are
        split into consecutive batches of at most `batch_size` ids. Any other
        input (empty list, non-numeric value) yields an empty list without a
        request.
        """
        validate_access_token(access_token)

        url = self._entity_url(entity_type)
        match resolve_id_lookup(ids):
            case SingleId(value=value):
                queries = [build_single_id_query(value)]
            case IdBatch(values=values):
                queries = [
                    build_id_batch_query(id_slice, limit=batch_size)
                    for id_slice in iter_id_slices(values, batch_size)
                ]
            case NoIds():
                log.debug("ilios.no_ids", entity_type=entity_type)
                return []

        records: list[Record] = []
        for batch, query in enumerate(queries):
            records.extend(self._fetch(access_token, entity_type, url + query, batch=batch))
        return records

    def _entity_url(self, entity_type: str) -> str:
        return f"{self._api_base_url}/{entity_type.lower()}"

    def _fetch(
        self,
        access_token: str,
        entity_type: str,
        url: str,
        **context: Any,
    ) -> list[Record]:
        self._transport.reset_headers()
        self._transport.set_headers([auth_header(access_token)])

        log.debug("ilios.request", entity_type=entity_type, **context)
        metrics.requests_total.labels(entity_type=entity_type).inc()
        started = time.monotonic()
        try:
            body = self._transport.get(url)
            metrics.request_seconds.observe(time.monotonic() - started)
            page = extract_records(parse_response(body), entity_type)
        except IliosClientError as exc:
            metrics.failures_total.labels(kind=exc.kind.value).inc()
            log.warning(
                "ilios.request_failed",
                entity_type=entity_type,
                kind=exc.kind.value,
                error=str(exc),
                **context,
            )
            raise

        metrics.records_total.labels(entity_type=entity_type).inc(len(page))
        log.debug("ilios.page", entity_type=entity_type, records=len(page), **context)
        return page
