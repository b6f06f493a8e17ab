"""Query-string construction for Ilios list and lookup requests.

The API expects PHP-style bracketed parameters, unencoded, in a fixed order:

    ?limit=<n>&offset=<n>&filters[<k>]=<v>&filters[<k>][]=<v>&order_by[<k>]=<dir>
"""
from __future__ import annotations

import math
from collections.abc import Collection, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

Scalar: TypeAlias = str | int | float
FilterValue: TypeAlias = Scalar | Collection[Scalar]
Filters: TypeAlias = Mapping[str, FilterValue]
SortOrder: TypeAlias = Mapping[str, str]


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


def _is_list_value(value: Any) -> bool:
    # Sets, ranges and other sized iterables count; strings and mappings do not.
    return isinstance(value, Collection) and not isinstance(value, (str, bytes, Mapping))


def build_filter_string(filters: Filters | None = None, sort: SortOrder | None = None) -> str:
    """Render filters and sort order as a query-string suffix (each part starts with `&`)."""
    parts: list[str] = []
    for key, value in (filters or {}).items():
        if _is_list_value(value):
            parts.extend(f"&filters[{key}][]={_format_value(item)}" for item in value)
        else:
            parts.append(f"&filters[{key}]={_format_value(value)}")

    for key, direction in (sort or {}).items():
        parts.append(f"&order_by[{key}]={direction}")

    return "".join(parts)


def build_list_query(*, limit: int, offset: int, filter_string: str = "") -> str:
    return f"?limit={limit}&offset={offset}{filter_string}"


def build_single_id_query(entity_id: Any) -> str:
    return f"?filters[id]={_format_value(entity_id)}"


def build_id_batch_query(ids: Sequence[Any], *, limit: int) -> str:
    return f"?limit={limit}" + "".join(f"&filters[id][]={_format_value(i)}" for i in ids)


def is_numeric(value: Any) -> bool:
    """True for numbers and numeric strings (e.g. ``100``, ``"100"``, ``" 1.5"``)."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return False
        try:
            number = float(text)
        except ValueError:
            return False
        return math.isfinite(number)
    return False


@dataclass(frozen=True, slots=True)
class SingleId:
    value: Scalar


@dataclass(frozen=True, slots=True)
class IdBatch:
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class NoIds:
    pass


IdLookup: TypeAlias = SingleId | IdBatch | NoIds


def resolve_id_lookup(ids: Any) -> IdLookup:
    """Classify a caller-supplied id argument.

    A numeric scalar is a single lookup, a non-empty collection is a batch
    lookup, and anything else (empty collection, non-numeric scalar, None)
    needs no request at all.
    """
    if is_numeric(ids):
        return SingleId(ids)
    if _is_list_value(ids) and len(ids) > 0:
        return IdBatch(tuple(ids))
    return NoIds()


def iter_id_slices(ids: Sequence[Any], batch_size: int) -> Iterator[Sequence[Any]]:
    if batch_size <= 0:
        raise ValueError("batch_size must be > 0")
    for start in range(0, len(ids), batch_size):
        yield ids[start : start + batch_size]
