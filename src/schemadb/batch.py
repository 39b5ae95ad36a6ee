from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import InvalidBatchOperationError

MAX_BATCH_GET_KEYS = 100
MAX_BATCH_WRITE_OPERATIONS = 25


@dataclass(frozen=True)
class BatchPut:
    item: Mapping[str, Any]


@dataclass(frozen=True)
class BatchDelete:
    pk: Any
    sk: Any | None = None


type BatchOperation = BatchPut | BatchDelete


@dataclass(frozen=True)
class BatchGetResult:
    items: list[dict[str, Any]]
    unprocessed_keys: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class BatchWriteResult:
    unprocessed_count: int = 0


def split_key(
    key: Any, *, partition_key: str | None = None, sort_key: str | None = None
) -> tuple[Any, Any | None] | None:
    if isinstance(key, Mapping):
        if "partitionKey" in key:
            return key["partitionKey"], key.get("sortKey")
        if partition_key is not None and partition_key in key:
            return key[partition_key], key.get(sort_key) if sort_key is not None else None
        return None
    if isinstance(key, tuple):
        if len(key) != 2:
            return None
        return key[0], key[1]
    return key, None


def parse_batch_operation(
    raw: Any, *, index: int, partition_key: str | None = None, sort_key: str | None = None
) -> BatchOperation:
    """Turn a tagged mapping (or an already typed operation) into a batch operation."""
    if isinstance(raw, (BatchPut, BatchDelete)):
        return raw

    if isinstance(raw, Mapping):
        tag = raw.get("operation", raw.get("type"))
        if tag == "put" and isinstance(raw.get("item"), Mapping):
            return BatchPut(item=raw["item"])
        if tag == "delete" and raw.get("key") is not None:
            parts = split_key(raw["key"], partition_key=partition_key, sort_key=sort_key)
            if parts is not None:
                return BatchDelete(pk=parts[0], sk=parts[1])

    raise InvalidBatchOperationError(index=index, operation=raw)
