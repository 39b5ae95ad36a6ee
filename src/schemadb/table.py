from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Literal

from .batch import (
    MAX_BATCH_GET_KEYS,
    MAX_BATCH_WRITE_OPERATIONS,
    BatchDelete,
    BatchGetResult,
    BatchOperation,
    BatchPut,
    BatchWriteResult,
    parse_batch_operation,
    split_key,
)
from .defaults import Clock, apply_defaults, utc_now
from .errors import EmptyResponseError, ValidationError
from .expressions import (
    PredicateLike,
    SortKeyCondition,
    compile_assignments,
    compile_conditions,
    compile_key_condition,
    compile_projection,
)
from .model import Schema, TableConfig
from .query import Page, decode_cursor, encode_cursor
from .transcode import decode_item, marshal_item, marshal_value, marshal_values, unmarshal_item
from .transport import Operation, Request, Transport
from .validation import validate_partial, validate_record

logger = logging.getLogger(__name__)


class Table:
    """Schema-checked access to one table through an async transport.

    Every public coroutine builds exactly one request, awaits the transport
    once, and decodes the response. Transport errors propagate unchanged.
    """

    def __init__(
        self,
        schema: Schema | Mapping[str, Any],
        config: TableConfig,
        *,
        transport: Transport | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not isinstance(schema, Schema):
            schema = Schema(schema)
        if transport is None:
            from .runtime import create_transport

            transport = create_transport()

        self._schema = schema
        self._config = config
        self._table_name = config.table_name
        self._transport = transport
        self._clock: Clock = clock or utc_now

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def config(self) -> TableConfig:
        return self._config

    async def create(self, record: Mapping[str, Any], *, if_not_exists: bool = False) -> dict[str, Any]:
        processed = apply_defaults(record, self._schema, clock=self._clock)
        validate_record(processed, self._schema)
        self._require_key_fields(processed)

        req: dict[str, Any] = {"TableName": self._table_name, "Item": marshal_item(processed)}
        if if_not_exists:
            req["ConditionExpression"] = "attribute_not_exists(#pk)"
            req["ExpressionAttributeNames"] = {"#pk": self._config.partition_key}

        await self._send("put_item", req)
        return processed

    async def get(self, pk: Any, sk: Any | None = None, *, consistent_read: bool = False) -> dict[str, Any] | None:
        resp = await self._send(
            "get_item",
            {"TableName": self._table_name, "Key": self._to_key(pk, sk), "ConsistentRead": consistent_read},
        )
        item = resp.get("Item")
        if not item:
            return None
        return decode_item(item, self._schema)

    async def update(self, pk: Any, updates: Mapping[str, Any], *, sk: Any | None = None) -> dict[str, Any]:
        validate_partial(updates, self._schema)
        for field_name in updates:
            if field_name in {self._config.partition_key, self._config.sort_key}:
                raise ValidationError(f"cannot update key field: {field_name}", field=field_name)

        compiled = compile_assignments(updates)
        resp = await self._send(
            "update_item",
            {
                "TableName": self._table_name,
                "Key": self._to_key(pk, sk),
                "UpdateExpression": compiled.expression,
                "ExpressionAttributeNames": compiled.names,
                "ExpressionAttributeValues": marshal_values(compiled.values),
                "ReturnValues": "ALL_NEW",
            },
        )

        attrs = resp.get("Attributes")
        if not attrs:
            raise EmptyResponseError(operation="update_item", missing="Attributes")
        return decode_item(attrs, self._schema)

    async def delete(self, pk: Any, sk: Any | None = None) -> None:
        await self._send("delete_item", {"TableName": self._table_name, "Key": self._to_key(pk, sk)})

    async def query(
        self,
        partition: Any,
        *,
        sort: SortKeyCondition | None = None,
        filter: Sequence[PredicateLike] | None = None,
        select: Sequence[str] | None = None,
        index_name: str | None = None,
        scan_forward: bool = True,
        limit: int | None = None,
        cursor: str | None = None,
        consistent_read: bool = False,
    ) -> Page:
        partition_attr, sort_attr, index_type = self._resolve_index(index_name)
        if index_type == "GSI" and consistent_read:
            raise ValidationError("consistent_read is not supported for GSIs")
        if partition is None:
            raise ValidationError("partition is required")
        if limit is not None and limit <= 0:
            raise ValidationError("limit must be > 0")

        key_cond = compile_key_condition(partition_attr, partition, sort_name=sort_attr, sort=sort)
        names: dict[str, str] = dict(key_cond.names)
        values: dict[str, Any] = dict(key_cond.values)
        direction: Literal["ASC", "DESC"] = "ASC" if scan_forward else "DESC"

        req: dict[str, Any] = {
            "TableName": self._table_name,
            "KeyConditionExpression": key_cond.expression,
            "ScanIndexForward": scan_forward,
            "ConsistentRead": consistent_read,
        }
        if index_name is not None:
            req["IndexName"] = index_name
        if limit is not None:
            req["Limit"] = limit
        if cursor is not None:
            decoded = decode_cursor(cursor)
            # A cursor without an index came from the base table.
            if decoded.index != index_name:
                raise ValidationError("cursor index does not match query")
            if decoded.sort != direction:
                raise ValidationError("cursor sort does not match query")
            req["ExclusiveStartKey"] = decoded.last_key
        self._apply_filter_and_projection(req, names, values, filter, select)
        req["ExpressionAttributeNames"] = names
        req["ExpressionAttributeValues"] = marshal_values(values)

        resp = await self._send("query", req)
        return self._to_page(resp, index_name=index_name, sort=direction)

    async def scan(
        self,
        *,
        filter: Sequence[PredicateLike] | None = None,
        select: Sequence[str] | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
        segment: int | None = None,
        total_segments: int | None = None,
        consistent_read: bool = False,
    ) -> Page:
        _, _, index_type = self._resolve_index(index_name)
        if index_type == "GSI" and consistent_read:
            raise ValidationError("consistent_read is not supported for GSIs")
        if limit is not None and limit <= 0:
            raise ValidationError("limit must be > 0")
        if (segment is None) != (total_segments is None):
            raise ValidationError("segment and total_segments must be provided together")

        req: dict[str, Any] = {"TableName": self._table_name, "ConsistentRead": consistent_read}
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        if index_name is not None:
            req["IndexName"] = index_name
        if limit is not None:
            req["Limit"] = limit
        if cursor is not None:
            decoded = decode_cursor(cursor)
            if decoded.index != index_name:
                raise ValidationError("cursor index does not match scan")
            if decoded.sort is not None:
                raise ValidationError("cursor sort does not match scan")
            req["ExclusiveStartKey"] = decoded.last_key
        if segment is not None and total_segments is not None:
            req["Segment"] = segment
            req["TotalSegments"] = total_segments
        self._apply_filter_and_projection(req, names, values, filter, select)
        if names:
            req["ExpressionAttributeNames"] = names
        if values:
            req["ExpressionAttributeValues"] = marshal_values(values)

        resp = await self._send("scan", req)
        return self._to_page(resp, index_name=index_name, sort=None)

    async def batch_get(
        self,
        keys: Sequence[Any],
        *,
        consistent_read: bool = False,
        select: Sequence[str] | None = None,
    ) -> BatchGetResult:
        if not keys:
            return BatchGetResult(items=[])
        if len(keys) > MAX_BATCH_GET_KEYS:
            raise ValidationError(f"batch_get supports at most {MAX_BATCH_GET_KEYS} keys")

        wire_keys: list[dict[str, Any]] = []
        for key in keys:
            parts = split_key(key, partition_key=self._config.partition_key, sort_key=self._config.sort_key)
            if parts is None:
                raise ValidationError(f"invalid key: {key!r}")
            wire_keys.append(self._to_key(*parts))

        table_req: dict[str, Any] = {"Keys": wire_keys, "ConsistentRead": consistent_read}
        if select:
            projection = compile_projection(select)
            table_req["ProjectionExpression"] = projection.expression
            table_req["ExpressionAttributeNames"] = projection.names

        resp = await self._send("batch_get_item", {"RequestItems": {self._table_name: table_req}})

        items = [decode_item(item, self._schema) for item in resp.get("Responses", {}).get(self._table_name, [])]
        pending = (resp.get("UnprocessedKeys") or {}).get(self._table_name, {}).get("Keys") or []
        if pending:
            logger.warning("batch_get on %s left %d keys unprocessed", self._table_name, len(pending))
        return BatchGetResult(items=items, unprocessed_keys=[unmarshal_item(k) for k in pending])

    async def batch_write(self, operations: Sequence[BatchOperation | Mapping[str, Any]]) -> BatchWriteResult:
        parsed = [
            parse_batch_operation(
                raw,
                index=i,
                partition_key=self._config.partition_key,
                sort_key=self._config.sort_key,
            )
            for i, raw in enumerate(operations)
        ]
        if not parsed:
            return BatchWriteResult()
        if len(parsed) > MAX_BATCH_WRITE_OPERATIONS:
            raise ValidationError(f"batch_write supports at most {MAX_BATCH_WRITE_OPERATIONS} operations")

        requests: list[dict[str, Any]] = []
        for op in parsed:
            if isinstance(op, BatchPut):
                item = apply_defaults(op.item, self._schema, clock=self._clock)
                validate_record(item, self._schema)
                self._require_key_fields(item)
                requests.append({"PutRequest": {"Item": marshal_item(item)}})
            elif isinstance(op, BatchDelete):
                requests.append({"DeleteRequest": {"Key": self._to_key(op.pk, op.sk)}})

        resp = await self._send("batch_write_item", {"RequestItems": {self._table_name: requests}})

        pending = (resp.get("UnprocessedItems") or {}).get(self._table_name) or []
        if pending:
            logger.warning("batch_write on %s left %d requests unprocessed", self._table_name, len(pending))
        return BatchWriteResult(unprocessed_count=len(pending))

    async def _send(self, operation: Operation, params: dict[str, Any]) -> Mapping[str, Any]:
        logger.debug("%s %s", operation, self._table_name)
        return await self._transport.send(Request(operation=operation, params=params))

    def _apply_filter_and_projection(
        self,
        req: dict[str, Any],
        names: dict[str, str],
        values: dict[str, Any],
        filter: Sequence[PredicateLike] | None,
        select: Sequence[str] | None,
    ) -> None:
        if filter:
            compiled = compile_conditions(filter)
            req["FilterExpression"] = compiled.expression
            names.update(compiled.names)
            values.update(compiled.values)
        if select:
            projection = compile_projection(select)
            req["ProjectionExpression"] = projection.expression
            names.update(projection.names)

    def _to_page(
        self, resp: Mapping[str, Any], *, index_name: str | None, sort: Literal["ASC", "DESC"] | None
    ) -> Page:
        items = [decode_item(item, self._schema) for item in resp.get("Items", [])]
        count = resp.get("Count")
        return Page(
            items=items,
            next_cursor=encode_cursor(resp.get("LastEvaluatedKey"), index=index_name, sort=sort),
            count=count if isinstance(count, int) else len(items),
        )

    def _require_key_fields(self, record: Mapping[str, Any]) -> None:
        for key_name in (self._config.partition_key, self._config.sort_key):
            if key_name is not None and record.get(key_name) is None:
                raise ValidationError(f"Field '{key_name}' is required", field=key_name, reason="is required")

    def _to_key(self, pk: Any, sk: Any | None) -> dict[str, Any]:
        if pk is None:
            raise ValidationError("pk is required")
        if self._config.sort_key is None and sk is not None:
            raise ValidationError("table does not define a sort key")
        if self._config.sort_key is not None and sk is None:
            raise ValidationError("sk is required")

        key: dict[str, Any] = {self._config.partition_key: marshal_value(pk)}
        if self._config.sort_key is not None:
            key[self._config.sort_key] = marshal_value(sk)
        return key

    def _resolve_index(self, index_name: str | None) -> tuple[str, str | None, Literal["TABLE", "GSI", "LSI"]]:
        if index_name is None:
            return self._config.partition_key, self._config.sort_key, "TABLE"

        idx = self._config.index(index_name)
        if idx is None:
            raise ValidationError(f"unknown index: {index_name}")
        return idx.partition, idx.sort, idx.type
