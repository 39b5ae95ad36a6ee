from __future__ import annotations

import asyncio
import logging

import pytest

from schemadb import (
    BatchDelete,
    BatchPut,
    InvalidBatchOperationError,
    Schema,
    Table,
    TableConfig,
    ValidationError,
    boolean_field,
    number_field,
    string_field,
    string_set_field,
)
from schemadb.mocks import FakeTransport

USER = Schema(
    id=string_field(required=True),
    name=string_field(required=True),
    active=boolean_field(default=True),
    tags=string_set_field(),
)


def _table(sort_key: str | None = None) -> tuple[Table, FakeTransport]:
    transport = FakeTransport()
    schema = USER if sort_key is None else Schema(dict(USER), version=number_field())
    config = TableConfig.create("Users", partition_key="id", sort_key=sort_key)
    return Table(schema, config, transport=transport), transport


def test_batch_get_sends_one_request_and_decodes_items() -> None:
    table, transport = _table()
    transport.expect(
        "batch_get_item",
        {
            "RequestItems": {
                "Users": {
                    "Keys": [{"id": {"S": "1"}}, {"id": {"S": "2"}}, {"id": {"S": "3"}}],
                    "ConsistentRead": False,
                    "ProjectionExpression": "#select0, #select1",
                    "ExpressionAttributeNames": {"#select0": "id", "#select1": "tags"},
                }
            }
        },
        response={
            "Responses": {
                "Users": [
                    {"id": {"S": "1"}, "tags": {"L": [{"S": "a"}]}},
                    {"id": {"S": "3"}, "tags": {"L": []}},
                ]
            }
        },
    )

    result = asyncio.run(table.batch_get(["1", {"partitionKey": "2"}, {"id": "3"}], select=["id", "tags"]))

    assert result.items == [{"id": "1", "tags": {"a"}}, {"id": "3", "tags": set()}]
    assert result.unprocessed_keys == []
    transport.assert_no_pending()


def test_batch_get_reports_unprocessed_keys(caplog: pytest.LogCaptureFixture) -> None:
    table, transport = _table()
    transport.expect(
        "batch_get_item",
        response={
            "Responses": {"Users": []},
            "UnprocessedKeys": {"Users": {"Keys": [{"id": {"S": "2"}}]}},
        },
    )

    with caplog.at_level(logging.WARNING, logger="schemadb.table"):
        result = asyncio.run(table.batch_get(["1", "2"]))

    assert result.items == []
    assert result.unprocessed_keys == [{"id": "2"}]
    assert "unprocessed" in caplog.text


def test_batch_get_composite_keys() -> None:
    table, transport = _table(sort_key="version")
    transport.expect(
        "batch_get_item",
        {
            "RequestItems": {
                "Users": {
                    "Keys": [
                        {"id": {"S": "a"}, "version": {"N": "1"}},
                        {"id": {"S": "b"}, "version": {"N": "2"}},
                    ]
                }
            }
        },
        response={"Responses": {}},
    )
    result = asyncio.run(table.batch_get([("a", 1), {"partitionKey": "b", "sortKey": 2}]))
    assert result.items == []

    with pytest.raises(ValidationError, match="sk is required"):
        asyncio.run(table.batch_get(["a"]))


def test_batch_get_limits_and_empty_input() -> None:
    table, transport = _table()
    assert asyncio.run(table.batch_get([])).items == []
    with pytest.raises(ValidationError, match="at most 100 keys"):
        asyncio.run(table.batch_get([str(i) for i in range(101)]))
    with pytest.raises(ValidationError, match="invalid key"):
        asyncio.run(table.batch_get([{"other": "x"}]))
    assert transport.calls == []


def test_batch_write_mixes_puts_and_deletes() -> None:
    table, transport = _table()
    transport.expect(
        "batch_write_item",
        {
            "RequestItems": {
                "Users": [
                    {"PutRequest": {"Item": {"id": {"S": "1"}, "name": {"S": "Ada"}, "active": {"BOOL": True}}}},
                    {"DeleteRequest": {"Key": {"id": {"S": "2"}}}},
                    {"PutRequest": {"Item": {"id": {"S": "3"}, "name": {"S": "Bo"}, "active": {"BOOL": False}}}},
                    {"DeleteRequest": {"Key": {"id": {"S": "4"}}}},
                ]
            }
        },
        response={"UnprocessedItems": {}},
    )

    result = asyncio.run(
        table.batch_write(
            [
                {"operation": "put", "item": {"id": "1", "name": "Ada"}},
                {"operation": "delete", "key": "2"},
                BatchPut(item={"id": "3", "name": "Bo", "active": False}),
                BatchDelete(pk="4"),
            ]
        )
    )
    assert result.unprocessed_count == 0
    transport.assert_no_pending()


def test_batch_write_counts_unprocessed_requests(caplog: pytest.LogCaptureFixture) -> None:
    table, transport = _table()
    transport.expect(
        "batch_write_item",
        response={"UnprocessedItems": {"Users": [{"DeleteRequest": {"Key": {"id": {"S": "2"}}}}]}},
    )
    with caplog.at_level(logging.WARNING, logger="schemadb.table"):
        result = asyncio.run(table.batch_write([BatchDelete(pk="1"), BatchDelete(pk="2")]))
    assert result.unprocessed_count == 1
    assert "unprocessed" in caplog.text


def test_batch_write_rejects_unknown_operations_before_any_request() -> None:
    table, transport = _table()
    with pytest.raises(InvalidBatchOperationError) as exc:
        asyncio.run(
            table.batch_write(
                [
                    {"operation": "put", "item": {"id": "1", "name": "Ada"}},
                    {"operation": "upsert", "item": {"id": "2"}},
                ]
            )
        )
    assert exc.value.index == 1
    assert isinstance(exc.value, ValidationError)
    assert transport.calls == []


def test_batch_write_validates_puts_before_any_request() -> None:
    table, transport = _table()
    with pytest.raises(ValidationError) as exc:
        asyncio.run(table.batch_write([BatchDelete(pk="1"), BatchPut(item={"id": "2"})]))
    assert exc.value.field == "name"

    with pytest.raises(ValidationError, match="at most 25 operations"):
        asyncio.run(table.batch_write([BatchDelete(pk=str(i)) for i in range(26)]))
    assert transport.calls == []


def test_batch_write_empty_input_sends_nothing() -> None:
    table, transport = _table()
    assert asyncio.run(table.batch_write([])).unprocessed_count == 0
    assert transport.calls == []
