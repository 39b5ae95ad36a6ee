from __future__ import annotations

import asyncio

import pytest

from schemadb import Schema, Table, TableConfig, string_field
from schemadb.mocks import ANY, FakeTransport
from schemadb.transport import Request


def _send(transport: FakeTransport, operation: str, **params: object) -> object:
    return asyncio.run(transport.send(Request(operation, dict(params))))  # type: ignore[arg-type]


def test_fake_transport_records_and_matches_put_item() -> None:
    transport = FakeTransport()
    transport.expect("put_item", {"TableName": "notes", "Item": ANY})

    config = TableConfig.create("notes", partition_key="pk")
    table = Table(Schema(pk=string_field(required=True)), config, transport=transport)
    asyncio.run(table.create({"pk": "A"}))

    transport.assert_no_pending()
    assert transport.calls[0][0] == "put_item"


def test_fake_transport_asserts_pending_calls() -> None:
    transport = FakeTransport()
    transport.expect("query")
    with pytest.raises(AssertionError, match="pending expected calls"):
        transport.assert_no_pending()


def test_fake_transport_rejects_unexpected_calls() -> None:
    with pytest.raises(AssertionError, match="unexpected call: query"):
        _send(FakeTransport(), "query")


def test_fake_transport_rejects_wrong_operation_order() -> None:
    transport = FakeTransport()
    transport.expect("scan")
    with pytest.raises(AssertionError, match="expected scan, got query"):
        _send(transport, "query")


@pytest.mark.parametrize(
    ("expected", "req", "match"),
    [
        ({"a": 1}, {"a": 2}, "expected 1"),
        ({"a": 1}, {}, "missing key"),
        ({"a": {"b": 1}}, {"a": "nope"}, "expected dict"),
        ({"a": [1]}, {"a": "nope"}, "expected list"),
        ({"a": [1, 2]}, {"a": [1]}, "expected 2 items"),
        ({"a": [1]}, {"a": [2]}, "expected 1"),
    ],
)
def test_fake_transport_strict_matching(expected: dict, req: dict, match: str) -> None:
    transport = FakeTransport()
    transport.expect("query", expected)
    with pytest.raises(AssertionError, match=match):
        _send(transport, "query", **req)


def test_fake_transport_can_inject_errors_and_responses() -> None:
    transport = FakeTransport()
    transport.expect("query", error=RuntimeError("boom"))
    transport.expect("get_item", response={"ok": True})

    with pytest.raises(RuntimeError, match="boom"):
        _send(transport, "query")
    assert _send(transport, "get_item") == {"ok": True}
    transport.assert_no_pending()
