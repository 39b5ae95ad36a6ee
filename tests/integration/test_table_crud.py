from __future__ import annotations

import asyncio
import os
import uuid
from datetime import UTC, datetime

import boto3
import pytest
from botocore.exceptions import ClientError

from schemadb import (
    NOW,
    BatchDelete,
    BatchPut,
    Boto3Transport,
    Schema,
    Table,
    TableConfig,
    date_field,
    number_field,
    object_field,
    string_field,
    string_set_field,
)
from schemadb.testkit import fixed_clock

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.environ.get("DYNAMODB_ENDPOINT"), reason="DYNAMODB_ENDPOINT not set"),
]

CREATED = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


def _client():
    return boto3.client(
        "dynamodb",
        endpoint_url=os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"),
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )


USER = Schema(
    id=string_field(required=True),
    name=string_field(required=True),
    age=number_field(integer=True),
    tags=string_set_field(),
    createdAt=date_field(default=NOW),
    metadata=object_field(),
)


def test_table_crud_round_trip() -> None:
    table_name = f"schemadb_crud_{uuid.uuid4().hex[:12]}"
    client = _client()
    client.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=table_name)

    try:
        table = Table(
            USER,
            TableConfig.create(table_name, partition_key="id"),
            transport=Boto3Transport(client),
            clock=fixed_clock(CREATED),
        )

        async def run() -> None:
            created = await table.create(
                {"id": "u1", "name": "Ada", "age": 36, "tags": {"math", "code"}, "metadata": {"team": "core"}},
                if_not_exists=True,
            )
            assert created["createdAt"] == CREATED

            with pytest.raises(ClientError):
                await table.create({"id": "u1", "name": "Ada"}, if_not_exists=True)

            got = await table.get("u1", consistent_read=True)
            assert got == {
                "id": "u1",
                "name": "Ada",
                "age": 36,
                "tags": {"math", "code"},
                "createdAt": CREATED,
                "metadata": {"team": "core"},
            }

            updated = await table.update("u1", {"age": 37, "tags": {"math"}})
            assert updated["age"] == 37
            assert updated["tags"] == {"math"}

            await table.delete("u1")
            assert await table.get("u1", consistent_read=True) is None

            written = await table.batch_write(
                [BatchPut(item={"id": f"b{i}", "name": f"n{i}"}) for i in range(3)] + [BatchDelete(pk="missing")]
            )
            assert written.unprocessed_count == 0

            fetched = await table.batch_get(["b0", "b1", "b2", "nope"], consistent_read=True)
            assert sorted(item["id"] for item in fetched.items) == ["b0", "b1", "b2"]

        asyncio.run(run())
    finally:
        client.delete_table(TableName=table_name)
