from __future__ import annotations

import asyncio
import os
import uuid

import boto3

from schemadb import (
    NOW,
    Boto3Transport,
    Predicate,
    Schema,
    SortKeyCondition,
    Table,
    TableConfig,
    date_field,
    number_field,
    string_field,
)

NOTE = Schema(
    pk=string_field(required=True),
    sk=string_field(required=True),
    value=number_field(integer=True),
    createdAt=date_field(default=NOW),
)


def _client():
    return boto3.client(
        "dynamodb",
        endpoint_url=os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"),
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )


async def run(table: Table) -> None:
    await table.create({"pk": "A", "sk": "001", "value": 1})
    await table.create({"pk": "A", "sk": "010", "value": 10})
    await table.create({"pk": "A", "sk": "100", "value": 100})

    print("get:", await table.get("A", "010"))

    page = await table.query("A", sort=SortKeyCondition.begins_with("0"))
    print("query begins_with('0'):", page.items)

    page = await table.scan(filter=[Predicate.gte("value", 10)])
    print("scan value >= 10:", page.items)


def main() -> None:
    client = _client()
    table_name = f"schemadb_example_{uuid.uuid4().hex[:12]}"

    client.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}, {"AttributeName": "sk", "KeyType": "RANGE"}],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    client.get_waiter("table_exists").wait(TableName=table_name)

    try:
        config = TableConfig.create(table_name, partition_key="pk", sort_key="sk")
        asyncio.run(run(Table(NOTE, config, transport=Boto3Transport(client))))
    finally:
        client.delete_table(TableName=table_name)


if __name__ == "__main__":
    main()
