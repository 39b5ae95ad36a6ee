from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

type Operation = Literal[
    "put_item",
    "get_item",
    "update_item",
    "delete_item",
    "query",
    "scan",
    "batch_get_item",
    "batch_write_item",
]

OPERATIONS: frozenset[str] = frozenset(
    {
        "put_item",
        "get_item",
        "update_item",
        "delete_item",
        "query",
        "scan",
        "batch_get_item",
        "batch_write_item",
    }
)


@dataclass(frozen=True)
class Request:
    """One store call: the operation name and its wire-format parameters."""

    operation: Operation
    params: dict[str, Any] = field(default_factory=dict)


class Transport(Protocol):
    async def send(self, request: Request) -> Mapping[str, Any]: ...


class Boto3Transport:
    """Transport backed by a synchronous boto3 DynamoDB client.

    Each request runs the matching client method in a worker thread. Client
    errors (``botocore.exceptions.ClientError`` and friends) propagate as raised.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        return self._client

    async def send(self, request: Request) -> Mapping[str, Any]:
        if request.operation not in OPERATIONS:
            raise ValueError(f"unsupported operation: {request.operation}")

        method = getattr(self._client, request.operation)
        logger.debug("boto3 %s", request.operation)
        response = await asyncio.to_thread(method, **request.params)
        return response or {}
