from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config

from .transport import Boto3Transport, Request, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallMetric:
    operation: str
    table_name: str | None
    seconds: float
    ok: bool


def is_lambda_environment(environ: Mapping[str, str] = os.environ) -> bool:
    return bool(
        environ.get("AWS_LAMBDA_FUNCTION_NAME") or "AWS_Lambda" in (environ.get("AWS_EXECUTION_ENV") or "")
    )


def create_boto3_config(
    *,
    connect_timeout: float = 1.0,
    read_timeout: float = 3.0,
    max_attempts: int = 3,
) -> Config:
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
    )


def create_transport(
    *,
    region: str | None = None,
    endpoint_url: str | None = None,
    config: Config | None = None,
    session: Any | None = None,
    environ: Mapping[str, str] = os.environ,
) -> Boto3Transport:
    """Build a boto3-backed transport.

    ``DYNAMODB_ENDPOINT`` and ``AWS_REGION`` fill in the endpoint and region
    when not given. Inside Lambda a short-timeout client config is used.
    """
    region = region or environ.get("AWS_REGION") or None
    endpoint_url = endpoint_url or environ.get("DYNAMODB_ENDPOINT") or None
    if config is None and is_lambda_environment(environ):
        config = create_boto3_config()

    sess = session or boto3.session.Session(region_name=region)
    kwargs: dict[str, Any] = {"region_name": region}
    if endpoint_url is not None:
        kwargs["endpoint_url"] = endpoint_url
    if config is not None:
        kwargs["config"] = config

    logger.debug("creating dynamodb client (region=%s, endpoint=%s)", region, endpoint_url)
    return Boto3Transport(sess.client("dynamodb", **kwargs))


class _InstrumentedTransport:
    def __init__(self, transport: Transport, on_call: Callable[[CallMetric], None]) -> None:
        self._transport = transport
        self._on_call = on_call

    async def send(self, request: Request) -> Mapping[str, Any]:
        table_name = request.params.get("TableName")
        start = time.monotonic()
        try:
            out = await self._transport.send(request)
        except Exception:
            self._on_call(
                CallMetric(
                    operation=request.operation,
                    table_name=table_name,
                    seconds=time.monotonic() - start,
                    ok=False,
                )
            )
            raise

        self._on_call(
            CallMetric(
                operation=request.operation,
                table_name=table_name,
                seconds=time.monotonic() - start,
                ok=True,
            )
        )
        return out


def instrument_transport(transport: Transport, *, on_call: Callable[[CallMetric], None]) -> Transport:
    return _InstrumentedTransport(transport, on_call)
