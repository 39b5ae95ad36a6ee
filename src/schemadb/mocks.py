from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .transport import Request


class _AnySentinel:
    def __repr__(self) -> str:  # pragma: no cover
        return "ANY"


ANY: Any = _AnySentinel()


def _assert_match(expected: Any, actual: Any, *, path: str) -> None:
    if expected is ANY:
        return

    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            raise AssertionError(f"{path}: expected dict, got {type(actual).__name__}")
        for k, v in expected.items():
            if k not in actual:
                raise AssertionError(f"{path}: missing key {k!r}")
            _assert_match(v, actual[k], path=f"{path}.{k}")
        return

    if isinstance(expected, list):
        if not isinstance(actual, list):
            raise AssertionError(f"{path}: expected list, got {type(actual).__name__}")
        if len(expected) != len(actual):
            raise AssertionError(f"{path}: expected {len(expected)} items, got {len(actual)}")
        for i, (e, a) in enumerate(zip(expected, actual, strict=True)):
            _assert_match(e, a, path=f"{path}[{i}]")
        return

    if expected != actual:
        raise AssertionError(f"{path}: expected {expected!r}, got {actual!r}")


@dataclass(frozen=True)
class ExpectedCall:
    operation: str
    expected: Mapping[str, Any] | Callable[[Mapping[str, Any]], None] | None = None
    response: Mapping[str, Any] | None = None
    error: Exception | None = None


class FakeTransport:
    """Scripted transport: each ``send`` must match the next expected call."""

    def __init__(self) -> None:
        self._expected: list[ExpectedCall] = []
        self.requests: list[Request] = []

    def expect(
        self,
        operation: str,
        expected: Mapping[str, Any] | Callable[[Mapping[str, Any]], None] | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._expected.append(
            ExpectedCall(operation=operation, expected=expected, response=response, error=error)
        )

    def assert_no_pending(self) -> None:
        if self._expected:
            raise AssertionError(f"pending expected calls: {self._expected!r}")

    @property
    def calls(self) -> list[tuple[str, dict[str, Any]]]:
        return [(req.operation, dict(req.params)) for req in self.requests]

    async def send(self, request: Request) -> Mapping[str, Any]:
        self.requests.append(request)
        if not self._expected:
            raise AssertionError(f"unexpected call: {request.operation}")

        call = self._expected.pop(0)
        if call.operation != request.operation:
            raise AssertionError(f"expected {call.operation}, got {request.operation}")

        if callable(call.expected):
            call.expected(request.params)
        elif call.expected is not None:
            _assert_match(dict(call.expected), dict(request.params), path=request.operation)

        if call.error is not None:
            raise call.error

        return dict(call.response or {})
