from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime

from .mocks import ANY, FakeTransport


def fixed_clock(instant: datetime) -> Callable[[], datetime]:
    def clock() -> datetime:
        return instant

    return clock


def sequence_clock(instants: Iterable[datetime]) -> Callable[[], datetime]:
    """Clock that returns the given instants in order and fails once exhausted."""
    it = iter(instants)

    def clock() -> datetime:
        try:
            return next(it)
        except StopIteration:
            raise AssertionError("sequence_clock exhausted") from None

    return clock


__all__ = [
    "ANY",
    "FakeTransport",
    "fixed_clock",
    "sequence_clock",
]
