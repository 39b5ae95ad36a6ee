from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from .fields import NOW

type Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def resolve_default(default: Any, *, clock: Clock = utc_now) -> Any:
    if default is NOW:
        return clock()
    if callable(default):
        return default()
    return copy.deepcopy(default)


def apply_defaults(record: Mapping[str, Any], schema: Mapping[str, Any], *, clock: Clock = utc_now) -> dict[str, Any]:
    """Return a copy of ``record`` with schema defaults filled in for absent keys.

    Generators run once per missing field on every call; keys that are present
    (even with a ``None`` value) are left untouched.
    """
    out = dict(record)
    for name, field_def in schema.items():
        if name in out or not field_def.has_default:
            continue
        out[name] = resolve_default(field_def.default, clock=clock)
    return out
