from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Literal

from .errors import ValidationError

type SortDirection = Literal["ASC", "DESC"]


@dataclass(frozen=True)
class Page:
    items: list[dict[str, Any]]
    next_cursor: str | None
    count: int


@dataclass(frozen=True)
class Cursor:
    last_key: dict[str, Any]
    index: str | None = None
    sort: SortDirection | None = None


def _single_key(av: Any) -> tuple[str, Any]:
    if not isinstance(av, dict) or len(av) != 1:
        raise ValueError("attribute value must be a single-key map")
    ((kind, value),) = av.items()
    return str(kind), value


def _av_to_json(av: Any) -> dict[str, Any]:
    kind, value = _single_key(av)

    if kind in {"S", "N"}:
        if not isinstance(value, str):
            raise ValueError(f"{kind} value must be a string")
        return {kind: value}
    if kind == "B":
        if not isinstance(value, (bytes, bytearray)):
            raise ValueError("B value must be bytes")
        return {"B": base64.b64encode(bytes(value)).decode("ascii")}
    if kind == "BOOL":
        if not isinstance(value, bool):
            raise ValueError("BOOL value must be a boolean")
        return {"BOOL": value}
    if kind == "NULL":
        return {"NULL": True}
    if kind == "L":
        if not isinstance(value, list):
            raise ValueError("L value must be a list")
        return {"L": [_av_to_json(v) for v in value]}
    if kind == "M":
        if not isinstance(value, dict):
            raise ValueError("M value must be a map")
        return {"M": {str(k): _av_to_json(value[k]) for k in sorted(value)}}

    raise ValueError(f"unsupported key attribute type: {kind}")


def _av_from_json(enc: Any) -> dict[str, Any]:
    kind, value = _single_key(enc)

    if kind in {"S", "N"}:
        if not isinstance(value, str):
            raise ValueError(f"{kind} value must be a string")
        return {kind: value}
    if kind == "B":
        if not isinstance(value, str):
            raise ValueError("B value must be a base64 string")
        return {"B": base64.b64decode(value)}
    if kind == "BOOL":
        if not isinstance(value, bool):
            raise ValueError("BOOL value must be a boolean")
        return {"BOOL": value}
    if kind == "NULL":
        return {"NULL": True}
    if kind == "L":
        if not isinstance(value, list):
            raise ValueError("L value must be a list")
        return {"L": [_av_from_json(v) for v in value]}
    if kind == "M":
        if not isinstance(value, dict):
            raise ValueError("M value must be a map")
        return {"M": {str(k): _av_from_json(value[k]) for k in sorted(value)}}

    raise ValueError(f"unsupported key attribute type: {kind}")


def encode_cursor(last_key: Any, *, index: str | None = None, sort: SortDirection | None = None) -> str | None:
    """Pack the store's last evaluated key into an opaque url-safe token."""
    if not last_key:
        return None
    if not isinstance(last_key, dict):
        raise ValueError("last_key must be a map")

    payload: dict[str, Any] = {"lastKey": {str(k): _av_to_json(last_key[k]) for k in sorted(last_key)}}
    if index is not None:
        payload["index"] = index
    if sort is not None:
        payload["sort"] = sort

    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii")


def decode_cursor(cursor: str) -> Cursor:
    raw = str(cursor or "").strip()
    if not raw:
        raise ValidationError("invalid cursor: empty")

    try:
        padding = "=" * (-len(raw) % 4)
        parsed = json.loads(base64.urlsafe_b64decode(raw + padding).decode("utf-8"))
        if not isinstance(parsed, dict):
            raise ValueError("cursor must decode to an object")
        last_key_raw = parsed.get("lastKey")
        if not isinstance(last_key_raw, dict) or not last_key_raw:
            raise ValueError("cursor lastKey is invalid")
        last_key = {str(k): _av_from_json(last_key_raw[k]) for k in sorted(last_key_raw)}
    except (ValueError, binascii.Error, UnicodeDecodeError) as err:
        raise ValidationError("invalid cursor") from err

    index = parsed.get("index")
    sort = parsed.get("sort")
    return Cursor(
        last_key=last_key,
        index=index if isinstance(index, str) else None,
        sort=sort if sort in {"ASC", "DESC"} else None,
    )
