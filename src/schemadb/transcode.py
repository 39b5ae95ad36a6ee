from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .fields import DateField, Field, NumberField, SetField

logger = logging.getLogger(__name__)

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _format_datetime(value: datetime) -> str:
    # Naive values are taken to be UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.astimezone(UTC).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def to_wire(value: Any) -> Any:
    """Convert a native value into a plain value the store can encode.

    Sets become lists (iteration order), datetimes become ISO-8601 strings, and
    sequences and mappings are converted element-wise. Scalars pass through.
    """
    if value is None or isinstance(value, (str, bool, int, float, Decimal, bytes, bytearray)):
        return value
    if isinstance(value, (set, frozenset)):
        return [to_wire(v) for v in value]
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): to_wire(v) for k, v in value.items()}
    return value


def from_wire(item: Mapping[str, Any], schema: Mapping[str, Field]) -> dict[str, Any]:
    """Rebuild native values for the top-level fields of ``item``.

    Only top-level ``set`` and ``date`` fields are converted; nested values are
    returned as stored even when the schema declares nested kinds. A date
    string that does not parse is kept as the stored string.
    """
    out: dict[str, Any] = {}
    for name, value in item.items():
        field_def = schema.get(name)
        if isinstance(field_def, SetField) and isinstance(value, (list, tuple)):
            out[name] = set(value)
        elif isinstance(field_def, DateField) and isinstance(value, str):
            out[name] = _parse_datetime(name, value)
        else:
            out[name] = value
    return out


def _parse_datetime(name: str, value: str) -> datetime | str:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("field %s: stored value %r is not an ISO-8601 date; returning it unchanged", name, value)
        return value


def _to_serializable(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, list):
        return [_to_serializable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_serializable(v) for k, v in value.items()}
    return value


def _from_deserialized(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, list):
        return [_from_deserialized(v) for v in value]
    if isinstance(value, dict):
        return {k: _from_deserialized(v) for k, v in value.items()}
    if isinstance(value, set):
        return {_from_deserialized(v) for v in value}
    return value


def marshal_value(value: Any) -> dict[str, Any]:
    return _serializer.serialize(_to_serializable(to_wire(value)))


def marshal_item(record: Mapping[str, Any]) -> dict[str, Any]:
    return {name: marshal_value(value) for name, value in record.items()}


def marshal_values(values: Mapping[str, Any]) -> dict[str, Any]:
    return {ref: marshal_value(value) for ref, value in values.items()}


def unmarshal_value(av: Mapping[str, Any]) -> Any:
    return _from_deserialized(_deserializer.deserialize(dict(av)))


def unmarshal_item(item: Mapping[str, Any]) -> dict[str, Any]:
    return {name: unmarshal_value(av) for name, av in item.items()}


def decode_item(item: Mapping[str, Any], schema: Mapping[str, Field]) -> dict[str, Any]:
    """Unmarshal a stored item and rebuild native values from ``schema``.

    Numbers come back as ``int`` or ``float`` unless the field is declared
    with ``decimal=True``, in which case the exact ``Decimal`` is kept.
    """
    plain: dict[str, Any] = {}
    for name, av in item.items():
        field_def = schema.get(name)
        if isinstance(field_def, NumberField) and field_def.decimal:
            plain[name] = _deserializer.deserialize(dict(av))
        else:
            plain[name] = unmarshal_value(av)
    return from_wire(plain, schema)
