from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from .errors import ValidationError
from .fields import (
    ArrayField,
    BooleanField,
    DateField,
    Field,
    NumberField,
    ObjectField,
    SetField,
    StringField,
)


def _fail(field_name: str, reason: str) -> ValidationError:
    return ValidationError(f"Field '{field_name}' {reason}", field=field_name, reason=reason)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_nan(value: int | float | Decimal) -> bool:
    if isinstance(value, Decimal):
        return value.is_nan()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _is_integral(value: int | float | Decimal) -> bool:
    if isinstance(value, int):
        return True
    if isinstance(value, Decimal):
        return value.is_finite() and value == value.to_integral_value()
    return value.is_integer()


def _check_string(value: Any, field_def: StringField, field_name: str) -> None:
    if not isinstance(value, str):
        raise _fail(field_name, "must be a string")
    if field_def.min_length is not None and len(value) < field_def.min_length:
        raise _fail(field_name, f"must be at least {field_def.min_length} characters")
    if field_def.max_length is not None and len(value) > field_def.max_length:
        raise _fail(field_name, f"must be at most {field_def.max_length} characters")
    if field_def.pattern is not None and field_def.pattern.search(value) is None:
        raise _fail(field_name, "does not match required pattern")


def _check_number(value: Any, field_def: NumberField, field_name: str) -> None:
    if not _is_number(value) or _is_nan(value):
        raise _fail(field_name, "must be a valid number")
    if field_def.integer and not _is_integral(value):
        raise _fail(field_name, "must be an integer")
    if field_def.min is not None and value < field_def.min:
        raise _fail(field_name, f"must be at least {field_def.min}")
    if field_def.max is not None and value > field_def.max:
        raise _fail(field_name, f"must be at most {field_def.max}")


def validate_field(value: Any, field_def: Field, field_name: str) -> None:
    if value is None:
        if field_def.required:
            raise _fail(field_name, "is required")
        return

    if isinstance(field_def, StringField):
        _check_string(value, field_def, field_name)
    elif isinstance(field_def, NumberField):
        _check_number(value, field_def, field_name)
    elif isinstance(field_def, BooleanField):
        if not isinstance(value, bool):
            raise _fail(field_name, "must be a boolean")
    elif isinstance(field_def, DateField):
        if not isinstance(value, datetime):
            raise _fail(field_name, "must be a valid Date")
    elif isinstance(field_def, ArrayField):
        if not isinstance(value, (list, tuple)):
            raise _fail(field_name, "must be an array")
    elif isinstance(field_def, ObjectField):
        if not isinstance(value, Mapping):
            raise _fail(field_name, "must be an object")
    elif isinstance(field_def, SetField):
        if not isinstance(value, (set, frozenset)):
            raise _fail(field_name, "must be a Set")
    else:
        raise TypeError(f"unsupported field definition: {type(field_def).__name__}")

    if field_def.validate is not None:
        result = field_def.validate(value)
        if result is not True:
            if isinstance(result, str):
                raise ValidationError(result, field=field_name, reason=result)
            raise _fail(field_name, "failed validation")


def validate_record(record: Mapping[str, Any], schema: Mapping[str, Field]) -> None:
    """Check ``record`` against every field of ``schema`` in declaration order.

    The first violation is raised as a :class:`ValidationError`; nested array,
    object and set contents are only checked for their container type.
    """
    for field_name, field_def in schema.items():
        validate_field(record.get(field_name), field_def, field_name)


def validate_partial(updates: Mapping[str, Any], schema: Mapping[str, Field]) -> None:
    for field_name, value in updates.items():
        field_def = schema.get(field_name)
        if field_def is None:
            continue
        validate_field(value, field_def, field_name)
