from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

type FieldKind = Literal["string", "number", "boolean", "date", "array", "object", "set"]
type SetItemKind = Literal["string", "number"]
type Validator = Callable[[Any], bool | str]


class _Missing:
    def __repr__(self) -> str:  # pragma: no cover
        return "MISSING"


class _Now:
    def __repr__(self) -> str:  # pragma: no cover
        return "NOW"


MISSING: Any = _Missing()

# Default marker resolved through the table clock each time a default is applied.
NOW: Any = _Now()


@dataclass(frozen=True, kw_only=True)
class _BaseField:
    required: bool = False
    default: Any = MISSING
    validate: Validator | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


@dataclass(frozen=True, kw_only=True)
class StringField(_BaseField):
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    kind: Literal["string"] = field(default="string", init=False)


@dataclass(frozen=True, kw_only=True)
class NumberField(_BaseField):
    min: float | None = None
    max: float | None = None
    integer: bool = False
    # Read back as Decimal instead of int/float.
    decimal: bool = False
    kind: Literal["number"] = field(default="number", init=False)


@dataclass(frozen=True, kw_only=True)
class BooleanField(_BaseField):
    kind: Literal["boolean"] = field(default="boolean", init=False)


@dataclass(frozen=True, kw_only=True)
class DateField(_BaseField):
    kind: Literal["date"] = field(default="date", init=False)


@dataclass(frozen=True, kw_only=True)
class ArrayField(_BaseField):
    items: Field | None = None
    kind: Literal["array"] = field(default="array", init=False)


@dataclass(frozen=True, kw_only=True)
class ObjectField(_BaseField):
    properties: Mapping[str, Field] | None = None
    kind: Literal["object"] = field(default="object", init=False)


@dataclass(frozen=True, kw_only=True)
class SetField(_BaseField):
    item_type: SetItemKind = "string"
    kind: Literal["set"] = field(default="set", init=False)


type Field = StringField | NumberField | BooleanField | DateField | ArrayField | ObjectField | SetField

FIELD_TYPES: tuple[type, ...] = (
    StringField,
    NumberField,
    BooleanField,
    DateField,
    ArrayField,
    ObjectField,
    SetField,
)


def _compile_pattern(pattern: str | re.Pattern[str] | None) -> re.Pattern[str] | None:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


def string_field(
    *,
    required: bool = False,
    default: Any = MISSING,
    validate: Validator | None = None,
    min_length: int | None = None,
    max_length: int | None = None,
    pattern: str | re.Pattern[str] | None = None,
) -> StringField:
    return StringField(
        required=required,
        default=default,
        validate=validate,
        min_length=min_length,
        max_length=max_length,
        pattern=_compile_pattern(pattern),
    )


def number_field(
    *,
    required: bool = False,
    default: Any = MISSING,
    validate: Validator | None = None,
    min: float | None = None,
    max: float | None = None,
    integer: bool = False,
    decimal: bool = False,
) -> NumberField:
    return NumberField(
        required=required,
        default=default,
        validate=validate,
        min=min,
        max=max,
        integer=integer,
        decimal=decimal,
    )


def boolean_field(
    *, required: bool = False, default: Any = MISSING, validate: Validator | None = None
) -> BooleanField:
    return BooleanField(required=required, default=default, validate=validate)


def date_field(
    *, required: bool = False, default: Any = MISSING, validate: Validator | None = None
) -> DateField:
    return DateField(required=required, default=default, validate=validate)


def array_field(
    *,
    required: bool = False,
    default: Any = MISSING,
    validate: Validator | None = None,
    items: Field | None = None,
) -> ArrayField:
    return ArrayField(required=required, default=default, validate=validate, items=items)


def object_field(
    *,
    required: bool = False,
    default: Any = MISSING,
    validate: Validator | None = None,
    properties: Mapping[str, Field] | None = None,
) -> ObjectField:
    return ObjectField(
        required=required,
        default=default,
        validate=validate,
        properties=dict(properties) if properties is not None else None,
    )


def set_field(
    *,
    item_type: SetItemKind,
    required: bool = False,
    default: Any = MISSING,
    validate: Validator | None = None,
) -> SetField:
    return SetField(required=required, default=default, validate=validate, item_type=item_type)


def string_set_field(
    *, required: bool = False, default: Any = MISSING, validate: Validator | None = None
) -> SetField:
    return set_field(item_type="string", required=required, default=default, validate=validate)


def number_set_field(
    *, required: bool = False, default: Any = MISSING, validate: Validator | None = None
) -> SetField:
    return set_field(item_type="number", required=required, default=default, validate=validate)
