from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError
from .fields import MISSING

_COMPARISONS = {
    "=": "=",
    "eq": "=",
    "<": "<",
    "lt": "<",
    "<=": "<=",
    "lte": "<=",
    ">": ">",
    "gt": ">",
    ">=": ">=",
    "gte": ">=",
}
_FUNCTIONS = {"begins_with", "contains"}


def normalize_operator(operator: str) -> str:
    op = str(operator or "").strip().lower()
    if op in _COMPARISONS:
        return _COMPARISONS[op]
    if op in _FUNCTIONS or op in {"between", "in"}:
        return op
    raise ValidationError(f"unsupported condition operator: {operator}")


@dataclass(frozen=True)
class Predicate:
    field: str
    operator: str
    value: Any = None
    value2: Any = MISSING

    @staticmethod
    def eq(field: str, value: Any) -> Predicate:
        return Predicate(field=field, operator="=", value=value)

    @staticmethod
    def lt(field: str, value: Any) -> Predicate:
        return Predicate(field=field, operator="<", value=value)

    @staticmethod
    def lte(field: str, value: Any) -> Predicate:
        return Predicate(field=field, operator="<=", value=value)

    @staticmethod
    def gt(field: str, value: Any) -> Predicate:
        return Predicate(field=field, operator=">", value=value)

    @staticmethod
    def gte(field: str, value: Any) -> Predicate:
        return Predicate(field=field, operator=">=", value=value)

    @staticmethod
    def begins_with(field: str, prefix: Any) -> Predicate:
        return Predicate(field=field, operator="begins_with", value=prefix)

    @staticmethod
    def contains(field: str, value: Any) -> Predicate:
        return Predicate(field=field, operator="contains", value=value)

    @staticmethod
    def between(field: str, low: Any, high: Any) -> Predicate:
        return Predicate(field=field, operator="between", value=low, value2=high)

    @staticmethod
    def in_(field: str, values: Any) -> Predicate:
        # A lone scalar (including a str) is one candidate, not an iterable of them.
        if isinstance(values, (list, tuple, set, frozenset)):
            values = list(values)
        return Predicate(field=field, operator="in", value=values)

    @staticmethod
    def from_mapping(raw: Mapping[str, Any]) -> Predicate:
        try:
            field_name = raw["field"]
            operator = raw["operator"]
        except KeyError as err:
            raise ValidationError(f"predicate is missing {err.args[0]!r}") from err
        return Predicate(
            field=str(field_name),
            operator=str(operator),
            value=raw.get("value"),
            value2=raw.get("value2", MISSING),
        )


@dataclass(frozen=True)
class SortKeyCondition:
    op: str
    values: tuple[Any, ...]

    @staticmethod
    def eq(value: Any) -> SortKeyCondition:
        return SortKeyCondition(op="=", values=(value,))

    @staticmethod
    def lt(value: Any) -> SortKeyCondition:
        return SortKeyCondition(op="<", values=(value,))

    @staticmethod
    def lte(value: Any) -> SortKeyCondition:
        return SortKeyCondition(op="<=", values=(value,))

    @staticmethod
    def gt(value: Any) -> SortKeyCondition:
        return SortKeyCondition(op=">", values=(value,))

    @staticmethod
    def gte(value: Any) -> SortKeyCondition:
        return SortKeyCondition(op=">=", values=(value,))

    @staticmethod
    def between(low: Any, high: Any) -> SortKeyCondition:
        return SortKeyCondition(op="between", values=(low, high))

    @staticmethod
    def begins_with(prefix: Any) -> SortKeyCondition:
        return SortKeyCondition(op="begins_with", values=(prefix,))


@dataclass(frozen=True)
class CompiledExpression:
    """An expression string plus the name and value placeholders it references.

    Values are native; encoding them to attribute values is left to the caller.
    """

    expression: str
    names: dict[str, str] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)


type PredicateLike = Predicate | Mapping[str, Any]


def _coerce_predicate(raw: PredicateLike) -> Predicate:
    if isinstance(raw, Predicate):
        return raw
    if isinstance(raw, Mapping):
        return Predicate.from_mapping(raw)
    raise ValidationError(f"invalid predicate: {type(raw).__name__}")


def _in_values(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    return [value]


def compile_conditions(predicates: Sequence[PredicateLike]) -> CompiledExpression:
    """Compile predicates into one conjunction with positional placeholders.

    The predicate at position ``i`` always aliases its field as ``#field{i}``
    and its values as ``:value{i}`` (``:value{i}_2`` for the upper bound of
    ``between``, ``:value{i}_{k}`` for each element of ``in``).
    """
    fragments: list[str] = []
    names: dict[str, str] = {}
    values: dict[str, Any] = {}

    for index, raw in enumerate(predicates):
        predicate = _coerce_predicate(raw)
        op = normalize_operator(predicate.operator)
        name_ref = f"#field{index}"
        value_ref = f":value{index}"
        names[name_ref] = predicate.field

        if op in _COMPARISONS.values():
            values[value_ref] = predicate.value
            fragments.append(f"{name_ref} {op} {value_ref}")
        elif op in _FUNCTIONS:
            values[value_ref] = predicate.value
            fragments.append(f"{op}({name_ref}, {value_ref})")
        elif op == "between":
            if predicate.value2 is MISSING:
                raise ValidationError(f"between on {predicate.field} requires value2")
            upper_ref = f":value{index}_2"
            values[value_ref] = predicate.value
            values[upper_ref] = predicate.value2
            fragments.append(f"{name_ref} BETWEEN {value_ref} AND {upper_ref}")
        else:
            in_values = _in_values(predicate.value)
            if not in_values:
                raise ValidationError(f"in on {predicate.field} requires at least one value")
            refs: list[str] = []
            for k, v in enumerate(in_values):
                ref = f":value{index}_{k}"
                values[ref] = v
                refs.append(ref)
            fragments.append(f"{name_ref} IN (" + ", ".join(refs) + ")")

    return CompiledExpression(expression=" AND ".join(fragments), names=names, values=values)


def compile_assignments(updates: Mapping[str, Any]) -> CompiledExpression:
    if not updates:
        raise ValidationError("no updates provided")

    parts: list[str] = []
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    for index, (field_name, value) in enumerate(updates.items()):
        name_ref = f"#field{index}"
        value_ref = f":value{index}"
        names[name_ref] = field_name
        values[value_ref] = value
        parts.append(f"{name_ref} = {value_ref}")

    return CompiledExpression(expression="SET " + ", ".join(parts), names=names, values=values)


def compile_projection(select: Sequence[str]) -> CompiledExpression:
    names: dict[str, str] = {}
    refs: list[str] = []
    for index, field_name in enumerate(select):
        ref = f"#select{index}"
        names[ref] = field_name
        refs.append(ref)
    return CompiledExpression(expression=", ".join(refs), names=names)


def compile_key_condition(
    partition_name: str,
    partition_value: Any,
    *,
    sort_name: str | None = None,
    sort: SortKeyCondition | None = None,
) -> CompiledExpression:
    names: dict[str, str] = {"#pk": partition_name}
    values: dict[str, Any] = {":pkValue": partition_value}
    expression = "#pk = :pkValue"
    if sort is None:
        return CompiledExpression(expression=expression, names=names, values=values)

    if sort_name is None:
        raise ValidationError("table/index does not define a sort key")
    names["#sk"] = sort_name

    op = sort.op
    if op in {"=", "<", "<=", ">", ">="}:
        if len(sort.values) != 1:
            raise ValidationError("invalid sort key condition")
        values[":skValue"] = sort.values[0]
        expression += f" AND #sk {op} :skValue"
    elif op == "between":
        if len(sort.values) != 2:
            raise ValidationError("invalid sort key condition")
        values[":skValue1"] = sort.values[0]
        values[":skValue2"] = sort.values[1]
        expression += " AND #sk BETWEEN :skValue1 AND :skValue2"
    elif op == "begins_with":
        if len(sort.values) != 1:
            raise ValidationError("invalid sort key condition")
        values[":skValue"] = sort.values[0]
        expression += " AND begins_with(#sk, :skValue)"
    else:
        raise ValidationError(f"unsupported sort key operator: {op}")

    return CompiledExpression(expression=expression, names=names, values=values)
