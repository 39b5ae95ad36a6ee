from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

from .fields import FIELD_TYPES, Field

type IndexType = Literal["GSI", "LSI"]

_TABLE_PK = "__TABLE_PK__"


class ModelDefinitionError(ValueError):
    pass


class Schema(Mapping[str, Field]):
    """Read-only mapping of attribute name to field definition."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Field] | None = None, /, **kwargs: Field) -> None:
        merged: dict[str, Field] = dict(fields or {})
        for name, value in kwargs.items():
            if name in merged:
                raise ModelDefinitionError(f"duplicate field: {name}")
            merged[name] = value

        for name, value in merged.items():
            if not isinstance(name, str) or not name:
                raise ModelDefinitionError("field names must be non-empty strings")
            if not isinstance(value, FIELD_TYPES):
                raise ModelDefinitionError(f"field {name}: expected a field definition, got {type(value).__name__}")

        self._fields: Mapping[str, Field] = MappingProxyType(merged)

    def __getitem__(self, name: str) -> Field:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Schema({dict(self._fields)!r})"


@dataclass(frozen=True)
class IndexSpec:
    name: str
    type: str
    partition: str
    sort: str | None = None


@dataclass(frozen=True)
class IndexDefinition:
    name: str
    type: IndexType
    partition: str
    sort: str | None = None


def gsi(name: str, *, partition: str, sort: str | None = None) -> IndexSpec:
    return IndexSpec(name=name, type="GSI", partition=partition, sort=sort)


def lsi(name: str, *, sort: str) -> IndexSpec:
    return IndexSpec(name=name, type="LSI", partition=_TABLE_PK, sort=sort)


@dataclass(frozen=True)
class TableConfig:
    table_name: str
    partition_key: str
    sort_key: str | None = None
    indexes: tuple[IndexDefinition, ...] = ()

    @classmethod
    def create(
        cls,
        table_name: str,
        *,
        partition_key: str,
        sort_key: str | None = None,
        indexes: Sequence[IndexSpec] = (),
    ) -> TableConfig:
        if not table_name:
            raise ModelDefinitionError("table_name is required")
        if not partition_key:
            raise ModelDefinitionError("partition_key is required")
        if sort_key is not None and sort_key == partition_key:
            raise ModelDefinitionError("sort_key must differ from partition_key")

        resolved: list[IndexDefinition] = []
        seen: set[str] = set()
        for spec in indexes:
            if spec.name in seen:
                raise ModelDefinitionError(f"duplicate index name: {spec.name}")
            seen.add(spec.name)

            if spec.type not in {"GSI", "LSI"}:
                raise ModelDefinitionError(f"unsupported index type: {spec.type}")

            partition = partition_key if spec.type == "LSI" and spec.partition == _TABLE_PK else spec.partition
            if spec.type == "LSI":
                if partition != partition_key:
                    raise ModelDefinitionError(
                        f"index {spec.name}: LSI partition must be the table pk ({partition_key})"
                    )
                if spec.sort is None:
                    raise ModelDefinitionError(f"index {spec.name}: LSI requires a sort key")

            resolved.append(
                IndexDefinition(
                    name=spec.name,
                    type="GSI" if spec.type == "GSI" else "LSI",
                    partition=partition,
                    sort=spec.sort,
                )
            )

        return cls(
            table_name=table_name,
            partition_key=partition_key,
            sort_key=sort_key,
            indexes=tuple(resolved),
        )

    def index(self, name: str) -> IndexDefinition | None:
        for idx in self.indexes:
            if idx.name == name:
                return idx
        return None
