from __future__ import annotations

import re

import pytest

from schemadb import (
    NOW,
    ModelDefinitionError,
    Schema,
    SetField,
    StringField,
    TableConfig,
    array_field,
    date_field,
    gsi,
    lsi,
    number_field,
    number_set_field,
    object_field,
    string_field,
    string_set_field,
)


def test_field_builders_set_kind_and_constraints() -> None:
    name = string_field(required=True, min_length=2, max_length=10, pattern=r"^[A-Z]")
    assert isinstance(name, StringField)
    assert name.kind == "string"
    assert name.required is True
    assert isinstance(name.pattern, re.Pattern)
    assert name.has_default is False

    age = number_field(min=0, max=150, integer=True, default=0)
    assert age.kind == "number"
    assert age.has_default is True
    assert age.default == 0

    tags = string_set_field()
    assert isinstance(tags, SetField)
    assert tags.item_type == "string"
    assert number_set_field().item_type == "number"

    scores = array_field(items=number_field())
    assert scores.items is not None and scores.items.kind == "number"

    meta = object_field(properties={"x": string_field()})
    assert meta.properties is not None and meta.properties["x"].kind == "string"

    created = date_field(default=NOW)
    assert created.default is NOW


def test_default_generators_are_not_called_at_declaration() -> None:
    calls: list[int] = []

    def gen() -> str:
        calls.append(1)
        return "x"

    Schema(id=string_field(default=gen))
    assert calls == []


def test_schema_is_a_read_only_mapping() -> None:
    schema = Schema({"id": string_field(required=True)}, name=string_field())
    assert list(schema) == ["id", "name"]
    assert len(schema) == 2
    assert schema["id"].required is True
    with pytest.raises(TypeError):
        schema["age"] = number_field()  # type: ignore[index]


def test_schema_rejects_non_field_values_and_duplicates() -> None:
    with pytest.raises(ModelDefinitionError, match="expected a field definition"):
        Schema({"id": {"type": "string"}})  # type: ignore[dict-item]
    with pytest.raises(ModelDefinitionError, match="duplicate field"):
        Schema({"id": string_field()}, id=string_field())


def test_table_config_resolves_indexes() -> None:
    config = TableConfig.create(
        "users",
        partition_key="id",
        sort_key="createdAt",
        indexes=[gsi("email-index", partition="email"), lsi("by-name", sort="name")],
    )
    assert config.index("email-index") is not None
    assert config.index("email-index").partition == "email"  # type: ignore[union-attr]
    by_name = config.index("by-name")
    assert by_name is not None
    assert by_name.type == "LSI"
    assert by_name.partition == "id"
    assert by_name.sort == "name"
    assert config.index("missing") is None


def test_table_config_rejects_invalid_definitions() -> None:
    with pytest.raises(ModelDefinitionError, match="table_name is required"):
        TableConfig.create("", partition_key="id")
    with pytest.raises(ModelDefinitionError, match="duplicate index name"):
        TableConfig.create(
            "t",
            partition_key="id",
            indexes=[gsi("a", partition="x"), gsi("a", partition="y")],
        )
    with pytest.raises(ModelDefinitionError, match="sort_key must differ"):
        TableConfig.create("t", partition_key="id", sort_key="id")
