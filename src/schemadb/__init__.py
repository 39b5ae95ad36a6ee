from __future__ import annotations

import json
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .batch import BatchDelete, BatchGetResult, BatchPut, BatchWriteResult, parse_batch_operation
from .defaults import apply_defaults
from .errors import EmptyResponseError, InvalidBatchOperationError, SchemadbError, ValidationError
from .expressions import (
    CompiledExpression,
    Predicate,
    SortKeyCondition,
    compile_assignments,
    compile_conditions,
    compile_projection,
)
from .fields import (
    NOW,
    ArrayField,
    BooleanField,
    DateField,
    Field,
    NumberField,
    ObjectField,
    SetField,
    StringField,
    array_field,
    boolean_field,
    date_field,
    number_field,
    number_set_field,
    object_field,
    set_field,
    string_field,
    string_set_field,
)
from .model import IndexDefinition, IndexSpec, ModelDefinitionError, Schema, TableConfig, gsi, lsi
from .query import Page
from .transport import Request, Transport
from .validation import validate_field, validate_partial, validate_record

if TYPE_CHECKING:
    from .runtime import CallMetric, create_boto3_config, create_transport, instrument_transport, is_lambda_environment
    from .table import Table
    from .transcode import from_wire, marshal_item, marshal_value, to_wire, unmarshal_item
    from .transport import Boto3Transport


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name == "Table":
        from .table import Table

        return Table
    if name == "Boto3Transport":
        from .transport import Boto3Transport

        return Boto3Transport
    if name in {"from_wire", "marshal_item", "marshal_value", "to_wire", "unmarshal_item"}:
        from . import transcode

        return getattr(transcode, name)
    if name in {
        "CallMetric",
        "create_boto3_config",
        "create_transport",
        "instrument_transport",
        "is_lambda_environment",
    }:
        from . import runtime

        return getattr(runtime, name)
    raise AttributeError(name)


__all__ = [
    "apply_defaults",
    "array_field",
    "ArrayField",
    "BatchDelete",
    "BatchGetResult",
    "BatchPut",
    "BatchWriteResult",
    "boolean_field",
    "BooleanField",
    "Boto3Transport",
    "CallMetric",
    "compile_assignments",
    "compile_conditions",
    "compile_projection",
    "CompiledExpression",
    "create_boto3_config",
    "create_transport",
    "date_field",
    "DateField",
    "EmptyResponseError",
    "Field",
    "from_wire",
    "gsi",
    "IndexDefinition",
    "IndexSpec",
    "instrument_transport",
    "InvalidBatchOperationError",
    "is_lambda_environment",
    "lsi",
    "marshal_item",
    "marshal_value",
    "ModelDefinitionError",
    "NOW",
    "number_field",
    "number_set_field",
    "NumberField",
    "object_field",
    "ObjectField",
    "Page",
    "parse_batch_operation",
    "Predicate",
    "Request",
    "Schema",
    "SchemadbError",
    "set_field",
    "SetField",
    "SortKeyCondition",
    "string_field",
    "string_set_field",
    "StringField",
    "Table",
    "TableConfig",
    "to_wire",
    "Transport",
    "unmarshal_item",
    "validate_field",
    "validate_partial",
    "validate_record",
    "ValidationError",
    "__repo_version__",
    "__version__",
]
