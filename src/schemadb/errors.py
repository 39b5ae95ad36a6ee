from __future__ import annotations


class SchemadbError(Exception):
    pass


class ValidationError(SchemadbError):
    def __init__(self, message: str, *, field: str | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.reason = reason if reason is not None else message


class InvalidBatchOperationError(ValidationError):
    def __init__(self, *, index: int, operation: object) -> None:
        super().__init__(f"invalid batch operation at position {index}: {operation!r}")
        self.index = index
        self.operation = operation


class EmptyResponseError(SchemadbError):
    def __init__(self, *, operation: str, missing: str) -> None:
        super().__init__(f"{operation}: response did not include {missing}")
        self.operation = operation
        self.missing = missing
