"""Structured error types for autotable."""

from __future__ import annotations

from typing import Any


class AutotableError(Exception):
    """Base error for all autotable errors."""


class ConfigurationError(AutotableError):
    """Raised when a record type declares malformed persistence metadata."""


class NotFoundError(AutotableError):
    """Raised when no stored row matches the requested identity or predicate."""

    def __init__(
        self,
        type_name: str,
        identity: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.type_name = type_name
        self.identity = identity
        if detail is None:
            if identity is None:
                detail = f"No record for model {type_name}"
            else:
                detail = f"No entry in database with id {identity} for model {type_name}"
        super().__init__(detail)


class StoreError(AutotableError):
    """Raised when a store operation fails and cannot be repaired."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store error during {operation}: {detail}")


class SchemaRepairableError(StoreError):
    """Raised when a statement fails because the schema lags behind the record type."""

    def __init__(self, operation: str, detail: str, *, table: str | None = None) -> None:
        self.table = table
        super().__init__(operation, detail)


class MissingTableError(SchemaRepairableError):
    """The statement referenced a table that does not exist."""


class MissingColumnError(SchemaRepairableError):
    """The statement referenced a column the table does not have."""


class CodecError(AutotableError):
    """Raised when a field value cannot be converted to or from its storage form."""

    def __init__(self, field: str, declared_type: Any, detail: str) -> None:
        self.field = field
        self.declared_type = declared_type
        type_name = getattr(declared_type, "__name__", None) or str(declared_type)
        super().__init__(f"Field '{field}' of type {type_name}: {detail}")


class StateError(AutotableError):
    """Raised when a lifecycle operation is invalid for the record's current state."""


class JsonError(AutotableError):
    """Raised when a JSON document cannot be parsed into records."""
