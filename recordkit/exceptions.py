"""
Error taxonomy for recordkit.

Lifecycle operations raise these internally and convert them into
`OperationError` results at their own boundary. `RelationshipConfigurationError`
and `UnsupportedValidatorShape` describe programmer errors and propagate.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class RecordKitError(Exception):
    """Base class for every error raised by recordkit."""


class SchemaDeclarationError(RecordKitError, ValueError):
    """A schema declaration breaks one of the schema invariants."""


class EmptyInput(RecordKitError):
    def __init__(self, message: str = "Empty arguments") -> None:
        super().__init__(message)


class PermissionDenied(RecordKitError):
    def __init__(self, right: str) -> None:
        self.right = right
        super().__init__(f"Permission denied. Can not {right} record.")


class NotLoaded(RecordKitError):
    """The record has no primary key value to operate on."""


class ValidationFailed(RecordKitError):
    def __init__(self, outcomes: Mapping[str, Any]) -> None:
        self.outcomes: Dict[str, Any] = dict(outcomes)
        super().__init__("Validation failed.")

    @property
    def failed_fields(self) -> list[str]:
        return [name for name, outcome in self.outcomes.items() if not outcome.valid]


class TypeConstraintViolation(RecordKitError, TypeError):
    def __init__(self, column: str, value: Any, expected: str) -> None:
        self.column = column
        self.value = value
        self.expected = expected
        super().__init__(
            f"Column {column} expects a value of type {expected}, got {type(value).__name__}: {value!r}"
        )


class UnsupportedValidatorShape(RecordKitError, TypeError):
    """A column validator is neither a callable, a validator class nor a validator object."""


class StorageExecutionFault(RecordKitError):
    """
    Wraps a driver error raised while preparing or executing a statement.

    The original driver exception is available as `__cause__`.
    """

    def __init__(
        self,
        message: str,
        source_id: str,
        sql: Optional[str] = None,
        params: Any = None,
    ) -> None:
        self.source_id = source_id
        self.sql = sql
        self.params = params
        super().__init__(f'SQL query error at "{source_id}" data source, message: {message}')


class RelationshipConfigurationError(RecordKitError):
    """Relation metadata is missing or malformed."""


class JunctionRecordError(RecordKitError):
    """The junction row of a many-to-many creation could not be written."""


class DataSourceNotFound(RecordKitError, LookupError):
    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        super().__init__(f"data source {source_id} not found.")


__all__ = [
    "RecordKitError",
    "SchemaDeclarationError",
    "EmptyInput",
    "PermissionDenied",
    "NotLoaded",
    "ValidationFailed",
    "TypeConstraintViolation",
    "UnsupportedValidatorShape",
    "StorageExecutionFault",
    "RelationshipConfigurationError",
    "JunctionRecordError",
    "DataSourceNotFound",
]
