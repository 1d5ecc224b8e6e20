"""
Schema package for recordkit.

Declarative table metadata (columns, relations, schemas), the explicit schema
registry, column validator adapters and the dialect DDL builders.
"""

from recordkit.schema.column import ISA_TYPES, Column, flatten_valid_values, is_empty
from recordkit.schema.registry import SchemaRegistry
from recordkit.schema.relations import (
    BelongsTo,
    HasMany,
    HasOne,
    ManyToMany,
    Relation,
    belongs_to,
    has_many,
    has_one,
    many_to_many,
)
from recordkit.schema.schema import DEFAULT_SOURCE_ID, Schema
from recordkit.schema.sqlbuilder import BaseDriver, PgsqlDriver, SqliteDriver, get_builder
from recordkit.schema.validators import (
    ColumnValidator,
    ValidationContext,
    adapt_validator,
    validate_column,
)

__all__ = [
    "DEFAULT_SOURCE_ID",
    "ISA_TYPES",
    "BaseDriver",
    "BelongsTo",
    "Column",
    "ColumnValidator",
    "HasMany",
    "HasOne",
    "ManyToMany",
    "PgsqlDriver",
    "Relation",
    "Schema",
    "SchemaRegistry",
    "SqliteDriver",
    "ValidationContext",
    "adapt_validator",
    "belongs_to",
    "flatten_valid_values",
    "get_builder",
    "has_many",
    "has_one",
    "is_empty",
    "many_to_many",
    "validate_column",
]
