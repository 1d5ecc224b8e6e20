"""
recordkit - a small object-relational mapping layer.

Provides:

- Declarative schemas (columns, relations, per-data-source routing)
- A column pipeline (defaults, typing, canonicalization, validation, deflation)
- Dialect DDL builders for SQLite and PostgreSQL
- A record lifecycle engine with create/load/update/delete and result objects
- Lazy relationship resolution (has-one, has-many, belongs-to, many-to-many)
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from recordkit.config import Settings, get_settings
from recordkit.domain.results import (
    OperationError,
    OperationResult,
    OperationSuccess,
    ValidationOutcome,
)
from recordkit.exceptions import RecordKitError
from recordkit.infrastructure.connection_manager import ConnectionManager
from recordkit.model.collection import Collection
from recordkit.model.record import Record
from recordkit.schema import (
    Column,
    Schema,
    SchemaRegistry,
    belongs_to,
    get_builder,
    has_many,
    has_one,
    many_to_many,
)
from recordkit.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Schema declaration
    "Column",
    "Schema",
    "SchemaRegistry",
    "belongs_to",
    "has_many",
    "has_one",
    "many_to_many",
    "get_builder",
    # Records
    "Record",
    "Collection",
    "ConnectionManager",
    # Results and errors
    "OperationResult",
    "OperationSuccess",
    "OperationError",
    "ValidationOutcome",
    "RecordKitError",
    # Logging
    "configure_logging",
    "get_logger",
]
