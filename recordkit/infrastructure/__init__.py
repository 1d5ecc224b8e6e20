"""
Infrastructure package for recordkit.

Centralizes database connectivity: the connection/statement contracts, the
DB-API adapter, per-dialect statement compilation and the explicit connection
manager. Keep this layer focused on I/O and resource management, decoupled
from the record lifecycle.
"""

from recordkit.infrastructure.connection import (
    Connection,
    DbApiConnection,
    DbApiStatement,
    Statement,
    as_connection,
)
from recordkit.infrastructure.connection_manager import ConnectionManager, DataSourceConfig
from recordkit.infrastructure.query_driver import QueryDriver, normalize_driver_type

__all__ = [
    "Connection",
    "ConnectionManager",
    "DataSourceConfig",
    "DbApiConnection",
    "DbApiStatement",
    "QueryDriver",
    "Statement",
    "as_connection",
    "normalize_driver_type",
]
