"""
Dialect-specific DDL builders.

    builder = get_builder(manager.get_query_driver("default"), registry)
    for sql in builder.build(books_schema, rebuild=True):
        manager.prepare_and_execute("default", sql)
"""

from typing import Dict, Optional, Type

from recordkit.infrastructure.query_driver import QueryDriver
from recordkit.schema.registry import SchemaRegistry
from recordkit.schema.sqlbuilder.base import BaseDriver
from recordkit.schema.sqlbuilder.pgsql import PgsqlDriver
from recordkit.schema.sqlbuilder.sqlite import SqliteDriver

_BUILDERS: Dict[str, Type[BaseDriver]] = {
    "sqlite": SqliteDriver,
    "postgresql": PgsqlDriver,
}


def available_builders() -> list[str]:
    return sorted(_BUILDERS)


def get_builder(driver: QueryDriver, registry: Optional[SchemaRegistry] = None) -> BaseDriver:
    if driver.type not in _BUILDERS:
        raise ValueError(
            f"No schema SQL builder for '{driver.type}'. Available: {', '.join(available_builders())}"
        )
    return _BUILDERS[driver.type](driver, registry)


__all__ = [
    "BaseDriver",
    "PgsqlDriver",
    "SqliteDriver",
    "available_builders",
    "get_builder",
]
