"""
Dialect descriptor and statement compiler.

Statements are built with SQLAlchemy Core and compiled per data source into an
SQL string plus named parameters the DB-API driver understands (``:name`` for
sqlite3, ``%(name)s`` for psycopg).
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.dialects import sqlite
from sqlalchemy.dialects.postgresql import psycopg as pg_psycopg
from sqlalchemy.engine import Dialect
from sqlalchemy.sql import ClauseElement

DRIVER_ALIASES = {
    "pgsql": "postgresql",
    "postgres": "postgresql",
    "sqlite3": "sqlite",
}


def normalize_driver_type(driver_type: str) -> str:
    driver_type = driver_type.lower()
    return DRIVER_ALIASES.get(driver_type, driver_type)


def _make_dialect(driver_type: str) -> Dialect:
    if driver_type == "sqlite":
        return sqlite.dialect(paramstyle="named")
    if driver_type == "postgresql":
        return pg_psycopg.dialect()
    raise ValueError(f"Unsupported driver type '{driver_type}'. Available: sqlite, postgresql")


class QueryDriver:
    """
    Per-data-source SQL dialect.

    Attributes
    ----------
    type : str
        Dialect tag ("sqlite" or "postgresql").
    options : dict
        Free-form query options from the data source config.
    """

    def __init__(
        self,
        driver_type: str,
        quoter: Optional[Callable[[Any], str]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.type = normalize_driver_type(driver_type)
        self.dialect = _make_dialect(self.type)
        self.quoter = quoter
        self.options: Dict[str, Any] = dict(options or {})

    @property
    def supports_returning(self) -> bool:
        """Whether INSERT ... RETURNING is used to obtain generated keys."""
        return self.type == "postgresql"

    def quote_identifier(self, name: str) -> str:
        return self.dialect.identifier_preparer.quote_identifier(name)

    def quote_table_name(self, name: str) -> str:
        return ".".join(self.quote_identifier(part) for part in name.split("."))

    def quote_literal(self, value: Any) -> str:
        if self.quoter is not None:
            return self.quoter(value)
        return str(
            sa.literal(value).compile(dialect=self.dialect, compile_kwargs={"literal_binds": True})
        )

    def compile(self, statement: ClauseElement) -> Tuple[str, Dict[str, Any]]:
        compiled = statement.compile(
            dialect=self.dialect, compile_kwargs={"render_postcompile": True}
        )
        return str(compiled), dict(compiled.params)


__all__ = ["QueryDriver", "normalize_driver_type"]
