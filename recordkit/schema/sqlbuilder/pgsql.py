"""
PostgreSQL schema SQL builder.

Auto-increment columns become ``serial``/``bigserial``; PostgreSQL has no
AUTOINCREMENT keyword.
"""

from __future__ import annotations

from typing import ClassVar, Dict

from recordkit.schema.column import Column
from recordkit.schema.schema import Schema
from recordkit.schema.sqlbuilder.base import BaseDriver

_SERIAL_TYPES = {"bigint": "bigserial", "smallint": "smallserial"}


class PgsqlDriver(BaseDriver):
    type_map: ClassVar[Dict[str, str]] = {
        "str": "text",
        "int": "integer",
        "float": "double precision",
        "bool": "boolean",
        "decimal": "numeric",
        "datetime": "timestamp",
        "date": "date",
        "json": "jsonb",
    }

    def resolve_type(self, column: Column) -> str:
        sql_type = super().resolve_type(column)
        if column.auto_increment:
            return _SERIAL_TYPES.get(sql_type.lower(), "serial")
        return sql_type

    def build_column_sql(self, schema: Schema, column: Column) -> str:
        sql = self.driver.quote_identifier(column.name)
        sql += " " + self.resolve_type(column)
        sql += self.build_null_sql(column)
        if not column.auto_increment:
            sql += self.build_default_sql(column)

        if column.primary:
            sql += " PRIMARY KEY"
        if column.unique:
            sql += " UNIQUE"

        sql += self.build_reference_sql(schema, column)
        return sql


__all__ = ["PgsqlDriver"]
