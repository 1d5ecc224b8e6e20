"""
SQLite schema SQL builder.

See https://www.sqlite.org/lang_createtable.html
"""

from __future__ import annotations

from typing import ClassVar, Dict

from recordkit.schema.column import Column
from recordkit.schema.schema import Schema
from recordkit.schema.sqlbuilder.base import BaseDriver


class SqliteDriver(BaseDriver):
    type_map: ClassVar[Dict[str, str]] = {
        "str": "text",
        "int": "integer",
        "float": "real",
        "bool": "boolean",
        "decimal": "numeric",
        "datetime": "timestamp",
        "date": "date",
        "json": "text",
    }

    def build_column_sql(self, schema: Schema, column: Column) -> str:
        sql = self.driver.quote_identifier(column.name)
        sql += " " + self.resolve_type(column)
        sql += self.build_null_sql(column)
        sql += self.build_default_sql(column)

        if column.primary:
            sql += " PRIMARY KEY"
        if column.auto_increment:
            sql += " AUTOINCREMENT"
        if column.unique:
            sql += " UNIQUE"

        sql += self.build_reference_sql(schema, column)
        return sql


__all__ = ["SqliteDriver"]
