"""
Schema SQL builder interface.

A driver turns a `Schema` into the statements that (re)create its table.
Drivers share the column-fragment contract and differ in type names,
quoting and constraint syntax.
"""

from __future__ import annotations

import abc
from typing import ClassVar, Dict, List, Optional

from recordkit.exceptions import RelationshipConfigurationError, SchemaDeclarationError
from recordkit.infrastructure.query_driver import QueryDriver
from recordkit.schema.column import Column
from recordkit.schema.registry import SchemaRegistry
from recordkit.schema.relations import BelongsTo, HasOne
from recordkit.schema.schema import Schema


class BaseDriver(abc.ABC):
    """
    Subclasses set `type_map` (logical `isa` -> SQL type) and implement
    `build_column_sql`.
    """

    type_map: ClassVar[Dict[str, str]] = {}

    def __init__(self, driver: QueryDriver, registry: Optional[SchemaRegistry] = None) -> None:
        self.driver = driver
        self.registry = registry

    def build(self, schema: Schema, rebuild: bool = True) -> List[str]:
        sqls: List[str] = []
        table = self.driver.quote_table_name(schema.get_table())
        if rebuild:
            sqls.append(f"DROP TABLE IF EXISTS {table}")

        column_sql = [self.build_column_sql(schema, column) for column in schema.get_columns().values()]
        sqls.append(f"CREATE TABLE {table} ( \n" + ",\n".join(column_sql) + "\n);\n")
        return sqls

    @abc.abstractmethod
    def build_column_sql(self, schema: Schema, column: Column) -> str:  # pragma: no cover - interface only
        """Render one column definition."""
        raise NotImplementedError

    def resolve_type(self, column: Column) -> str:
        if column.type:
            return column.type
        sql_type = self.type_map.get(column.isa or "str")
        if sql_type is None:
            raise SchemaDeclarationError(
                f"column {column.name} has no SQL type and isa '{column.isa}' has no {self.driver.type} mapping"
            )
        return sql_type

    def build_null_sql(self, column: Column) -> str:
        if column.required or column.not_null:
            return " NOT NULL"
        if column.null:
            return " NULL"
        return ""

    def build_default_sql(self, column: Column) -> str:
        default = column.default
        # Default builders run at insert time and never reach the DDL.
        if default is None or callable(default):
            return ""
        if column.is_raw_value(default):
            return f" DEFAULT {default[0]}"
        return f" DEFAULT {self.driver.quote_literal(column.deflate(default))}"

    def build_reference_sql(self, schema: Schema, column: Column) -> str:
        """
        Foreign-key hint for the column.

        Only has-one relations emit ``REFERENCES <table>``. Belongs-to
        relations are checked against the foreign schema but add no clause.
        """
        sql = ""
        for relation_id, relation in schema.relations.items():
            if isinstance(relation, BelongsTo):
                if self.registry is not None and relation.self_column == column.name:
                    foreign = self._foreign_schema(relation_id, relation.foreign_schema)
                    if foreign.get_column(relation.foreign_column) is None:
                        raise RelationshipConfigurationError(
                            f"relation {relation_id}: column {relation.foreign_column} "
                            f"is not defined in {foreign.name}"
                        )
            elif isinstance(relation, HasOne) and relation.self_column == column.name:
                foreign = self._foreign_schema(relation_id, relation.foreign_schema)
                sql += " REFERENCES " + self.driver.quote_table_name(foreign.get_table())
        return sql

    def _foreign_schema(self, relation_id: str, name: str) -> Schema:
        if self.registry is None:
            raise RelationshipConfigurationError(
                f"relation {relation_id} refers to {name} but the builder has no schema registry"
            )
        return self.registry.get(name)


__all__ = ["BaseDriver"]
