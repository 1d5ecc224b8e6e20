"""
Runtime schema: the resolved, immutable description of one table.

Example
-------
    books = Schema(
        table="books",
        columns=[
            Column(name="id", isa="int", primary=True, auto_increment=True),
            Column(name="author_id", isa="int"),
            Column(name="title", required=True),
        ],
        relations={"author": belongs_to("author_id", "authors", "id")},
    )
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from pydantic import BaseModel, Field, field_validator, model_validator

from recordkit.exceptions import SchemaDeclarationError
from recordkit.schema.column import Column
from recordkit.schema.relations import Relation

DEFAULT_SOURCE_ID = "default"


class Schema(BaseModel):
    """
    Table description: columns in declared order, relations by id, primary
    key, and the data sources used for reads and writes.
    """

    table: str
    name: Optional[str] = None
    label: Optional[str] = None
    primary_key: Optional[str] = None
    columns: Dict[str, Column] = Field(default_factory=dict)
    relations: Dict[str, Relation] = Field(default_factory=dict)
    read_source_id: str = DEFAULT_SOURCE_ID
    write_source_id: str = DEFAULT_SOURCE_ID

    model_config = {"frozen": True}

    @field_validator("columns", mode="before")
    @classmethod
    def _index_columns(cls, value: Any) -> Any:
        if isinstance(value, dict):
            indexed = {}
            for key, column in value.items():
                if isinstance(column, dict):
                    column = {"name": key, **column}
                indexed[key] = column
            return indexed
        indexed = {}
        for column in value:
            name = column.name if isinstance(column, Column) else column["name"]
            if name in indexed:
                raise SchemaDeclarationError(f"column {name} is declared twice")
            indexed[name] = column
        return indexed

    @model_validator(mode="after")
    def _check_keys(self) -> "Schema":
        for key, column in self.columns.items():
            if key != column.name:
                raise SchemaDeclarationError(f"column {column.name} is registered as {key}")

        primaries = [c.name for c in self.columns.values() if c.primary]
        if len(primaries) > 1:
            raise SchemaDeclarationError(
                f"{self.table} declares several primary columns {primaries}; composite keys are not supported"
            )
        if self.primary_key is None and primaries:
            object.__setattr__(self, "primary_key", primaries[0])
        if self.primary_key is not None and self.primary_key not in self.columns:
            raise SchemaDeclarationError(
                f"primary key {self.primary_key} is not a column of {self.table}"
            )
        if self.name is None:
            object.__setattr__(self, "name", self.table)
        return self

    def get_table(self) -> str:
        return self.table

    def get_label(self) -> str:
        return self.label or self.table

    def get_column(self, name: str) -> Optional[Column]:
        return self.columns.get(name)

    def get_columns(self, include_virtual: bool = False) -> Dict[str, Column]:
        if include_virtual:
            return dict(self.columns)
        return {n: c for n, c in self.columns.items() if not c.virtual}

    def get_column_names(self, include_virtual: bool = False) -> List[str]:
        return list(self.get_columns(include_virtual))

    def get_relation(self, relation_id: str) -> Optional[Relation]:
        return self.relations.get(relation_id)

    def get_read_source_id(self) -> str:
        return self.read_source_id or DEFAULT_SOURCE_ID

    def get_write_source_id(self) -> str:
        return self.write_source_id or DEFAULT_SOURCE_ID

    def table_clause(self) -> sa.TableClause:
        """Lightweight SQLAlchemy table over the persisted columns."""
        schema_name, _, table_name = self.table.rpartition(".")
        return sa.table(
            table_name,
            *[sa.column(name) for name in self.get_column_names()],
            schema=schema_name or None,
        )


__all__ = ["Schema", "DEFAULT_SOURCE_ID"]
