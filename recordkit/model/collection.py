"""
Lazily-filtered record collections.

A collection holds a SELECT over its schema's table (aliased ``m``) plus any
joins and predicates; nothing runs until it is iterated or counted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Type

import sqlalchemy as sa

from recordkit.domain.results import OperationResult
from recordkit.exceptions import RelationshipConfigurationError
from recordkit.schema.schema import Schema
from recordkit.utils.logging import get_logger

if TYPE_CHECKING:
    from recordkit.infrastructure.connection_manager import ConnectionManager
    from recordkit.model.record import Record
    from recordkit.schema.registry import SchemaRegistry

log = get_logger(__name__)

PostCreate = Callable[["Record", Dict[str, Any]], Any]


class Collection:
    """
    Parameters
    ----------
    connections : ConnectionManager
        Provider used to run the query and to create records.
    schema : Schema
        Schema of the records in the collection.
    registry : SchemaRegistry, optional
        Passed on to the materialized records.
    model_class : type, optional
        Record subclass to materialize rows with.
    """

    alias = "m"

    def __init__(
        self,
        connections: "ConnectionManager",
        schema: Schema,
        registry: Optional["SchemaRegistry"] = None,
        model_class: Optional[Type["Record"]] = None,
    ) -> None:
        if model_class is None:
            from recordkit.model.record import Record

            model_class = Record
        self.connections = connections
        self.schema = schema
        self.registry = registry
        self.model_class = model_class
        self.table = schema.table_clause().alias(self.alias)
        self.preset_vars: Dict[str, Any] = {}
        self.post_create: Optional[PostCreate] = None
        self.using_data_source: Optional[str] = None
        self._from: sa.FromClause = self.table
        self._where: List[Any] = []
        self._items: Optional[List["Record"]] = None

    def column(self, name: str) -> sa.ColumnElement:
        if name not in self.table.c:
            raise RelationshipConfigurationError(
                f"column {name} is not defined in {self.schema.get_table()}"
            )
        return self.table.c[name]

    def where(self, *clauses: Any) -> "Collection":
        self._where.extend(clauses)
        self._items = None
        return self

    def join(self, target: sa.FromClause, onclause: Any, isouter: bool = False) -> "Collection":
        self._from = self._from.join(target, onclause, isouter=isouter)
        self._items = None
        return self

    def set_preset_vars(self, preset_vars: Mapping[str, Any]) -> None:
        """Values every record created through this collection receives."""
        self.preset_vars = dict(preset_vars)

    def set_post_create(self, callback: PostCreate) -> None:
        self.post_create = callback

    def using(self, source_id: str) -> "Collection":
        self.using_data_source = source_id
        self._items = None
        return self

    def get_read_source_id(self) -> str:
        return self.using_data_source or self.schema.get_read_source_id()

    def build_select(self) -> sa.Select:
        return sa.select(self.table).select_from(self._from).where(*self._where)

    def _execute(self, stmt: sa.Select) -> Any:
        source_id = self.get_read_source_id()
        sql, params = self.connections.get_query_driver(source_id).compile(stmt)
        log.debug("Collection query", extra={"table": self.schema.get_table(), "sql": sql})
        return self.connections.prepare_and_execute(source_id, sql, params)

    def _new_record(self) -> "Record":
        record = self.model_class(self.connections, schema=self.schema, registry=self.registry)
        if self.using_data_source:
            record.using(self.using_data_source)
        return record

    def items(self) -> List["Record"]:
        """Materialize the collection; the rows are fetched once and kept."""
        if self._items is None:
            stm = self._execute(self.build_select())
            items = []
            row = stm.fetch_row()
            while row is not None:
                record = self._new_record()
                record.set_data(row)
                items.append(record)
                row = stm.fetch_row()
            self._items = items
        return self._items

    def first(self) -> Optional["Record"]:
        items = self.items()
        return items[0] if items else None

    def count(self) -> int:
        stmt = sa.select(sa.func.count()).select_from(self._from).where(*self._where)
        return int(self._execute(stmt).fetch_column() or 0)

    def create(self, args: Mapping[str, Any]) -> Tuple["Record", OperationResult]:
        """
        Create a record with the preset vars applied.

        The post-create callback only runs after a successful insert.

        Returns
        -------
        tuple
            The new record and the result of its insert.
        """
        args = {**args, **self.preset_vars}
        record = self._new_record()
        ret = record.create(args)
        if ret.success:
            if self.post_create is not None:
                self.post_create(record, args)
            if self._items is not None:
                self._items.append(record)
        return record, ret

    def __iter__(self) -> Iterator["Record"]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self.items())

    def __repr__(self) -> str:
        return f"<Collection {self.schema.get_table()}>"


__all__ = ["Collection"]
