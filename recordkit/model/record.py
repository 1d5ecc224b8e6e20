"""
Record lifecycle engine.

A `Record` owns one row's data and drives create/load/update/delete through the
column pipeline, a SQLAlchemy Core statement compiled for the data source's
dialect, and the connection manager it was given.

    class Book(Record):
        schema = books

    book = Book(manager)
    ret = book.create({"author_id": 1, "title": "Dune"})
    if ret.success:
        print(book.get("id"))

Every lifecycle operation returns an `OperationResult` (success or error) and
never raises, except for configuration errors (`RelationshipConfigurationError`,
`UnsupportedValidatorShape`), which propagate.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterable, List, Mapping, Optional

import sqlalchemy as sa

from recordkit.config import get_settings
from recordkit.domain.results import (
    OperationError,
    OperationResult,
    OperationSuccess,
    ValidationOutcome,
)
from recordkit.exceptions import (
    EmptyInput,
    PermissionDenied,
    RecordKitError,
    RelationshipConfigurationError,
    SchemaDeclarationError,
    UnsupportedValidatorShape,
    ValidationFailed,
)
from recordkit.infrastructure.query_driver import QueryDriver
from recordkit.schema.column import Column, is_empty
from recordkit.schema.schema import Schema
from recordkit.schema.validators import validate_column
from recordkit.utils.logging import get_logger

if TYPE_CHECKING:
    from recordkit.infrastructure.connection import Statement
    from recordkit.infrastructure.connection_manager import ConnectionManager
    from recordkit.schema.registry import SchemaRegistry

log = get_logger(__name__)

# Configuration errors are programmer errors, never converted into results.
_FATAL_ERRORS = (UnsupportedValidatorShape, RelationshipConfigurationError)


@dataclass(frozen=True)
class RelationKey:
    """Key of a memoized relation resolution in a record's cache."""

    relation_id: str


class Record:
    """
    Base model: subclasses set `schema`, or pass one to the constructor.

    Parameters
    ----------
    connections : ConnectionManager
        Provider of connections and query drivers per data source id.
    args : Any, optional
        Primary key value or condition mapping; when given the record is
        loaded right away.
    schema : Schema, optional
        Overrides the class-level schema.
    registry : SchemaRegistry, optional
        Needed to resolve relations; falls back to the class-level registry.
    auto_reload : bool, optional
        Reload the row after create. Defaults to settings.auto_reload.
    save_results : bool, optional
        Keep every produced result in `results`. Defaults to
        settings.save_results.
    """

    schema: ClassVar[Optional[Schema]] = None
    registry: ClassVar[Optional["SchemaRegistry"]] = None
    current_user: ClassVar[Any] = None

    def __init__(
        self,
        connections: "ConnectionManager",
        args: Any = None,
        *,
        schema: Optional[Schema] = None,
        registry: Optional["SchemaRegistry"] = None,
        auto_reload: Optional[bool] = None,
        save_results: Optional[bool] = None,
    ) -> None:
        if schema is not None:
            self.schema = schema
        if self.schema is None:
            raise SchemaDeclarationError(f"{type(self).__name__} declares no schema")

        settings = get_settings()
        self.connections = connections
        if registry is not None:
            self.registry = registry
        self.auto_reload = settings.auto_reload if auto_reload is None else auto_reload
        self.save_results = settings.save_results if save_results is None else save_results
        self.results: List[OperationResult] = []
        self.using_data_source: Optional[str] = None
        self._data: Dict[str, Any] = {}
        self._cache: Dict[RelationKey, Any] = {}
        self._current_user: Any = None

        if args is not None:
            self.load(args)

    # Data sources

    def using(self, source_id: str) -> "Record":
        """Route both reads and writes of this record to `source_id`."""
        self.using_data_source = source_id
        return self

    def get_read_source_id(self) -> str:
        return self.using_data_source or self.schema.get_read_source_id()

    def get_write_source_id(self) -> str:
        return self.using_data_source or self.schema.get_write_source_id()

    def get_read_query_driver(self) -> QueryDriver:
        return self.connections.get_query_driver(self.get_read_source_id())

    def get_write_query_driver(self) -> QueryDriver:
        return self.connections.get_query_driver(self.get_write_source_id())

    # Permissions and hooks

    def set_current_user(self, user: Any) -> None:
        self._current_user = user

    def get_current_user(self) -> Any:
        if self._current_user is not None:
            return self._current_user
        return type(self).current_user

    def current_user_can(self, user: Any, right: str, args: Optional[Mapping[str, Any]] = None) -> bool:
        """Permission predicate; override to restrict create/load/update/delete."""
        return True

    def before_create(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return args

    def after_create(self, args: Dict[str, Any]) -> None:
        pass

    def before_update(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return args

    def after_update(self, args: Dict[str, Any]) -> None:
        pass

    def before_delete(self, args: Dict[str, Any]) -> None:
        pass

    def after_delete(self, args: Dict[str, Any]) -> None:
        pass

    # Column pipeline

    def _validate_column(self, column: Column, value: Any, args: Dict[str, Any]) -> Optional[ValidationOutcome]:
        return validate_column(column, value, args, self)

    def _run_column_pipeline(self, args: Dict[str, Any], for_update: bool = False) -> Dict[str, ValidationOutcome]:
        """
        Run default injection, typing, canonicalization, validation and
        deflation over `args` in place.

        On create every persisted column is visited and defaults fill absent or
        empty values. On update only the columns present in `args` are visited
        and defaults only replace empty values.

        Returns
        -------
        dict
            Validation outcomes keyed by column name.
        """
        validations: Dict[str, ValidationOutcome] = {}
        for name, column in self.schema.get_columns().items():
            present = name in args
            if for_update and not present:
                continue
            value = args.get(name)

            if not column.primary and is_empty(value) and column.default is not None:
                default = column.get_default_value(self, args)
                if default is not None:
                    value = default
                    present = True

            if value is not None and not column.is_raw_value(value):
                if column.type_constraint:
                    value = column.check_type_constraint(value)
                else:
                    value = column.type_cast(value)
            # Filters also see empty values so they can fill them in.
            if column.filter is not None or column.canonicalizer is not None:
                value = column.canonicalize(value, self, args)
                if value is not None:
                    present = True

            outcome = self._validate_column(column, value, args)
            if outcome is not None:
                validations[name] = outcome

            if value is not None and not column.is_raw_value(value):
                value = column.deflate(value)
            if present:
                args[name] = value
        return validations

    @staticmethod
    def _check_validations(validations: Mapping[str, ValidationOutcome]) -> None:
        if any(not outcome.valid for outcome in validations.values()):
            raise ValidationFailed(validations)

    def _bind_values(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        """Statement values; raw SQL values are rendered verbatim."""
        values: Dict[str, Any] = {}
        for name, value in args.items():
            column = self.schema.get_column(name)
            if column is not None and value is not None and column.is_raw_value(value):
                values[name] = sa.literal_column(str(value[0]))
            else:
                values[name] = value
        return values

    def _deflate_condition(self, name: str, value: Any) -> Any:
        column = self.schema.get_column(name)
        if column is None:
            raise RecordKitError(f"column {name} is not defined in {self.schema.get_table()}")
        if value is None or column.is_raw_value(value):
            return value
        return column.deflate(column.type_cast(value))

    # Lifecycle

    def create(self, args: Mapping[str, Any], reload: Optional[bool] = None) -> OperationResult:
        """
        Insert a new row from `args`.

        Parameters
        ----------
        args : Mapping[str, Any]
            Column values; unknown keys are dropped.
        reload : bool, optional
            Reload the inserted row; defaults to the record's auto_reload.

        Returns
        -------
        OperationResult
            "Created" with sql, args, vars, validations and id on success.
        """
        if not args:
            return self._report_error("Empty arguments", operation="create")

        sql: Optional[str] = None
        vars_: Dict[str, Any] = {}
        validations: Dict[str, ValidationOutcome] = {}
        args = dict(args)
        try:
            args = self.before_create(args)
            args = self.filter_args_with_columns(args)
            if not self.current_user_can(self.get_current_user(), "create", args):
                raise PermissionDenied("create")

            validations = self._run_column_pipeline(args)
            self._check_validations(validations)

            source_id = self.get_write_source_id()
            driver = self.get_write_query_driver()
            table = self.schema.table_clause()
            pk = self.schema.primary_key
            stmt = sa.insert(table).values(self._bind_values(args))
            if pk and driver.supports_returning:
                stmt = stmt.returning(table.c[pk])
            sql, vars_ = driver.compile(stmt)
            log.debug("Create", extra={"table": self.schema.get_table(), "sql": sql})
            stm = self.connections.prepare_and_execute(source_id, sql, vars_)

            key = None
            if pk:
                if not is_empty(args.get(pk)) and not isinstance(args[pk], (list, tuple)):
                    key = args[pk]
                elif driver.supports_returning:
                    key = stm.fetch_column()
                else:
                    key = self.connections.get_connection(source_id).last_insert_id()

            reload = self.auto_reload if reload is None else reload
            if not (reload and pk and key is not None and self._fetch_into({pk: key}, source_id)):
                self._data = dict(args)
                if pk and key is not None:
                    self._data[pk] = key

            self.after_create(args)
        except _FATAL_ERRORS:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._report_error(
                str(exc) or "Create failed",
                {"sql": sql, "args": args, "vars": vars_, "validations": validations, "exception": exc},
                operation="create",
            )

        return self._report_success(
            "Created",
            {"sql": sql, "args": args, "vars": vars_, "validations": validations, "id": key},
        )

    def _conditions(self, args: Any) -> Dict[str, Any]:
        if isinstance(args, Mapping):
            if not args:
                raise EmptyInput()
            return {name: self._deflate_condition(name, value) for name, value in args.items()}
        pk = self.schema.primary_key
        if not pk:
            raise RecordKitError(f"{self.schema.get_table()} has no primary key, load by condition instead")
        return {pk: self._deflate_condition(pk, args)}

    def _select_one(self, conditions: Mapping[str, Any], source_id: str) -> tuple:
        driver = self.connections.get_query_driver(source_id)
        table = self.schema.table_clause()
        stmt = (
            sa.select(table)
            .where(*[table.c[name] == value for name, value in self._bind_values(conditions).items()])
            .limit(1)
        )
        sql, vars_ = driver.compile(stmt)
        log.debug("Load", extra={"table": self.schema.get_table(), "sql": sql})
        row = self.connections.prepare_and_execute(source_id, sql, vars_).fetch_row()
        return row, sql, vars_

    def _fetch_into(self, conditions: Mapping[str, Any], source_id: str) -> bool:
        row, _, _ = self._select_one(conditions, source_id)
        if row is None:
            return False
        self._data = dict(row)
        return True

    def load(self, args: Any) -> OperationResult:
        """
        Load one row by primary key value or by a condition mapping.

        A missing row is an error result and leaves the data untouched.
        """
        sql: Optional[str] = None
        vars_: Dict[str, Any] = {}
        try:
            if not self.current_user_can(self.get_current_user(), "load", args):
                raise PermissionDenied("load")
            conditions = self._conditions(args)
            row, sql, vars_ = self._select_one(conditions, self.get_read_source_id())
        except _FATAL_ERRORS:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._report_error(
                str(exc) or "Data load failed.",
                {"sql": sql, "vars": vars_, "exception": exc},
                operation="load",
            )

        if row is None:
            return self._report_error("Data load failed.", {"sql": sql, "vars": vars_}, operation="load")
        self._data = dict(row)
        pk = self.schema.primary_key
        return self._report_success("Data loaded", {"id": self._data.get(pk) if pk else None, "sql": sql})

    find = load

    def reload(self, key: Any = None) -> OperationResult:
        pk = self.schema.primary_key
        if key is None and pk:
            key = self._data.get(pk)
        if is_empty(key):
            return self._report_error("Record is not loaded, Can not reload record.", operation="reload")
        return self.load(key)

    def db_query(self, sql: str, source_id: Optional[str] = None) -> Statement:
        """Run a raw query on the read data source (or `source_id`)."""
        return self.connections.query(source_id or self.get_read_source_id(), sql)

    def load_query(
        self, sql: str, vars: Optional[Mapping[str, Any]] = None, source_id: Optional[str] = None
    ) -> OperationResult:
        """Load the first row of a hand-written query."""
        source_id = source_id or self.get_read_source_id()
        try:
            row = self.connections.prepare_and_execute(source_id, sql, vars).fetch_row()
        except Exception as exc:  # noqa: BLE001
            return self._report_error(
                str(exc), {"sql": sql, "vars": vars, "exception": exc}, operation="load"
            )
        if row is None:
            return self._report_error("Data load failed.", {"sql": sql, "vars": vars}, operation="load")
        self._data = dict(row)
        pk = self.schema.primary_key
        return self._report_success("Data loaded", {"id": self._data.get(pk) if pk else None, "sql": sql})

    def update(self, args: Mapping[str, Any], reload: bool = False) -> OperationResult:
        """
        Update the loaded row (or the row whose key is in `args`).

        Returns
        -------
        OperationResult
            "Updated" with id, sql, args and vars on success.
        """
        pk = self.schema.primary_key
        key = None
        if pk:
            key = args.get(pk) if not is_empty(args.get(pk)) else self._data.get(pk)
        if is_empty(key):
            return self._report_error(
                "Record is not loaded, Can not update record.", {"args": dict(args)}, operation="update"
            )

        sql: Optional[str] = None
        vars_: Dict[str, Any] = {}
        validations: Dict[str, ValidationOutcome] = {}
        args = dict(args)
        try:
            if not self.current_user_can(self.get_current_user(), "update", args):
                raise PermissionDenied("update")
            args = self.before_update(args)
            orig_args = dict(args)
            args = self.filter_args_with_columns(args)

            validations = self._run_column_pipeline(args, for_update=True)
            self._check_validations(validations)

            values = {name: value for name, value in args.items() if name != pk}
            if not values:
                raise EmptyInput()

            source_id = self.get_write_source_id()
            driver = self.get_write_query_driver()
            table = self.schema.table_clause()
            stmt = (
                sa.update(table)
                .where(table.c[pk] == self._deflate_condition(pk, key))
                .values(self._bind_values(values))
            )
            sql, vars_ = driver.compile(stmt)
            log.debug("Update", extra={"table": self.schema.get_table(), "sql": sql})
            self.connections.prepare_and_execute(source_id, sql, vars_)

            if not (reload and self._fetch_into({pk: key}, source_id)):
                self._data = {**self._data, **args}
                self._data.setdefault(pk, key)

            self.after_update(orig_args)
        except _FATAL_ERRORS:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._report_error(
                str(exc) or "Update failed",
                {"sql": sql, "args": args, "vars": vars_, "validations": validations, "exception": exc},
                operation="update",
            )

        return self._report_success("Updated", {"id": key, "sql": sql, "args": args, "vars": vars_})

    def delete(self) -> OperationResult:
        """Delete the loaded row and clear the record's data."""
        pk = self.schema.primary_key
        key = self._data.get(pk) if pk else None
        if is_empty(key):
            return self._report_error("Record is not loaded, Record delete failed.", operation="delete")

        sql: Optional[str] = None
        vars_: Dict[str, Any] = {}
        data = dict(self._data)
        try:
            if not self.current_user_can(self.get_current_user(), "delete", data):
                raise PermissionDenied("delete")
            self.before_delete(data)

            source_id = self.get_write_source_id()
            table = self.schema.table_clause()
            stmt = sa.delete(table).where(table.c[pk] == key)
            sql, vars_ = self.get_write_query_driver().compile(stmt)
            log.debug("Delete", extra={"table": self.schema.get_table(), "sql": sql})
            self.connections.prepare_and_execute(source_id, sql, vars_)

            self.after_delete(data)
        except _FATAL_ERRORS:
            raise
        except Exception as exc:  # noqa: BLE001
            return self._report_error(
                str(exc) or "Delete failed",
                {"sql": sql, "vars": vars_, "exception": exc},
                operation="delete",
            )

        self.clear()
        return self._report_success("Deleted", {"id": key, "sql": sql, "vars": vars_})

    def _find_existing(self, args: Mapping[str, Any], by_keys: Optional[Iterable[str]]) -> Optional[OperationResult]:
        # Primary key match wins over alternate keys.
        pk = self.schema.primary_key
        if pk and not is_empty(args.get(pk)):
            return self.find({pk: args[pk]})
        if by_keys:
            if isinstance(by_keys, str):
                by_keys = [by_keys]
            conditions = {name: args[name] for name in by_keys if name in args}
            if conditions:
                return self.find(conditions)
        return None

    def create_or_update(self, args: Mapping[str, Any], by_keys: Optional[Iterable[str]] = None) -> OperationResult:
        """Update the row matched by primary key or `by_keys`, else create it."""
        found = self._find_existing(args, by_keys)
        pk = self.schema.primary_key
        if (found is not None and found.success) or (pk and not is_empty(self._data.get(pk))):
            return self.update(args)
        return self.create(args)

    def load_or_create(self, args: Mapping[str, Any], by_keys: Optional[Iterable[str]] = None) -> OperationResult:
        """Load the row matched by primary key or `by_keys`, else create it."""
        found = self._find_existing(args, by_keys)
        if found is not None and found.success:
            return found
        return self.create(args)

    def save(self) -> OperationResult:
        pk = self.schema.primary_key
        if pk and is_empty(self._data.get(pk)):
            return self.create(dict(self._data))
        return self.update(dict(self._data))

    # Data access

    def get(self, name: str) -> Any:
        """Inflated value of a column."""
        value = self._data.get(name)
        column = self.schema.get_column(name)
        if column is not None:
            return column.inflate(value, self)
        return value

    def get_value(self, name: str) -> Any:
        """Raw storage value of a column."""
        return self._data.get(name)

    def set_value(self, name: str, value: Any) -> None:
        self._data[name] = value

    def has_value(self, name: str) -> bool:
        return self._data.get(name) is not None

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set_value(name, value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_value(name)

    def get_data(self) -> Dict[str, Any]:
        return self._data

    def set_data(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)

    def clear(self) -> None:
        self._data = {}

    @classmethod
    def from_dict(cls, connections: "ConnectionManager", data: Mapping[str, Any], **kwargs: Any) -> "Record":
        """Build a record from already-loaded row data without querying."""
        record = cls(connections, **kwargs)
        record.set_data(data)
        return record

    def display(self, name: str) -> Any:
        column = self.schema.get_column(name)
        if column is not None:
            if column.virtual:
                return self.get(name)
            return column.display(self.get_value(name), self)
        if self.schema.get_relation(name) is not None:
            related = self.related(name)
            if isinstance(related, Record):
                return related.data_label()
        return self._data.get(name)

    def data_label(self) -> Any:
        """Label used when the record is listed as an option; the primary key by default."""
        pk = self.schema.primary_key
        return self.get(pk) if pk else None

    def data_key_value(self) -> Any:
        pk = self.schema.primary_key
        return self.get(pk) if pk else None

    def filter_args_with_columns(self, args: Mapping[str, Any], include_virtual: bool = False) -> Dict[str, Any]:
        columns = self.schema.get_columns(include_virtual)
        return {name: value for name, value in args.items() if name in columns}

    def deflate_data(self, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Deflate `args` (the record data when omitted) in place."""
        target = self._data if args is None else args
        for name, value in target.items():
            column = self.schema.get_column(name)
            if column is not None and value is not None and not column.is_raw_value(value):
                target[name] = column.deflate(value)
        return target

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def to_inflated_dict(self) -> Dict[str, Any]:
        return {name: self.get(name) for name in self._data}

    def to_json(self) -> str:
        return json.dumps(self._data, default=str)

    # Results

    def _report_error(
        self, message: str, extra: Optional[Dict[str, Any]] = None, operation: Optional[str] = None
    ) -> OperationError:
        result = OperationError(message, dict(extra or {}))
        source_id = self.get_read_source_id() if operation == "load" else self.get_write_source_id()
        log.warning(
            message,
            extra={
                "table": self.schema.get_table(),
                "operation": operation,
                "source_id": source_id,
            },
        )
        if self.save_results:
            self.results.append(result)
        return result

    def _report_success(self, message: str, extra: Optional[Dict[str, Any]] = None) -> OperationSuccess:
        result = OperationSuccess(message, dict(extra or {}))
        if self.save_results:
            self.results.append(result)
        return result

    def pop_result(self) -> Optional[OperationResult]:
        return self.results.pop() if self.results else None

    def push_result(self, result: OperationResult) -> None:
        self.results.append(result)

    def flush_results(self) -> List[OperationResult]:
        results, self.results = self.results, []
        return results

    # Relations

    def related(self, relation_id: str) -> Any:
        """
        Resolve a relation, memoized until `flush_cache()`.

        Returns a Record (has-one, belongs-to), a Collection (has-many,
        many-to-many) or None when the linking value is missing.
        """
        key = RelationKey(relation_id)
        if key in self._cache:
            return self._cache[key]
        from recordkit.model.relationships import resolve_relation

        value = resolve_relation(self, relation_id)
        self._cache[key] = value
        return value

    def flush_cache(self) -> None:
        self._cache = {}

    def __copy__(self) -> "Record":
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._data = copy.copy(self._data)
        clone._cache = {}
        clone.results = []
        return clone

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.schema.get_table()} {self._data!r}>"


__all__ = ["Record", "RelationKey"]
