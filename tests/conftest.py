"""
Pytest configuration for recordkit.

Provides fixtures for:
- An in-process fake connection that records every prepared statement
- Connection managers backed by the fake connection or by SQLite in-memory
- The authors/books/author_books schemas and their registry
- Settings override for integration tests
"""

from __future__ import annotations

import os
from typing import Any, Dict, Generator, List, Optional, Tuple

import pytest

from recordkit.config import Settings, get_settings
from recordkit.infrastructure.connection_manager import ConnectionManager
from recordkit.schema import (
    Column,
    Schema,
    SchemaRegistry,
    belongs_to,
    get_builder,
    has_many,
    many_to_many,
)

FAKE_INSERT_ID = 42


class FakeStatement:
    def __init__(self, connection: "FakeConnection", sql: str) -> None:
        self._connection = connection
        self.sql = sql

    def execute(self, params: Optional[Dict[str, Any]] = None) -> None:
        self._connection.executed.append((self.sql, dict(params or {})))
        fail_on = self._connection.fail_on
        if self._connection.fail is not None:
            raise RuntimeError(self._connection.fail)
        if fail_on is not None and fail_on in self.sql:
            raise RuntimeError(f"refused: {fail_on}")

    def fetch_row(self) -> Optional[Dict[str, Any]]:
        if not self._connection.rows:
            return None
        return self._connection.rows.pop(0)

    def fetch_column(self) -> Any:
        row = self.fetch_row()
        if not row:
            return None
        return next(iter(row.values()))


class FakeConnection:
    """
    Records (sql, params) of every executed statement; `rows` is the queue of
    rows handed out by fetch_row, shared by all statements. Setting `fail`
    fails every statement, `fail_on` only those whose SQL contains it.
    """

    def __init__(self) -> None:
        self.executed: List[Tuple[str, Dict[str, Any]]] = []
        self.rows: List[Dict[str, Any]] = []
        self.fail: Optional[str] = None
        self.fail_on: Optional[str] = None
        self.insert_id: Any = FAKE_INSERT_ID

    def prepare(self, sql: str) -> FakeStatement:
        return FakeStatement(self, sql)

    def last_insert_id(self) -> Any:
        return self.insert_id


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(DATABASE_URL="sqlite::memory:", LOG_LEVEL="DEBUG")


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_manager(fake_conn: FakeConnection) -> ConnectionManager:
    manager = ConnectionManager()
    manager.add(fake_conn, "default", "sqlite")
    return manager


@pytest.fixture
def authors_schema() -> Schema:
    return Schema(
        table="authors",
        columns=[
            Column(name="id", isa="int", primary=True, auto_increment=True),
            Column(name="name", label="Name", required=True),
            Column(name="email", unique=True),
        ],
        relations={
            "books": has_many("id", "books", "author_id"),
            "author_books": has_many("id", "author_books", "author_id"),
            "favorite_books": many_to_many("author_books", "book"),
        },
    )


@pytest.fixture
def books_schema() -> Schema:
    return Schema(
        table="books",
        columns=[
            Column(name="id", isa="int", primary=True, auto_increment=True),
            Column(name="author_id", isa="int"),
            Column(name="title", label="Title", required=True),
            Column(name="status", default="draft", valid_values=["draft", "published"]),
            Column(name="published_on", isa="datetime"),
            Column(name="created_on", isa="datetime", default=["CURRENT_TIMESTAMP"]),
        ],
        relations={"author": belongs_to("author_id", "authors", "id")},
    )


@pytest.fixture
def author_books_schema() -> Schema:
    return Schema(
        table="author_books",
        columns=[
            Column(name="id", isa="int", primary=True, auto_increment=True),
            Column(name="author_id", isa="int"),
            Column(name="book_id", isa="int"),
            Column(name="note"),
        ],
        relations={
            "author": belongs_to("author_id", "authors", "id"),
            "book": belongs_to("book_id", "books", "id"),
        },
    )


@pytest.fixture
def registry(
    authors_schema: Schema, books_schema: Schema, author_books_schema: Schema
) -> SchemaRegistry:
    return SchemaRegistry([authors_schema, books_schema, author_books_schema])


@pytest.fixture
def sqlite_manager(registry: SchemaRegistry) -> Generator[ConnectionManager, None, None]:
    """
    SQLite in-memory data source with every registered table created by the
    SQLite schema builder.
    """
    manager = ConnectionManager()
    manager.add_data_source("default", {"dsn": "sqlite::memory:"})
    builder = get_builder(manager.get_query_driver("default"), registry)
    for schema in registry:
        for sql in builder.build(schema, rebuild=True):
            manager.prepare_and_execute("default", sql)
    try:
        yield manager
    finally:
        manager.close_all()


@pytest.fixture(scope="session")
def pg_dsn() -> str:
    """
    PostgreSQL DSN for integration tests, skipped unless enabled.
    """
    if os.getenv("RUN_INTEGRATION_TESTS", "0") != "1":
        pytest.skip("PostgreSQL integration tests require RUN_INTEGRATION_TESTS=1")
    dsn = os.getenv("DATABASE_URL", "")
    if not dsn.startswith(("postgresql:", "postgres:", "pgsql:")):
        pytest.skip("DATABASE_URL does not point at PostgreSQL")
    return dsn
