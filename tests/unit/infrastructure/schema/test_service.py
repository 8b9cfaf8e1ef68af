"""
Unit tests for collection schema operations with recording executors.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace

import pytest

from collection_hub.infrastructure.schema.core import (
    INT,
    TEXT,
    USER,
    Collection,
    ColumnDef,
)
from collection_hub.infrastructure.schema.diff import RenameColumn
from collection_hub.infrastructure.schema.exceptions import (
    ExecutionFailedError,
    InvalidSchemaError,
    SchemaError,
    SchemaErrorKind,
)
from collection_hub.infrastructure.schema.service import (
    create_collection,
    create_collection_async,
    drop_collection,
    update_collection,
    update_collection_async,
)

CREATE_USERS = (
    "create table if not exists users( id bigserial primary key, "
    "created_at timestamptz not null default now(), updated_at timestamptz, "
    "name text unique not null )"
)


@pytest.fixture
def name_column() -> ColumnDef:
    return ColumnDef(uuid.uuid4(), "name", TEXT, required=True, unique=True)


@pytest.fixture
def users(name_column) -> Collection:
    return Collection("users", [name_column])


@pytest.mark.unit
class TestCreateCollection:
    def test_executes_create_statement_once(self, users, executor):
        create_collection(users, executor)
        assert executor.statements == [CREATE_USERS]

    def test_repeated_create_sends_identical_statement(self, users, executor):
        create_collection(users, executor)
        create_collection(users, executor)
        assert executor.statements == [CREATE_USERS, CREATE_USERS]

    def test_execution_failure_is_wrapped(self, users, failing_executor):
        with pytest.raises(ExecutionFailedError) as exc_info:
            create_collection(users, failing_executor)

        error = exc_info.value
        assert error.kind is SchemaErrorKind.EXECUTION_FAILED
        assert error.collection == "users"
        assert error.statement == CREATE_USERS
        assert isinstance(error.__cause__, RuntimeError)
        assert isinstance(error, SchemaError)

    def test_users_table_comes_from_settings(self, executor, monkeypatch):
        monkeypatch.setenv("CHUB_USERS_TABLE", "accounts")
        collection = Collection("posts", [ColumnDef.new("author", USER)])

        create_collection(collection, executor)

        assert executor.statements[0].endswith("author bigint references accounts(id) )")


@pytest.mark.unit
class TestUpdateCollection:
    def test_rename_executes_one_statement(self, users, name_column, executor):
        new = Collection("users", [replace(name_column, name="name_new")])

        plan = update_collection(users, new, executor)

        assert plan.changes == (RenameColumn("name", "name_new"),)
        assert executor.statements == ["alter table users rename column name to name_new"]

    def test_no_changes_executes_nothing(self, users, executor):
        plan = update_collection(users, users, executor)
        assert plan.is_empty
        assert executor.statements == []

    def test_rejected_change_executes_nothing(self, users, executor):
        with pytest.raises(InvalidSchemaError):
            update_collection(users, Collection("users"), executor)
        assert executor.statements == []

    def test_explicit_opt_in_allows_drop(self, users, executor):
        update_collection(users, Collection("users"), executor, allow_destructive=True)
        assert executor.statements == ["alter table users drop column name"]

    def test_settings_opt_in_allows_drop(self, users, executor, monkeypatch):
        monkeypatch.setenv("CHUB_ALLOW_DESTRUCTIVE_CHANGES", "true")
        update_collection(users, Collection("users"), executor)
        assert executor.statements == ["alter table users drop column name"]

    def test_explicit_false_overrides_settings(self, users, executor, monkeypatch):
        monkeypatch.setenv("CHUB_ALLOW_DESTRUCTIVE_CHANGES", "true")
        with pytest.raises(InvalidSchemaError):
            update_collection(users, Collection("users"), executor, allow_destructive=False)

    def test_multi_statement_plan_is_one_call(self, users, name_column, executor):
        new = Collection(
            "users", [replace(name_column, name="title"), ColumnDef.new("age", INT)]
        )
        update_collection(users, new, executor)
        assert executor.statements == [
            "alter table users rename column name to title; "
            "alter table users add column age bigint"
        ]

    def test_schema_locking_prefixes_advisory_lock(
        self, users, name_column, executor, monkeypatch
    ):
        monkeypatch.setenv("CHUB_SCHEMA_LOCKING", "1")
        new = Collection("users", [replace(name_column, name="name_new")])

        update_collection(users, new, executor)

        assert executor.statements == [
            "select pg_advisory_xact_lock(hashtext('users')); "
            "alter table users rename column name to name_new"
        ]

    def test_execution_failure_is_wrapped(self, users, name_column, failing_executor):
        new = Collection("users", [replace(name_column, name="name_new")])
        with pytest.raises(ExecutionFailedError) as exc_info:
            update_collection(users, new, failing_executor)
        assert exc_info.value.statement == "alter table users rename column name to name_new"
        assert len(failing_executor.statements) == 1


@pytest.mark.unit
class TestDropCollection:
    def test_requires_opt_in(self, users, executor):
        with pytest.raises(InvalidSchemaError):
            drop_collection(users, executor)
        assert executor.statements == []

    def test_drops_with_opt_in(self, users, executor):
        drop_collection(users, executor, allow_destructive=True)
        assert executor.statements == ["drop table if exists users"]


@pytest.mark.unit
class TestAsyncOperations:
    def test_create_collection_async(self, users, async_executor):
        asyncio.run(create_collection_async(users, async_executor))
        assert async_executor.statements == [CREATE_USERS]

    def test_update_collection_async(self, users, name_column, async_executor):
        new = Collection("users", [name_column, ColumnDef.new("age", INT)])
        plan = asyncio.run(update_collection_async(users, new, async_executor))
        assert len(plan.changes) == 1
        assert async_executor.statements == ["alter table users add column age bigint"]

    def test_async_failure_is_wrapped(self, users):
        class BrokenExecutor:
            async def execute(self, sql: str) -> int:
                raise ConnectionError("server closed the connection")

        with pytest.raises(ExecutionFailedError) as exc_info:
            asyncio.run(create_collection_async(users, BrokenExecutor()))
        assert isinstance(exc_info.value.__cause__, ConnectionError)
