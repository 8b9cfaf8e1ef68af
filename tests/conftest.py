"""Pytest configuration: settings isolation, recording executors and DB fixtures.

.chub_env is loaded FIRST (if present) so tests read connection settings from
one file rather than whatever happens to be exported in the shell.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_CHUB_ENV_FILE = Path(__file__).parent.parent / ".chub_env"
if _CHUB_ENV_FILE.exists():
    load_dotenv(_CHUB_ENV_FILE, override=True)

import os
import re
import uuid
from typing import Generator, List
from urllib.parse import urlparse, urlunparse

import psycopg2
import pytest
from psycopg2 import sql
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from collection_hub.config import get_settings


class RecordingExecutor:
    """Executor that records statements instead of running them."""

    def __init__(self, rowcount: int = 0) -> None:
        self.statements: List[str] = []
        self.rowcount = rowcount

    def execute(self, sql: str) -> int:
        self.statements.append(sql)
        return self.rowcount


class FailingExecutor:
    """Executor whose every call raises, like a broken connection."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or RuntimeError("connection reset by peer")
        self.statements: List[str] = []

    def execute(self, sql: str) -> int:
        self.statements.append(sql)
        raise self.error


class AsyncRecordingExecutor:
    """Awaitable counterpart of RecordingExecutor."""

    def __init__(self) -> None:
        self.statements: List[str] = []

    async def execute(self, sql: str) -> int:
        self.statements.append(sql)
        return 0


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Clear the settings cache around every test so env changes apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def failing_executor() -> FailingExecutor:
    return FailingExecutor()


@pytest.fixture
def async_executor() -> AsyncRecordingExecutor:
    return AsyncRecordingExecutor()


def _validate_test_database(dsn: str) -> bool:
    """Refuse destructive fixtures against databases without a test-like name."""
    if os.getenv("CHUB_SKIP_DB_VALIDATION") == "1":
        return True

    db_name = urlparse(dsn).path.lstrip("/")
    if not re.search(r"(test|tmp|dev|local|sandbox)", db_name, re.IGNORECASE):
        raise RuntimeError(
            f"Refusing to run tests against non-test database: {db_name}. "
            "Test databases must contain one of: test, tmp, dev, local, sandbox. "
            "Override with CHUB_SKIP_DB_VALIDATION=1 (DANGEROUS)."
        )
    return True


def _resolve_postgres_dsn() -> str:
    database_url = os.environ.get("CHUB_TEST_DATABASE_URI") or os.environ.get(
        "DATABASE_URL"
    )
    if not database_url or not database_url.startswith("postgres"):
        pytest.skip(
            "CHUB_TEST_DATABASE_URI/DATABASE_URL must point at PostgreSQL "
            "for postgres-backed tests"
        )
    return database_url.replace("postgres://", "postgresql://", 1)


def _create_ephemeral_database(base_dsn: str) -> tuple[str, str, str]:
    parsed = urlparse(base_dsn)
    base_db = parsed.path.lstrip("/") or "postgres"
    admin_db = "postgres" if base_db != "postgres" else base_db
    temp_db = f"{base_db}_test_{uuid.uuid4().hex[:8]}"

    admin_dsn = urlunparse(parsed._replace(path=f"/{admin_db}"))
    temp_dsn = urlunparse(parsed._replace(path=f"/{temp_db}"))

    conn = psycopg2.connect(admin_dsn)
    conn.autocommit = True
    try:
        with conn.cursor() as cursor:
            cursor.execute(
                sql.SQL("CREATE DATABASE {} TEMPLATE template0").format(
                    sql.Identifier(temp_db)
                )
            )
    finally:
        conn.close()

    return temp_dsn, temp_db, admin_dsn


def _drop_database(admin_dsn: str, db_name: str) -> None:
    conn = psycopg2.connect(admin_dsn)
    conn.autocommit = True
    try:
        with conn.cursor() as cursor:
            # Terminate any remaining connections to allow DROP DATABASE
            cursor.execute(
                """
                SELECT pg_terminate_backend(pid)
                FROM pg_stat_activity
                WHERE datname = %s AND pid <> pg_backend_pid();
                """,
                (db_name,),
            )
            cursor.execute(
                sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(db_name))
            )
    finally:
        conn.close()


@pytest.fixture
def postgres_engine() -> Generator[Engine, None, None]:
    """Yield a SQLAlchemy engine bound to a throwaway PostgreSQL database.

    The database gets a ``users`` table so User columns can reference it.
    """
    base_dsn = _resolve_postgres_dsn()
    temp_dsn, temp_db, admin_dsn = _create_ephemeral_database(base_dsn)

    engine = create_engine(temp_dsn)
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "create table users( id bigserial primary key, email text not null )"
        )
    try:
        yield engine
    finally:
        engine.dispose()
        _validate_test_database(temp_dsn)
        _drop_database(admin_dsn, temp_db)
