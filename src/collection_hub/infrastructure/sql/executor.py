"""
Statement executors used to apply compiled DDL.

The schema layer only needs "run this statement, tell me how many rows it
touched or raise". Anything satisfying ``Executor`` (or ``AsyncExecutor``)
can be handed to the collection service; pooling, retries and transaction
lifecycle stay with the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import text
from sqlalchemy.engine import Connection

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection


@runtime_checkable
class Executor(Protocol):
    """Runs one SQL statement and returns the affected row count."""

    def execute(self, sql: str) -> int: ...


@runtime_checkable
class AsyncExecutor(Protocol):
    """Awaitable counterpart of ``Executor``."""

    async def execute(self, sql: str) -> int: ...


class SqlAlchemyExecutor:
    """
    Executor backed by a SQLAlchemy Connection.

    The caller owns the transaction: commit or roll back the connection
    after the schema operation returns.

    Example:
        >>> from sqlalchemy import create_engine
        >>> engine = create_engine(database_url)
        >>> with engine.connect() as conn:
        ...     create_collection(collection, SqlAlchemyExecutor(conn))
        ...     conn.commit()
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def execute(self, sql: str) -> int:
        result = self.connection.execute(text(sql))
        return result.rowcount


class AsyncSqlAlchemyExecutor:
    """Executor backed by a SQLAlchemy AsyncConnection."""

    def __init__(self, connection: AsyncConnection) -> None:
        self.connection = connection

    async def execute(self, sql: str) -> int:
        result = await self.connection.execute(text(sql))
        return result.rowcount
