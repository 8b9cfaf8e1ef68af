"""
Collection schema operations.

Compiles collections and migration plans to DDL and hands the resulting
statement to an executor. Each operation makes at most one executor call;
there are no retries and no compensating rollbacks. Executor failures are
surfaced as ``ExecutionFailedError`` with the executor exception chained.
"""

from __future__ import annotations

from typing import List, Optional

from collection_hub.config import get_settings
from collection_hub.infrastructure.sql.executor import AsyncExecutor, Executor
from collection_hub.utils.logging import get_logger

from .core import Collection
from .ddl_generator import DIALECT, create_table_statement, drop_table_statement
from .diff import MigrationPlan, plan_changes
from .exceptions import ExecutionFailedError, InvalidSchemaError

logger = get_logger(__name__)


def _allow_destructive(flag: Optional[bool]) -> bool:
    if flag is None:
        return get_settings().allow_destructive_changes
    return flag


def _update_script(plan: MigrationPlan) -> Optional[str]:
    """Compile a plan to the script sent to the executor, or None if empty."""
    settings = get_settings()
    statements: List[str] = plan.statements(settings.users_table)
    if not statements:
        return None
    if settings.schema_locking:
        statements.insert(0, DIALECT.build_advisory_lock(plan.table))
    return DIALECT.build_script(statements)


def _prepare_update(
    old: Collection, new: Collection, allow_destructive: Optional[bool]
) -> tuple[MigrationPlan, Optional[str]]:
    destructive = _allow_destructive(allow_destructive)
    try:
        plan = plan_changes(old, new, allow_destructive=destructive)
    except InvalidSchemaError as e:
        logger.warning(
            "collection.update.rejected",
            collection=old.name,
            column=e.column,
            reason=e.message,
        )
        raise
    script = _update_script(plan)
    logger.info(
        "collection.update.planned",
        collection=new.name,
        change_count=len(plan.changes),
        allow_destructive=destructive,
        statement=script,
    )
    return plan, script


def _execution_failed(
    operation: str, collection: str, statement: str, error: Exception
) -> ExecutionFailedError:
    logger.error(
        f"collection.{operation}.failed",
        collection=collection,
        statement=statement,
        error=str(error),
        error_type=type(error).__name__,
    )
    return ExecutionFailedError(
        f"Failed to {operation} collection", collection=collection, statement=statement
    )


def create_collection(collection: Collection, executor: Executor) -> None:
    """
    Create the table for a collection if it does not exist.

    Raises:
        InvalidSchemaError: If the collection cannot be compiled
        ExecutionFailedError: If the executor fails
    """
    statement = create_table_statement(collection, get_settings().users_table)
    logger.info(
        "collection.create.started", collection=collection.name, statement=statement
    )
    try:
        executor.execute(statement)
    except Exception as e:
        raise _execution_failed("create", collection.name, statement, e) from e
    logger.info("collection.create.completed", collection=collection.name)


def update_collection(
    old: Collection,
    new: Collection,
    executor: Executor,
    allow_destructive: Optional[bool] = None,
) -> MigrationPlan:
    """
    Evolve the table of ``old`` into the shape of ``new``.

    Args:
        old: Snapshot the table currently has
        new: Snapshot the table should have
        executor: Statement executor
        allow_destructive: Permit column drops and storage-changing
            retypes; None falls back to settings

    Returns:
        The applied migration plan (empty when nothing changed)

    Raises:
        InvalidSchemaError: If the diff contains a rejected change
        ExecutionFailedError: If the executor fails
    """
    plan, script = _prepare_update(old, new, allow_destructive)
    if script is None:
        logger.info("collection.update.noop", collection=new.name)
        return plan
    try:
        executor.execute(script)
    except Exception as e:
        raise _execution_failed("update", new.name, script, e) from e
    logger.info(
        "collection.update.completed",
        collection=new.name,
        change_count=len(plan.changes),
    )
    return plan


def drop_collection(
    collection: Collection,
    executor: Executor,
    allow_destructive: Optional[bool] = None,
) -> None:
    """
    Drop the table of a collection.

    Raises:
        InvalidSchemaError: If destructive changes are not allowed
        ExecutionFailedError: If the executor fails
    """
    if not _allow_destructive(allow_destructive):
        raise InvalidSchemaError(
            "Dropping a collection deletes its data; "
            "pass allow_destructive=True to apply it",
            collection=collection.name,
        )
    statement = drop_table_statement(collection)
    logger.info("collection.drop.started", collection=collection.name)
    try:
        executor.execute(statement)
    except Exception as e:
        raise _execution_failed("drop", collection.name, statement, e) from e
    logger.info("collection.drop.completed", collection=collection.name)


async def create_collection_async(
    collection: Collection, executor: AsyncExecutor
) -> None:
    """Awaitable variant of ``create_collection``."""
    statement = create_table_statement(collection, get_settings().users_table)
    logger.info(
        "collection.create.started", collection=collection.name, statement=statement
    )
    try:
        await executor.execute(statement)
    except Exception as e:
        raise _execution_failed("create", collection.name, statement, e) from e
    logger.info("collection.create.completed", collection=collection.name)


async def update_collection_async(
    old: Collection,
    new: Collection,
    executor: AsyncExecutor,
    allow_destructive: Optional[bool] = None,
) -> MigrationPlan:
    """Awaitable variant of ``update_collection``."""
    plan, script = _prepare_update(old, new, allow_destructive)
    if script is None:
        logger.info("collection.update.noop", collection=new.name)
        return plan
    try:
        await executor.execute(script)
    except Exception as e:
        raise _execution_failed("update", new.name, script, e) from e
    logger.info(
        "collection.update.completed",
        collection=new.name,
        change_count=len(plan.changes),
    )
    return plan


__all__ = [
    "create_collection",
    "update_collection",
    "drop_collection",
    "create_collection_async",
    "update_collection_async",
]
