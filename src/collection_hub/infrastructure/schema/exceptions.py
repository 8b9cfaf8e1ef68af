"""
Exception hierarchy for the collection schema layer.

Every failure reaches the caller as a ``SchemaError`` carrying one of two
kinds: the schema was rejected before any DDL ran, or the executor failed
to run the compiled statement.
"""

from enum import Enum
from typing import Optional


class SchemaErrorKind(Enum):
    """Failure classes surfaced to callers."""

    INVALID_SCHEMA = "invalid_schema"
    EXECUTION_FAILED = "execution_failed"


class SchemaError(Exception):
    """
    Base exception for all collection schema errors.

    Args:
        message: Error description
        collection: Name of the collection involved (optional)
        column: Name of the column involved (optional)
    """

    kind: SchemaErrorKind = SchemaErrorKind.INVALID_SCHEMA

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        column: Optional[str] = None,
    ):
        self.message = message
        self.collection = collection
        self.column = column

        context_parts = []
        if collection:
            context_parts.append(f"collection='{collection}'")
        if column:
            context_parts.append(f"column='{column}'")

        if context_parts:
            full_message = f"{message} ({', '.join(context_parts)})"
        else:
            full_message = message

        super().__init__(full_message)


class InvalidSchemaError(SchemaError):
    """
    Raised when a collection definition or a requested change is rejected.

    Covers unmapped column types, malformed names, duplicate columns and
    diff classifications the migration policy refuses. Always raised
    before any statement reaches the database.
    """

    kind = SchemaErrorKind.INVALID_SCHEMA


class ExecutionFailedError(SchemaError):
    """
    Raised when the executor fails to run a compiled statement.

    The underlying database error is chained as ``__cause__``; its
    specific cause is not interpreted here.
    """

    kind = SchemaErrorKind.EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        column: Optional[str] = None,
        statement: Optional[str] = None,
    ):
        self.statement = statement
        super().__init__(message, collection=collection, column=column)
