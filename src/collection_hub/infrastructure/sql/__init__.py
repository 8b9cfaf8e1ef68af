"""
SQL module for centralized SQL generation.

This module provides reusable utilities for building DDL statements with
consistent identifier rendering and dialect-specific syntax, plus the
executor capability used to run them.
"""

from .core.identifier import (
    fits_identifier_limit,
    is_valid_identifier,
    quote_identifier,
    render_identifier,
)
from .dialects.postgresql import PostgreSQLDialect
from .executor import (
    AsyncExecutor,
    AsyncSqlAlchemyExecutor,
    Executor,
    SqlAlchemyExecutor,
)

__all__ = [
    "is_valid_identifier",
    "quote_identifier",
    "render_identifier",
    "fits_identifier_limit",
    "PostgreSQLDialect",
    "Executor",
    "AsyncExecutor",
    "SqlAlchemyExecutor",
    "AsyncSqlAlchemyExecutor",
]
