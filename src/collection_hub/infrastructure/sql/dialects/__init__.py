"""SQL dialects."""

from .postgresql import SYSTEM_COLUMN_CLAUSES, PostgreSQLDialect

__all__ = ["PostgreSQLDialect", "SYSTEM_COLUMN_CLAUSES"]
