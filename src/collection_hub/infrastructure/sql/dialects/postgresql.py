"""
PostgreSQL-specific SQL dialect implementation.

Provides PostgreSQL-specific DDL syntax for CREATE TABLE, ALTER TABLE
subcommands and identifier rendering. Builders only assemble text; callers
are responsible for validating names beforehand.
"""

from typing import List, Sequence

from ..core.identifier import fits_identifier_limit, render_identifier

# Columns every collection table carries, owned by the compiler
SYSTEM_COLUMN_CLAUSES = (
    "id bigserial primary key",
    "created_at timestamptz not null default now()",
    "updated_at timestamptz",
)


class PostgreSQLDialect:
    """PostgreSQL SQL dialect implementation."""

    name = "postgresql"

    def quote(self, identifier: str) -> str:
        """Render an identifier, quoting it only where PostgreSQL needs it."""
        return render_identifier(identifier)

    def build_create_table(self, table: str, column_clauses: Sequence[str]) -> str:
        """
        Build CREATE TABLE IF NOT EXISTS with the system columns first.

        User column clauses are comma-joined without padding, matching the
        layout below:

            create table if not exists t( id bigserial primary key,
            created_at timestamptz not null default now(),
            updated_at timestamptz, a text,b bigint )
        """
        body = ", ".join(SYSTEM_COLUMN_CLAUSES)
        if column_clauses:
            body = f"{body}, {','.join(column_clauses)}"
        return f"create table if not exists {self.quote(table)}( {body} )"

    def build_drop_table(self, table: str) -> str:
        """Build DROP TABLE IF EXISTS."""
        return f"drop table if exists {self.quote(table)}"

    def build_alter_table(self, table: str, clauses: Sequence[str]) -> str:
        """
        Build one ALTER TABLE statement from comma-joined subcommands.

        Raises:
            ValueError: If no clauses are given
        """
        if not clauses:
            raise ValueError("ALTER TABLE requires at least one clause")
        return f"alter table {self.quote(table)} {','.join(clauses)}"

    def add_column(self, column_clause: str) -> str:
        return f"add column {column_clause}"

    def rename_column(self, old_name: str, new_name: str) -> str:
        return f"rename column {self.quote(old_name)} to {self.quote(new_name)}"

    def drop_column(self, name: str) -> str:
        return f"drop column {self.quote(name)}"

    def alter_column_type(self, name: str, sql_type: str) -> str:
        """Change storage type, converting existing values with a cast."""
        column = self.quote(name)
        return f"alter column {column} type {sql_type} using {column}::{sql_type}"

    def set_not_null(self, name: str, required: bool) -> str:
        action = "set" if required else "drop"
        return f"alter column {self.quote(name)} {action} not null"

    def add_unique_constraint(self, table: str, column: str) -> str:
        """
        Add a UNIQUE constraint on one column.

        Uses the name an inline ``unique`` would get, ``<table>_<column>_key``,
        when it fits in 63 bytes. Longer names are left to the server, which
        shortens them and appends a digit on collision.
        """
        name = f"{table}_{column}_key"
        if not fits_identifier_limit(name):
            return f"add unique ({self.quote(column)})"
        return f"add constraint {self.quote(name)} unique ({self.quote(column)})"

    def build_advisory_lock(self, table: str) -> str:
        """Build a transaction-scoped advisory lock keyed by table name."""
        literal = table.replace("'", "''")
        return f"select pg_advisory_xact_lock(hashtext('{literal}'))"

    def build_script(self, statements: List[str]) -> str:
        """Join statements into one script sent as a single round trip."""
        return "; ".join(statements)
