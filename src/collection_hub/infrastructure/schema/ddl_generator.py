"""DDL SQL generation for collections.

Compiles column definitions to column clauses and collections to
CREATE TABLE statements. All functions are pure: the same input always
yields byte-identical text.
"""

from __future__ import annotations

from typing import Dict, List

from collection_hub.infrastructure.sql.dialects.postgresql import PostgreSQLDialect

from .core import (
    DEFAULT_USERS_TABLE,
    Collection,
    ColumnDef,
    ColumnKind,
    ColumnType,
    RelationKind,
)
from .exceptions import InvalidSchemaError

DIALECT = PostgreSQLDialect()

_PHYSICAL_TYPES: Dict[ColumnKind, str] = {
    ColumnKind.UUID: "uuid",
    ColumnKind.INT: "bigint",
    ColumnKind.DECIMAL: "decimal",
    ColumnKind.TEXT: "text",
    ColumnKind.JSON: "jsonb",
    ColumnKind.EMAIL: "text",
    ColumnKind.URL: "text",
    ColumnKind.USER: "bigint",
    ColumnKind.RELATION: "bigint",
}


def physical_type(column_type: ColumnType) -> str:
    """Map a logical column type to its PostgreSQL storage type.

    Raises:
        InvalidSchemaError: If the type has no physical mapping
    """
    try:
        return _PHYSICAL_TYPES[column_type.kind]
    except KeyError:
        raise InvalidSchemaError(
            f"Column type {column_type} has no physical mapping"
        ) from None


def column_clause(col: ColumnDef, users_table: str = DEFAULT_USERS_TABLE) -> str:
    """Compile a column definition to the clause used by CREATE and ADD COLUMN.

    - User: ``<name> bigint [unique] [not null] references users(id)``
    - ManyToOne: ``<name> bigint [not null] references <target>(id)``
    - OneToOne: ``<name> bigint unique [not null] references <target>(id)``
    - Otherwise: ``<name> <type> [unique] [not null]``
    """
    tokens: List[str] = [DIALECT.quote(col.name), physical_type(col.column_type)]

    relation = col.column_type.relation
    if relation is not None:
        # Relation cardinality decides uniqueness; the flag is ignored
        if relation.kind is RelationKind.ONE_TO_ONE:
            tokens.append("unique")
    elif col.unique:
        tokens.append("unique")

    if col.required:
        tokens.append("not null")

    target = col.column_type.references(users_table)
    if target is not None:
        tokens.append(f"references {DIALECT.quote(target)}(id)")

    return " ".join(tokens)


def create_table_statement(
    collection: Collection, users_table: str = DEFAULT_USERS_TABLE
) -> str:
    """Generate the CREATE TABLE IF NOT EXISTS statement for a collection.

    System columns (id, created_at, updated_at) come first, followed by the
    user columns in ``column_defs`` order.
    """
    clauses = [column_clause(cd, users_table) for cd in collection.column_defs]
    return DIALECT.build_create_table(collection.name, clauses)


def drop_table_statement(collection: Collection) -> str:
    """Generate DROP TABLE IF EXISTS for a collection."""
    return DIALECT.build_drop_table(collection.name)


__all__ = [
    "physical_type",
    "column_clause",
    "create_table_statement",
    "drop_table_statement",
]
