"""Core collection schema types.

A collection is an ordered set of column definitions under a table name.
Column identity is the ``id`` minted when the column is first created;
names may change over time without changing identity.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from collection_hub.infrastructure.sql.core.identifier import is_valid_identifier

from .exceptions import InvalidSchemaError

DEFAULT_USERS_TABLE = "users"

# Owned by the DDL compiler, never by user-supplied columns
SYSTEM_COLUMN_NAMES = frozenset({"id", "created_at", "updated_at"})


class ColumnKind(Enum):
    """Logical column types. Values are the wire names."""

    UUID = "UUID"
    INT = "Int"
    DECIMAL = "Decimal"
    TEXT = "Text"
    JSON = "JSON"
    EMAIL = "Email"
    URL = "Url"
    USER = "User"
    RELATION = "Relation"


class RelationKind(Enum):
    """Cardinality of a relation column."""

    MANY_TO_ONE = "ManyToOne"
    ONE_TO_ONE = "OneToOne"


@dataclass(frozen=True)
class Relation:
    """Foreign reference from a relation column to another collection."""

    kind: RelationKind
    target: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, RelationKind):
            raise InvalidSchemaError(f"Unknown relation kind: {self.kind!r}")
        if not is_valid_identifier(self.target):
            raise InvalidSchemaError(f"Invalid relation target table: {self.target!r}")


@dataclass(frozen=True)
class ColumnType:
    """
    Logical type of a column.

    Every kind except ``RELATION`` is a plain tag; ``RELATION`` carries the
    relation cardinality and target table.
    """

    kind: ColumnKind
    relation: Optional[Relation] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ColumnKind):
            raise InvalidSchemaError(f"Unknown column type: {self.kind!r}")
        if self.kind is ColumnKind.RELATION and self.relation is None:
            raise InvalidSchemaError("Relation column type requires a relation")
        if self.kind is not ColumnKind.RELATION and self.relation is not None:
            raise InvalidSchemaError(
                f"Column type {self.kind.value} cannot carry a relation"
            )

    @classmethod
    def many_to_one(cls, target: str) -> "ColumnType":
        return cls(ColumnKind.RELATION, Relation(RelationKind.MANY_TO_ONE, target))

    @classmethod
    def one_to_one(cls, target: str) -> "ColumnType":
        return cls(ColumnKind.RELATION, Relation(RelationKind.ONE_TO_ONE, target))

    @property
    def is_reference(self) -> bool:
        """True for types stored as a foreign key."""
        return self.kind in (ColumnKind.USER, ColumnKind.RELATION)

    def references(self, users_table: str = DEFAULT_USERS_TABLE) -> Optional[str]:
        """Return the table a reference type points at, or None."""
        if self.kind is ColumnKind.USER:
            return users_table
        if self.relation is not None:
            return self.relation.target
        return None

    def __str__(self) -> str:
        if self.relation is not None:
            return f"Relation({self.relation.kind.value}({self.relation.target}))"
        return self.kind.value


UUID = ColumnType(ColumnKind.UUID)
INT = ColumnType(ColumnKind.INT)
DECIMAL = ColumnType(ColumnKind.DECIMAL)
TEXT = ColumnType(ColumnKind.TEXT)
JSON = ColumnType(ColumnKind.JSON)
EMAIL = ColumnType(ColumnKind.EMAIL)
URL = ColumnType(ColumnKind.URL)
USER = ColumnType(ColumnKind.USER)


@dataclass(frozen=True)
class ColumnDef:
    """
    Definition of a single column in a collection.

    ``id`` is the identity key and never changes; two definitions with the
    same ``id`` and different ``name`` describe a rename of one column.
    Equality compares every field.
    """

    id: uuid.UUID
    name: str
    column_type: ColumnType
    required: bool = False
    unique: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.id, uuid.UUID):
            raise InvalidSchemaError(
                f"Column id must be a UUID, got {type(self.id).__name__}",
                column=str(self.name),
            )
        if not isinstance(self.name, str) or not is_valid_identifier(self.name):
            raise InvalidSchemaError(f"Invalid column name: {self.name!r}")
        if not isinstance(self.column_type, ColumnType):
            raise InvalidSchemaError(
                f"Unknown column type: {self.column_type!r}", column=self.name
            )

    @classmethod
    def new(
        cls,
        name: str,
        column_type: ColumnType,
        required: bool = False,
        unique: bool = False,
    ) -> "ColumnDef":
        """Create a column with a freshly minted identity."""
        return cls(uuid.uuid4(), name, column_type, required, unique)

    @property
    def effective_unique(self) -> bool:
        """Uniqueness as enforced in the database.

        One-to-one relations are always unique, many-to-one never are;
        every other type follows the ``unique`` flag.
        """
        relation = self.column_type.relation
        if relation is not None:
            return relation.kind is RelationKind.ONE_TO_ONE
        return self.unique


def find_column(
    column_defs: Iterable[ColumnDef], column_id: uuid.UUID
) -> Optional[ColumnDef]:
    """Return the column with the given id, or None."""
    return next((cd for cd in column_defs if cd.id == column_id), None)


@dataclass(frozen=True)
class Collection:
    """A logical table: a name and an ordered set of column definitions."""

    name: str
    column_defs: Tuple[ColumnDef, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_defs", tuple(self.column_defs))

        if not isinstance(self.name, str) or not is_valid_identifier(self.name):
            raise InvalidSchemaError(f"Invalid collection name: {self.name!r}")

        seen_ids = set()
        seen_names = set()
        for cd in self.column_defs:
            if not isinstance(cd, ColumnDef):
                raise InvalidSchemaError(
                    f"Expected ColumnDef, got {type(cd).__name__}",
                    collection=self.name,
                )
            if cd.name in SYSTEM_COLUMN_NAMES:
                raise InvalidSchemaError(
                    "Column name is reserved for system columns",
                    collection=self.name,
                    column=cd.name,
                )
            if cd.id in seen_ids:
                raise InvalidSchemaError(
                    f"Duplicate column id {cd.id}",
                    collection=self.name,
                    column=cd.name,
                )
            if cd.name in seen_names:
                raise InvalidSchemaError(
                    "Duplicate column name", collection=self.name, column=cd.name
                )
            seen_ids.add(cd.id)
            seen_names.add(cd.name)

    @property
    def column_names(self) -> Sequence[str]:
        return [cd.name for cd in self.column_defs]

    def find_column(self, column_id: uuid.UUID) -> Optional[ColumnDef]:
        return find_column(self.column_defs, column_id)


__all__ = [
    "ColumnKind",
    "RelationKind",
    "Relation",
    "ColumnType",
    "ColumnDef",
    "Collection",
    "find_column",
    "DEFAULT_USERS_TABLE",
    "SYSTEM_COLUMN_NAMES",
    "UUID",
    "INT",
    "DECIMAL",
    "TEXT",
    "JSON",
    "EMAIL",
    "URL",
    "USER",
]
