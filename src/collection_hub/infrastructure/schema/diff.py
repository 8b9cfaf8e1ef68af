"""Migration diff engine for collections.

Compares an old and a new snapshot of one collection, keyed by column id,
and turns the differences into ALTER TABLE operations. Neither snapshot is
mutated.

Classification is total: every column id lands in exactly one
``DiffKind``. Planning then applies the migration policy:

- added columns become ``add column``
- renames become ``rename column``
- removed columns become ``drop column`` only when destructive changes
  are allowed
- type changes with identical storage (text/email/url) need no DDL
- type changes touching foreign-key types are always rejected
- other type changes become ``alter column ... type`` only when
  destructive changes are allowed
- ``required`` changes become ``set``/``drop not null``
- gaining uniqueness becomes ``add constraint ... unique``; losing it is
  rejected
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .core import DEFAULT_USERS_TABLE, Collection, ColumnDef, ColumnType
from .ddl_generator import DIALECT, column_clause, physical_type
from .exceptions import InvalidSchemaError


class DiffKind(Enum):
    """How a single column differs between two snapshots."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    RENAMED = "renamed"
    RETYPED = "retyped"
    RENAMED_AND_RETYPED = "renamed_and_retyped"


@dataclass(frozen=True)
class ColumnDiff:
    """Classification of one column id across two snapshots."""

    column_id: uuid.UUID
    kind: DiffKind
    old: Optional[ColumnDef]
    new: Optional[ColumnDef]


@dataclass(frozen=True)
class AddColumn:
    column: ColumnDef


@dataclass(frozen=True)
class RenameColumn:
    old_name: str
    new_name: str


@dataclass(frozen=True)
class ChangeType:
    column_name: str
    old_type: ColumnType
    new_type: ColumnType


@dataclass(frozen=True)
class SetRequired:
    column_name: str
    required: bool


@dataclass(frozen=True)
class AddUnique:
    column_name: str


@dataclass(frozen=True)
class DropColumn:
    column_name: str


SchemaChange = Union[AddColumn, RenameColumn, ChangeType, SetRequired, AddUnique, DropColumn]


def _definition_differs(old: ColumnDef, new: ColumnDef) -> bool:
    return (
        old.column_type != new.column_type
        or old.required != new.required
        or old.effective_unique != new.effective_unique
    )


def classify(old: Collection, new: Collection) -> List[ColumnDiff]:
    """Classify every column id present in either snapshot.

    Columns of ``new`` come first in their declared order, followed by
    columns removed from ``old`` in their old order.
    """
    diffs: List[ColumnDiff] = []
    for cd in new.column_defs:
        previous = old.find_column(cd.id)
        if previous is None:
            kind = DiffKind.ADDED
        else:
            renamed = previous.name != cd.name
            retyped = _definition_differs(previous, cd)
            if renamed and retyped:
                kind = DiffKind.RENAMED_AND_RETYPED
            elif renamed:
                kind = DiffKind.RENAMED
            elif retyped:
                kind = DiffKind.RETYPED
            else:
                kind = DiffKind.UNCHANGED
        diffs.append(ColumnDiff(cd.id, kind, previous, cd))

    for cd in old.column_defs:
        if new.find_column(cd.id) is None:
            diffs.append(ColumnDiff(cd.id, DiffKind.REMOVED, cd, None))

    return diffs


def _type_change(
    old: ColumnDef, new: ColumnDef, allow_destructive: bool, table: str
) -> Optional[ChangeType]:
    if old.column_type.is_reference or new.column_type.is_reference:
        raise InvalidSchemaError(
            f"Cannot change type from {old.column_type} to {new.column_type}: "
            "foreign key columns require a manual data migration",
            collection=table,
            column=new.name,
        )
    old_storage = physical_type(old.column_type)
    new_storage = physical_type(new.column_type)
    if old_storage == new_storage:
        return None
    if not allow_destructive:
        raise InvalidSchemaError(
            f"Changing storage from {old_storage} to {new_storage} may lose data; "
            "pass allow_destructive=True to apply it",
            collection=table,
            column=new.name,
        )
    return ChangeType(new.name, old.column_type, new.column_type)


def _definition_changes(
    old: ColumnDef, new: ColumnDef, allow_destructive: bool, table: str
) -> Iterator[SchemaChange]:
    if old.column_type != new.column_type:
        change = _type_change(old, new, allow_destructive, table)
        if change is not None:
            yield change

    if old.required != new.required:
        yield SetRequired(new.name, new.required)

    if old.effective_unique != new.effective_unique:
        if not new.effective_unique:
            raise InvalidSchemaError(
                "Dropping a unique constraint is not supported",
                collection=table,
                column=new.name,
            )
        yield AddUnique(new.name)


def plan_changes(
    old: Collection, new: Collection, allow_destructive: bool = False
) -> "MigrationPlan":
    """Compute the schema changes that turn ``old`` into ``new``.

    Raises:
        InvalidSchemaError: If the diff contains a change the policy rejects
    """
    if old.name != new.name:
        raise InvalidSchemaError(
            f"Collection renames are not supported (new name {new.name!r})",
            collection=old.name,
        )

    changes: List[SchemaChange] = []
    for diff in classify(old, new):
        if diff.kind is DiffKind.UNCHANGED:
            continue
        if diff.kind is DiffKind.ADDED:
            changes.append(AddColumn(diff.new))
            continue
        if diff.kind is DiffKind.REMOVED:
            if not allow_destructive:
                raise InvalidSchemaError(
                    "Dropping a column deletes its data; "
                    "pass allow_destructive=True to apply it",
                    collection=old.name,
                    column=diff.old.name,
                )
            changes.append(DropColumn(diff.old.name))
            continue

        if diff.old.name != diff.new.name:
            changes.append(RenameColumn(diff.old.name, diff.new.name))
        changes.extend(
            _definition_changes(diff.old, diff.new, allow_destructive, old.name)
        )

    # Raises on rename cycles
    _order_renames([c for c in changes if isinstance(c, RenameColumn)], new.name)
    return MigrationPlan(new.name, tuple(changes))


def change_clause(
    change: SchemaChange, table: str, users_table: str = DEFAULT_USERS_TABLE
) -> str:
    """Compile one schema change to its ALTER TABLE subcommand."""
    if isinstance(change, AddColumn):
        return DIALECT.add_column(column_clause(change.column, users_table))
    if isinstance(change, RenameColumn):
        return DIALECT.rename_column(change.old_name, change.new_name)
    if isinstance(change, DropColumn):
        return DIALECT.drop_column(change.column_name)
    if isinstance(change, ChangeType):
        return DIALECT.alter_column_type(
            change.column_name, physical_type(change.new_type)
        )
    if isinstance(change, SetRequired):
        return DIALECT.set_not_null(change.column_name, change.required)
    if isinstance(change, AddUnique):
        return DIALECT.add_unique_constraint(table, change.column_name)
    raise InvalidSchemaError(f"Unknown schema change: {change!r}", collection=table)


def _order_renames(
    renames: Sequence[RenameColumn], table: str
) -> List[RenameColumn]:
    """Order renames so a name is vacated before another column takes it."""
    pending = list(renames)
    ordered: List[RenameColumn] = []
    while pending:
        sources = {r.old_name for r in pending}
        ready = [r for r in pending if r.new_name not in sources]
        if not ready:
            cycle = ", ".join(f"{r.old_name}->{r.new_name}" for r in pending)
            raise InvalidSchemaError(
                f"Cyclic column renames are not supported: {cycle}",
                collection=table,
            )
        ordered.extend(ready)
        pending = [r for r in pending if r not in ready]
    return ordered


@dataclass(frozen=True)
class MigrationPlan:
    """Ordered schema changes for one collection table."""

    table: str
    changes: Tuple[SchemaChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def statements(self, users_table: str = DEFAULT_USERS_TABLE) -> List[str]:
        """Compile the plan to ALTER TABLE statements.

        PostgreSQL rejects RENAME COLUMN mixed with other subcommands, so
        each rename gets its own statement. Drops run before renames and
        all remaining clauses run after them. Without renames the whole
        plan is a single statement.
        """
        drops: List[str] = []
        renames: List[RenameColumn] = []
        others: List[str] = []
        for change in self.changes:
            if isinstance(change, RenameColumn):
                renames.append(change)
            elif isinstance(change, DropColumn):
                drops.append(change_clause(change, self.table, users_table))
            else:
                others.append(change_clause(change, self.table, users_table))

        if not renames:
            clauses = drops + others
            return [DIALECT.build_alter_table(self.table, clauses)] if clauses else []

        statements: List[str] = []
        if drops:
            statements.append(DIALECT.build_alter_table(self.table, drops))
        for rename in _order_renames(renames, self.table):
            statements.append(
                DIALECT.build_alter_table(
                    self.table, [change_clause(rename, self.table, users_table)]
                )
            )
        if others:
            statements.append(DIALECT.build_alter_table(self.table, others))
        return statements

    def script(self, users_table: str = DEFAULT_USERS_TABLE) -> str:
        """Compile the plan to one script for a single executor call."""
        return DIALECT.build_script(self.statements(users_table))


__all__ = [
    "DiffKind",
    "ColumnDiff",
    "AddColumn",
    "RenameColumn",
    "ChangeType",
    "SetRequired",
    "AddUnique",
    "DropColumn",
    "SchemaChange",
    "MigrationPlan",
    "classify",
    "plan_changes",
    "change_clause",
]
