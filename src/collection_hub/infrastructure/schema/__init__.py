"""Collection schema layer.

Modules:
- core.py: Type definitions (ColumnType, ColumnDef, Collection)
- ddl_generator.py: Type mapping and CREATE TABLE compilation
- diff.py: Snapshot classification and ALTER TABLE planning
- payload.py: Pydantic wire models for collection requests
- service.py: Operations that execute compiled DDL
- exceptions.py: SchemaError hierarchy
"""

from .core import (
    DECIMAL,
    EMAIL,
    INT,
    JSON,
    TEXT,
    URL,
    USER,
    UUID,
    Collection,
    ColumnDef,
    ColumnKind,
    ColumnType,
    Relation,
    RelationKind,
    find_column,
)
from .ddl_generator import (
    column_clause,
    create_table_statement,
    drop_table_statement,
    physical_type,
)
from .diff import (
    AddColumn,
    AddUnique,
    ChangeType,
    ColumnDiff,
    DiffKind,
    DropColumn,
    MigrationPlan,
    RenameColumn,
    SchemaChange,
    SetRequired,
    change_clause,
    classify,
    plan_changes,
)
from .exceptions import (
    ExecutionFailedError,
    InvalidSchemaError,
    SchemaError,
    SchemaErrorKind,
)
from .payload import (
    CollectionPayload,
    ColumnDefPayload,
    dump_collection,
    parse_collection,
    parse_collection_json,
)
from .service import (
    create_collection,
    create_collection_async,
    drop_collection,
    update_collection,
    update_collection_async,
)

__all__ = [
    "ColumnKind",
    "RelationKind",
    "Relation",
    "ColumnType",
    "ColumnDef",
    "Collection",
    "find_column",
    "UUID",
    "INT",
    "DECIMAL",
    "TEXT",
    "JSON",
    "EMAIL",
    "URL",
    "USER",
    "physical_type",
    "column_clause",
    "create_table_statement",
    "drop_table_statement",
    "DiffKind",
    "ColumnDiff",
    "SchemaChange",
    "AddColumn",
    "RenameColumn",
    "ChangeType",
    "SetRequired",
    "AddUnique",
    "DropColumn",
    "MigrationPlan",
    "classify",
    "plan_changes",
    "change_clause",
    "SchemaError",
    "SchemaErrorKind",
    "InvalidSchemaError",
    "ExecutionFailedError",
    "ColumnDefPayload",
    "CollectionPayload",
    "parse_collection",
    "parse_collection_json",
    "dump_collection",
    "create_collection",
    "update_collection",
    "drop_collection",
    "create_collection_async",
    "update_collection_async",
]
