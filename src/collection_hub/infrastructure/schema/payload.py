"""
Wire payload models for collection definitions.

The transport layer deserializes request bodies with these Pydantic models
and converts them into the immutable schema types. Column types use
externally tagged JSON:

    "Text"
    {"Relation": {"ManyToOne": "organizations"}}
    {"Relation": {"OneToOne": "organizations"}}

A column posted without an ``id`` is new and receives a freshly minted one.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core import (
    Collection,
    ColumnDef,
    ColumnKind,
    ColumnType,
    Relation,
    RelationKind,
)
from .exceptions import InvalidSchemaError

WireColumnType = Union[str, Dict[str, Any]]


def parse_column_type(value: WireColumnType) -> ColumnType:
    """
    Convert a wire column type into a ColumnType.

    Raises:
        InvalidSchemaError: If the type name or relation shape is unknown

    Examples:
        >>> parse_column_type("Email")
        ColumnType(kind=<ColumnKind.EMAIL: 'Email'>, relation=None)
        >>> str(parse_column_type({"Relation": {"OneToOne": "organizations"}}))
        'Relation(OneToOne(organizations))'
    """
    if isinstance(value, str):
        try:
            kind = ColumnKind(value)
        except ValueError:
            raise InvalidSchemaError(f"Unknown column type: {value!r}") from None
        if kind is ColumnKind.RELATION:
            raise InvalidSchemaError(
                "Relation column type requires a cardinality and target table"
            )
        return ColumnType(kind)

    if isinstance(value, dict) and list(value) == [ColumnKind.RELATION.value]:
        relation = value[ColumnKind.RELATION.value]
        if isinstance(relation, dict) and len(relation) == 1:
            ((kind_name, target),) = relation.items()
            try:
                relation_kind = RelationKind(kind_name)
            except ValueError:
                raise InvalidSchemaError(
                    f"Unknown relation kind: {kind_name!r}"
                ) from None
            if not isinstance(target, str):
                raise InvalidSchemaError(f"Invalid relation target: {target!r}")
            return ColumnType(ColumnKind.RELATION, Relation(relation_kind, target))

    raise InvalidSchemaError(f"Unknown column type: {value!r}")


def dump_column_type(column_type: ColumnType) -> WireColumnType:
    """Convert a ColumnType to its wire representation."""
    relation = column_type.relation
    if relation is not None:
        return {ColumnKind.RELATION.value: {relation.kind.value: relation.target}}
    return column_type.kind.value


class ColumnDefPayload(BaseModel):
    """Schema for one column in a collection request."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[uuid.UUID] = Field(
        None, description="Stable column identity; omitted for new columns"
    )
    name: str = Field(..., min_length=1, description="Column name")
    column_type: WireColumnType = Field(..., description="Logical column type")
    required: bool = Field(False, description="NOT NULL constraint")
    unique: bool = Field(False, description="UNIQUE constraint")

    def to_column_def(self) -> ColumnDef:
        return ColumnDef(
            id=self.id or uuid.uuid4(),
            name=self.name,
            column_type=parse_column_type(self.column_type),
            required=self.required,
            unique=self.unique,
        )


class CollectionPayload(BaseModel):
    """Schema for a complete collection request."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Table name")
    column_defs: List[ColumnDefPayload] = Field(
        default_factory=list, description="Ordered column definitions"
    )

    def to_collection(self) -> Collection:
        return Collection(
            name=self.name,
            column_defs=tuple(cd.to_column_def() for cd in self.column_defs),
        )


def _validation_failure(exc: ValidationError) -> InvalidSchemaError:
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )
    return InvalidSchemaError(f"Invalid collection payload: {details}")


def parse_collection(data: Dict[str, Any]) -> Collection:
    """
    Build a Collection from a decoded request body.

    Raises:
        InvalidSchemaError: If the payload does not validate
    """
    try:
        payload = CollectionPayload.model_validate(data)
    except ValidationError as e:
        raise _validation_failure(e) from e
    return payload.to_collection()


def parse_collection_json(raw: Union[str, bytes]) -> Collection:
    """Build a Collection from a raw JSON request body."""
    try:
        payload = CollectionPayload.model_validate_json(raw)
    except ValidationError as e:
        raise _validation_failure(e) from e
    return payload.to_collection()


def dump_collection(collection: Collection) -> Dict[str, Any]:
    """Convert a Collection into a JSON-serializable response body."""
    return {
        "name": collection.name,
        "column_defs": [
            {
                "id": str(cd.id),
                "name": cd.name,
                "column_type": dump_column_type(cd.column_type),
                "required": cd.required,
                "unique": cd.unique,
            }
            for cd in collection.column_defs
        ],
    }


__all__ = [
    "ColumnDefPayload",
    "CollectionPayload",
    "parse_column_type",
    "dump_column_type",
    "parse_collection",
    "parse_collection_json",
    "dump_collection",
]
