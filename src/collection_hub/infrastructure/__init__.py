"""
Infrastructure Layer

Components:
- schema: Collection model, DDL compiler and migration diff engine
- sql: Identifier rendering, PostgreSQL dialect and statement executors

Usage:
    from collection_hub.infrastructure.schema import Collection, ColumnDef, TEXT
    from collection_hub.infrastructure.sql import SqlAlchemyExecutor
"""

__all__: list[str] = []
