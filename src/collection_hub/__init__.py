"""
collection_hub - Dynamic collection schemas for PostgreSQL.

Lets applications describe tables ("collections") at runtime as ordered sets
of typed columns, compiles them to DDL, and evolves existing tables through
an identity-preserving migration diff.
"""

__version__ = "0.1.0"
