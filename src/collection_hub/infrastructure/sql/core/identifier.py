"""
SQL identifier handling utilities.

Provides validation, quoting and rendering of SQL identifiers (table names,
column names). Every identifier that ends up in generated DDL goes through
``render_identifier`` so quoting rules live in one place.
"""

import re

# PostgreSQL truncates identifiers longer than NAMEDATALEN - 1 bytes
MAX_IDENTIFIER_BYTES = 63

_IDENTIFIER_RE = re.compile(r"[^\W\d]\w*")
_PLAIN_IDENTIFIER_RE = re.compile(r"[a-z_][a-z0-9_]*")

# Reserved (and reserved-as-function) keywords in PostgreSQL
RESERVED_KEYWORDS = frozenset(
    {
        "all", "analyse", "analyze", "and", "any", "array", "as", "asc",
        "asymmetric", "authorization", "binary", "both", "case", "cast",
        "check", "collate", "collation", "column", "concurrently",
        "constraint", "create", "cross", "current_catalog", "current_date",
        "current_role", "current_schema", "current_time", "current_timestamp",
        "current_user", "default", "deferrable", "desc", "distinct", "do",
        "else", "end", "except", "false", "fetch", "for", "foreign", "freeze",
        "from", "full", "grant", "group", "having", "ilike", "in", "initially",
        "inner", "intersect", "into", "is", "isnull", "join", "lateral",
        "leading", "left", "like", "limit", "localtime", "localtimestamp",
        "natural", "not", "notnull", "null", "offset", "on", "only", "or",
        "order", "outer", "overlaps", "placing", "primary", "references",
        "returning", "right", "select", "session_user", "similar", "some",
        "symmetric", "system_user", "table", "tablesample", "then", "to",
        "trailing", "true", "union", "unique", "user", "using", "variadic",
        "verbose", "when", "where", "window", "with",
    }
)


def fits_identifier_limit(name: str) -> bool:
    """Check whether PostgreSQL would store the name without truncating it."""
    return len(name.encode("utf-8")) <= MAX_IDENTIFIER_BYTES


def is_valid_identifier(name: str) -> bool:
    """
    Check whether a name may be used as a table or column name.

    Names must start with a letter or underscore, contain only word
    characters (Unicode letters, digits, underscore) and fit in
    PostgreSQL's 63-byte identifier limit.

    Examples:
        >>> is_valid_identifier("company_id")
        True
        >>> is_valid_identifier("年金计划号")
        True
        >>> is_valid_identifier("1st")
        False
        >>> is_valid_identifier("drop table; --")
        False
    """
    if not name or not _IDENTIFIER_RE.fullmatch(name):
        return False
    return fits_identifier_limit(name)


def quote_identifier(name: str) -> str:
    """
    Quote a SQL identifier using PostgreSQL double quotes.

    Examples:
        >>> quote_identifier("年金计划号")
        '"年金计划号"'
        >>> quote_identifier('column"name')
        '"column""name"'
    """
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def render_identifier(name: str) -> str:
    """
    Render an identifier for DDL, quoting only when PostgreSQL requires it.

    Plain lowercase identifiers that are not reserved words are emitted
    bare. Anything else (uppercase letters, non-ASCII letters, reserved
    words) is double-quoted so the name survives case folding.

    Examples:
        >>> render_identifier("organizations")
        'organizations'
        >>> render_identifier("user")
        '"user"'
        >>> render_identifier("WebSite")
        '"WebSite"'
    """
    if _PLAIN_IDENTIFIER_RE.fullmatch(name) and name not in RESERVED_KEYWORDS:
        return name
    return quote_identifier(name)
