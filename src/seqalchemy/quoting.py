"""
Identifier and literal quoting for generated T-SQL.

Every name or string interpolated into generated SQL passes through this
module so that names with spaces, reserved words, brackets or quotes are
always rendered safely.
"""

from __future__ import annotations


def quote_identifier(name: str) -> str:
    """
    Bracket-quote a SQL Server identifier.

    Args:
        name: Raw identifier (table, column, schema or trigger name)

    Returns:
        Bracketed identifier with closing brackets doubled

    Examples:
        >>> quote_identifier('Course Table')
        '[Course Table]'
        >>> quote_identifier('odd]name')
        '[odd]]name]'
    """
    if not name:
        raise ValueError("Identifier must not be empty")
    return "[" + name.replace("]", "]]") + "]"


def quote_literal(value: str) -> str:
    """
    Render a Unicode string literal.

    Examples:
        >>> quote_literal("it's")
        "N'it''s'"
    """
    return "N'" + value.replace("'", "''") + "'"


def normalize_schema(schema: str | None) -> str | None:
    """
    Normalize schema name by converting empty strings to None.

    Examples:
        >>> normalize_schema('') is None
        True
        >>> normalize_schema('dbo')
        'dbo'
    """
    return schema if schema else None


def qualify(name: str, schema: str | None = None) -> str:
    """
    Get the quoted, optionally schema-qualified reference for an object.

    Args:
        name: Object name
        schema: Optional schema name

    Returns:
        Quoted reference (e.g., "[dbo].[users]" or just "[users]")

    Examples:
        >>> qualify('users', 'dbo')
        '[dbo].[users]'
        >>> qualify('users')
        '[users]'
    """
    schema = normalize_schema(schema)
    if schema:
        return f"{quote_identifier(schema)}.{quote_identifier(name)}"
    return quote_identifier(name)


def column_list(columns, alias: str | None = None) -> str:
    """
    Render a comma separated list of quoted columns.

    Examples:
        >>> column_list(['SchoolId', 'Name'])
        '[SchoolId], [Name]'
        >>> column_list(['SchoolId'], alias='i')
        'i.[SchoolId]'
    """
    prefix = f"{alias}." if alias else ""
    return ", ".join(prefix + quote_identifier(c) for c in columns)
