"""
SQL identifier handling utilities.

Provides bracket quoting and qualification of T-SQL identifiers (table
names, column names, type names).
"""

from typing import Optional


def quote_identifier(name: str) -> str:
    """
    Quote a SQL identifier using square brackets.

    Args:
        name: The identifier to quote

    Returns:
        Bracketed identifier with closing brackets doubled

    Examples:
        >>> quote_identifier("Person")
        '[Person]'
        >>> quote_identifier("odd]name")
        '[odd]]name]'
    """
    escaped = name.replace("]", "]]")
    return f"[{escaped}]"


def qualify_table(table: str, schema: Optional[str] = None) -> str:
    """
    Create a table reference with optional schema prefix.

    A dotted table name (``dbo.Person``) is split on its last dot when no
    explicit schema is given.

    Examples:
        >>> qualify_table("Person")
        '[Person]'
        >>> qualify_table("Person", schema="dbo")
        '[dbo].[Person]'
        >>> qualify_table("dbo.Person")
        '[dbo].[Person]'
    """
    if schema is None and "." in table:
        schema, table = table.rsplit(".", 1)
    quoted_table = quote_identifier(table)
    if schema:
        return f"{quote_identifier(schema)}.{quoted_table}"
    return quoted_table


def scalar_variable_name(table: str, column: str) -> str:
    """
    Derive the scalar variable that holds a column's sub-select result.

    Examples:
        >>> scalar_variable_name("Employee", "DeptId")
        '@Employee_DeptId'
        >>> scalar_variable_name("dbo.Order Lines", "Sku")
        '@dbo_Order_Lines_Sku'
    """
    raw = f"{table}_{column}"
    safe = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in raw)
    return f"@{safe}"
