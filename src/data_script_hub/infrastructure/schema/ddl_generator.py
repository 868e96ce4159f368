"""DDL SQL generation for scripted tables.

Pure function of a ColumnSchema list; independent of row data.
"""

from __future__ import annotations

from typing import List, Sequence

from data_script_hub.infrastructure.sql.core.identifier import quote_identifier

from .core import ColumnSchema, sql_type_parts


def _column_definition(col: ColumnSchema) -> str:
    """Render one column line, e.g. ``[Name] [varchar](50) NULL``."""
    type_name, params = sql_type_parts(col)
    parts = [f"{quote_identifier(col.name)} {quote_identifier(type_name)}{params}"]
    if col.is_identity:
        parts.append("IDENTITY(1,1)")
    parts.append("NULL" if col.allows_null else "NOT NULL")
    return " ".join(parts)


def build_create_table(
    table_name: str,
    columns: Sequence[ColumnSchema],
    line_terminator: str = "\r\n",
) -> str:
    """
    Generate the CREATE TABLE statement for a table.

    String-family types get their declared size or ``(MAX)``, decimals get
    ``(precision,scale)``, identity columns get ``IDENTITY(1,1)``. Key
    columns are collected, in schema order, into a single
    ``PK_<table>`` clustered primary-key constraint.

    Example:
        >>> print(build_create_table("Person", columns, line_terminator="\\n"))
        CREATE TABLE [Person](
        	[Id] [int] IDENTITY(1,1) NOT NULL,
        	[Name] [varchar](50) NULL,
        	CONSTRAINT [PK_Person] PRIMARY KEY CLUSTERED
        	(
        		[Id] ASC
        	)
        )
    """
    ordered = sorted(columns, key=lambda c: c.ordinal)
    definitions: List[str] = [f"\t{_column_definition(col)}" for col in ordered]

    keys = [col for col in ordered if col.is_key]
    if keys:
        key_lines = f",{line_terminator}".join(
            f"\t\t{quote_identifier(col.name)} ASC" for col in keys
        )
        definitions.append(
            line_terminator.join(
                [
                    f"\tCONSTRAINT {quote_identifier('PK_' + table_name)} PRIMARY KEY CLUSTERED",
                    "\t(",
                    key_lines,
                    "\t)",
                ]
            )
        )

    body = f",{line_terminator}".join(definitions)
    return line_terminator.join(
        [f"CREATE TABLE {quote_identifier(table_name)}(", body, ")"]
    )


__all__ = ["build_create_table"]
