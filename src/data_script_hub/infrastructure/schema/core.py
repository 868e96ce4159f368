"""Core column schema types for scripted tables.

A ColumnSchema is established once per table and never mutated; every
other component reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NativeType(Enum):
    """Canonical value types, independent of the vendor type name."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    TEXT = "text"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    BOOLEAN = "boolean"
    BINARY = "binary"
    GUID = "guid"
    VARIANT = "variant"


STRING_SQL_TYPES = frozenset({"char", "varchar", "nchar", "nvarchar", "text", "ntext"})

DEFAULT_SQL_TYPES = {
    NativeType.INTEGER: "int",
    NativeType.DECIMAL: "decimal",
    NativeType.FLOAT: "float",
    NativeType.TEXT: "varchar",
    NativeType.DATETIME: "datetime",
    NativeType.DATE: "date",
    NativeType.TIME: "time",
    NativeType.BOOLEAN: "bit",
    NativeType.BINARY: "varbinary",
    NativeType.GUID: "uniqueidentifier",
    NativeType.VARIANT: "sql_variant",
}


@dataclass(frozen=True)
class ColumnSchema:
    """Definition of a single column of a scripted table."""

    name: str
    native_type: NativeType
    ordinal: int = 0
    sql_type: Optional[str] = None
    size: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_key: bool = False
    is_unique: bool = False
    is_identity: bool = False
    is_auto_increment: bool = False
    is_read_only: bool = False
    allows_null: bool = True
    table_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.sql_type is None:
            object.__setattr__(self, "sql_type", DEFAULT_SQL_TYPES[self.native_type])
        else:
            object.__setattr__(self, "sql_type", self.sql_type.strip().lower())

    @property
    def is_string_type(self) -> bool:
        """True for the char/varchar/nchar/nvarchar/text/ntext family."""
        return self.sql_type in STRING_SQL_TYPES

    @property
    def is_insertable(self) -> bool:
        """Identity and read-only columns never appear in INSERT or SET lists."""
        return not (self.is_identity or self.is_read_only)

    def __str__(self) -> str:
        return f"Db Column {self.name}[{self.ordinal}] Type: {self.sql_type}"


def render_sql_type(column: ColumnSchema) -> str:
    """Render the sized vendor type, e.g. ``varchar(50)`` or ``decimal(18,2)``."""
    name, params = sql_type_parts(column)
    return f"{name}{params}"


def sql_type_parts(column: ColumnSchema) -> tuple[str, str]:
    """Split a column's type into its name and parameter suffix."""
    name = column.sql_type or DEFAULT_SQL_TYPES[column.native_type]
    if column.is_string_type:
        if column.size and column.size > 0:
            return name, f"({column.size})"
        return name, "(MAX)"
    if name in ("decimal", "numeric"):
        precision = column.precision if column.precision is not None else 18
        scale = column.scale if column.scale is not None else 0
        return name, f"({precision},{scale})"
    return name, ""


__all__ = [
    "NativeType",
    "ColumnSchema",
    "DEFAULT_SQL_TYPES",
    "STRING_SQL_TYPES",
    "render_sql_type",
    "sql_type_parts",
]
