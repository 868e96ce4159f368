"""Column schema model, source type mapping and DDL generation."""

from .core import (
    DEFAULT_SQL_TYPES,
    STRING_SQL_TYPES,
    ColumnSchema,
    NativeType,
    render_sql_type,
    sql_type_parts,
)
from .ddl_generator import build_create_table
from .type_mapping import (
    native_type_for_sql,
    native_type_for_value,
    schema_from_definitions,
    schema_from_frame,
    schema_from_sqlalchemy,
)

__all__ = [
    "NativeType",
    "ColumnSchema",
    "DEFAULT_SQL_TYPES",
    "STRING_SQL_TYPES",
    "render_sql_type",
    "sql_type_parts",
    "build_create_table",
    "native_type_for_sql",
    "native_type_for_value",
    "schema_from_definitions",
    "schema_from_frame",
    "schema_from_sqlalchemy",
]
