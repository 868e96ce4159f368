"""
Data-driven mapping from source type descriptors to ColumnSchema fields.

Source adapters never assign schema attributes by matching property names;
they look the source type up in one of the tables below:

- ``SQL_TYPE_NATIVE``: vendor type name -> NativeType
- ``PYTHON_TYPE_NATIVE``: Python value type -> NativeType
- ``SQLALCHEMY_TYPE_MAP``: SQLAlchemy type class -> (NativeType, vendor type)
- pandas dtypes are classified with ``pandas.api.types`` predicates
"""

from __future__ import annotations

import datetime as dt
import decimal
import uuid
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type

import pandas as pd
import sqlalchemy as sa
from pandas.api import types as pdt

from .core import ColumnSchema, NativeType

SQL_TYPE_NATIVE = {
    "bigint": NativeType.INTEGER,
    "int": NativeType.INTEGER,
    "integer": NativeType.INTEGER,
    "smallint": NativeType.INTEGER,
    "tinyint": NativeType.INTEGER,
    "decimal": NativeType.DECIMAL,
    "numeric": NativeType.DECIMAL,
    "money": NativeType.DECIMAL,
    "smallmoney": NativeType.DECIMAL,
    "float": NativeType.FLOAT,
    "real": NativeType.FLOAT,
    "char": NativeType.TEXT,
    "varchar": NativeType.TEXT,
    "nchar": NativeType.TEXT,
    "nvarchar": NativeType.TEXT,
    "text": NativeType.TEXT,
    "ntext": NativeType.TEXT,
    "xml": NativeType.TEXT,
    "datetime": NativeType.DATETIME,
    "datetime2": NativeType.DATETIME,
    "smalldatetime": NativeType.DATETIME,
    "datetimeoffset": NativeType.DATETIME,
    "date": NativeType.DATE,
    "time": NativeType.TIME,
    "bit": NativeType.BOOLEAN,
    "binary": NativeType.BINARY,
    "varbinary": NativeType.BINARY,
    "image": NativeType.BINARY,
    "timestamp": NativeType.BINARY,
    "uniqueidentifier": NativeType.GUID,
    "sql_variant": NativeType.VARIANT,
}

# Checked in order: bool before int, datetime before date
PYTHON_TYPE_NATIVE: List[Tuple[Type[Any], NativeType]] = [
    (bool, NativeType.BOOLEAN),
    (int, NativeType.INTEGER),
    (decimal.Decimal, NativeType.DECIMAL),
    (float, NativeType.FLOAT),
    (str, NativeType.TEXT),
    (dt.datetime, NativeType.DATETIME),
    (dt.date, NativeType.DATE),
    (dt.time, NativeType.TIME),
    (dt.timedelta, NativeType.TIME),
    (bytes, NativeType.BINARY),
    (bytearray, NativeType.BINARY),
    (uuid.UUID, NativeType.GUID),
]

# Checked in order: subclasses precede their bases
SQLALCHEMY_TYPE_MAP: List[Tuple[Type[sa.types.TypeEngine], NativeType, str]] = [
    (sa.UnicodeText, NativeType.TEXT, "ntext"),
    (sa.Text, NativeType.TEXT, "text"),
    (sa.Unicode, NativeType.TEXT, "nvarchar"),
    (sa.String, NativeType.TEXT, "varchar"),
    (sa.BigInteger, NativeType.INTEGER, "bigint"),
    (sa.SmallInteger, NativeType.INTEGER, "smallint"),
    (sa.Integer, NativeType.INTEGER, "int"),
    (sa.Float, NativeType.FLOAT, "float"),
    (sa.Numeric, NativeType.DECIMAL, "decimal"),
    (sa.DateTime, NativeType.DATETIME, "datetime"),
    (sa.Date, NativeType.DATE, "date"),
    (sa.Time, NativeType.TIME, "time"),
    (sa.Interval, NativeType.TIME, "time"),
    (sa.Boolean, NativeType.BOOLEAN, "bit"),
    (sa.LargeBinary, NativeType.BINARY, "varbinary"),
    (sa.Uuid, NativeType.GUID, "uniqueidentifier"),
]


def native_type_for_sql(sql_type: str) -> NativeType:
    """Look up the native type of a vendor type name (unknown names are variant)."""
    return SQL_TYPE_NATIVE.get(sql_type.strip().lower(), NativeType.VARIANT)


def native_type_for_value(value: Any) -> NativeType:
    """Classify a Python value (used for object columns of a DataFrame)."""
    for python_type, native in PYTHON_TYPE_NATIVE:
        if isinstance(value, python_type):
            return native
    return NativeType.VARIANT


def _classify_series(series: pd.Series) -> Tuple[NativeType, Optional[str]]:
    """Return (native type, vendor type) for a DataFrame column."""
    dtype = series.dtype
    if pdt.is_bool_dtype(dtype):
        return NativeType.BOOLEAN, "bit"
    if pdt.is_integer_dtype(dtype):
        return NativeType.INTEGER, "bigint" if dtype.itemsize > 4 else "int"
    if pdt.is_float_dtype(dtype):
        return NativeType.FLOAT, "float"
    if pdt.is_datetime64_any_dtype(dtype):
        return NativeType.DATETIME, "datetime"
    if pdt.is_timedelta64_dtype(dtype):
        return NativeType.TIME, "time"
    if pdt.is_string_dtype(dtype) and not pdt.is_object_dtype(dtype):
        return NativeType.TEXT, "nvarchar"

    # object / category: classify by the first non-null value
    non_null = series.dropna()
    if non_null.empty:
        return NativeType.TEXT, "nvarchar"
    native = native_type_for_value(non_null.iloc[0])
    if native is NativeType.TEXT:
        return native, "nvarchar"
    return native, None


def schema_from_frame(
    df: pd.DataFrame,
    table_name: Optional[str] = None,
    key_columns: Iterable[str] = (),
    unique_columns: Iterable[str] = (),
    identity_columns: Iterable[str] = (),
    read_only_columns: Iterable[str] = (),
) -> List[ColumnSchema]:
    """
    Build a ColumnSchema list from a DataFrame's columns and dtypes.

    DataFrames carry no key information, so key, unique, identity and
    read-only flags are supplied by column name.

    Args:
        df: Source DataFrame
        table_name: Owning table name recorded on each column
        key_columns: Primary-key column names
        unique_columns: Unique column names
        identity_columns: Identity (auto-increment) column names
        read_only_columns: Columns that must never be written

    Returns:
        ColumnSchema list in DataFrame column order
    """
    keys = set(key_columns)
    uniques = set(unique_columns)
    identities = set(identity_columns)
    read_only = set(read_only_columns)

    unknown = (keys | uniques | identities | read_only) - set(map(str, df.columns))
    if unknown:
        raise KeyError(f"Columns not found in DataFrame: {sorted(unknown)}")

    columns: List[ColumnSchema] = []
    for ordinal, name in enumerate(df.columns):
        name = str(name)
        native, sql_type = _classify_series(df[name])
        columns.append(
            ColumnSchema(
                name=name,
                native_type=native,
                ordinal=ordinal,
                sql_type=sql_type,
                is_key=name in keys,
                is_unique=name in uniques,
                is_identity=name in identities,
                is_auto_increment=name in identities,
                is_read_only=name in read_only,
                allows_null=bool(df[name].isna().any()) or name not in keys,
                table_name=table_name,
            )
        )
    return columns


def _sqlalchemy_type(type_: sa.types.TypeEngine) -> Tuple[NativeType, str]:
    for type_class, native, sql_type in SQLALCHEMY_TYPE_MAP:
        if isinstance(type_, type_class):
            return native, sql_type
    return NativeType.VARIANT, "sql_variant"


def _single_column_unique(table: sa.Table) -> set:
    names = set()
    for constraint in table.constraints:
        if isinstance(constraint, sa.UniqueConstraint) and len(constraint.columns) == 1:
            names.update(c.name for c in constraint.columns)
    return names


def schema_from_sqlalchemy(table: sa.Table) -> List[ColumnSchema]:
    """
    Build a ColumnSchema list from SQLAlchemy ``Table`` metadata.

    Example:
        >>> person = sa.Table(
        ...     "Person", sa.MetaData(),
        ...     sa.Column("Id", sa.Integer, primary_key=True),
        ...     sa.Column("Name", sa.String(50)),
        ... )
        >>> [c.sql_type for c in schema_from_sqlalchemy(person)]
        ['int', 'varchar']
    """
    unique_names = _single_column_unique(table)
    autoincrement = table.autoincrement_column

    columns: List[ColumnSchema] = []
    for ordinal, col in enumerate(table.columns):
        native, sql_type = _sqlalchemy_type(col.type)
        is_identity = col.identity is not None or col is autoincrement
        columns.append(
            ColumnSchema(
                name=col.name,
                native_type=native,
                ordinal=ordinal,
                sql_type=sql_type,
                size=getattr(col.type, "length", None),
                precision=getattr(col.type, "precision", None),
                scale=getattr(col.type, "scale", None),
                is_key=bool(col.primary_key),
                is_unique=bool(col.unique) or col.name in unique_names,
                is_identity=is_identity,
                is_auto_increment=is_identity,
                is_read_only=col.computed is not None,
                allows_null=bool(col.nullable),
                table_name=table.name,
            )
        )
    return columns


def schema_from_definitions(
    definitions: Sequence[dict], table_name: Optional[str] = None
) -> List[ColumnSchema]:
    """Build a ColumnSchema list from plain dicts keyed like ColumnSchema fields."""
    columns: List[ColumnSchema] = []
    for ordinal, definition in enumerate(definitions):
        values = dict(definition)
        sql_type = values.get("sql_type")
        if "native_type" not in values:
            if not sql_type:
                raise ValueError(f"Column {values.get('name')!r} needs sql_type or native_type")
            values["native_type"] = native_type_for_sql(sql_type)
        elif not isinstance(values["native_type"], NativeType):
            values["native_type"] = NativeType(values["native_type"])
        values.setdefault("ordinal", ordinal)
        values.setdefault("table_name", table_name)
        columns.append(ColumnSchema(**values))
    return columns


__all__ = [
    "SQL_TYPE_NATIVE",
    "PYTHON_TYPE_NATIVE",
    "SQLALCHEMY_TYPE_MAP",
    "native_type_for_sql",
    "native_type_for_value",
    "schema_from_frame",
    "schema_from_sqlalchemy",
    "schema_from_definitions",
]
