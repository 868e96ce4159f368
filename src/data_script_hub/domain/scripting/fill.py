"""
Row source adapters for scripted tables.

Turns captured data into ScriptTable rows:

- ``fill_from_frame``: a pandas DataFrame (schema harvested from dtypes)
- ``fill_from_sqlalchemy``: row tuples plus SQLAlchemy ``Table`` metadata
- ``load_table_definition``: a YAML file describing columns and rows
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
import sqlalchemy as sa
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from data_script_hub.infrastructure.schema.core import ColumnSchema
from data_script_hub.infrastructure.schema.type_mapping import (
    SQL_TYPE_NATIVE,
    native_type_for_sql,
    schema_from_frame,
    schema_from_sqlalchemy,
)
from data_script_hub.infrastructure.sql.core.relationship import Relationship
from data_script_hub.utils.logging import get_logger

from .exceptions import TableDefinitionError
from .models import ScriptTable, TableMetadata
from .types import CompatibilityLevel

logger = get_logger(__name__)

Relationships = Mapping[str, Union[str, Relationship]]


def _frame_records(df: pd.DataFrame) -> List[List[Any]]:
    """Row value lists with NaN/NaT/NA replaced by None."""
    cleaned = df.astype(object).where(pd.notna(df), None)
    return [list(record) for record in cleaned.itertuples(index=False, name=None)]


def fill_from_frame(
    table: ScriptTable,
    df: pd.DataFrame,
    key_columns: Iterable[str] = (),
    unique_columns: Iterable[str] = (),
    identity_columns: Iterable[str] = (),
    read_only_columns: Iterable[str] = (),
    relationships: Optional[Relationships] = None,
    apply_restriction: bool = False,
) -> int:
    """
    Append the rows of a DataFrame to ``table``.

    The schema is harvested from the DataFrame on the first fill. Later
    fills must harvest an identical schema.

    Args:
        table: Target table
        df: Source rows
        key_columns: Primary-key column names
        unique_columns: Unique column names
        identity_columns: Identity column names
        read_only_columns: Columns never written
        relationships: Column name -> ``{Table.Column join}`` notation
        apply_restriction: Filter ``df`` with the table's restriction text,
            interpreted as a ``DataFrame.query`` expression

    Returns:
        Number of rows appended
    """
    restriction = table.metadata.restriction
    if apply_restriction and restriction:
        df = df.query(restriction)

    schema = schema_from_frame(
        df,
        table_name=table.name,
        key_columns=key_columns,
        unique_columns=unique_columns,
        identity_columns=identity_columns,
        read_only_columns=read_only_columns,
    )
    if table.schema is not None:
        # Keep the established schema; dtypes of a later frame may differ
        # (e.g. an all-null column), only the column names must line up
        if [c.name for c in schema] != [c.name for c in table.schema]:
            schema_arg: Optional[Sequence[ColumnSchema]] = schema
        else:
            schema_arg = None
    else:
        schema_arg = schema

    appended = table.fill(_frame_records(df), schema=schema_arg, relationships=relationships)
    logger.debug("frame_rows_filled", table=table.name, rows=appended)
    return appended


def fill_from_sqlalchemy(
    table: ScriptTable,
    source: sa.Table,
    rows: Iterable[Union[Sequence[Any], Mapping[str, Any]]],
    relationships: Optional[Relationships] = None,
) -> int:
    """
    Append rows described by SQLAlchemy ``Table`` metadata.

    ``rows`` may be SQLAlchemy ``Row`` objects, plain tuples in column
    order, or mappings keyed by column name. No query is executed here.
    """
    schema = schema_from_sqlalchemy(source)
    values = [row._mapping if isinstance(row, sa.Row) else row for row in rows]
    appended = table.fill(values, schema=schema, relationships=relationships)
    logger.debug("sqlalchemy_rows_filled", table=table.name, rows=appended)
    return appended


class ColumnDefinition(BaseModel):
    """One column of a YAML table definition."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Vendor type name, e.g. varchar")
    size: Optional[int] = Field(None, ge=-1)
    precision: Optional[int] = Field(None, ge=1)
    scale: Optional[int] = Field(None, ge=0)
    key: bool = False
    unique: bool = False
    identity: bool = False
    read_only: bool = False
    nullable: bool = True

    @field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        folded = value.strip().lower()
        if folded not in SQL_TYPE_NATIVE:
            raise ValueError(f"Unknown column type {value!r}")
        return folded


class TableDefinition(BaseModel):
    """A YAML table definition: schema, metadata, relationships and rows."""

    model_config = ConfigDict(extra="forbid")

    table: str = Field(..., min_length=1)
    comment: Optional[str] = None
    restriction: Optional[str] = None
    use_database: Optional[str] = None
    script_name: Optional[str] = None
    compatibility: Optional[CompatibilityLevel] = None
    columns: List[ColumnDefinition] = Field(..., min_length=1)
    relationships: Dict[str, str] = Field(default_factory=dict)
    rows: List[Union[List[Any], Dict[str, Any]]] = Field(default_factory=list)

    def column_schema(self) -> List[ColumnSchema]:
        return [
            ColumnSchema(
                name=column.name,
                native_type=native_type_for_sql(column.type),
                ordinal=ordinal,
                sql_type=column.type,
                size=column.size,
                precision=column.precision,
                scale=column.scale,
                is_key=column.key,
                is_unique=column.unique,
                is_identity=column.identity,
                is_auto_increment=column.identity,
                is_read_only=column.read_only,
                allows_null=column.nullable,
                table_name=self.table,
            )
            for ordinal, column in enumerate(self.columns)
        ]


def load_table_definition(path: Union[str, Path]) -> ScriptTable:
    """
    Load a YAML table definition and return the filled table.

    Example file::

        table: Person
        compatibility: modern
        columns:
          - {name: Id, type: int, key: true, identity: true, nullable: false}
          - {name: Name, type: varchar, size: 50}
        rows:
          - [1, "O'Brien"]

    Raises:
        TableDefinitionError: If the file is missing, not YAML, or invalid
    """
    definition_path = Path(path)
    if not definition_path.exists():
        raise TableDefinitionError(f"Table definition not found: {definition_path}")

    try:
        with open(definition_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise TableDefinitionError(f"Invalid YAML table definition: {e}") from e

    if not isinstance(data, dict):
        raise TableDefinitionError("Table definition must be a mapping")

    try:
        definition = TableDefinition.model_validate(data)
    except ValidationError as e:
        raise TableDefinitionError(
            f"Invalid table definition {definition_path.name}: {e}",
            table_name=data.get("table") if isinstance(data.get("table"), str) else None,
        ) from e

    table = ScriptTable(
        definition.table,
        metadata=TableMetadata(
            restriction=definition.restriction,
            comment=definition.comment,
            use_database=definition.use_database,
            script_name=definition.script_name,
        ),
        compatibility=definition.compatibility,
    )
    table.fill(
        definition.rows,
        schema=definition.column_schema(),
        relationships=definition.relationships,
    )
    logger.debug(
        "table_definition_loaded",
        table=table.name,
        path=str(definition_path),
        rows=len(table),
    )
    return table


__all__ = [
    "fill_from_frame",
    "fill_from_sqlalchemy",
    "ColumnDefinition",
    "TableDefinition",
    "load_table_definition",
]
