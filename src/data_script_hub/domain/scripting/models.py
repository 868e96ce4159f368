"""
Scripted table, row and cell models.

A ScriptTable holds an immutable column schema (established by the first
fill) and an ordered list of rows. Each ScriptRow holds one ScriptColumn
cell per schema column, in ordinal order, and a back-reference to its
table for name and formatter look-ups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from data_script_hub.config import get_settings
from data_script_hub.infrastructure.schema.core import ColumnSchema
from data_script_hub.infrastructure.schema.ddl_generator import build_create_table
from data_script_hub.infrastructure.sql.core.literals import (
    DATETIME_FORMAT_12H,
    DATETIME_FORMAT_24H,
    LiteralFormatter,
)
from data_script_hub.infrastructure.sql.core.relationship import Relationship
from data_script_hub.infrastructure.sql.dialects.compatibility import (
    CompatibilityStrategy,
    get_compatibility,
)

from .exceptions import RelationshipFormatError, SchemaMismatchError
from .types import UNSET, CompatibilityLevel, ScriptModifier, ValueKind

RowValues = Union[Sequence[Any], Mapping[str, Any]]


@dataclass(frozen=True)
class TableMetadata:
    """
    Descriptive metadata attached to a table at construction time.

    Attributes:
        restriction: WHERE text used when the rows were pulled from a source
        comment: Free-text comment for the script header
        use_database: Database named in a ``USE`` directive
        script_name: Table name written into the script in place of the
            captured table's name (statements, markers, file name)
        select_text: Query the rows were captured with
        source_name: Name of the data source the rows came from
    """

    restriction: Optional[str] = None
    comment: Optional[str] = None
    use_database: Optional[str] = None
    script_name: Optional[str] = None
    select_text: Optional[str] = None
    source_name: Optional[str] = None

    def header_comment(self, line_terminator: str = "\r\n") -> Optional[str]:
        """The explicit comment, else one describing the capturing query."""
        if self.comment:
            return self.comment
        if self.select_text:
            text = f"original query: {self.select_text}"
            if self.source_name:
                text += f"{line_terminator}    from: {self.source_name}"
            return text
        return None


@dataclass(frozen=True)
class ScriptColumn:
    """One cell of a row: schema, raw value and optional relationship."""

    schema: ColumnSchema
    value: Any = UNSET
    relationship: Optional[Relationship] = None

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def value_kind(self) -> ValueKind:
        """Kind of the stored value alone, ignoring any relationship."""
        if isinstance(self.value, ScriptModifier):
            return ValueKind.MODIFIER
        return ValueKind.LITERAL

    @property
    def kind(self) -> ValueKind:
        """A relationship takes precedence over a modifier value."""
        if self.relationship is not None:
            return ValueKind.SUBQUERY
        return self.value_kind

    @property
    def is_subquery(self) -> bool:
        return self.relationship is not None


class ScriptRow:
    """A row of cells in schema order. Only the comment may change."""

    def __init__(
        self,
        table: "ScriptTable",
        columns: Sequence[ScriptColumn],
        sequence_id: int,
        comment: Optional[str] = None,
    ):
        self.table = table
        self.columns: Tuple[ScriptColumn, ...] = tuple(columns)
        self.sequence_id = sequence_id
        self.comment = comment
        self._by_name: Dict[str, ScriptColumn] = {
            column.name.lower(): column for column in self.columns
        }

    @property
    def table_name(self) -> str:
        return self.table.name

    @property
    def subquery_columns(self) -> List[ScriptColumn]:
        return [column for column in self.columns if column.is_subquery]

    def column(self, name: str) -> Optional[ScriptColumn]:
        """Look up a cell by column name, case-insensitively."""
        return self._by_name.get(name.lower())

    def column_at(self, ordinal: int) -> Optional[ScriptColumn]:
        """Look up a cell by schema ordinal."""
        for column in self.columns:
            if column.schema.ordinal == ordinal:
                return column
        return None

    def __getitem__(self, name: str) -> Any:
        column = self.column(name)
        if column is None:
            raise KeyError(name)
        return column.value

    def __iter__(self) -> Iterator[ScriptColumn]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __repr__(self) -> str:
        return f"ScriptRow(table={self.table_name!r}, sequence_id={self.sequence_id})"


class ScriptTable:
    """
    A table whose captured rows are turned into a script.

    Args:
        name: Name of the captured table; used in every generated statement
            unless ``metadata.script_name`` renames it
        metadata: Optional header/restriction/database metadata
        compatibility: Sub-select compatibility level; defaults to settings
        use_24_hour_clock: Render datetimes with a 24-hour clock; defaults
            to settings

    Example:
        >>> table = ScriptTable("Person", compatibility="modern")
        >>> table.fill([[1, "O'Brien", True]], schema=person_schema)
        >>> len(table)
        1
    """

    def __init__(
        self,
        name: str,
        metadata: Optional[TableMetadata] = None,
        compatibility: Union[CompatibilityLevel, str, None] = None,
        use_24_hour_clock: Optional[bool] = None,
    ):
        if not name or not name.strip():
            raise ValueError("Table name must not be empty")

        if compatibility is None or use_24_hour_clock is None:
            settings = get_settings()
            if compatibility is None:
                compatibility = settings.default_compatibility
            if use_24_hour_clock is None:
                use_24_hour_clock = settings.use_24_hour_clock

        self.metadata = metadata or TableMetadata()
        self.captured_name = name
        self.name = self.metadata.script_name or name
        self.compatibility: CompatibilityStrategy = get_compatibility(compatibility)
        self.formatter = LiteralFormatter(
            self.compatibility,
            DATETIME_FORMAT_24H if use_24_hour_clock else DATETIME_FORMAT_12H,
        )
        self._schema: Optional[Tuple[ColumnSchema, ...]] = None
        self._rows: List[ScriptRow] = []

    @property
    def compatibility_level(self) -> CompatibilityLevel:
        return self.compatibility.level

    @property
    def schema(self) -> Optional[Tuple[ColumnSchema, ...]]:
        return self._schema

    @property
    def rows(self) -> Tuple[ScriptRow, ...]:
        return tuple(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[ScriptRow]:
        return iter(self._rows)

    def fill(
        self,
        rows: Iterable[RowValues],
        schema: Optional[Sequence[ColumnSchema]] = None,
        relationships: Optional[Mapping[str, Union[str, Relationship]]] = None,
        comments: Optional[Sequence[Optional[str]]] = None,
        detect_modifiers: bool = True,
    ) -> int:
        """
        Append rows to the table.

        Rows are sequences matched to the schema by ordinal, or mappings
        matched by column name (case-insensitive); a column missing from a
        mapping is left unset and omitted from INSERT and SET lists.

        Args:
            rows: Row values
            schema: Column schema; required on the first fill, and must equal
                the established schema on later fills
            relationships: Column name -> ``{Table.Column join}`` notation
            comments: Optional per-row comments, parallel to ``rows``
            detect_modifiers: Tag ``{...}`` string values as ScriptModifier

        Returns:
            Number of rows appended

        Raises:
            SchemaMismatchError: If the schema or a row disagrees with the
                established schema
            RelationshipFormatError: If relationship notation is invalid
        """
        self._establish_schema(schema)
        parsed = self._parse_relationships(relationships or {})

        # Build everything first so a bad row leaves the table untouched
        built: List[ScriptRow] = []
        for index, values in enumerate(rows):
            comment = comments[index] if comments is not None and index < len(comments) else None
            built.append(
                self._build_row(
                    values, parsed, len(self._rows) + index, comment, detect_modifiers
                )
            )
        self._rows.extend(built)
        return len(built)

    def add_row(
        self,
        values: RowValues,
        comment: Optional[str] = None,
        relationships: Optional[Mapping[str, Union[str, Relationship]]] = None,
    ) -> ScriptRow:
        """Append a single row to a table whose schema is established."""
        self.fill([values], relationships=relationships, comments=[comment])
        return self._rows[-1]

    def declarations(self) -> List[str]:
        """Distinct scalar-variable declarations required by the rows (legacy only)."""
        return self.compatibility.declarations(self._rows)

    def create_table(self, line_terminator: str = "\r\n") -> str:
        """CREATE TABLE statement for the established schema."""
        return build_create_table(self.name, self._require_schema(), line_terminator)

    def _require_schema(self) -> Tuple[ColumnSchema, ...]:
        if self._schema is None:
            raise SchemaMismatchError(
                "Table schema has not been established", table_name=self.name
            )
        return self._schema

    def _establish_schema(self, schema: Optional[Sequence[ColumnSchema]]) -> None:
        if schema is None:
            if self._schema is None:
                raise SchemaMismatchError(
                    "A schema is required for the first fill", table_name=self.name
                )
            return

        ordered = tuple(sorted(schema, key=lambda column: column.ordinal))
        if not ordered:
            raise SchemaMismatchError("Schema has no columns", table_name=self.name)
        ordinals = [column.ordinal for column in ordered]
        if len(set(ordinals)) != len(ordinals):
            raise SchemaMismatchError("Schema ordinals are not unique", table_name=self.name)
        names = [column.name.lower() for column in ordered]
        if len(set(names)) != len(names):
            raise SchemaMismatchError("Schema column names are not unique", table_name=self.name)

        if self._schema is None:
            self._schema = ordered
        elif ordered != self._schema:
            raise SchemaMismatchError(
                "Schema differs from the schema established by the first fill",
                table_name=self.name,
            )

    def _parse_relationships(
        self, relationships: Mapping[str, Union[str, Relationship]]
    ) -> Dict[str, Relationship]:
        known = {column.name.lower() for column in self._require_schema()}
        parsed: Dict[str, Relationship] = {}
        for column_name, notation in relationships.items():
            if column_name.lower() not in known:
                raise SchemaMismatchError(
                    "Relationship names an unknown column",
                    table_name=self.name,
                    column_name=column_name,
                )
            if isinstance(notation, Relationship):
                parsed[column_name.lower()] = notation
                continue
            try:
                parsed[column_name.lower()] = Relationship.parse(notation)
            except RelationshipFormatError as exc:
                raise RelationshipFormatError(
                    "Invalid relationship format",
                    exc.notation,
                    table_name=self.name,
                    column_name=column_name,
                ) from exc
        return parsed

    def _build_row(
        self,
        values: RowValues,
        relationships: Mapping[str, Relationship],
        sequence_id: int,
        comment: Optional[str],
        detect_modifiers: bool,
    ) -> ScriptRow:
        ordered = self._ordered_values(values, sequence_id)

        cells = []
        for schema, value in zip(self._require_schema(), ordered):
            if detect_modifiers and ScriptModifier.is_bracketed(value):
                value = ScriptModifier.parse(value)
            cells.append(
                ScriptColumn(
                    schema=schema,
                    value=value,
                    relationship=relationships.get(schema.name.lower()),
                )
            )
        return ScriptRow(self, cells, sequence_id, comment)

    def _ordered_values(self, values: RowValues, sequence_id: int) -> List[Any]:
        columns = self._require_schema()
        if isinstance(values, Mapping):
            by_name = {str(key).lower(): value for key, value in values.items()}
            unknown = set(by_name) - {column.name.lower() for column in columns}
            if unknown:
                raise SchemaMismatchError(
                    f"Row has columns not in the schema: {sorted(unknown)}",
                    table_name=self.name,
                    row_index=sequence_id,
                )
            return [by_name.get(column.name.lower(), UNSET) for column in columns]

        if isinstance(values, (str, bytes)):
            raise SchemaMismatchError(
                "Row values must be a sequence or mapping",
                table_name=self.name,
                row_index=sequence_id,
            )
        ordered = list(values)
        if len(ordered) != len(columns):
            raise SchemaMismatchError(
                f"Row has {len(ordered)} values but the schema has {len(columns)} columns",
                table_name=self.name,
                row_index=sequence_id,
            )
        return ordered

    def __str__(self) -> str:
        text = f"{self.name} Where {self.metadata.restriction or ''}"
        if self._schema is None:
            return text
        return f"{text} Rows {len(self._rows)}"


__all__ = [
    "TableMetadata",
    "ScriptColumn",
    "ScriptRow",
    "ScriptTable",
]
