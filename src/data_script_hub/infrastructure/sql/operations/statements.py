"""
Per-row SQL statement builders.

Builds field lists, value lists, SET lists, identifying WHERE clauses and
the INSERT / UPDATE / DELETE statements for one row. Every method is a pure
function of the row and the table's literal formatter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List

from data_script_hub.domain.scripting.exceptions import (
    NoIdentifyingColumnError,
    NoWritableColumnError,
)
from data_script_hub.domain.scripting.types import UNSET, is_null

from ..core.identifier import qualify_table, quote_identifier

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from data_script_hub.domain.scripting.models import ScriptColumn, ScriptRow
    from data_script_hub.infrastructure.sql.core.literals import LiteralFormatter

# WHERE-clause fallback order: primary key, then unique, then identity
IDENTIFYING_FLAGS: List[Callable[["ScriptColumn"], bool]] = [
    lambda column: column.schema.is_key,
    lambda column: column.schema.is_unique,
    lambda column: column.schema.is_identity,
]


class RowStatementBuilder:
    """
    Builder for the statements of a single row.

    Example:
        >>> builder = RowStatementBuilder(table.formatter)
        >>> print(builder.insert(row))
        INSERT INTO [Person] ([Name],[Active])
        VALUES ('O''Brien',1)
    """

    def __init__(self, formatter: "LiteralFormatter", line_terminator: str = "\r\n"):
        """
        Initialize the builder.

        Args:
            formatter: Literal formatter of the row's table
            line_terminator: Separator between the two lines of an INSERT
        """
        self.formatter = formatter
        self.line_terminator = line_terminator

    @staticmethod
    def written_columns(row: "ScriptRow") -> List["ScriptColumn"]:
        """Columns with a supplied value (or a relationship) that are neither identity nor read-only."""
        return [
            column
            for column in row.columns
            if column.schema.is_insertable
            and (column.value is not UNSET or column.relationship is not None)
        ]

    def field_names(self, row: "ScriptRow") -> List[str]:
        return [quote_identifier(column.name) for column in self.written_columns(row)]

    def value_literals(self, row: "ScriptRow") -> List[str]:
        return [
            self.formatter.literal(column, row) for column in self.written_columns(row)
        ]

    def fields(self, row: "ScriptRow") -> str:
        """Comma-joined bracketed field names."""
        return ",".join(self.field_names(row))

    def values(self, row: "ScriptRow") -> str:
        """Comma-joined literals, parallel to :meth:`fields`."""
        return ",".join(self.value_literals(row))

    def set_values(self, row: "ScriptRow") -> str:
        """``[name] = literal`` pairs over the same columns as :meth:`fields`."""
        return ", ".join(
            f"{quote_identifier(column.name)} = {self.formatter.literal(column, row)}"
            for column in self.written_columns(row)
        )

    def where_clause(self, row: "ScriptRow") -> str:
        """
        Build a predicate identifying the row.

        Tries the primary-key columns, then the unique columns, then the
        identity columns; the first group with any non-null value wins.

        Raises:
            NoIdentifyingColumnError: If every group is empty
        """
        for is_identifying in IDENTIFYING_FLAGS:
            predicates = [
                f"{quote_identifier(column.name)} = {self.formatter.literal(column, row)}"
                for column in row.columns
                if is_identifying(column) and not is_null(column.value)
            ]
            if predicates:
                return " and ".join(predicates)

        raise NoIdentifyingColumnError(
            "Couldn't build a where-clause: no key, unique or identity column has a value",
            table_name=row.table_name,
            row_index=row.sequence_id,
        )

    def insert(self, row: "ScriptRow") -> str:
        table = qualify_table(row.table_name)
        if not self.written_columns(row):
            return f"INSERT INTO {table} DEFAULT VALUES"
        return (
            f"INSERT INTO {table} ({self.fields(row)})"
            f"{self.line_terminator}VALUES ({self.values(row)})"
        )

    def update(self, row: "ScriptRow") -> str:
        """
        Raises:
            NoWritableColumnError: If the row has no column to SET
        """
        if not self.written_columns(row):
            raise NoWritableColumnError(
                "Couldn't build an update: no writable column has a value",
                table_name=row.table_name,
                row_index=row.sequence_id,
            )
        return (
            f"UPDATE {qualify_table(row.table_name)} "
            f"SET {self.set_values(row)} WHERE {self.where_clause(row)}"
        )

    def delete(self, row: "ScriptRow") -> str:
        return f"DELETE FROM {qualify_table(row.table_name)} WHERE {self.where_clause(row)}"

    def exists_test(self, row: "ScriptRow", negate: bool = False) -> str:
        test = "IF NOT EXISTS" if negate else "IF EXISTS"
        return f"{test}(select * from {qualify_table(row.table_name)} where {self.where_clause(row)})"

    def insert_or_update(self, row: "ScriptRow") -> List[str]:
        """Conditional upsert: update when the row exists, else insert.

        A row with nothing to SET is only inserted when missing.
        """
        if not self.written_columns(row):
            return [self.exists_test(row, negate=True), self.insert(row)]
        return [self.exists_test(row), self.update(row), "ELSE", self.insert(row)]

    def delete_then_insert(self, row: "ScriptRow") -> List[str]:
        return [self.delete(row), self.insert(row)]


__all__ = ["RowStatementBuilder", "IDENTIFYING_FLAGS"]
