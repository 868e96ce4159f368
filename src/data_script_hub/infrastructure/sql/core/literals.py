"""
Value-to-literal formatting.

``format_literal`` is the pure ``(value, column schema) -> literal`` rule
set. ``LiteralFormatter`` adds the row-aware value kinds: bracketed
modifiers that reference sibling columns, and relationship sub-query
columns, whose literal comes from the table's compatibility strategy.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Optional

from data_script_hub.domain.scripting.exceptions import (
    CircularReferenceError,
    ScriptGenerationError,
)
from data_script_hub.domain.scripting.types import ScriptModifier, ValueKind, is_null
from data_script_hub.infrastructure.schema.core import ColumnSchema, NativeType

from .tokens import substitute_tokens

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from data_script_hub.domain.scripting.models import ScriptColumn, ScriptRow
    from data_script_hub.infrastructure.sql.dialects.compatibility import (
        CompatibilityStrategy,
    )

NULL_LITERAL = "null"

# 12-hour clock without an AM/PM designator is the established literal shape
DATETIME_FORMAT_12H = "%Y-%m-%d %I:%M:%S"
DATETIME_FORMAT_24H = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"

_TRUE_STRINGS = frozenset({"1", "true", "t", "yes", "y"})


def quote_text(text: str) -> str:
    """Single-quote text, doubling embedded single quotes."""
    return "'" + text.replace("'", "''") + "'"


def _as_datetime(value: Any) -> Optional[dt.datetime]:
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if isinstance(value, str):
        try:
            return dt.datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _as_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _time_text(value: Any) -> str:
    if isinstance(value, dt.timedelta):
        seconds = int(value.total_seconds())
        hours, remainder = divmod(seconds, 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if isinstance(value, (dt.time, dt.datetime)):
        return value.strftime(TIME_FORMAT)
    return str(value)


def _is_true(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def format_literal(
    value: Any, column: ColumnSchema, datetime_format: str = DATETIME_FORMAT_12H
) -> str:
    """
    Format a plain value as a SQL literal for the given column.

    Rules, in precedence order: null -> ``null``; textual types -> quoted
    with embedded quotes doubled; datetime -> quoted fixed-format timestamp;
    boolean -> ``1``/``0``; date, time and guid -> quoted; binary -> ``0x``
    hex; anything else -> the value's natural string form, unquoted.

    Examples:
        >>> format_literal("O'Brien", ColumnSchema("Name", NativeType.TEXT))
        "'O''Brien'"
        >>> format_literal(None, ColumnSchema("Name", NativeType.TEXT))
        'null'
    """
    if is_null(value):
        return NULL_LITERAL
    if isinstance(value, ScriptModifier):
        raise TypeError("Modifiers need row context; format them with LiteralFormatter")

    native = column.native_type
    if column.is_string_type or native is NativeType.TEXT:
        return quote_text(str(value))

    if native is NativeType.DATETIME:
        moment = _as_datetime(value)
        return quote_text(moment.strftime(datetime_format) if moment else str(value))

    if native is NativeType.BOOLEAN:
        return "1" if _is_true(value) else "0"

    if native is NativeType.DATE:
        day = _as_date(value)
        return quote_text(day.strftime(DATE_FORMAT) if day else str(value))

    if native is NativeType.TIME:
        return quote_text(_time_text(value))

    if native is NativeType.GUID:
        return quote_text(str(value))

    if native is NativeType.BINARY and isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex().upper()

    return str(value)


class LiteralFormatter:
    """
    Row-aware literal formatter for one table.

    The compatibility strategy is chosen once per table and injected here;
    the formatter never re-checks the compatibility level itself.
    """

    def __init__(
        self,
        compatibility: "CompatibilityStrategy",
        datetime_format: str = DATETIME_FORMAT_12H,
    ):
        self.compatibility = compatibility
        self.datetime_format = datetime_format

    def literal(self, column: "ScriptColumn", row: "ScriptRow") -> str:
        """The literal used for ``column`` in statements for ``row``."""
        return self._literal(column, row, frozenset())

    def subquery(self, column: "ScriptColumn", row: "ScriptRow") -> str:
        """Render the sub-select text of a relationship column."""
        return self._subquery(column, row, frozenset())

    def _literal(
        self, column: "ScriptColumn", row: "ScriptRow", visiting: FrozenSet[str]
    ) -> str:
        if column.kind is ValueKind.SUBQUERY:
            return self.compatibility.subquery_literal(
                column, row, lambda: self._subquery(column, row, visiting)
            )
        return self._direct(column, row, visiting)

    def _direct(
        self, column: "ScriptColumn", row: "ScriptRow", visiting: FrozenSet[str]
    ) -> str:
        """Literal of the cell's own value, ignoring any relationship."""
        value = column.value
        if is_null(value):
            return NULL_LITERAL
        if column.value_kind is ValueKind.MODIFIER:
            inner = self._enter(column, row, visiting)
            expanded = substitute_tokens(
                value.template, self._resolver(row, inner, follow_relationships=True)
            )
            return f"({expanded})"
        try:
            return format_literal(value, column.schema, self.datetime_format)
        except Exception as exc:
            raise ScriptGenerationError(
                f"Could not format value as a literal: {exc}",
                table_name=row.table_name,
                row_index=row.sequence_id,
                column_name=column.name,
            ) from exc

    def _subquery(
        self, column: "ScriptColumn", row: "ScriptRow", visiting: FrozenSet[str]
    ) -> str:
        inner = self._enter(column, row, visiting)
        # Join tokens see their sibling's own value, one level of indirection only
        return column.relationship.render(
            self._resolver(row, inner, follow_relationships=False)
        )

    def _resolver(
        self, row: "ScriptRow", visiting: FrozenSet[str], follow_relationships: bool
    ) -> Callable[[str], Optional[str]]:
        def resolve(name: str) -> Optional[str]:
            sibling = row.column(name)
            if sibling is None:
                return None
            if follow_relationships:
                return self._literal(sibling, row, visiting)
            return self._direct(sibling, row, visiting)

        return resolve

    @staticmethod
    def _enter(
        column: "ScriptColumn", row: "ScriptRow", visiting: FrozenSet[str]
    ) -> FrozenSet[str]:
        key = column.name.lower()
        if key in visiting:
            raise CircularReferenceError(
                "Column expression refers back to itself",
                table_name=row.table_name,
                row_index=row.sequence_id,
                column_name=column.name,
            )
        return visiting | {key}


__all__ = [
    "NULL_LITERAL",
    "DATETIME_FORMAT_12H",
    "DATETIME_FORMAT_24H",
    "quote_text",
    "format_literal",
    "LiteralFormatter",
]
