"""
Sub-select compatibility strategies.

Modern dialects accept a scalar sub-select inline in INSERT and UPDATE
statements. Legacy dialects do not, so each sub-query column is replaced
by a scalar variable that the script declares up front and assigns before
the statements that read it.

One strategy is selected per table and shared by its literal formatter and
the script generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, List, Protocol, Tuple

from data_script_hub.domain.scripting.types import CompatibilityLevel
from data_script_hub.infrastructure.schema.core import render_sql_type

from ..core.identifier import scalar_variable_name

if TYPE_CHECKING:  # pragma: no cover - imported only for typing
    from data_script_hub.domain.scripting.models import ScriptColumn, ScriptRow
    from data_script_hub.infrastructure.sql.core.literals import LiteralFormatter


@dataclass(frozen=True)
class HoistState:
    """Scalar-variable SET block emitted for the previous row."""

    previous_block: str = ""


class CompatibilityStrategy(Protocol):
    """Protocol for compatibility strategies."""

    level: CompatibilityLevel

    def subquery_literal(
        self, column: "ScriptColumn", row: "ScriptRow", render: Callable[[], str]
    ) -> str: ...
    def declarations(self, rows: Iterable["ScriptRow"]) -> List[str]: ...
    def assignments(self, row: "ScriptRow", formatter: "LiteralFormatter") -> List[str]: ...
    def hoist(
        self, row: "ScriptRow", formatter: "LiteralFormatter", state: HoistState
    ) -> Tuple[HoistState, List[str]]: ...


class ModernCompatibility:
    """Sub-selects are inlined directly into statements."""

    level = CompatibilityLevel.MODERN

    def subquery_literal(
        self, column: "ScriptColumn", row: "ScriptRow", render: Callable[[], str]
    ) -> str:
        return f"({render()})"

    def declarations(self, rows: Iterable["ScriptRow"]) -> List[str]:
        return []

    def assignments(self, row: "ScriptRow", formatter: "LiteralFormatter") -> List[str]:
        return []

    def hoist(
        self, row: "ScriptRow", formatter: "LiteralFormatter", state: HoistState
    ) -> Tuple[HoistState, List[str]]:
        return state, []


class LegacyCompatibility:
    """Sub-selects are hoisted into declared scalar variables."""

    level = CompatibilityLevel.LEGACY

    @staticmethod
    def variable_name(row: "ScriptRow", column: "ScriptColumn") -> str:
        return scalar_variable_name(row.table_name, column.name)

    def subquery_literal(
        self, column: "ScriptColumn", row: "ScriptRow", render: Callable[[], str]
    ) -> str:
        return self.variable_name(row, column)

    def declarations(self, rows: Iterable["ScriptRow"]) -> List[str]:
        """Distinct ``declare`` lines, in order of first use."""
        seen: List[str] = []
        for row in rows:
            for column in row.subquery_columns:
                declaration = (
                    f"declare {self.variable_name(row, column)} "
                    f"as {render_sql_type(column.schema)};"
                )
                if declaration not in seen:
                    seen.append(declaration)
        return seen

    def assignments(self, row: "ScriptRow", formatter: "LiteralFormatter") -> List[str]:
        """``SET @var = (select ...)`` lines required by one row."""
        return [
            f"SET {self.variable_name(row, column)} = ({formatter.subquery(column, row)})"
            for column in row.subquery_columns
        ]

    def hoist(
        self, row: "ScriptRow", formatter: "LiteralFormatter", state: HoistState
    ) -> Tuple[HoistState, List[str]]:
        """
        Return the SET lines to emit before ``row`` and the next state.

        A block identical to the immediately preceding row's block is
        suppressed; any other block is emitted, even if it was emitted
        earlier in the script.
        """
        lines = self.assignments(row, formatter)
        block = "\n".join(lines)
        if not block or block == state.previous_block:
            return state, []
        return HoistState(previous_block=block), lines


_STRATEGIES = {
    CompatibilityLevel.LEGACY: LegacyCompatibility,
    CompatibilityLevel.MODERN: ModernCompatibility,
}


def get_compatibility(level: "CompatibilityLevel | str") -> CompatibilityStrategy:
    """
    Select the strategy for a compatibility level.

    Examples:
        >>> get_compatibility("modern").level
        <CompatibilityLevel.MODERN: 'modern'>
    """
    return _STRATEGIES[CompatibilityLevel(level)]()


__all__ = [
    "HoistState",
    "CompatibilityStrategy",
    "LegacyCompatibility",
    "ModernCompatibility",
    "get_compatibility",
]
