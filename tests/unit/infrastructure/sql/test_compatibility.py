"""
Tests for the sub-select compatibility strategies.
"""

import pytest

from data_script_hub.domain.scripting.models import ScriptTable
from data_script_hub.domain.scripting.types import CompatibilityLevel
from data_script_hub.infrastructure.sql.dialects.compatibility import (
    HoistState,
    LegacyCompatibility,
    ModernCompatibility,
    get_compatibility,
)

DEPT_LOOKUP = {"DeptId": "{Department.Id [Name] = :deptname}"}


def _employees(schema, level, rows):
    table = ScriptTable("Employee", compatibility=level)
    table.fill(rows, schema=schema, relationships=DEPT_LOOKUP)
    return table


class TestGetCompatibility:
    """Tests for strategy selection."""

    def test_levels(self):
        assert isinstance(get_compatibility("legacy"), LegacyCompatibility)
        assert isinstance(get_compatibility(CompatibilityLevel.MODERN), ModernCompatibility)

    def test_version_aliases(self):
        assert get_compatibility("SQL_2005").level is CompatibilityLevel.LEGACY
        assert get_compatibility("sql_2008").level is CompatibilityLevel.MODERN

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            get_compatibility("sql_2000")


class TestModernCompatibility:
    """Inline sub-selects need no declarations or SET lines."""

    def test_inline_subquery_literal(self, employee_schema):
        table = _employees(employee_schema, "modern", [[1, "Sales", None]])
        row = table.rows[0]
        literal = table.formatter.literal(row.column("DeptId"), row)
        assert literal == "(select [Id] from [Department] where [Name] = 'Sales')"

    def test_no_declarations_or_hoisting(self, employee_schema):
        table = _employees(employee_schema, "modern", [[1, "Sales", None]])
        row = table.rows[0]
        assert table.declarations() == []
        state, lines = table.compatibility.hoist(row, table.formatter, HoistState())
        assert lines == []
        assert state == HoistState()


class TestLegacyCompatibility:
    """Sub-selects become declared scalar variables."""

    def test_variable_literal(self, employee_schema):
        table = _employees(employee_schema, "legacy", [[1, "Sales", None]])
        row = table.rows[0]
        assert table.formatter.literal(row.column("DeptId"), row) == "@Employee_DeptId"

    def test_declarations_distinct(self, employee_schema):
        """One declaration per distinct variable, however many rows use it."""
        table = _employees(
            employee_schema, "legacy", [[1, "Sales", None], [2, "Ops", None]]
        )
        assert table.declarations() == ["declare @Employee_DeptId as int;"]

    def test_declaration_uses_sized_type(self, employee_schema):
        table = ScriptTable("Employee", compatibility="legacy")
        table.fill(
            [[1, "Sales", None]],
            schema=employee_schema,
            relationships={"DeptName": "{Department.Name [Id] = :id}"},
        )
        assert table.declarations() == ["declare @Employee_DeptName as varchar(30);"]

    def test_assignment_line(self, employee_schema):
        table = _employees(employee_schema, "legacy", [[1, "Sales", None]])
        row = table.rows[0]
        assert table.compatibility.assignments(row, table.formatter) == [
            "SET @Employee_DeptId = (select [Id] from [Department] where [Name] = 'Sales')"
        ]

    def test_hoist_skips_consecutive_duplicate(self, employee_schema):
        """An identical block for the next row is suppressed."""
        table = _employees(
            employee_schema, "legacy", [[1, "Sales", None], [2, "Sales", None]]
        )
        strategy, formatter = table.compatibility, table.formatter
        state, first = strategy.hoist(table.rows[0], formatter, HoistState())
        state, second = strategy.hoist(table.rows[1], formatter, state)
        assert len(first) == 1
        assert second == []

    def test_hoist_re_emits_after_change(self, employee_schema):
        """Only the immediately preceding block counts as a duplicate."""
        table = _employees(
            employee_schema,
            "legacy",
            [[1, "Sales", None], [2, "Ops", None], [3, "Sales", None]],
        )
        strategy, formatter = table.compatibility, table.formatter
        state = HoistState()
        emitted = []
        for row in table:
            state, lines = strategy.hoist(row, formatter, state)
            emitted.append(lines)
        assert [len(lines) for lines in emitted] == [1, 1, 1]
        assert emitted[0] == emitted[2]

    def test_hoist_without_subqueries(self, person_schema):
        table = ScriptTable("Person", compatibility="legacy")
        table.fill([[1, "Ann", True]], schema=person_schema)
        state, lines = table.compatibility.hoist(table.rows[0], table.formatter, HoistState())
        assert lines == []
        assert state.previous_block == ""
