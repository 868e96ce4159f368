"""
Tests for per-row statement building.
"""

from dataclasses import replace

import pytest

from data_script_hub.domain.scripting.exceptions import (
    NoIdentifyingColumnError,
    NoWritableColumnError,
)
from data_script_hub.domain.scripting.models import ScriptTable
from data_script_hub.infrastructure.schema.core import ColumnSchema, NativeType
from data_script_hub.infrastructure.sql.operations.statements import RowStatementBuilder


@pytest.fixture
def identity_only_schema(person_schema):
    """Person schema with Id marked identity but not primary key."""
    return [replace(person_schema[0], is_key=False)] + person_schema[1:]


def _row(schema, values, name="Person", **fill_kwargs):
    table = ScriptTable(name, compatibility="modern")
    table.fill([values], schema=schema, **fill_kwargs)
    return table, table.rows[0]


class TestFieldsAndValues:
    """Tests for field, value and SET lists."""

    def test_identity_excluded(self, person_table):
        builder = RowStatementBuilder(person_table.formatter)
        row = person_table.rows[0]
        assert builder.fields(row) == "[Name],[Active]"
        assert builder.values(row) == "'O''Brien',1"

    def test_fields_and_values_parallel(self, person_schema):
        table, row = _row(person_schema, {"Id": 7, "Active": False})
        builder = RowStatementBuilder(table.formatter)
        assert len(builder.field_names(row)) == len(builder.value_literals(row))
        assert builder.fields(row) == "[Active]"

    def test_read_only_excluded(self):
        schema = [
            ColumnSchema("Code", NativeType.TEXT, ordinal=0, is_key=True),
            ColumnSchema("Total", NativeType.DECIMAL, ordinal=1, is_read_only=True),
        ]
        table, row = _row(schema, ["A1", 9], name="Item")
        assert RowStatementBuilder(table.formatter).fields(row) == "[Code]"

    def test_null_value_written(self, person_schema):
        """An explicit None is written as null; an omitted value is left out."""
        table, row = _row(person_schema, [1, None, True])
        builder = RowStatementBuilder(table.formatter)
        assert builder.fields(row) == "[Name],[Active]"
        assert builder.values(row) == "null,1"

    def test_set_values(self, person_table):
        builder = RowStatementBuilder(person_table.formatter)
        assert builder.set_values(person_table.rows[0]) == "[Name] = 'O''Brien', [Active] = 1"


class TestWhereClause:
    """Tests for identifying-column fallback."""

    def test_primary_key_first(self, person_schema):
        schema = [person_schema[0], replace(person_schema[1], is_unique=True), person_schema[2]]
        table, row = _row(schema, [1, "Ann", True])
        assert RowStatementBuilder(table.formatter).where_clause(row) == "[Id] = 1"

    def test_unique_before_identity(self, identity_only_schema):
        schema = [
            identity_only_schema[0],
            replace(identity_only_schema[1], is_unique=True),
            identity_only_schema[2],
        ]
        table, row = _row(schema, [1, "Ann", True])
        assert RowStatementBuilder(table.formatter).where_clause(row) == "[Name] = 'Ann'"

    def test_identity_fallback(self, identity_only_schema):
        table, row = _row(identity_only_schema, [1, "Ann", True])
        assert RowStatementBuilder(table.formatter).where_clause(row) == "[Id] = 1"

    def test_null_key_falls_through(self, person_schema):
        """A key group whose values are all null does not count."""
        schema = [
            replace(person_schema[0], is_identity=False, is_auto_increment=False),
            replace(person_schema[1], is_unique=True),
            person_schema[2],
        ]
        table, row = _row(schema, [None, "Ann", True])
        assert RowStatementBuilder(table.formatter).where_clause(row) == "[Name] = 'Ann'"

    def test_composite_key(self):
        schema = [
            ColumnSchema("OrderId", NativeType.INTEGER, ordinal=0, is_key=True),
            ColumnSchema("Line", NativeType.INTEGER, ordinal=1, is_key=True),
            ColumnSchema("Sku", NativeType.TEXT, ordinal=2),
        ]
        table, row = _row(schema, [10, 2, "X"], name="OrderLine")
        clause = RowStatementBuilder(table.formatter).where_clause(row)
        assert clause == "[OrderId] = 10 and [Line] = 2"

    def test_no_identifying_column(self, person_schema):
        table, row = _row(person_schema, [None, "Ann", True])
        with pytest.raises(NoIdentifyingColumnError) as exc_info:
            RowStatementBuilder(table.formatter).where_clause(row)
        assert exc_info.value.table_name == "Person"
        assert exc_info.value.row_index == 0


class TestStatements:
    """Tests for complete row statements."""

    def test_insert(self, person_table):
        builder = RowStatementBuilder(person_table.formatter)
        assert builder.insert(person_table.rows[0]) == (
            "INSERT INTO [Person] ([Name],[Active])\r\nVALUES ('O''Brien',1)"
        )

    def test_insert_line_terminator(self, person_table):
        builder = RowStatementBuilder(person_table.formatter, line_terminator="\n")
        assert builder.insert(person_table.rows[0]).split("\n") == [
            "INSERT INTO [Person] ([Name],[Active])",
            "VALUES ('O''Brien',1)",
        ]

    def test_insert_default_values(self, person_schema):
        table, row = _row(person_schema, {"Id": 4})
        assert RowStatementBuilder(table.formatter).insert(row) == (
            "INSERT INTO [Person] DEFAULT VALUES"
        )

    def test_update_identity_fallback(self, identity_only_schema):
        table, row = _row(identity_only_schema, [1, "O'Brien", True])
        assert RowStatementBuilder(table.formatter).update(row) == (
            "UPDATE [Person] SET [Name] = 'O''Brien', [Active] = 1 WHERE [Id] = 1"
        )

    def test_delete(self, person_table):
        builder = RowStatementBuilder(person_table.formatter)
        assert builder.delete(person_table.rows[0]) == "DELETE FROM [Person] WHERE [Id] = 1"

    def test_delete_then_insert(self, person_table):
        builder = RowStatementBuilder(person_table.formatter, line_terminator="\n")
        assert builder.delete_then_insert(person_table.rows[0]) == [
            "DELETE FROM [Person] WHERE [Id] = 1",
            "INSERT INTO [Person] ([Name],[Active])\nVALUES ('O''Brien',1)",
        ]

    def test_insert_or_update(self, person_table):
        builder = RowStatementBuilder(person_table.formatter, line_terminator="\n")
        statements = builder.insert_or_update(person_table.rows[0])
        assert statements[0] == "IF EXISTS(select * from [Person] where [Id] = 1)"
        assert statements[1].startswith("UPDATE [Person] SET ")
        assert statements[2] == "ELSE"
        assert statements[3].startswith("INSERT INTO [Person] ")

    def test_update_without_writable_columns(self, person_schema):
        """Only the identity key is supplied, so there is nothing to SET."""
        table, row = _row(person_schema, {"Id": 1})
        with pytest.raises(NoWritableColumnError) as exc_info:
            RowStatementBuilder(table.formatter).update(row)
        assert exc_info.value.table_name == "Person"
        assert exc_info.value.row_index == 0

    def test_insert_or_update_without_writable_columns(self, person_schema):
        table, row = _row(person_schema, {"Id": 1})
        assert RowStatementBuilder(table.formatter).insert_or_update(row) == [
            "IF NOT EXISTS(select * from [Person] where [Id] = 1)",
            "INSERT INTO [Person] DEFAULT VALUES",
        ]

    def test_schema_qualified_table(self, person_schema):
        table, row = _row(person_schema, [1, "Ann", True], name="dbo.Person")
        assert RowStatementBuilder(table.formatter).delete(row) == (
            "DELETE FROM [dbo].[Person] WHERE [Id] = 1"
        )


class TestModifiers:
    """Tests for bracketed modifier values."""

    def test_modifier_expands_sibling_tokens(self):
        schema = [
            ColumnSchema("Id", NativeType.INTEGER, ordinal=0, is_key=True),
            ColumnSchema("Price", NativeType.DECIMAL, ordinal=1),
            ColumnSchema("Doubled", NativeType.DECIMAL, ordinal=2),
        ]
        table, row = _row(schema, [1, 5, "{:price * 2}"], name="Item")
        builder = RowStatementBuilder(table.formatter)
        assert builder.values(row) == "1,5,(5 * 2)"

    def test_modifier_without_tokens(self):
        schema = [
            ColumnSchema("Id", NativeType.INTEGER, ordinal=0, is_key=True),
            ColumnSchema("Stamp", NativeType.DATETIME, ordinal=1),
        ]
        table, row = _row(schema, [1, "{getdate()}"], name="Audit")
        assert RowStatementBuilder(table.formatter).set_values(row) == "[Id] = 1, [Stamp] = (getdate())"

    def test_modifier_detection_disabled(self):
        schema = [
            ColumnSchema("Id", NativeType.INTEGER, ordinal=0, is_key=True),
            ColumnSchema("Note", NativeType.TEXT, ordinal=1),
        ]
        table, row = _row(schema, [1, "{literal}"], name="Note", detect_modifiers=False)
        assert RowStatementBuilder(table.formatter).values(row) == "1,'{literal}'"
