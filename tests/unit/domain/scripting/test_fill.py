"""
Tests for DataFrame, SQLAlchemy and YAML row sources.
"""

import textwrap

import pandas as pd
import pytest
import sqlalchemy as sa

from data_script_hub.config import ScriptOptions
from data_script_hub.domain.scripting.exceptions import SchemaMismatchError, TableDefinitionError
from data_script_hub.domain.scripting.fill import (
    TableDefinition,
    fill_from_frame,
    fill_from_sqlalchemy,
    load_table_definition,
)
from data_script_hub.domain.scripting.models import ScriptTable, TableMetadata
from data_script_hub.domain.scripting.service import generate_script_text
from data_script_hub.domain.scripting.types import CompatibilityLevel, ScriptType


class TestFillFromFrame:
    """Tests for DataFrame row sources."""

    def test_rows_and_nulls(self):
        df = pd.DataFrame({"Id": [1, 2], "Score": [1.5, float("nan")]})
        table = ScriptTable("Stats", compatibility="modern")
        assert fill_from_frame(table, df, key_columns=["Id"]) == 2
        assert table.rows[1]["Score"] is None
        assert table.schema[0].is_key

    def test_restriction_applied(self):
        df = pd.DataFrame({"Id": [1, 2, 3], "Active": [True, False, True]})
        table = ScriptTable("Person", metadata=TableMetadata(restriction="Active"))
        fill_from_frame(table, df, key_columns=["Id"], apply_restriction=True)
        assert [row["Id"] for row in table] == [1, 3]

    def test_second_frame_keeps_schema(self):
        table = ScriptTable("Person", compatibility="modern")
        fill_from_frame(table, pd.DataFrame({"Id": [1], "Name": ["Ann"]}), key_columns=["Id"])
        fill_from_frame(table, pd.DataFrame({"Id": [2], "Name": [None]}), key_columns=["Id"])
        assert len(table) == 2
        assert table.schema[1].is_string_type

    def test_second_frame_with_other_columns(self):
        table = ScriptTable("Person")
        fill_from_frame(table, pd.DataFrame({"Id": [1]}))
        with pytest.raises(SchemaMismatchError):
            fill_from_frame(table, pd.DataFrame({"Code": ["A"]}))

    def test_frame_relationships(self):
        df = pd.DataFrame({"Id": [1], "DeptName": ["Sales"], "DeptId": [None]})
        table = ScriptTable("Employee", compatibility="modern")
        fill_from_frame(
            table,
            df,
            key_columns=["Id"],
            relationships={"DeptId": "{Department.Id [Name] = :deptname}"},
        )
        assert table.rows[0].column("DeptId").is_subquery


class TestFillFromSqlalchemy:
    """Tests for SQLAlchemy metadata row sources."""

    @pytest.fixture
    def person(self):
        return sa.Table(
            "Person",
            sa.MetaData(),
            sa.Column("Id", sa.Integer, primary_key=True),
            sa.Column("Name", sa.String(50)),
        )

    def test_tuples(self, person):
        table = ScriptTable("Person", compatibility="modern")
        assert fill_from_sqlalchemy(table, person, [(1, "Ann"), (2, "Bob")]) == 2
        text = generate_script_text(table)
        assert "INSERT INTO [Person] ([Name])" in text

    def test_rows_from_engine(self, person):
        engine = sa.create_engine("sqlite://")
        person.metadata.create_all(engine)
        with engine.begin() as conn:
            conn.execute(sa.insert(person), [{"Id": 1, "Name": "Ann"}])
            rows = conn.execute(sa.select(person)).all()
        table = ScriptTable("Person", compatibility="modern")
        fill_from_sqlalchemy(table, person, rows)
        assert table.rows[0]["Name"] == "Ann"


class TestLoadTableDefinition:
    """Tests for YAML table definitions."""

    def _write(self, tmp_path, text):
        path = tmp_path / "table.yml"
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    def test_load(self, tmp_path):
        path = self._write(
            tmp_path,
            """
            table: Employee
            compatibility: modern
            comment: seed employees
            columns:
              - {name: Id, type: int, key: true, nullable: false}
              - {name: DeptName, type: VarChar, size: 30}
              - {name: DeptId, type: int}
            relationships:
              DeptId: "{Department.Id [Name] = :deptname}"
            rows:
              - [1, Sales, null]
              - {Id: 2, DeptName: Ops}
            """,
        )
        table = load_table_definition(path)
        assert table.name == "Employee"
        assert table.compatibility_level is CompatibilityLevel.MODERN
        assert table.metadata.comment == "seed employees"
        assert len(table) == 2
        assert table.schema[1].sql_type == "varchar"
        assert table.rows[1].column("DeptId").is_subquery

        options = ScriptOptions(script_type=ScriptType.INSERT, line_terminator="\n")
        text = generate_script_text(table, options)
        assert "VALUES (1,'Sales',(select [Id] from [Department] where [Name] = 'Sales'))" in text

    def test_missing_file(self, tmp_path):
        with pytest.raises(TableDefinitionError, match="not found"):
            load_table_definition(tmp_path / "absent.yml")

    def test_invalid_yaml(self, tmp_path):
        path = self._write(tmp_path, "table: [unclosed\n")
        with pytest.raises(TableDefinitionError):
            load_table_definition(path)

    def test_unknown_column_type(self, tmp_path):
        path = self._write(
            tmp_path,
            """
            table: T
            columns:
              - {name: A, type: wibble}
            """,
        )
        with pytest.raises(TableDefinitionError) as exc_info:
            load_table_definition(path)
        assert exc_info.value.table_name == "T"

    def test_not_a_mapping(self, tmp_path):
        path = self._write(tmp_path, "- just\n- a list\n")
        with pytest.raises(TableDefinitionError):
            load_table_definition(path)

    def test_column_schema(self):
        definition = TableDefinition(
            table="Person",
            columns=[
                {"name": "Id", "type": "int", "key": True, "identity": True},
                {"name": "Salary", "type": "decimal", "precision": 10, "scale": 2},
            ],
        )
        schema = definition.column_schema()
        assert schema[0].is_identity and schema[0].is_auto_increment
        assert schema[1].ordinal == 1
        assert schema[1].precision == 10
