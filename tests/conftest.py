"""Shared pytest fixtures for data-script generation tests."""

from __future__ import annotations

import os
from datetime import datetime

import pytest

from data_script_hub.config import ScriptOptions, get_settings
from data_script_hub.domain.scripting.models import ScriptTable
from data_script_hub.domain.scripting.service import ScriptAuthor
from data_script_hub.infrastructure.schema.core import ColumnSchema, NativeType


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep host DSH_* variables out of the settings under test."""
    for key in list(os.environ):
        if key.startswith("DSH_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def person_schema():
    """Person(Id int identity key, Name varchar(50), Active bit)."""
    return [
        ColumnSchema(
            "Id",
            NativeType.INTEGER,
            ordinal=0,
            sql_type="int",
            is_key=True,
            is_identity=True,
            is_auto_increment=True,
            allows_null=False,
            table_name="Person",
        ),
        ColumnSchema(
            "Name", NativeType.TEXT, ordinal=1, sql_type="varchar", size=50, table_name="Person"
        ),
        ColumnSchema(
            "Active", NativeType.BOOLEAN, ordinal=2, sql_type="bit", allows_null=False,
            table_name="Person",
        ),
    ]


@pytest.fixture
def person_table(person_schema):
    table = ScriptTable("Person", compatibility="modern")
    table.fill([[1, "O'Brien", True]], schema=person_schema)
    return table


@pytest.fixture
def employee_schema():
    """Employee(Id int key, DeptName varchar, DeptId int) for relationship tests."""
    return [
        ColumnSchema("Id", NativeType.INTEGER, ordinal=0, is_key=True, allows_null=False),
        ColumnSchema("DeptName", NativeType.TEXT, ordinal=1, sql_type="varchar", size=30),
        ColumnSchema("DeptId", NativeType.INTEGER, ordinal=2),
    ]


@pytest.fixture
def author():
    return ScriptAuthor(user="tester", domain="LAB", machine="build01")


@pytest.fixture
def clock():
    return lambda: datetime(2024, 3, 9, 14, 5, 0)


@pytest.fixture
def make_options():
    def _make(**overrides):
        values = {"use_transaction": False, "progress_gap": 0, "line_terminator": "\n"}
        values.update(overrides)
        return ScriptOptions(**values)

    return _make
